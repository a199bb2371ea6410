"""
Mood scale.

Moods have been stored in two encodings over the app's life:
  - a 1..5 score
  - a centered -2..+2 score

normalize() maps both onto 1..5. The ranges overlap on 1 and 2, and the
1..5 range is checked first, so a raw 1 is read as 1 (not 4) and a raw 2 as
2 (not 5). Old data written with the centered scale therefore reads lower
for those two values; this is the canonical resolution and is pinned by a
regression test.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

LABELS: dict[int, str] = {
    1: "Very bad",
    2: "Bad",
    3: "Okay",
    4: "Good",
    5: "Very good",
}

EMOJIS: dict[int, str] = {
    1: "😭",
    2: "😣",
    3: "😐",
    4: "🙂",
    5: "😄",
}

NO_LABEL = "—"
NO_EMOJI = "❓"

# Label text -> centered value, for old mood events saved without a number.
# Includes the labels the app shipped with before it was translated.
LEGACY_LABELS: dict[str, int] = {
    "very bad": -2,
    "bad": -1,
    "okay": 0,
    "good": 1,
    "very good": 2,
    "とてもつらい": -2,
    "つらい": -1,
    "ふつう": 0,
    "少し良い": 1,
    "とても良い": 2,
}


def _clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))


def _as_number(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        v = raw
    else:
        try:
            v = float(str(raw).strip())
        except ValueError:
            return None
    if isinstance(v, float) and math.isnan(v):
        return None
    return v


def normalize(raw: Any) -> float | None:
    """
    Accepts a 1..5 score or a centered -2..+2 score and returns 1..5.
    1..5 wins where the ranges overlap. Returns None for anything else.
    """
    v = _as_number(raw)
    if v is None:
        return None
    if 1 <= v <= 5:
        return _clamp(v, 1, 5)
    if -2 <= v <= 2:
        return _clamp(v + 3, 1, 5)
    return None


def _rounded(normalized: float) -> int:
    # half-up, so 2.5 -> 3 (round() would give 2)
    return int(_clamp(math.floor(normalized + 0.5), 1, 5))


def to_label(normalized: float) -> str:
    return LABELS.get(_rounded(normalized), NO_LABEL)


def to_emoji(normalized: float) -> str:
    return EMOJIS.get(_rounded(normalized), NO_EMOJI)


@dataclass(frozen=True)
class MoodDescription:
    normalized: float | None
    label: str
    emoji: str


def describe(raw: Any) -> MoodDescription:
    normalized = normalize(raw)
    if normalized is None:
        return MoodDescription(None, NO_LABEL, NO_EMOJI)
    return MoodDescription(normalized, to_label(normalized), to_emoji(normalized))


def display_text(raw: Any) -> str:
    d = describe(raw)
    if d.normalized is None:
        return f"Mood: {NO_LABEL}"
    return f"Mood: {d.emoji} {d.label}"


def average_to_label(avg: float | None) -> str:
    if avg is None:
        return NO_LABEL
    if avg < 1.5:
        return LABELS[1]
    if avg < 2.5:
        return LABELS[2]
    if avg < 3.5:
        return LABELS[3]
    if avg < 4.5:
        return LABELS[4]
    return LABELS[5]


def centered_from_normalized(normalized: float) -> float:
    return _clamp(normalized, 1, 5) - 3


def slider_index_from_centered(raw: float) -> int:
    # -2..2 -> 0..4
    return int(_clamp(math.floor(raw + 0.5), -2, 2)) + 2


def centered_from_slider_index(index: float) -> int:
    return int(_clamp(math.floor(index + 0.5), 0, 4)) - 2


def label_to_centered(label: str | None) -> int:
    """Legacy fallback: unknown or empty labels read as neutral (0)."""
    if not label:
        return 0
    return LEGACY_LABELS.get(label.strip().lower(), 0)
