from __future__ import annotations

import re
from datetime import datetime

from ._util import _now_local

_HHMM_RE = re.compile(r"(\d{1,2}):(\d{2})")

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(text: str | None) -> int | None:
    """
    "HH:MM" -> minutes since midnight (0..1439).
    Anything else (None, "", "7pm", "25:00", "07:75") -> None.
    """
    if not text:
        return None
    m = _HHMM_RE.fullmatch(str(text).strip())
    if not m:
        return None
    h = int(m.group(1))
    mins = int(m.group(2))
    if h > 23 or mins > 59:
        return None
    return h * 60 + mins


def hour_of(text: str | None) -> int | None:
    minutes = parse_hhmm(text)
    return None if minutes is None else minutes // 60


def minutes_between(start: str | None, end: str | None, wrap: bool = True) -> int | None:
    """
    Minutes from start to end.
    wrap=True: end <= start is read as crossing midnight (23:30 -> 07:00 = 450).
    wrap=False: end <= start yields None.
    """
    a = parse_hhmm(start)
    b = parse_hhmm(end)
    if a is None or b is None:
        return None
    diff = b - a
    if diff <= 0:
        if not wrap:
            return None
        diff += MINUTES_PER_DAY
    return diff


def parse_clock(value: str | None) -> str:
    """
    Parse flexible user clock input into "HH:MM".
    Accepts:
      - None / "" / "now" -> current local time
      - "19:34", "7:34"
      - "7:34am", "7:34 am", "7am"
    """
    if not value or not value.strip() or value.strip().lower() == "now":
        return _now_local().strftime("%H:%M")

    s = value.strip().lower()

    t_formats = [
        "%I:%M%p",
        "%I:%M %p",
        "%I%p",
        "%I %p",
        "%H:%M",
    ]
    for fmt in t_formats:
        try:
            t = datetime.strptime(s, fmt)
            return f"{t.hour:02d}:{t.minute:02d}"
        except ValueError:
            continue

    raise SystemExit(
        f"Could not parse time {value!r}. Try '7:34am', '7am', '19:34' or 'now'."
    )
