"""
DateKey helpers.

A DateKey is a local calendar date written as "YYYY-MM-DD". Because the
format is zero-padded, string order is chronological order, so keys can be
compared and sorted directly.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

from ._util import _now_local

_DATE_KEY_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_valid_date_key(key: object) -> bool:
    """True for "YYYY-MM-DD" strings naming a real date (rejects 2025-02-30)."""
    if not isinstance(key, str) or not _DATE_KEY_RE.fullmatch(key):
        return False
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True


def parse_date_key(key: str) -> date:
    if not is_valid_date_key(key):
        raise ValueError(f"Invalid DateKey: {key!r}")
    return date.fromisoformat(key)


def format_date_key(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def today_key() -> str:
    return format_date_key(_now_local().date())


def prev_date_key(key: str) -> str:
    return format_date_key(parse_date_key(key) - timedelta(days=1))


def next_date_key(key: str) -> str:
    return format_date_key(parse_date_key(key) + timedelta(days=1))


def diff_date_keys(a: str, b: str) -> int:
    """Days from a to b, e.g. diff_date_keys("2025-01-01", "2025-01-03") == 2."""
    return (parse_date_key(b) - parse_date_key(a)).days


def sort_date_keys(keys) -> list[str]:
    return sorted(keys, key=parse_date_key)


def date_range(end: str, days: int) -> list[str]:
    """
    Inclusive window of `days` keys ending at `end`, oldest first:
      date_range("2025-01-05", 3) -> ["2025-01-03", "2025-01-04", "2025-01-05"]
    """
    end_date = parse_date_key(end)
    return [format_date_key(end_date - timedelta(days=i)) for i in range(days - 1, -1, -1)]


def format_date_label(key: str) -> str:
    # "Sat, Mar 1"
    d = parse_date_key(key)
    return f"{d.strftime('%a')}, {d.strftime('%b')} {d.day}"
