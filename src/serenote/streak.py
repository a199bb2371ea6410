from __future__ import annotations

from collections.abc import Mapping

from .datekey import is_valid_date_key, prev_date_key
from .models import DayRecord


def has_any_record(record: DayRecord | None) -> bool:
    if record is None:
        return False
    if record.sleep and (record.sleep.wake_time or record.sleep.bed_time):
        return True
    if record.medications:
        return True
    if record.mood and record.mood.value is not None:
        return True
    if record.notes or record.symptoms:
        return True
    return bool(record.events)


def current_streak(records: Mapping[str, DayRecord], today: str) -> int:
    """
    Consecutive days with something recorded, walking back from `today`.

    Today is still open, so an empty today does not break the streak: the
    walk starts from yesterday instead. An empty yesterday then gives 0.
    """
    if not is_valid_date_key(today):
        return 0

    current = today
    if not has_any_record(records.get(today)):
        current = prev_date_key(today)

    streak = 0
    while has_any_record(records.get(current)):
        streak += 1
        current = prev_date_key(current)
    return streak
