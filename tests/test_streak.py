"""Tests for the recording streak."""

from __future__ import annotations

from serenote.models import DayRecord, MoodSnapshot, NoteLog, SleepSnapshot
from serenote.streak import current_streak, has_any_record

TODAY = "2025-03-10"


def _day(date: str) -> DayRecord:
    return DayRecord(date=date, mood=MoodSnapshot(value=3))


def test_has_any_record():
    assert not has_any_record(None)
    assert not has_any_record(DayRecord(date=TODAY))
    assert not has_any_record(DayRecord(date=TODAY, sleep=SleepSnapshot()))
    assert has_any_record(DayRecord(date=TODAY, sleep=SleepSnapshot(wake_time="07:00")))
    assert has_any_record(DayRecord(date=TODAY, notes=(NoteLog("n", "08:00", "x"),)))


def test_streak_counts_today_and_back():
    records = {d: _day(d) for d in ("2025-03-08", "2025-03-09", "2025-03-10")}
    assert current_streak(records, TODAY) == 3


def test_empty_today_starts_from_yesterday():
    records = {d: _day(d) for d in ("2025-03-08", "2025-03-09")}
    assert current_streak(records, TODAY) == 2


def test_empty_today_and_yesterday_is_zero():
    records = {"2025-03-08": _day("2025-03-08")}
    assert current_streak(records, TODAY) == 0


def test_gap_stops_streak():
    records = {d: _day(d) for d in ("2025-03-06", "2025-03-07", "2025-03-09", "2025-03-10")}
    assert current_streak(records, TODAY) == 2


def test_empty_record_breaks_streak():
    records = {"2025-03-09": DayRecord(date="2025-03-09"), "2025-03-10": _day(TODAY)}
    assert current_streak(records, TODAY) == 1


def test_streak_crosses_month_boundary():
    records = {d: _day(d) for d in ("2025-02-28", "2025-03-01")}
    assert current_streak(records, "2025-03-01") == 2


def test_invalid_today_is_zero():
    assert current_streak({TODAY: _day(TODAY)}, "yesterday") == 0


def test_no_records():
    assert current_streak({}, TODAY) == 0
