"""
Rebuild a DayRecord from its event list.

The event list is the source of truth; the DayRecord is a cache derived from
it. rebuild_day is pure and total: it never raises on odd data, and given the
same inputs (and the same `now`) it returns an equal record.

Per field:
  - mood: the last mood event by list position wins; no mood events -> None
  - sleep: last night's bedtime comes from yesterday, wake from today
  - medications / symptoms / notes: one log per matching event, list order
"""

from __future__ import annotations

from collections.abc import Iterable

from . import mood as moodscale
from ._util import _now_iso
from .models import (
    DayRecord,
    MedicationEvent,
    MedicationLog,
    MoodEvent,
    MoodSnapshot,
    NoteLog,
    SleepSnapshot,
    SymptomEvent,
    SymptomLog,
    TimelineEvent,
)

DEFAULT_TIME = "00:00"


def _of_kind(events: Iterable[TimelineEvent], kind: str) -> list[TimelineEvent]:
    return [e for e in events if e.kind == kind]


def _last(events: list[TimelineEvent]) -> TimelineEvent | None:
    return events[-1] if events else None


def build_mood(events: list[TimelineEvent]) -> MoodSnapshot | None:
    moods = _of_kind(events, "mood")
    if not moods:
        return None
    last = moods[-1]
    raw = last.value if isinstance(last, MoodEvent) else None
    if raw is None:
        # old events carry only the label; the table is on the centered scale
        normalized = moodscale.label_to_centered(last.label) + 3
    else:
        normalized = moodscale.normalize(raw)
    if normalized is None:
        return None
    return MoodSnapshot(value=normalized, time=last.time or None, memo=last.memo)


def previous_bedtime(previous_day: DayRecord | None) -> str | None:
    """Bedtime stored on the previous day's record, as already persisted."""
    if previous_day is None or previous_day.sleep is None:
        return None
    return previous_day.sleep.bed_time


def build_sleep(events: list[TimelineEvent], previous_day: DayRecord | None = None) -> SleepSnapshot | None:
    sleeps = _of_kind(events, "sleep")
    wakes = _of_kind(events, "wake")
    last_sleep = _last(sleeps)
    last_wake = _last(wakes)

    bed_time = previous_bedtime(previous_day) or (last_sleep.time or None if last_sleep else None)
    wake_time = last_wake.time or None if last_wake else None
    if bed_time is None and wake_time is None:
        return None

    memo = None
    for e in events:
        if e.kind in ("sleep", "wake") and e.memo:
            memo = e.memo
    return SleepSnapshot(bed_time=bed_time, wake_time=wake_time, memo=memo)


def build_medications(events: list[TimelineEvent]) -> tuple[MedicationLog, ...]:
    out = []
    for e in _of_kind(events, "medication"):
        med = e if isinstance(e, MedicationEvent) else None
        out.append(
            MedicationLog(
                id=e.id,
                time=e.time or DEFAULT_TIME,
                label=e.label or "Medication",
                memo=e.memo,
                med_id=med.med_id if med else None,
                time_slot=med.time_slot if med else None,
                dosage=med.dosage if med else None,
            )
        )
    return tuple(out)


def build_symptoms(events: list[TimelineEvent]) -> tuple[SymptomLog, ...]:
    return tuple(
        SymptomLog(
            id=e.id,
            time=e.time or DEFAULT_TIME,
            label=e.label or "Symptom",
            memo=e.memo,
            for_doctor=e.for_doctor if isinstance(e, SymptomEvent) else False,
        )
        for e in _of_kind(events, "symptom")
    )


def build_notes(events: list[TimelineEvent]) -> tuple[NoteLog, ...]:
    return tuple(
        NoteLog(id=e.id, time=e.time or DEFAULT_TIME, text=e.label or e.memo or "")
        for e in _of_kind(events, "note")
    )


def rebuild_day(
    date: str,
    events: Iterable[TimelineEvent],
    previous_day: DayRecord | None = None,
    *,
    existing: DayRecord | None = None,
    now: str | None = None,
) -> DayRecord:
    """
    Derive the DayRecord for `date`.

    previous_day: the already-stored record for the day before (sleep only).
    existing:     this date's record before the change (keeps createdAt).
    now:          ISO timestamp for createdAt/updatedAt; defaults to the clock.
    """
    evs = list(events)
    stamp = now or _now_iso()
    created_at = existing.created_at if existing and existing.created_at else stamp

    return DayRecord(
        date=date,
        mood=build_mood(evs),
        sleep=build_sleep(evs, previous_day),
        medications=build_medications(evs),
        symptoms=build_symptoms(evs),
        notes=build_notes(evs),
        events=tuple(evs),
        created_at=created_at,
        updated_at=stamp,
    )
