"""Tests for rebuilding a DayRecord from its events."""

from __future__ import annotations

from serenote.models import (
    ActivityEvent,
    DayRecord,
    MedicationEvent,
    MoodEvent,
    NoteEvent,
    SleepEvent,
    SleepSnapshot,
    SymptomEvent,
    WakeEvent,
)
from serenote.reconstruct import build_mood, build_sleep, previous_bedtime, rebuild_day

NOW = "2025-03-02T10:00:00+00:00"


# ---- mood ----


def test_mood_last_by_position_wins():
    events = [
        MoodEvent(id="m1", time="20:00", value=5),
        MoodEvent(id="m2", time="08:00", value=2, memo="tired"),
    ]
    snap = build_mood(events)
    assert snap.value == 2
    assert snap.time == "08:00"
    assert snap.memo == "tired"


def test_mood_replaced_wholesale():
    # the earlier memo must not leak into the newer snapshot
    events = [MoodEvent(id="m1", time="08:00", value=4, memo="morning"), MoodEvent(id="m2", time="12:00", value=3)]
    assert build_mood(events).memo is None


def test_mood_centered_value_normalized():
    assert build_mood([MoodEvent(id="m", time="08:00", value=-2)]).value == 1


def test_mood_legacy_label_only():
    assert build_mood([MoodEvent(id="m", time="08:00", label="Good")]).value == 4
    assert build_mood([MoodEvent(id="m", time="08:00", label="???")]).value == 3


def test_mood_out_of_range_absent():
    assert build_mood([MoodEvent(id="m", time="08:00", value=9)]) is None


def test_no_mood_events():
    assert build_mood([NoteEvent(id="n", time="08:00", label="x")]) is None


# ---- sleep ----


def _yesterday(*events) -> DayRecord:
    return rebuild_day("2025-03-01", events, now=NOW)


def test_sleep_stitched_from_previous_day():
    prev = _yesterday(SleepEvent(id="s", time="23:30"))
    snap = build_sleep([WakeEvent(id="w", time="07:00")], prev)
    assert snap.bed_time == "23:30"
    assert snap.wake_time == "07:00"


def test_sleep_only_wake_today():
    snap = build_sleep([WakeEvent(id="w", time="07:00")], None)
    assert snap.bed_time is None
    assert snap.wake_time == "07:00"


def test_sleep_falls_back_to_own_sleep_event():
    snap = build_sleep([SleepEvent(id="s", time="22:45")], None)
    assert snap.bed_time == "22:45"
    assert snap.wake_time is None


def test_sleep_none_without_any_times():
    assert build_sleep([NoteEvent(id="n", time="08:00")], None) is None


def test_sleep_memo_is_last_sleep_or_wake_memo():
    events = [SleepEvent(id="s", time="23:00", memo="restless"), WakeEvent(id="w", time="07:00", memo="groggy")]
    assert build_sleep(events, None).memo == "groggy"


def test_previous_bedtime_with_non_sleep_events():
    prev = DayRecord(
        date="2025-03-01",
        sleep=SleepSnapshot(bed_time="23:30"),
        events=(NoteEvent(id="n", time="12:00", label="lunch"),),
    )
    assert previous_bedtime(prev) == "23:30"
    rec = rebuild_day("2025-03-02", [WakeEvent(id="w", time="07:00")], prev, now=NOW)
    assert rec.sleep == SleepSnapshot(bed_time="23:30", wake_time="07:00")


def test_previous_bedtime_prefers_stored_value_over_events():
    prev = DayRecord(
        date="2025-03-01",
        sleep=SleepSnapshot(bed_time="22:00"),
        events=(SleepEvent(id="s", time="23:45"),),
    )
    rec = rebuild_day("2025-03-02", [WakeEvent(id="w", time="07:00")], prev, now=NOW)
    assert rec.sleep.bed_time == "22:00"


def test_previous_bedtime_without_sleep():
    assert previous_bedtime(None) is None
    assert previous_bedtime(DayRecord(date="2025-03-01", events=(NoteEvent(id="n", time="12:00"),))) is None


def test_previous_bedtime_legacy_record_without_events():
    prev = DayRecord(date="2025-03-01", sleep=SleepSnapshot(bed_time="00:30"))
    assert previous_bedtime(prev) == "00:30"


# ---- lists ----


def test_lists_one_per_event_in_order():
    events = [
        MedicationEvent(id="m1", time="08:00", label="A", dosage="5mg", time_slot="morning"),
        SymptomEvent(id="s1", time="09:00", label="", for_doctor=True),
        MedicationEvent(id="m2", time="07:00"),
        NoteEvent(id="n1", time="10:00", label="", memo="just a memo"),
        ActivityEvent(id="a1", time="11:00", end_time="11:30", category="walk"),
    ]
    rec = rebuild_day("2025-03-02", events, now=NOW)
    assert [m.id for m in rec.medications] == ["m1", "m2"]
    assert rec.medications[0].dosage == "5mg"
    assert rec.medications[1].label == "Medication"
    assert rec.symptoms[0].label == "Symptom"
    assert rec.symptoms[0].for_doctor is True
    assert rec.notes[0].text == "just a memo"
    assert len(rec.events) == 5


# ---- rebuild_day ----


def test_rebuild_is_deterministic_with_fixed_now():
    events = [MoodEvent(id="m", time="08:00", value=4), WakeEvent(id="w", time="07:00")]
    assert rebuild_day("2025-03-02", events, now=NOW) == rebuild_day("2025-03-02", events, now=NOW)


def test_rebuild_sets_timestamps():
    rec = rebuild_day("2025-03-02", [], now=NOW)
    assert rec.created_at == NOW
    assert rec.updated_at == NOW


def test_rebuild_preserves_created_at():
    first = rebuild_day("2025-03-02", [], now="2025-03-02T08:00:00+00:00")
    second = rebuild_day("2025-03-02", [NoteEvent(id="n", time="09:00", label="x")], existing=first, now=NOW)
    assert second.created_at == "2025-03-02T08:00:00+00:00"
    assert second.updated_at == NOW


def test_rebuild_empty_events():
    rec = rebuild_day("2025-03-02", [], now=NOW)
    assert rec.mood is None
    assert rec.sleep is None
    assert rec.medications == rec.symptoms == rec.notes == rec.events == ()


def test_rebuild_uses_previous_day_for_bedtime():
    prev = _yesterday(SleepEvent(id="s", time="23:30"))
    rec = rebuild_day("2025-03-02", [WakeEvent(id="w", time="07:00")], prev, now=NOW)
    assert rec.sleep == SleepSnapshot(bed_time="23:30", wake_time="07:00")
