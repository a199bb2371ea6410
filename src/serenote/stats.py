"""
Period statistics.

Two stages:
  1) build_stats_row: one DayRecord -> one StatsRow of plain numbers
  2) aggregate_period: a window of StatsRows (7/30/90 days ending today)
     -> PeriodSummary with averages, trend and stability labels

Rows and summaries are computed on demand and never stored.
"""

from __future__ import annotations

import statistics
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from . import mood as moodscale
from .datekey import date_range, format_date_label, is_valid_date_key
from .models import DayRecord
from .timeparse import minutes_between

MoodTrend = Literal["up", "down", "stable", "unknown"]
MoodStability = Literal["stable", "slightly_unstable", "unstable", "unknown"]
SleepConsistency = Literal["consistent", "slightly_inconsistent", "inconsistent", "unknown"]
SleepQuality = Literal["short", "good", "long", "no_data"]

PERIOD_DAYS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}

TREND_DELTA = 0.3
TREND_MIN_DAYS = 3
MOOD_STABLE_RANGE = 1
MOOD_SLIGHTLY_UNSTABLE_RANGE = 2
SLEEP_CONSISTENT_HOURS = 1.5
SLEEP_SLIGHTLY_INCONSISTENT_HOURS = 3
SLEEP_SHORT_MINUTES = 360
SLEEP_LONG_MINUTES = 540


# -------------------------
# Stage A: daily rows
# -------------------------


@dataclass(frozen=True)
class StatsRow:
    date: str
    date_label: str
    mood_avg: float | None = None
    mood_min: float | None = None
    mood_max: float | None = None
    sleep_minutes: int | None = None
    meds_count: int = 0
    notes_count: int = 0
    symptoms_count: int = 0
    activity_minutes: int = 0

    @property
    def has_any_signal(self) -> bool:
        return (
            self.mood_avg is not None
            or self.sleep_minutes is not None
            or self.meds_count > 0
            or self.notes_count > 0
            or self.symptoms_count > 0
            or self.activity_minutes > 0
        )


def _label_for(date_key: str) -> str:
    return format_date_label(date_key) if is_valid_date_key(date_key) else date_key


def empty_row(date_key: str) -> StatsRow:
    return StatsRow(date=date_key, date_label=_label_for(date_key))


def daily_sleep_minutes(record: DayRecord) -> int | None:
    sleep = record.sleep
    if sleep is None:
        return None
    if sleep.total_minutes is not None:
        return sleep.total_minutes
    return minutes_between(sleep.bed_time, sleep.wake_time, wrap=True)


def daily_activity_minutes(record: DayRecord) -> int:
    # an activity with no (or an earlier) end time has not finished: counts 0
    total = 0
    for e in record.events:
        if e.kind != "activity":
            continue
        total += minutes_between(e.time, e.end_time, wrap=False) or 0
    return total


def build_stats_row(record: DayRecord) -> StatsRow:
    mood_value = moodscale.normalize(record.mood.value) if record.mood else None
    return StatsRow(
        date=record.date,
        date_label=_label_for(record.date),
        mood_avg=mood_value,
        mood_min=mood_value,
        mood_max=mood_value,
        sleep_minutes=daily_sleep_minutes(record),
        meds_count=len(record.medications),
        notes_count=len(record.notes),
        symptoms_count=len(record.symptoms),
        activity_minutes=daily_activity_minutes(record),
    )


def build_rows_for_period(records: Mapping[str, DayRecord], days: int, today: str) -> list[StatsRow]:
    """One row per day of the window ending at `today`, oldest first."""
    rows = []
    for key in date_range(today, days):
        record = records.get(key)
        rows.append(build_stats_row(record) if record is not None else empty_row(key))
    return rows


def sleep_quality_tag(total_minutes: float | None) -> SleepQuality:
    if total_minutes is None:
        return "no_data"
    if total_minutes < SLEEP_SHORT_MINUTES:
        return "short"
    if total_minutes <= SLEEP_LONG_MINUTES:
        return "good"
    return "long"


# -------------------------
# Stage B: period summary
# -------------------------


@dataclass(frozen=True)
class PeriodSummary:
    total_days: int
    days_with_record: int
    record_rate: float

    avg_mood: float | None
    avg_mood_label: str
    min_mood: float | None
    max_mood: float | None
    mood_trend: MoodTrend
    mood_stability: MoodStability

    avg_sleep_hours: float | None
    min_sleep_hours: float | None
    max_sleep_hours: float | None
    sleep_consistency: SleepConsistency
    sleep_quality: SleepQuality

    days_with_meds: int
    med_record_rate: float

    total_activity_minutes: int
    days_with_activity: int

    total_notes: int
    total_symptoms: int


def mood_trend(rows: list[StatsRow]) -> MoodTrend:
    """First half vs. second half of the days that have a mood."""
    values = [r.mood_avg for r in rows if r.mood_avg is not None]
    if len(values) < TREND_MIN_DAYS:
        return "unknown"
    mid = len(values) // 2
    diff = statistics.fmean(values[mid:]) - statistics.fmean(values[:mid])
    if diff > TREND_DELTA:
        return "up"
    if diff < -TREND_DELTA:
        return "down"
    return "stable"


def mood_stability(values: list[float]) -> MoodStability:
    if len(values) < 2:
        return "unknown"
    spread = max(values) - min(values)
    if spread <= MOOD_STABLE_RANGE:
        return "stable"
    if spread <= MOOD_SLIGHTLY_UNSTABLE_RANGE:
        return "slightly_unstable"
    return "unstable"


def sleep_consistency(minutes: list[int]) -> SleepConsistency:
    if len(minutes) < 2:
        return "unknown"
    spread_hours = (max(minutes) - min(minutes)) / 60
    if spread_hours <= SLEEP_CONSISTENT_HOURS:
        return "consistent"
    if spread_hours <= SLEEP_SLIGHTLY_INCONSISTENT_HOURS:
        return "slightly_inconsistent"
    return "inconsistent"


def aggregate_period(rows: list[StatsRow]) -> PeriodSummary:
    total_days = len(rows)

    def rate(n: int) -> float:
        return n / total_days if total_days else 0.0

    days_with_record = sum(1 for r in rows if r.has_any_signal)

    moods = [r.mood_avg for r in rows if r.mood_avg is not None]
    avg_mood = statistics.fmean(moods) if moods else None

    sleeps = [r.sleep_minutes for r in rows if r.sleep_minutes is not None]
    avg_sleep_minutes = statistics.fmean(sleeps) if sleeps else None

    days_with_meds = sum(1 for r in rows if r.meds_count > 0)

    return PeriodSummary(
        total_days=total_days,
        days_with_record=days_with_record,
        record_rate=rate(days_with_record),
        avg_mood=avg_mood,
        avg_mood_label=moodscale.average_to_label(avg_mood),
        min_mood=min(moods) if moods else None,
        max_mood=max(moods) if moods else None,
        mood_trend=mood_trend(rows),
        mood_stability=mood_stability(moods),
        avg_sleep_hours=avg_sleep_minutes / 60 if avg_sleep_minutes is not None else None,
        min_sleep_hours=min(sleeps) / 60 if sleeps else None,
        max_sleep_hours=max(sleeps) / 60 if sleeps else None,
        sleep_consistency=sleep_consistency(sleeps),
        sleep_quality=sleep_quality_tag(avg_sleep_minutes),
        days_with_meds=days_with_meds,
        med_record_rate=rate(days_with_meds),
        total_activity_minutes=sum(r.activity_minutes for r in rows),
        days_with_activity=sum(1 for r in rows if r.activity_minutes > 0),
        total_notes=sum(r.notes_count for r in rows),
        total_symptoms=sum(r.symptoms_count for r in rows),
    )


# -------------------------
# Activity x mood
# -------------------------


@dataclass(frozen=True)
class ActivityMoodEffect:
    days_with_activity: int
    days_without_activity: int
    avg_mood_with_activity: float | None
    avg_mood_without_activity: float | None
    diff: float | None


def activity_mood_effect(rows: list[StatsRow]) -> ActivityMoodEffect:
    with_activity = [r.mood_avg for r in rows if r.mood_avg is not None and r.activity_minutes > 0]
    without_activity = [r.mood_avg for r in rows if r.mood_avg is not None and r.activity_minutes <= 0]

    avg_with = statistics.fmean(with_activity) if with_activity else None
    avg_without = statistics.fmean(without_activity) if without_activity else None
    diff = avg_with - avg_without if avg_with is not None and avg_without is not None else None

    return ActivityMoodEffect(
        days_with_activity=len(with_activity),
        days_without_activity=len(without_activity),
        avg_mood_with_activity=avg_with,
        avg_mood_without_activity=avg_without,
        diff=diff,
    )


# -------------------------
# Symptoms to raise with a clinician
# -------------------------


@dataclass(frozen=True)
class DoctorSymptom:
    date: str
    id: str
    time: str
    label: str
    memo: str | None = None


def collect_doctor_symptoms(records: Mapping[str, DayRecord]) -> list[DoctorSymptom]:
    """Flagged symptoms across all days, newest date first, later time first."""
    items = [
        DoctorSymptom(date=date_key, id=s.id, time=s.time, label=s.label, memo=s.memo)
        for date_key, record in records.items()
        for s in record.symptoms
        if s.for_doctor
    ]
    items.sort(key=lambda s: (s.date, s.time), reverse=True)
    return items


# -------------------------
# Weekly insights
# -------------------------


@dataclass(frozen=True)
class Insight:
    kind: Literal["positive", "neutral", "concern", "encouragement"]
    icon: str
    title: str
    message: str


MAX_INSIGHTS = 4


def weekly_insights(summary: PeriodSummary) -> list[Insight]:
    out: list[Insight] = []

    if summary.record_rate >= 0.85:
        out.append(Insight(
            "positive", "🌟", "A great recording habit",
            f"You logged something on {summary.days_with_record} days. Keep it going.",
        ))
    elif summary.record_rate >= 0.5:
        out.append(Insight(
            "encouragement", "📝", "Keep the log going",
            f"You logged on {summary.days_with_record} days. Small, steady steps are enough.",
        ))
    elif summary.record_rate > 0:
        out.append(Insight(
            "encouragement", "💪", "A first step",
            "Some days get busy. Every day you did log still counts.",
        ))

    if summary.avg_mood is not None:
        if summary.avg_mood >= 4:
            out.append(Insight(
                "positive", "😊", "A good stretch",
                "Most days felt good this period.",
            ))
        elif summary.avg_mood <= 2.5:
            out.append(Insight(
                "concern", "🤗", "A heavy stretch",
                "Many days felt hard. Try to make some time to rest and look after yourself.",
            ))

        if summary.mood_trend == "up":
            out.append(Insight(
                "positive", "📈", "Mood is trending up",
                "Your mood improved over the second half of the period.",
            ))
        elif summary.mood_trend == "down":
            out.append(Insight(
                "neutral", "📉", "Mood dipped later on",
                "Your mood was lower in the second half. Some extra rest may help.",
            ))

        if summary.mood_stability == "unstable":
            out.append(Insight(
                "neutral", "🎢", "Big mood swings",
                "Your mood moved a lot. Looking back at what set it off may help.",
            ))

    if summary.avg_sleep_hours is not None:
        hours = summary.avg_sleep_hours
        if 7 <= hours <= 8:
            out.append(Insight(
                "positive", "😴", "Healthy sleep",
                f"You averaged {hours:.1f} hours of sleep.",
            ))
        elif hours < 6:
            out.append(Insight(
                "concern", "⏰", "Short on sleep",
                f"You averaged {hours:.1f} hours. See if you can protect a little more rest.",
            ))
        elif hours > 9:
            out.append(Insight(
                "neutral", "🛏️", "Long sleep",
                f"You averaged {hours:.1f} hours. Tiredness may be building up.",
            ))

        if summary.sleep_consistency == "inconsistent":
            out.append(Insight(
                "neutral", "🌙", "Irregular sleep",
                "Sleep length varied a lot. Regular bed and wake times can steady things.",
            ))

    if summary.med_record_rate >= 0.85:
        out.append(Insight(
            "positive", "💊", "Medication well logged",
            "Your medication log is thorough, which helps at appointments.",
        ))

    if summary.days_with_activity >= 5:
        out.append(Insight(
            "positive", "🚶", "An active period",
            f"You logged activities on {summary.days_with_activity} days.",
        ))

    if not out:
        out.append(Insight(
            "encouragement", "🌱", "Start with a few entries",
            "Patterns show up as the log grows. Take it slowly.",
        ))

    return out[:MAX_INSIGHTS]
