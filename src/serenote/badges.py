"""
Achievement badges.

The catalog is static. Progress is computed from lifetime statistics every
time it is asked for; only AchievedBadge records are stored, and a badge is
achieved at most once.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from ._util import _now_iso
from .datekey import today_key
from .models import AchievedBadge, DayRecord
from .streak import current_streak
from .timeparse import hour_of

BadgeCategory = Literal["streak", "sleep", "medication", "mood", "note", "activity", "special"]
BadgeRarity = Literal["common", "uncommon", "rare", "epic", "legendary"]


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    emoji: str
    category: BadgeCategory
    rarity: BadgeRarity
    requirement: int
    requirement_text: str


def _badge(
    badge_id: str,
    name: str,
    emoji: str,
    category: BadgeCategory,
    rarity: BadgeRarity,
    requirement: int,
    description: str,
    requirement_text: str,
) -> BadgeDefinition:
    return BadgeDefinition(badge_id, name, description, emoji, category, rarity, requirement, requirement_text)


BADGE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    # streaks
    _badge("first_record", "First step", "🌱", "streak", "common", 1,
           "Logged for the first time", "Make your first entry"),
    _badge("streak_3", "Past day three", "🔥", "streak", "common", 3,
           "Logged 3 days in a row", "Log 3 days in a row"),
    _badge("streak_7", "One week", "⭐", "streak", "uncommon", 7,
           "Logged 7 days in a row", "Log 7 days in a row"),
    _badge("streak_14", "Two weeks", "🌟", "streak", "rare", 14,
           "Logged 14 days in a row", "Log 14 days in a row"),
    _badge("streak_30", "One month", "🏆", "streak", "epic", 30,
           "Logged 30 days in a row", "Log 30 days in a row"),
    _badge("streak_60", "Two months", "👑", "streak", "epic", 60,
           "Logged 60 days in a row", "Log 60 days in a row"),
    _badge("streak_90", "Legend", "💎", "streak", "legendary", 90,
           "Logged 90 days in a row", "Log 90 days in a row"),
    # sleep
    _badge("sleep_master_7", "Sleep logger", "😴", "sleep", "common", 7,
           "Logged sleep on 7 days", "Log sleep on 7 days"),
    _badge("sleep_master_14", "Sleep master", "🌙", "sleep", "uncommon", 14,
           "Logged sleep on 14 days", "Log sleep on 14 days"),
    # medication
    _badge("med_habit_7", "Medication log started", "💊", "medication", "common", 7,
           "Logged medication on 7 days", "Log medication on 7 days"),
    _badge("med_habit_14", "Medication habit", "💉", "medication", "uncommon", 14,
           "Logged medication on 14 days", "Log medication on 14 days"),
    _badge("med_habit_30", "Medication master", "🏥", "medication", "rare", 30,
           "Logged medication on 30 days", "Log medication on 30 days"),
    # mood
    _badge("mood_tracker_7", "Mood logger", "🙂", "mood", "common", 7,
           "Logged mood on 7 days", "Log mood on 7 days"),
    _badge("mood_tracker_30", "Mood master", "🎭", "mood", "rare", 30,
           "Logged mood on 30 days", "Log mood on 30 days"),
    # notes and symptoms
    _badge("note_writer_10", "Note habit", "📝", "note", "common", 10,
           "Wrote 10 notes or symptoms", "Write 10 notes or symptoms"),
    _badge("note_writer_30", "Dedicated writer", "📓", "note", "uncommon", 30,
           "Wrote 30 notes or symptoms", "Write 30 notes or symptoms"),
    _badge("note_writer_100", "Note master", "📚", "note", "rare", 100,
           "Wrote 100 notes or symptoms", "Write 100 notes or symptoms"),
    # activity
    _badge("activity_logger_7", "Activity logger", "🏃", "activity", "common", 7,
           "Logged activities on 7 days", "Log activities on 7 days"),
    # special
    _badge("breathing_first", "First breath", "🫁", "special", "common", 1,
           "Finished a breathing exercise", "Finish 1 breathing exercise"),
    _badge("breathing_10", "Relaxation master", "🧘", "special", "uncommon", 10,
           "Finished 10 breathing exercises", "Finish 10 breathing exercises"),
    _badge("early_bird", "Early bird", "🌅", "special", "uncommon", 1,
           "Woke up before 6am", "Log a wake time before 6:00"),
    _badge("night_owl", "Night owl", "🦉", "special", "common", 1,
           "Went to bed after midnight", "Log a bedtime after 0:00"),
)

RARITY_LABELS: dict[str, str] = {
    "common": "Common",
    "uncommon": "Uncommon",
    "rare": "Rare",
    "epic": "Epic",
    "legendary": "Legendary",
}


def get_badge_definition(badge_id: str) -> BadgeDefinition | None:
    for b in BADGE_DEFINITIONS:
        if b.id == badge_id:
            return b
    return None


def badges_by_category(category: str) -> list[BadgeDefinition]:
    return [b for b in BADGE_DEFINITIONS if b.category == category]


def rarity_label(rarity: str) -> str:
    return RARITY_LABELS.get(rarity, "")


# -------------------------
# Lifetime statistics
# -------------------------

EARLY_BIRD_BEFORE_HOUR = 6
NIGHT_OWL_BEFORE_HOUR = 5


@dataclass(frozen=True)
class BadgeStats:
    current_streak: int = 0
    total_record_days: int = 0
    sleep_record_days: int = 0
    med_record_days: int = 0
    mood_record_days: int = 0
    total_notes_and_symptoms: int = 0
    activity_record_days: int = 0
    breathing_count: int = 0
    has_early_bird: bool = False
    has_night_owl: bool = False


def compute_badge_stats(
    records: Mapping[str, DayRecord],
    breathing_count: int = 0,
    today: str | None = None,
) -> BadgeStats:
    """
    Lifetime counts over every stored day.
    breathing_count comes from the counter store; it is not derived from days.
    """
    total = sleep_days = med_days = mood_days = notes = activity_days = 0
    early_bird = night_owl = False

    for key in sorted(records):
        record = records[key]
        any_record = False

        if record.sleep and (record.sleep.wake_time or record.sleep.bed_time):
            sleep_days += 1
            any_record = True
            wake_hour = hour_of(record.sleep.wake_time)
            if wake_hour is not None and wake_hour < EARLY_BIRD_BEFORE_HOUR:
                early_bird = True
            bed_hour = hour_of(record.sleep.bed_time)
            if bed_hour is not None and bed_hour < NIGHT_OWL_BEFORE_HOUR:
                night_owl = True

        if record.medications:
            med_days += 1
            any_record = True

        if record.mood and record.mood.value is not None:
            mood_days += 1
            any_record = True

        count = len(record.notes) + len(record.symptoms)
        notes += count
        if count:
            any_record = True

        if any(e.kind == "activity" for e in record.events):
            activity_days += 1
            any_record = True

        if any_record:
            total += 1

    return BadgeStats(
        current_streak=current_streak(records, today or today_key()),
        total_record_days=total,
        sleep_record_days=sleep_days,
        med_record_days=med_days,
        mood_record_days=mood_days,
        total_notes_and_symptoms=notes,
        activity_record_days=activity_days,
        breathing_count=breathing_count,
        has_early_bird=early_bird,
        has_night_owl=night_owl,
    )


# badge id -> BadgeStats field; ids not listed here read as 0
_STAT_FOR_BADGE: dict[str, str] = {
    "streak_3": "current_streak",
    "streak_7": "current_streak",
    "streak_14": "current_streak",
    "streak_30": "current_streak",
    "streak_60": "current_streak",
    "streak_90": "current_streak",
    "sleep_master_7": "sleep_record_days",
    "sleep_master_14": "sleep_record_days",
    "med_habit_7": "med_record_days",
    "med_habit_14": "med_record_days",
    "med_habit_30": "med_record_days",
    "mood_tracker_7": "mood_record_days",
    "mood_tracker_30": "mood_record_days",
    "note_writer_10": "total_notes_and_symptoms",
    "note_writer_30": "total_notes_and_symptoms",
    "note_writer_100": "total_notes_and_symptoms",
    "activity_logger_7": "activity_record_days",
    "breathing_first": "breathing_count",
    "breathing_10": "breathing_count",
}


def current_value(badge_id: str, stats: BadgeStats) -> int:
    if badge_id == "first_record":
        return 1 if stats.total_record_days > 0 else 0
    if badge_id == "early_bird":
        return 1 if stats.has_early_bird else 0
    if badge_id == "night_owl":
        return 1 if stats.has_night_owl else 0
    field_name = _STAT_FOR_BADGE.get(badge_id)
    return int(getattr(stats, field_name)) if field_name else 0


# -------------------------
# Progress
# -------------------------


@dataclass(frozen=True)
class BadgeProgress:
    badge: BadgeDefinition
    current_value: int
    progress: float
    is_achieved: bool
    achieved_at: str | None = None


def badge_progress(
    stats: BadgeStats,
    achieved: Iterable[AchievedBadge],
    catalog: Iterable[BadgeDefinition] = BADGE_DEFINITIONS,
) -> list[BadgeProgress]:
    achieved_at = {a.badge_id: a.achieved_at for a in achieved}
    out = []
    for badge in catalog:
        value = current_value(badge.id, stats)
        progress = min(1.0, value / badge.requirement) if badge.requirement > 0 else 1.0
        out.append(
            BadgeProgress(
                badge=badge,
                current_value=value,
                progress=progress,
                is_achieved=badge.id in achieved_at,
                achieved_at=achieved_at.get(badge.id),
            )
        )
    return out


def check_and_commit_badges(
    stats: BadgeStats,
    achieved: list[AchievedBadge],
    now: str | None = None,
    catalog: Iterable[BadgeDefinition] = BADGE_DEFINITIONS,
) -> list[AchievedBadge]:
    """
    Record every badge whose threshold is now met and that was not already
    achieved. Appends to `achieved` in place and returns only the new ones,
    so calling it again with the same stats returns [].
    """
    stamp = now or _now_iso()
    have = {a.badge_id for a in achieved}
    newly: list[AchievedBadge] = []
    for item in badge_progress(stats, achieved, catalog):
        if item.badge.id in have:
            continue
        if item.current_value >= item.badge.requirement:
            badge = AchievedBadge(badge_id=item.badge.id, achieved_at=stamp)
            achieved.append(badge)
            have.add(badge.badge_id)
            newly.append(badge)
    return newly
