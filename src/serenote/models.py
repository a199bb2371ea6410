"""
Data models for the day ledger.

- TimelineEvent and its per-kind subclasses: the discrete facts a person logs
- DayRecord: the structured summary rebuilt from one date's events
- AchievedBadge: the only badge state that is persisted

Everything round-trips through plain dicts (to_dict / from_dict) using the
camelCase keys of the stored JSON. from_dict is lenient: legacy or damaged
data is read as far as possible and never raises.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, Literal

logger = logging.getLogger(__name__)

EventKind = Literal["wake", "sleep", "medication", "mood", "symptom", "activity", "note"]

EVENT_KINDS: tuple[str, ...] = ("wake", "sleep", "medication", "mood", "symptom", "activity", "note")

# stored kind names that predate the current ones
KIND_ALIASES: dict[str, str] = {"med": "medication"}

MED_TIME_SLOTS: tuple[str, ...] = ("morning", "night", "prn_anxiety", "prn_sleep", "custom")

ACTIVITY_CATEGORIES: tuple[str, ...] = (
    "meal",
    "walk",
    "exercise",
    "rest",
    "nap",
    "work",
    "talk",
    "bath",
    "screen",
    "out",
    "other",
)


def new_event_id() -> str:
    return uuid.uuid4().hex[:12]


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# -------------------------
# Timeline events
# -------------------------


@dataclass(frozen=True)
class TimelineEvent:
    id: str
    time: str
    label: str = ""
    memo: str | None = None
    end_time: str | None = None
    planned: bool = False

    kind: ClassVar[str] = ""

    def _payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        d = {
            "id": self.id,
            "time": self.time,
            "type": self.kind,
            "label": self.label,
            "planned": self.planned,
            "memo": self.memo,
            "endTime": self.end_time,
        }
        d.update(self._payload())
        return _drop_none(d)

    @classmethod
    def _payload_from_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class WakeEvent(TimelineEvent):
    kind: ClassVar[str] = "wake"


@dataclass(frozen=True)
class SleepEvent(TimelineEvent):
    kind: ClassVar[str] = "sleep"


@dataclass(frozen=True)
class NoteEvent(TimelineEvent):
    kind: ClassVar[str] = "note"


@dataclass(frozen=True)
class MoodEvent(TimelineEvent):
    # raw value in either encoding; see mood.normalize
    value: float | None = None

    kind: ClassVar[str] = "mood"

    def _payload(self) -> dict[str, Any]:
        return {"moodValue": self.value}

    @classmethod
    def _payload_from_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        raw = d.get("moodValue", d.get("value"))
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raw = None
        return {"value": raw}


@dataclass(frozen=True)
class MedicationEvent(TimelineEvent):
    med_id: str | None = None
    time_slot: str | None = None
    dosage: str | None = None

    kind: ClassVar[str] = "medication"

    def _payload(self) -> dict[str, Any]:
        return {"medId": self.med_id, "medTimeSlot": self.time_slot, "dosageText": self.dosage}

    @classmethod
    def _payload_from_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        slot = _opt_str(d.get("medTimeSlot"))
        if slot is not None and slot not in MED_TIME_SLOTS:
            slot = "custom"
        return {
            "med_id": _opt_str(d.get("medId")),
            "time_slot": slot,
            "dosage": _opt_str(d.get("dosageText")),
        }


@dataclass(frozen=True)
class SymptomEvent(TimelineEvent):
    for_doctor: bool = False

    kind: ClassVar[str] = "symptom"

    def _payload(self) -> dict[str, Any]:
        return {"forDoctor": self.for_doctor}

    @classmethod
    def _payload_from_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        return {"for_doctor": bool(d.get("forDoctor", False))}


@dataclass(frozen=True)
class ActivityEvent(TimelineEvent):
    category: str = "other"

    kind: ClassVar[str] = "activity"

    def _payload(self) -> dict[str, Any]:
        return {"category": self.category}

    @classmethod
    def _payload_from_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        category = str(d.get("category") or "other")
        return {"category": category if category in ACTIVITY_CATEGORIES else "other"}


EVENT_TYPES: dict[str, type[TimelineEvent]] = {
    cls.kind: cls
    for cls in (WakeEvent, SleepEvent, MedicationEvent, MoodEvent, SymptomEvent, ActivityEvent, NoteEvent)
}


def make_event(kind: str, **kwargs: Any) -> TimelineEvent:
    """
    Build an event of the given kind. `id` defaults to a fresh one.
    Raises ValueError for kinds outside EVENT_KINDS.
    """
    kind = KIND_ALIASES.get(kind, kind)
    cls = EVENT_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown event kind {kind!r}; expected one of {', '.join(EVENT_KINDS)}")
    kwargs.setdefault("id", new_event_id())
    return cls(**kwargs)


def with_id(event: TimelineEvent, event_id: str) -> TimelineEvent:
    return replace(event, id=event_id)


def event_from_dict(d: Any) -> TimelineEvent | None:
    """Decode one stored event. Unknown kinds and id-less entries give None."""
    if not isinstance(d, dict):
        return None
    raw_kind = str(d.get("type", d.get("kind", "")))
    kind = KIND_ALIASES.get(raw_kind, raw_kind)
    cls = EVENT_TYPES.get(kind)
    event_id = _opt_str(d.get("id"))
    if cls is None or event_id is None:
        logger.debug("Dropping unreadable event %r", d)
        return None
    return cls(
        id=event_id,
        time=str(d.get("time") or ""),
        label=str(d.get("label") or ""),
        memo=_opt_str(d.get("memo")),
        end_time=_opt_str(d.get("endTime")),
        planned=bool(d.get("planned", False)),
        **cls._payload_from_dict(d),
    )


def events_from_list(items: Any) -> list[TimelineEvent]:
    if not isinstance(items, list):
        return []
    out: list[TimelineEvent] = []
    for item in items:
        ev = event_from_dict(item)
        if ev is not None:
            out.append(ev)
    return out


# -------------------------
# Day record
# -------------------------


@dataclass(frozen=True)
class MoodSnapshot:
    value: float
    time: str | None = None
    memo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "time": self.time, "memo": self.memo}


@dataclass(frozen=True)
class SleepSnapshot:
    bed_time: str | None = None
    wake_time: str | None = None
    memo: str | None = None
    total_minutes: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d = {"bedTime": self.bed_time, "wakeTime": self.wake_time, "memo": self.memo}
        if self.total_minutes is not None:
            d["totalMinutes"] = self.total_minutes
        return d


@dataclass(frozen=True)
class MedicationLog:
    id: str
    time: str
    label: str
    memo: str | None = None
    med_id: str | None = None
    time_slot: str | None = None
    dosage: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "time": self.time,
                "label": self.label,
                "memo": self.memo,
                "medId": self.med_id,
                "medTimeSlot": self.time_slot,
                "dosageText": self.dosage,
            }
        )


@dataclass(frozen=True)
class SymptomLog:
    id: str
    time: str
    label: str
    memo: str | None = None
    for_doctor: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"id": self.id, "time": self.time, "label": self.label, "memo": self.memo, "forDoctor": self.for_doctor}
        )


@dataclass(frozen=True)
class NoteLog:
    id: str
    time: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "time": self.time, "text": self.text}


@dataclass(frozen=True)
class DayRecord:
    date: str
    mood: MoodSnapshot | None = None
    sleep: SleepSnapshot | None = None
    medications: tuple[MedicationLog, ...] = ()
    symptoms: tuple[SymptomLog, ...] = ()
    notes: tuple[NoteLog, ...] = ()
    events: tuple[TimelineEvent, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "mood": self.mood.to_dict() if self.mood else None,
            "sleep": self.sleep.to_dict() if self.sleep else None,
            "medications": [m.to_dict() for m in self.medications],
            "symptoms": [s.to_dict() for s in self.symptoms],
            "notes": [n.to_dict() for n in self.notes],
            "timelineEvents": [e.to_dict() for e in self.events],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, date_key: str, d: Any) -> DayRecord:
        if not isinstance(d, dict):
            return cls(date=date_key)
        return cls(
            date=date_key,
            mood=_mood_from_dict(d.get("mood")),
            sleep=_sleep_from_dict(d.get("sleep")),
            medications=tuple(_logs_from_list(d.get("medications"), _medication_from_dict)),
            symptoms=tuple(_logs_from_list(d.get("symptoms"), _symptom_from_dict)),
            notes=tuple(_logs_from_list(d.get("notes"), _note_from_dict)),
            events=tuple(events_from_list(d.get("timelineEvents"))),
            created_at=_opt_str(d.get("createdAt")),
            updated_at=_opt_str(d.get("updatedAt")),
        )


def _mood_from_dict(d: Any) -> MoodSnapshot | None:
    if not isinstance(d, dict):
        return None
    value = d.get("value")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return MoodSnapshot(value=value, time=_opt_str(d.get("time")), memo=_opt_str(d.get("memo")))


def _sleep_from_dict(d: Any) -> SleepSnapshot | None:
    if not isinstance(d, dict):
        return None
    total = d.get("totalMinutes")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        total = None
    return SleepSnapshot(
        bed_time=_opt_str(d.get("bedTime")),
        wake_time=_opt_str(d.get("wakeTime")),
        memo=_opt_str(d.get("memo")),
        total_minutes=int(total) if total is not None else None,
    )


def _medication_from_dict(d: dict[str, Any]) -> MedicationLog:
    return MedicationLog(
        id=str(d.get("id", "")),
        time=str(d.get("time") or "00:00"),
        label=str(d.get("label") or ""),
        memo=_opt_str(d.get("memo")),
        med_id=_opt_str(d.get("medId")),
        time_slot=_opt_str(d.get("medTimeSlot")),
        dosage=_opt_str(d.get("dosageText")),
    )


def _symptom_from_dict(d: dict[str, Any]) -> SymptomLog:
    return SymptomLog(
        id=str(d.get("id", "")),
        time=str(d.get("time") or "00:00"),
        label=str(d.get("label") or ""),
        memo=_opt_str(d.get("memo")),
        for_doctor=bool(d.get("forDoctor", False)),
    )


def _note_from_dict(d: dict[str, Any]) -> NoteLog:
    return NoteLog(id=str(d.get("id", "")), time=str(d.get("time") or "00:00"), text=str(d.get("text") or ""))


def _logs_from_list(items: Any, decode) -> list:
    if not isinstance(items, list):
        return []
    return [decode(item) for item in items if isinstance(item, dict)]


# -------------------------
# Badges
# -------------------------


@dataclass(frozen=True)
class AchievedBadge:
    badge_id: str
    achieved_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.badge_id, "achievedAt": self.achieved_at}

    @classmethod
    def from_dict(cls, d: Any) -> AchievedBadge | None:
        if not isinstance(d, dict) or not _opt_str(d.get("id")):
            return None
        return cls(badge_id=str(d["id"]), achieved_at=str(d.get("achievedAt") or ""))


def event_field_names(kind: str) -> set[str]:
    """Constructor fields accepted by make_event for `kind`."""
    cls = EVENT_TYPES[KIND_ALIASES.get(kind, kind)]
    return {f.name for f in fields(cls)}
