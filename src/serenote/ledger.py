from __future__ import annotations

from collections.abc import Iterable, Iterator

from .models import TimelineEvent, with_id
from .timeparse import parse_hhmm


def _time_sort_key(event: TimelineEvent) -> tuple[int, int, str]:
    # unparsable times sort after every valid one, then by raw text
    minutes = parse_hhmm(event.time)
    if minutes is None:
        return (1, 0, event.time)
    return (0, minutes, "")


class TimeOrdered:
    """
    Chronological view over a ledger. Each iteration sorts afresh, so the
    view can be iterated again and reflects later ledger changes.
    Ties keep insertion order (sorted() is stable).
    """

    def __init__(self, events: list[TimelineEvent]):
        self._events = events

    def __iter__(self) -> Iterator[TimelineEvent]:
        yield from sorted(self._events, key=_time_sort_key)

    def __len__(self) -> int:
        return len(self._events)


class EventLog:
    """
    The events of one date, in insertion order.

    The list order (not the clock time) is what "last event wins" refers to
    when a DayRecord is rebuilt.
    """

    def __init__(self, date: str, events: Iterable[TimelineEvent] = ()):
        self.date = date
        self._events: list[TimelineEvent] = []
        for ev in events:
            self.append(ev)

    def __iter__(self) -> Iterator[TimelineEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return any(e.id == event_id for e in self._events)

    @property
    def events(self) -> list[TimelineEvent]:
        return list(self._events)

    def get(self, event_id: str) -> TimelineEvent | None:
        for e in self._events:
            if e.id == event_id:
                return e
        return None

    def append(self, event: TimelineEvent) -> None:
        if event.id in self:
            raise ValueError(f"Event id {event.id!r} already exists on {self.date}")
        self._events.append(event)

    def replace(self, event_id: str, event: TimelineEvent) -> bool:
        """Swap in `event` at the same position, keeping the original id."""
        for i, e in enumerate(self._events):
            if e.id == event_id:
                self._events[i] = with_id(event, event_id)
                return True
        return False

    def remove(self, event_id: str) -> bool:
        before = len(self._events)
        self._events[:] = [e for e in self._events if e.id != event_id]
        return len(self._events) != before

    def sorted_by_time(self) -> TimeOrdered:
        return TimeOrdered(self._events)
