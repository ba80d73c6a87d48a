# handlers/appointments.py
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional, Sequence

from schemas import CalendarEvent
from scheduler.availability import sort_by_start
from scheduler.time_utils import iso_date_key


def get_events_on(events: Iterable[CalendarEvent], target_date: date, tz: Optional[tzinfo] = None) -> List[CalendarEvent]:
    key = target_date.isoformat()
    return sort_by_start(e for e in events if iso_date_key(e.start, tz) == key)


def get_events_between(events: Iterable[CalendarEvent], start: datetime, end: datetime) -> List[CalendarEvent]:
    """Events starting in [start, end)."""
    return sort_by_start(e for e in events if start <= e.start < end)


def get_upcoming_events(events: Iterable[CalendarEvent], now: datetime, limit: Optional[int] = None) -> List[CalendarEvent]:
    upcoming = sort_by_start(e for e in events if e.start > now)
    return upcoming[:limit] if limit is not None else upcoming


def get_next_event(events: Iterable[CalendarEvent], now: datetime) -> Optional[CalendarEvent]:
    upcoming = get_upcoming_events(events, now, limit=1)
    return upcoming[0] if upcoming else None


def get_remaining_events(events: Iterable[CalendarEvent], now: datetime) -> List[CalendarEvent]:
    """Events that have not finished yet."""
    return sort_by_start(e for e in events if e.end > now)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def find_with_person(events: Iterable[CalendarEvent], person: str) -> List[CalendarEvent]:
    needle = person.lower()
    return [e for e in events if _contains(e.title, needle) or _contains(e.description, needle)]


def find_keyword(events: Iterable[CalendarEvent], keywords: Sequence[str]) -> List[CalendarEvent]:
    """Events whose title, description or location contains any keyword."""
    needles = [k.lower() for k in keywords if k]
    return [
        e for e in events
        if any(
            _contains(e.title, k) or _contains(e.description, k) or _contains(e.location, k)
            for k in needles
        )
    ]


def find_any_term(events: Iterable[CalendarEvent], terms: Sequence[str]) -> List[CalendarEvent]:
    """Events whose title or description contains any of `terms`."""
    needles = [t.lower() for t in terms if t]
    return [
        e for e in events
        if any(_contains(e.title, t) or _contains(e.description, t) for t in needles)
    ]
