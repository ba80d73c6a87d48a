"""
Highlight set: the events a caller should emphasize for a query.

Computed in its own pass from the query text, independently of which branch
produced the textual answer, so the two may legitimately differ.
"""
from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import List, Sequence

from schemas import CalendarEvent
from handlers.appointments import find_keyword, find_with_person, get_events_on, get_next_event
from handlers.lexicon import extract_keywords, extract_person_name, extract_potential_persons
from scheduler.time_utils import has_explicit_date, parse_explicit_date, resolve_weekday, to_local


def _dedupe(events: Sequence[CalendarEvent], order: Sequence[CalendarEvent]) -> List[CalendarEvent]:
    """Keep caller order and object identity; drop repeats."""
    wanted = {id(e) for e in events}
    return [e for e in order if id(e) in wanted]


def select_highlights(
    query: str,
    events: Sequence[CalendarEvent],
    now: datetime,
    tz: tzinfo,
) -> List[CalendarEvent]:
    text = (query or "").strip().lower()
    today = to_local(now, tz).date()

    matched: List[CalendarEvent] = []
    checked = False

    if "today" in text:
        checked = True
        matched += get_events_on(events, today, tz)
    if "tomorrow" in text:
        checked = True
        matched += get_events_on(events, today + timedelta(days=1), tz)
    if has_explicit_date(text):
        checked = True
        target = parse_explicit_date(text)
        if target is not None:
            matched += get_events_on(events, target, tz)

    weekday_date = resolve_weekday(text, today)
    if weekday_date is not None:
        checked = True
        matched += get_events_on(events, weekday_date, tz)

    if "next meeting" in text or "next appointment" in text:
        checked = True
        nxt = get_next_event(events, now)
        if nxt is not None:
            matched.append(nxt)

    if "with" in text:
        person = extract_person_name(query)
        persons = [person] if person else extract_potential_persons(query)
        if persons:
            checked = True
            for p in persons:
                matched += find_with_person(events, p)

    if not checked:
        keywords = extract_keywords(text)
        if keywords:
            matched += find_keyword(events, keywords)

    return _dedupe(matched, events)
