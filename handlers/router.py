"""
Rule-based intent router.

A normalized query is tested against an ordered battery of pattern families;
the first family that claims the query answers it. Families 1-3 (explicit
date, weekday, today/tomorrow) only claim plain schedule questions: when the
query also carries overlap, availability, agenda, meeting-type or person
vocabulary, the date words become a scope for that branch instead.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date as _date, datetime as _dt, time as _time, timedelta, tzinfo
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from schemas import CalendarEvent
from handlers.appointments import (
    find_any_term,
    find_keyword,
    find_with_person,
    get_events_between,
    get_events_on,
    get_next_event,
    get_remaining_events,
    get_upcoming_events,
)
from handlers.formatting import (
    TIPS,
    count_only,
    count_phrase,
    free_slot_lines,
    heading,
    listing,
    meeting_line,
    meetings_list,
    no_meetings,
    overlap_line,
    pluralize,
)
from handlers.lexicon import (
    extract_keywords,
    extract_meeting_types,
    extract_person_name,
    match_meeting_type,
    type_variants,
)
from scheduler.availability import (
    events_at,
    events_overlapping,
    find_free_windows,
    find_overlaps,
    free_windows_for_day,
    sort_by_start,
    timed_events,
)
from scheduler.time_utils import (
    CLOCK_PATTERN,
    add_months,
    combine_local,
    end_of_workday,
    find_weekday,
    format_clock_time,
    format_long_date,
    has_explicit_date,
    month_bounds,
    parse_bare_hour,
    parse_clock_time,
    parse_explicit_date,
    resolve_weekday,
    start_of_day,
    start_of_workday,
    to_local,
    week_bounds,
)

logger = logging.getLogger(__name__)

DATE_FORMAT_HELP = "I couldn't understand the date format. Please try using DD/MM/YYYY or YYYY-MM-DD format."


class UnreadableDateError(ValueError):
    """The query names a date-shaped token that is not a real date."""


_HOW_MANY_RE = re.compile(r"\b(?:how\s+many|number\s+of)\b")
_TODAY_RE = re.compile(r"\btoday\b")
_TOMORROW_RE = re.compile(r"\btomorrow\b")
_YESTERDAY_RE = re.compile(r"\byesterday\b")

_OVERLAP_RE = re.compile(r"\b(?:overlap\w*|conflict\w*|collision\w*|clash\w*|double[\s-]?book\w*)")
_AVAILABILITY_RE = re.compile(r"\b(?:free|available|availability|busy)\b")
_AGENDA_RE = re.compile(r"\b(?:agendas?|descriptions?|details|notes)\b")
_AGENDA_NEGATION_RE = re.compile(r"\b(?:no|without|missing|lacking|lack)\b")
_TYPE_TRIGGER_RE = re.compile(r"(?<![\w:])(interviews?|interviewing|standups?|1:1s?)(?![\w:])")
_HOW_MANY_TYPE_RE = re.compile(r"\bhow\s+many\s+([\w:-]+)\s+(?:meetings?|sessions?|calls?)\b")
_PERSON_RE = re.compile(r"\bmeetings?\s+with\b")
_NEXT_MEETING_RE = re.compile(r"\bnext\s+(?:meeting|appointment)\b")
_SEARCH_RE = re.compile(r"\b(?:find|search\s+for|look\s+for)\s+(?:(?:my|all|any|the)\s+)*meetings?\b")
_RELATIVE_CLOCK_RE = re.compile(r"\b(after|before)\s+(" + CLOCK_PATTERN + r")")

# Extra spellings searched for alongside a meeting type's own variants.
_TYPE_ALIASES = {
    "1:1": ("one-on-one", "1-on-1"),
    "one-on-one": ("1:1", "1-on-1"),
    "standup": ("stand-up",),
    "catch-up": ("catchup",),
    "check-in": ("checkin",),
}


def normalize_query(query: str) -> str:
    return re.sub(r"\s+", " ", (query or "").strip().lower())


@dataclass(frozen=True)
class QueryContext:
    raw: str
    text: str
    events: Sequence[CalendarEvent]
    now: _dt
    tz: tzinfo

    @classmethod
    def build(cls, query: str, events: Sequence[CalendarEvent], now: _dt, tz: tzinfo) -> "QueryContext":
        return cls(
            raw=(query or "").strip(),
            text=normalize_query(query),
            events=tuple(events),
            now=to_local(now, tz),
            tz=tz,
        )

    @property
    def today(self) -> _date:
        return self.now.date()

    @property
    def tomorrow(self) -> _date:
        return self.today + timedelta(days=1)

    @property
    def wants_count(self) -> bool:
        return bool(_HOW_MANY_RE.search(self.text))

    def at(self, day: _date, t: _time = _time(0, 0)) -> _dt:
        return combine_local(day, t, self.tz)


class RoutedAnswer(NamedTuple):
    intent: str
    answer: str


# ---- vocabulary checks ----
def _is_overlap(text: str) -> bool:
    return bool(_OVERLAP_RE.search(text))


def _is_availability(text: str) -> bool:
    return bool(_AVAILABILITY_RE.search(text))


def _is_agenda(text: str) -> bool:
    return bool(_AGENDA_RE.search(text))


def _meeting_type_in(text: str) -> Optional[str]:
    m = _HOW_MANY_TYPE_RE.search(text)
    if m:
        found = match_meeting_type(m.group(1))
        if found:
            return found
    m = _TYPE_TRIGGER_RE.search(text)
    if m:
        return match_meeting_type(m.group(1))
    return None


def _is_person(text: str) -> bool:
    return bool(_PERSON_RE.search(text))


def _has_specific_intent(text: str) -> bool:
    return (
        _is_overlap(text)
        or _is_availability(text)
        or _is_agenda(text)
        or _meeting_type_in(text) is not None
        or _is_person(text)
    )


def _scope_day(ctx: QueryContext, *, default_today: bool = True) -> Optional[Tuple[_date, str]]:
    """Day a scoped question is about, and how to say it ('today', 'on Monday, April 21')."""
    if has_explicit_date(ctx.text):
        d = parse_explicit_date(ctx.text)
        if d is None:
            raise UnreadableDateError(ctx.text)
        return d, f"on {format_long_date(d)}"
    d = resolve_weekday(ctx.text, ctx.today)
    if d is not None:
        return d, f"on {format_long_date(d, with_year=False)}"
    if _TOMORROW_RE.search(ctx.text):
        return ctx.tomorrow, "tomorrow"
    if _YESTERDAY_RE.search(ctx.text):
        return ctx.today - timedelta(days=1), "yesterday"
    if _TODAY_RE.search(ctx.text) or default_today:
        return ctx.today, "today"
    return None


def _capitalized(text: str) -> str:
    return text[:1].upper() + text[1:]


# ---- 1-3: date listings ----
def _day_listing(
    ctx: QueryContext,
    day: _date,
    *,
    empty_scope: str,
    count_scope: str,
    title: str,
    sentence_scope: str,
) -> str:
    found = get_events_on(ctx.events, day, ctx.tz)
    if not found:
        return no_meetings(empty_scope)
    if ctx.wants_count:
        return count_only(len(found), count_scope)
    return listing(title, f"You have {count_phrase(len(found))} {sentence_scope}.", found, ctx.tz)


def _answer_explicit_date(ctx: QueryContext) -> str:
    day = parse_explicit_date(ctx.text)
    if day is None:
        return DATE_FORMAT_HELP
    label = format_long_date(day)
    return _day_listing(
        ctx, day,
        empty_scope=label,
        count_scope=f"on {label}",
        title=f"{label} Schedule",
        sentence_scope="scheduled for this date",
    )


def _answer_weekday(ctx: QueryContext) -> str:
    day = resolve_weekday(ctx.text, ctx.today)
    if day is None:
        return DATE_FORMAT_HELP
    weekday = format_long_date(day, with_year=False).split(",")[0]
    name = f"next {weekday}" if (day - ctx.today).days >= 7 else weekday
    return _day_listing(
        ctx, day,
        empty_scope=name,
        count_scope=f"on {name}",
        title=f"{format_long_date(day, with_year=False)} Schedule",
        sentence_scope=f"scheduled for {name}",
    )


def _answer_today_tomorrow(ctx: QueryContext) -> str:
    if _TODAY_RE.search(ctx.text):
        day, word = ctx.today, "today"
    else:
        day, word = ctx.tomorrow, "tomorrow"
    return _day_listing(
        ctx, day,
        empty_scope=word,
        count_scope=word,
        title=f"{_capitalized(word)}'s Schedule",
        sentence_scope=word,
    )


# ---- 4: overlaps ----
def _answer_overlaps(ctx: QueryContext) -> str:
    scoped = _scope_day(ctx, default_today=False)
    if scoped is not None:
        day, scope = scoped
        pool = get_events_on(ctx.events, day, ctx.tz)
        with_date = False
    else:
        scope = "in your upcoming schedule"
        pool = get_remaining_events(ctx.events, ctx.now)
        with_date = True

    report = find_overlaps(pool)
    if not report.has_overlaps:
        return f"You have no overlapping meetings {scope}."
    n = len(report.overlaps)
    if ctx.wants_count:
        return count_only(n, scope, noun="overlapping pair")
    lines = "\n".join(overlap_line(o, ctx.tz, with_date=with_date) for o in report.overlaps)
    return (
        heading("Overlapping Meetings")
        + f"You have {count_phrase(n, 'pair')} of overlapping meetings {scope}:\n"
        + lines
    )


# ---- 5: availability ----
def _answer_availability(ctx: QueryContext) -> str:
    day, scope = _scope_day(ctx)
    m = _RELATIVE_CLOCK_RE.search(ctx.text)
    if m:
        t = parse_clock_time(m.group(2))
        if t is not None:
            if m.group(1) == "after":
                return _answer_free_after(ctx, day, scope, t)
            return _answer_free_before(ctx, day, scope, t)
    t = parse_clock_time(ctx.text)
    if t is None:
        t = parse_bare_hour(ctx.text)
    if t is not None:
        return _answer_free_at(ctx, day, scope, t)
    return _answer_free_slots(ctx, day, scope)


def _answer_free_at(ctx: QueryContext, day: _date, scope: str, t: _time) -> str:
    instant = ctx.at(day, t)
    clock = format_clock_time(instant)
    busy = events_at(ctx.events, instant)
    if not busy:
        return f"You're free at {clock} {scope}."
    return (
        f"You're busy at {clock} {scope}. You have {count_phrase(len(busy))} at that time:"
        + meetings_list(busy, ctx.tz)
    )


def _busy_and_free(ctx: QueryContext, busy: List[CalendarEvent], start: _dt, end: _dt, sentence: str, none_free: str) -> str:
    answer = sentence + meetings_list(busy, ctx.tz)
    free = find_free_windows(busy, start, end)
    if free:
        answer += "\n\n**Free periods:**\n" + free_slot_lines(free, ctx.tz)
    else:
        answer += "\n\n" + none_free
    return answer


def _answer_free_after(ctx: QueryContext, day: _date, scope: str, t: _time) -> str:
    boundary = ctx.at(day, t)
    window_end = end_of_workday(boundary)
    if boundary >= window_end:
        window_end = start_of_day(boundary) + timedelta(days=1)
    clock = format_clock_time(boundary)
    busy = events_overlapping(ctx.events, boundary, window_end)
    if not busy:
        return f"You're free after {clock} {scope}."
    return heading(f"After {clock} {_capitalized(scope)}") + _busy_and_free(
        ctx, busy, boundary, window_end,
        f"You have {count_phrase(len(busy))} after {clock} {scope}:",
        f"You have no significant free time after {clock}.",
    )


def _answer_free_before(ctx: QueryContext, day: _date, scope: str, t: _time) -> str:
    boundary = ctx.at(day, t)
    window_start = start_of_workday(boundary)
    if boundary <= window_start:
        window_start = start_of_day(boundary)
    clock = format_clock_time(boundary)
    busy = events_overlapping(ctx.events, window_start, boundary)
    if not busy:
        return f"You're free before {clock} {scope}."
    return heading(f"Before {clock} {_capitalized(scope)}") + _busy_and_free(
        ctx, busy, window_start, boundary,
        f"You have {count_phrase(len(busy))} before {clock} {scope}:",
        f"You have no significant free time before {clock}.",
    )


def _answer_free_slots(ctx: QueryContext, day: _date, scope: str) -> str:
    title = f"Availability {_capitalized(scope)}"
    day_events = timed_events(get_events_on(ctx.events, day, ctx.tz))
    if day == ctx.today:
        anchor = ctx.now
        remaining = [e for e in day_events if e.end > ctx.now]
        if not remaining:
            return heading(title) + "You have no more meetings today. You are free for the rest of the day."
        sentence = f"You have {count_phrase(len(remaining))} remaining today."
    else:
        anchor = ctx.at(day)
        remaining = day_events
        if not remaining:
            return heading(title) + f"You have no meetings {scope}. You are free all day."
        sentence = f"You have {count_phrase(len(remaining))} {scope}."

    answer = heading(title) + sentence + "\n\n**Busy periods:**\n"
    answer += "\n".join(meeting_line(e, ctx.tz) for e in remaining)
    slots = free_windows_for_day(remaining, anchor, ctx.tz)
    if slots:
        answer += "\n\n**Free periods:**\n" + free_slot_lines(slots, ctx.tz)
    else:
        answer += f"\n\nYou have no significant free time slots remaining {scope}."
    return answer


# ---- 6: agenda presence ----
def _answer_agenda(ctx: QueryContext) -> str:
    day, scope = _scope_day(ctx)
    day_events = get_events_on(ctx.events, day, ctx.tz)
    if not day_events:
        return f"You have no meetings {scope}."

    if _AGENDA_NEGATION_RE.search(ctx.text):
        matching = [e for e in day_events if not e.has_agenda]
        phrase, suffix = "without an agenda", "(No agenda)"
        title = "Meetings Without an Agenda"
        none_sentence = f"All of your meetings {scope} have an agenda."
    else:
        matching = [e for e in day_events if e.has_agenda]
        phrase, suffix = "with an agenda", "(Has agenda)"
        title = "Meetings With an Agenda"
        none_sentence = f"None of your meetings {scope} have an agenda."

    if ctx.wants_count:
        return count_only(len(matching), f"{scope} {phrase}")
    if not matching:
        return none_sentence
    return listing(
        title,
        f"You have {count_phrase(len(matching))} {scope} {phrase}:",
        matching, ctx.tz, suffix=suffix,
    )


# ---- 7: meeting types ----
def _type_window(ctx: QueryContext) -> Tuple[_date, _date, str]:
    text = ctx.text
    if re.search(r"\bnext\s+week\b", text):
        monday, _ = week_bounds(ctx.today)
        return monday + timedelta(days=7), monday + timedelta(days=14), "next week"
    if re.search(r"\b(?:this\s+)?week\b", text):
        monday, next_monday = week_bounds(ctx.today)
        return monday, next_monday, "this week"
    if _TOMORROW_RE.search(text):
        return ctx.tomorrow, ctx.tomorrow + timedelta(days=1), "tomorrow"
    if _TODAY_RE.search(text):
        return ctx.today, ctx.tomorrow, "today"
    if re.search(r"\bnext\s+month\b", text):
        first = add_months(ctx.today.replace(day=1), 1)
        start, end = month_bounds(first.year, first.month)
        return start, end, "next month"
    if re.search(r"\bmonth\b", text):
        start, end = month_bounds(ctx.today.year, ctx.today.month)
        return start, end, "this month"
    return ctx.today, add_months(ctx.today, 3), "in the next 3 months"


def _type_terms(meeting_type: str) -> Tuple[str, ...]:
    return type_variants(meeting_type) + _TYPE_ALIASES.get(meeting_type, ())


def _answer_meeting_type(ctx: QueryContext) -> str:
    mtype = _meeting_type_in(ctx.text)
    if mtype is None:
        types = extract_meeting_types(ctx.text)
        mtype = types[0] if types else None
    if mtype is None:
        return "Please tell me which kind of meeting you're looking for."

    start, end, scope = _type_window(ctx)
    candidates = get_events_between(ctx.events, ctx.at(start), ctx.at(end))
    matching = find_any_term(candidates, _type_terms(mtype))
    noun = f"{mtype} meeting"

    if ctx.wants_count:
        return count_only(len(matching), scope, noun=noun)
    if not matching:
        return f"You have no {pluralize(0, noun)} scheduled {scope}."
    return listing(
        f"{mtype.title()} Meetings",
        f"You have {count_phrase(len(matching), noun)} {scope}:",
        matching, ctx.tz, with_date=True,
    )


# ---- 8: person ----
def _answer_person(ctx: QueryContext) -> str:
    person = extract_person_name(ctx.raw)
    if not person:
        return "Please specify the person's name you're looking for."
    matching = sort_by_start(find_with_person(ctx.events, person))
    if not matching:
        return f"I couldn't find any meetings with **{person}**."
    if ctx.wants_count:
        return count_only(len(matching), f"with {person}")
    return listing(
        f"Meetings with {person}",
        f"I found {count_phrase(len(matching))} with **{person}**.",
        matching, ctx.tz, with_date=True,
    )


# ---- 9: next meeting ----
def _answer_next_meeting(ctx: QueryContext) -> str:
    nxt = get_next_event(ctx.events, ctx.now)
    if nxt is None:
        return "You have no upcoming meetings scheduled."
    answer = heading("Next Meeting") + (
        f"Your next meeting is **{nxt.title}** on "
        f"{format_long_date(to_local(nxt.start, ctx.tz), with_year=False)} from "
        f"{format_clock_time(nxt.start, ctx.tz)} to {format_clock_time(nxt.end, ctx.tz)}."
    )
    if nxt.meeting_link:
        answer += "\n\nThis meeting has an online meeting link."
    return answer


# ---- 10: keyword search ----
def _answer_search(ctx: QueryContext) -> str:
    keywords = extract_keywords(ctx.text)
    if not keywords:
        return "Please provide some keywords to search for in your meetings."
    matching = sort_by_start(find_keyword(ctx.events, keywords))
    if not matching:
        return heading("Search Results") + "I couldn't find any meetings matching your search terms."
    if ctx.wants_count:
        return count_only(len(matching), "matching your search")
    return listing(
        "Search Results",
        f"I found {count_phrase(len(matching))} matching your search.",
        matching, ctx.tz, with_date=True,
    )


# ---- 11: default ----
def _answer_summary(ctx: QueryContext) -> str:
    upcoming = get_upcoming_events(ctx.events, ctx.now, limit=3)
    if not upcoming:
        return "You have no upcoming meetings scheduled."
    return listing(
        "Upcoming Meetings",
        f"Showing your next {count_phrase(len(upcoming), 'upcoming meeting')}:",
        upcoming, ctx.tz, with_date=True,
    ) + TIPS


Matcher = Callable[[QueryContext], bool]
Handler = Callable[[QueryContext], str]

# Priority order; the first matching family answers.
INTENTS: Tuple[Tuple[str, Matcher, Handler], ...] = (
    ("explicit_date", lambda c: has_explicit_date(c.text) and not _has_specific_intent(c.text), _answer_explicit_date),
    ("weekday", lambda c: find_weekday(c.text) is not None and not _has_specific_intent(c.text), _answer_weekday),
    ("today_tomorrow",
     lambda c: bool(_TODAY_RE.search(c.text) or _TOMORROW_RE.search(c.text)) and not _has_specific_intent(c.text),
     _answer_today_tomorrow),
    ("overlap", lambda c: _is_overlap(c.text), _answer_overlaps),
    ("availability", lambda c: _is_availability(c.text), _answer_availability),
    ("agenda", lambda c: _is_agenda(c.text), _answer_agenda),
    ("meeting_type", lambda c: _meeting_type_in(c.text) is not None, _answer_meeting_type),
    ("person", lambda c: _is_person(c.text), _answer_person),
    ("next_meeting", lambda c: bool(_NEXT_MEETING_RE.search(c.text)), _answer_next_meeting),
    ("search", lambda c: bool(_SEARCH_RE.search(c.text)), _answer_search),
)


def classify(ctx: QueryContext) -> str:
    for name, matches, _ in INTENTS:
        if matches(ctx):
            return name
    return "summary"


def route_query(ctx: QueryContext) -> RoutedAnswer:
    for name, matches, handler in INTENTS:
        if matches(ctx):
            logger.debug("query intent=%s events=%d", name, len(ctx.events))
            try:
                return RoutedAnswer(name, handler(ctx))
            except UnreadableDateError:
                logger.debug("unreadable date in query, intent=%s", name)
                return RoutedAnswer(name, DATE_FORMAT_HELP)
    logger.debug("query intent=summary events=%d", len(ctx.events))
    return RoutedAnswer("summary", _answer_summary(ctx))
