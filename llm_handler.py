# llm_handler.py
"""
Optional LLM strategy for calendar questions.

Sends the question plus a structured view of the calendar to an
OpenAI-compatible chat-completions endpoint (Groq by default). Any failure is
raised as LLMError so the caller can fall back to the rule-based engine.
"""
import logging
from datetime import datetime as _dt, timedelta, tzinfo
from typing import Any, Dict, List, Optional, Sequence

import requests

from config import Settings, get_settings
from handlers.highlight import select_highlights
from handlers.lexicon import extract_people
from schemas import NO_DESCRIPTION_PLACEHOLDER, CalendarEvent, QueryResult
from scheduler.time_utils import format_clock_time, format_duration, format_long_date, iso_date_key, to_local

logger = logging.getLogger(__name__)

DESCRIPTION_PREVIEW_CHARS = 150
UPCOMING_LIMIT = 10
PAST_LIMIT = 5
PAST_WINDOW = timedelta(days=14)

SYSTEM_PROMPT = """You are an expert Calendar Assistant AI that excels at analyzing calendar data and answering questions about meetings, schedules, and availability.

IMPORTANT GUIDELINES:
1. Answer questions with absolute accuracy based ONLY on the calendar data provided
2. Format dates as "Weekday, Month Day" (e.g., "Monday, June 10")
3. Format times in 12-hour format with AM/PM (e.g., "2:30 PM")
4. When listing meetings, ONLY include their title and time by default - keep responses concise
5. For availability/free time questions, analyze gaps between meetings
6. Never invent meetings or details not present in the data
7. For "next meeting" queries, find the next chronological meeting after the current time
8. For date-specific queries, count ALL meetings on that exact date or range
9. The calendar data provided is complete; never claim data is missing for a date

FORMATTING GUIDELINES:
1. Always use bullet points (•) when listing meetings
2. Bold meeting titles using ** around the text
3. For time blocks, use the form "from 9:00 AM to 10:30 AM"
4. Add line breaks between sections

EXAMPLE:
User: "What meetings do I have today?"
Assistant: "You have 2 meetings today:

• **Product Review** from 10:00 AM to 11:00 AM
• **Team Standup** from 1:30 PM to 2:00 PM"
"""


class LLMError(RuntimeError):
    """The LLM strategy could not produce an answer."""


# ------------------------ context building ------------------------
def enrich_event(event: CalendarEvent, tz: tzinfo) -> Dict[str, Any]:
    start = to_local(event.start, tz)
    desc = (event.description or "").strip()
    return {
        "id": event.id,
        "title": event.title,
        "date": format_long_date(start),
        "start_time": format_clock_time(event.start, tz),
        "end_time": format_clock_time(event.end, tz),
        "time_range": f"from {format_clock_time(event.start, tz)} to {format_clock_time(event.end, tz)}",
        "duration": format_duration(event.start, event.end),
        "location": event.location or "No location specified",
        "description": desc[:DESCRIPTION_PREVIEW_CHARS] if desc else NO_DESCRIPTION_PLACEHOLDER,
        "has_link": "Yes" if event.meeting_link else "No",
        "source": event.source,
        "all_day": event.is_all_day,
        "people": extract_people(event.title, event.description),
        "_start": event.start,
    }


def build_calendar_context(events: Sequence[CalendarEvent], now: _dt, tz: tzinfo) -> Dict[str, Any]:
    """Events bucketed into today / tomorrow / upcoming / recent past, plus a full by-date map."""
    today_key = iso_date_key(now, tz)
    tomorrow_key = iso_date_key(now + timedelta(days=1), tz)
    enriched = sorted((enrich_event(e, tz) for e in events), key=lambda e: e["_start"])

    by_date: Dict[str, List[Dict[str, Any]]] = {}
    for e in enriched:
        by_date.setdefault(iso_date_key(e["_start"], tz), []).append(e)

    return {
        "today": by_date.get(today_key, []),
        "tomorrow": by_date.get(tomorrow_key, []),
        "upcoming": [e for e in enriched if e["_start"] > now],
        "past": [e for e in reversed(enriched) if now - PAST_WINDOW < e["_start"] < now],
        "by_date": dict(sorted(by_date.items())),
    }


def _bullets(items: Sequence[Dict[str, Any]]) -> str:
    return "\n".join(f"• **{e['title']}** {e['time_range']}" for e in items)


def _section(title: str, items: Sequence[Dict[str, Any]], empty: str, limit: Optional[int] = None) -> str:
    shown = items[:limit] if limit is not None else items
    return f"{title} ({len(items)}):\n{_bullets(shown) if shown else empty}"


def build_user_message(query: str, events: Sequence[CalendarEvent], now: _dt, tz: tzinfo) -> str:
    ctx = build_calendar_context(events, now, tz)
    local_now = to_local(now, tz)
    by_date = "\n\n".join(
        f"{format_long_date(day_events[0]['_start'].astimezone(tz))} "
        f"({len(day_events)} meetings):\n{_bullets(day_events)}"
        for day_events in ctx["by_date"].values()
    )
    parts = [
        f"The current time is {format_long_date(local_now)} at {format_clock_time(local_now)}.",
        "MY CALENDAR DATA:",
        _section("TODAY'S MEETINGS", ctx["today"], "No meetings scheduled for today."),
        _section("TOMORROW'S MEETINGS", ctx["tomorrow"], "No meetings scheduled for tomorrow."),
        _section("UPCOMING MEETINGS", ctx["upcoming"], "No upcoming meetings scheduled.", UPCOMING_LIMIT),
        _section("RECENT PAST MEETINGS", ctx["past"], "No recent past meetings.", PAST_LIMIT),
        "CALENDAR DATA BY DATE (complete):\n" + (by_date or "No meetings."),
        f"Based on this calendar data, please answer my question: {query}",
    ]
    return "\n\n".join(parts)


# ------------------------ API call ------------------------
def _completion_text(result: Any) -> str:
    try:
        text = result["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise LLMError(f"malformed completion: {e}") from e
    if not isinstance(text, str) or not text.strip():
        raise LLMError("empty completion")
    return text.strip()


def ask_llm(
    query: str,
    events: Sequence[CalendarEvent],
    now: _dt,
    tz: tzinfo,
    settings: Optional[Settings] = None,
) -> QueryResult:
    settings = settings or get_settings()
    if not settings.GROQ_API_KEY.strip():
        raise LLMError("GROQ_API_KEY is not set")

    headers = {
        "Authorization": f"Bearer {settings.GROQ_API_KEY}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.GROQ_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_message(query, events, now, tz)},
        ],
        "temperature": 0.0,
        "max_tokens": settings.LLM_MAX_TOKENS,
    }

    try:
        resp = requests.post(
            settings.GROQ_API_URL, headers=headers, json=payload, timeout=settings.LLM_TIMEOUT_SECONDS
        )
        resp.raise_for_status()
        result = resp.json()
    except requests.RequestException as e:
        raise LLMError(f"LLM request failed: {e}") from e
    except ValueError as e:
        raise LLMError(f"LLM returned invalid JSON: {e}") from e

    answer = _completion_text(result)
    logger.debug("LLM answer length=%d", len(answer))
    return QueryResult(
        answer=answer,
        related_events=select_highlights(query, events, now, tz),
        strategy="llm",
    )
