# query_engine.py
"""
Entry points for answering calendar questions.

`process_query` is the deterministic rule-based engine. `answer_query` tries an
optional primary strategy (the LLM) first and falls back to `process_query`
whenever that strategy fails.
"""
import logging
from datetime import datetime as _dt, timezone, tzinfo
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import get_settings
from handlers.highlight import select_highlights
from handlers.router import QueryContext, route_query
from schemas import CalendarEvent, QueryResult

logger = logging.getLogger(__name__)

# (query, events, now, tz) -> QueryResult
Strategy = Callable[[str, Sequence[CalendarEvent], _dt, tzinfo], QueryResult]


def default_timezone() -> tzinfo:
    name = get_settings().CALENDAR_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown CALENDAR_TIMEZONE %r, using UTC", name)
        return timezone.utc


def _check_inputs(query: object, events: object) -> None:
    if not isinstance(query, str):
        raise TypeError(f"query must be a str, got {type(query).__name__}")
    if events is None or not isinstance(events, (list, tuple)):
        raise TypeError(f"events must be a list of CalendarEvent, got {type(events).__name__}")
    for e in events:
        if not isinstance(e, CalendarEvent):
            raise TypeError(f"events must contain CalendarEvent items, got {type(e).__name__}")


def _resolve_clock(now: Optional[_dt], tz: Optional[tzinfo]) -> tuple:
    tz = tz or default_timezone()
    if now is None:
        now = _dt.now(tz)
    elif now.tzinfo is None:
        raise TypeError("now must be timezone-aware")
    return now.astimezone(tz), tz


def process_query(
    query: str,
    events: Sequence[CalendarEvent],
    *,
    now: Optional[_dt] = None,
    tz: Optional[tzinfo] = None,
) -> QueryResult:
    """
    Answer `query` from `events` with the rule-based engine.

    `now` is read once here and threaded through every computation of this call.
    Raises TypeError when the caller passes something other than a string and a
    list of CalendarEvent; never raises for the content of either.
    """
    _check_inputs(query, events)
    now, tz = _resolve_clock(now, tz)

    ctx = QueryContext.build(query, events, now, tz)
    routed = route_query(ctx)
    related = select_highlights(query, events, now, tz)
    return QueryResult(answer=routed.answer, related_events=related, strategy="rules")


def _llm_strategy() -> Optional[Strategy]:
    if not get_settings().llm_available:
        return None
    from llm_handler import ask_llm
    return ask_llm


def answer_query(
    query: str,
    events: Sequence[CalendarEvent],
    *,
    now: Optional[_dt] = None,
    tz: Optional[tzinfo] = None,
    primary: Optional[Strategy] = None,
    use_llm: bool = True,
) -> QueryResult:
    """
    Try `primary` (the configured LLM strategy by default), then the rule engine.
    Both return the same QueryResult shape.
    """
    _check_inputs(query, events)
    now, tz = _resolve_clock(now, tz)

    if primary is None and use_llm:
        primary = _llm_strategy()

    if primary is not None:
        try:
            result = primary(query, events, now, tz)
            logger.info("answered with primary strategy")
            return result
        except Exception:
            logger.error("Primary strategy failed, falling back to rules", exc_info=True)

    logger.info("answered with rule-based engine")
    return process_query(query, events, now=now, tz=tz)
