"""
Answer rendering.

Bullet lines keep one fixed shape, `• **<title>** from <start> to <end>`,
because the chat widget re-parses them for styling.
"""
from __future__ import annotations

from datetime import tzinfo
from typing import Iterable, List, Optional

from schemas import CalendarEvent
from scheduler.availability import FreeSlot, Overlap
from scheduler.time_utils import format_clock_time, format_long_date, to_local

BULLET = "•"

_PLURALS = {
    "meeting": "meetings",
    "pair": "pairs",
    "slot": "slots",
    "interview": "interviews",
}


def pluralize(count: int, noun: str) -> str:
    if count == 1:
        return noun
    return _PLURALS.get(noun, noun + "s")


def count_phrase(count: int, noun: str = "meeting") -> str:
    """'1 meeting', '3 meetings'."""
    return f"{count} {pluralize(count, noun)}"


def heading(title: str) -> str:
    return f"**{title}:**\n\n"


def meeting_line(
    event: CalendarEvent,
    tz: Optional[tzinfo] = None,
    *,
    with_date: bool = False,
    suffix: Optional[str] = None,
) -> str:
    line = (
        f"{BULLET} **{event.title}** from {format_clock_time(event.start, tz)}"
        f" to {format_clock_time(event.end, tz)}"
    )
    if with_date:
        line += f" on {format_long_date(to_local(event.start, tz), with_year=False)}"
    if suffix:
        line += f" {suffix}"
    return line


def meetings_list(
    events: Iterable[CalendarEvent],
    tz: Optional[tzinfo] = None,
    *,
    with_date: bool = False,
    suffix: Optional[str] = None,
) -> str:
    """Bulleted listing, prefixed with a newline so it can follow a sentence."""
    lines = [meeting_line(e, tz, with_date=with_date, suffix=suffix) for e in events]
    return "\n" + "\n".join(lines) if lines else ""


def free_slot_lines(slots: Iterable[FreeSlot], tz: Optional[tzinfo] = None) -> str:
    return "\n".join(f"{BULLET} {slot.label(tz)}" for slot in slots)


def overlap_line(overlap: Overlap, tz: Optional[tzinfo] = None, *, with_date: bool = False) -> str:
    a, b = overlap.first, overlap.second
    line = (
        f"{BULLET} **{a.title}** ({format_clock_time(a.start, tz)} to {format_clock_time(a.end, tz)})"
        f" and **{b.title}** ({format_clock_time(b.start, tz)} to {format_clock_time(b.end, tz)})"
        f" overlap from {format_clock_time(overlap.overlap_start, tz)}"
        f" to {format_clock_time(overlap.overlap_end, tz)}"
    )
    if with_date:
        line += f" on {format_long_date(to_local(overlap.overlap_start, tz), with_year=False)}"
    return line


def no_meetings(scope: str) -> str:
    return f"You have no meetings scheduled for {scope}."


def count_only(count: int, scope: str, noun: str = "meeting") -> str:
    """Count summary that withholds the listing and offers it instead."""
    if count == 0:
        return f"You have no {pluralize(0, noun)} {scope}."
    them = "it" if count == 1 else "them"
    return f"You have {count_phrase(count, noun)} {scope}. Would you like me to list {them}?"


def listing(title: str, sentence: str, events: List[CalendarEvent], tz: Optional[tzinfo] = None, **kwargs) -> str:
    return heading(title) + sentence + meetings_list(events, tz, **kwargs)


TIPS = (
    "\n\n**Tips:**\nYou can ask me about:\n"
    f"{BULLET} Your schedule today or tomorrow\n"
    f"{BULLET} Meetings with specific people\n"
    f"{BULLET} Your next meeting\n"
    f"{BULLET} When you are free\n"
    f"{BULLET} Overlapping meetings"
)
