from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime as _dt, timedelta, tzinfo
from typing import Iterable, List, Optional, Sequence

from schemas import CalendarEvent
from scheduler.time_utils import end_of_workday, format_clock_time, start_of_workday, to_local

# Gaps of this length or shorter are not reported as free time.
MIN_FREE_SLOT = timedelta(minutes=30)


@dataclass(frozen=True)
class Overlap:
    first: CalendarEvent
    second: CalendarEvent
    overlap_start: _dt
    overlap_end: _dt


@dataclass(frozen=True)
class OverlapReport:
    overlaps: List[Overlap] = field(default_factory=list)

    @property
    def has_overlaps(self) -> bool:
        return bool(self.overlaps)


@dataclass(frozen=True)
class FreeSlot:
    start: _dt
    end: _dt

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def label(self, tz: Optional[tzinfo] = None) -> str:
        return f"From {format_clock_time(self.start, tz)} to {format_clock_time(self.end, tz)}"


def timed_events(events: Iterable[CalendarEvent]) -> List[CalendarEvent]:
    """All-day events do not take part in interval math."""
    return [e for e in events if not e.is_all_day]


def sort_by_start(events: Iterable[CalendarEvent]) -> List[CalendarEvent]:
    # stable: events sharing a start keep the caller's order
    return sorted(events, key=lambda e: e.start)


def find_overlaps(events: Sequence[CalendarEvent]) -> OverlapReport:
    """
    Every pair of timed events whose intervals touch or intersect.

    The boundary is inclusive: a meeting starting exactly when another ends is
    reported, with an empty intersection (overlap_start == overlap_end).
    """
    items = sort_by_start(timed_events(events))
    if len(items) < 2:
        return OverlapReport()

    found: List[Overlap] = []
    for i, a in enumerate(items[:-1]):
        for b in items[i + 1:]:
            if b.start <= a.end:
                found.append(Overlap(
                    first=a,
                    second=b,
                    overlap_start=max(a.start, b.start),
                    overlap_end=min(a.end, b.end),
                ))
    return OverlapReport(overlaps=found)


def find_free_windows(
    events: Iterable[CalendarEvent],
    window_start: _dt,
    window_end: _dt,
    *,
    min_gap: timedelta = MIN_FREE_SLOT,
) -> List[FreeSlot]:
    """
    Gaps longer than `min_gap` between busy intervals inside [window_start, window_end).
    The busy cursor only moves forward, so overlapping meetings merge naturally.
    """
    if window_end <= window_start:
        return []

    free: List[FreeSlot] = []
    cursor = window_start
    for e in sort_by_start(timed_events(events)):
        if e.start >= window_end:
            break
        if e.start - cursor > min_gap:
            free.append(FreeSlot(cursor, e.start))
        if e.end > cursor:
            cursor = min(e.end, window_end)

    if window_end - cursor > min_gap:
        free.append(FreeSlot(cursor, window_end))
    return free


def free_windows_for_day(
    events: Iterable[CalendarEvent],
    now: _dt,
    tz: Optional[tzinfo] = None,
) -> List[FreeSlot]:
    """Free windows on `now`'s day, scanning from max(now, 09:00) to 18:00."""
    local_now = to_local(now, tz)
    window_start = max(local_now, start_of_workday(local_now))
    window_end = end_of_workday(local_now)
    return find_free_windows(events, window_start, window_end)


def find_free_slots(
    events: Iterable[CalendarEvent],
    now: _dt,
    tz: Optional[tzinfo] = None,
) -> List[str]:
    """Pre-formatted free slots ('From 11:00 AM to 2:00 PM') for the rest of the work day."""
    return [slot.label(tz) for slot in free_windows_for_day(events, now, tz)]


def events_at(events: Iterable[CalendarEvent], instant: _dt) -> List[CalendarEvent]:
    """Timed events in progress at `instant` (start inclusive, end exclusive)."""
    return [e for e in sort_by_start(timed_events(events)) if e.start <= instant < e.end]


def events_overlapping(
    events: Iterable[CalendarEvent],
    window_start: _dt,
    window_end: _dt,
) -> List[CalendarEvent]:
    """Timed events intersecting [window_start, window_end)."""
    return [
        e for e in sort_by_start(timed_events(events))
        if e.start < window_end and e.end > window_start
    ]
