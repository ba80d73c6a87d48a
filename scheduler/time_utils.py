from __future__ import annotations

import re
from calendar import monthrange
from datetime import date as _date, time as _time, datetime as _dt, timedelta, tzinfo
from typing import Optional, Union

# Work day bounds used for every free-slot computation.
WORKDAY_START = _time(9, 0)
WORKDAY_END = _time(18, 0)

# Index matches date.weekday() (Monday == 0).
WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_WEEKDAY_RE = re.compile(r"\b(" + "|".join(WEEKDAY_NAMES) + r")\b")
_NEXT_WEEKDAY_RE = re.compile(r"\bnext\s+(?:week\s+)?(" + "|".join(WEEKDAY_NAMES) + r")\b")
_WEEKDAY_NEXT_WEEK_RE = re.compile(r"\b(" + "|".join(WEEKDAY_NAMES) + r")\s+(?:of\s+)?next\s+week\b")

_DMY_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
_YMD_RE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")

CLOCK_PATTERN = (
    r"(?:\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)"
    r"|\d{1,2}:\d{2}"
    r"|noon|midnight)"
)
_CLOCK_RE = re.compile(
    r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)"
    r"|\b(\d{1,2}):(\d{2})\b"
    r"|\b(noon|midnight)\b",
    re.IGNORECASE,
)

_BARE_HOUR_RE = re.compile(r"\bat\s+(\d{1,2})\b(?![:/\-]\d)")


# ---- instants & local time ----
def to_local(instant: _dt, tz: Optional[tzinfo] = None) -> _dt:
    """Express an aware instant in `tz` (or leave it in its own zone when tz is None)."""
    return instant.astimezone(tz) if tz is not None else instant


def combine_local(day: _date, t: _time, tz: tzinfo) -> _dt:
    return _dt.combine(day, t, tzinfo=tz)


def format_clock_time(instant: _dt, tz: Optional[tzinfo] = None) -> str:
    """
    12-hour clock with AM/PM, no leading zero on the hour: "9:05 AM", "2:30 PM".
    Every time shown to the user goes through here.
    """
    local = to_local(instant, tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def format_long_date(day: Union[_date, _dt], *, with_year: bool = True) -> str:
    """'Monday, April 21, 2025' (or 'Monday, April 21' without the year)."""
    if isinstance(day, _dt):
        day = day.date()
    text = f"{WEEKDAY_NAMES[day.weekday()].capitalize()}, {MONTH_NAMES[day.month - 1]} {day.day}"
    if with_year:
        text += f", {day.year}"
    return text


def format_duration(start: _dt, end: _dt) -> str:
    """'1h 30m', '2h' or '45m'."""
    minutes = max(0, int(round((end - start).total_seconds() / 60)))
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins else f"{hours}h"
    return f"{mins}m"


# ---- day boundaries ----
def start_of_day(instant: _dt, tz: Optional[tzinfo] = None) -> _dt:
    local = to_local(instant, tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_workday(instant: _dt, tz: Optional[tzinfo] = None) -> _dt:
    local = to_local(instant, tz)
    return local.replace(hour=WORKDAY_START.hour, minute=WORKDAY_START.minute, second=0, microsecond=0)


def end_of_workday(instant: _dt, tz: Optional[tzinfo] = None) -> _dt:
    local = to_local(instant, tz)
    return local.replace(hour=WORKDAY_END.hour, minute=WORKDAY_END.minute, second=0, microsecond=0)


def iso_date_key(instant: _dt, tz: Optional[tzinfo] = None) -> str:
    """Stable 'YYYY-MM-DD' key of the local calendar day an instant falls on."""
    return to_local(instant, tz).date().isoformat()


def week_bounds(day: _date) -> tuple[_date, _date]:
    """Monday of the week containing `day` and the Monday after it."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=7)


def add_months(day: _date, months: int) -> _date:
    idx = day.month - 1 + months
    year = day.year + idx // 12
    month = idx % 12 + 1
    return _date(year, month, min(day.day, monthrange(year, month)[1]))


def month_bounds(year: int, month: int) -> tuple[_date, _date]:
    """First day of the month and first day of the following month."""
    first = _date(year, month, 1)
    return first, add_months(first, 1)


# ---- parsing ----
def find_weekday(text: str) -> Optional[int]:
    """Index of the first weekday name mentioned in `text`, or None."""
    m = _WEEKDAY_RE.search((text or "").lower())
    return WEEKDAY_NAMES.index(m.group(1)) if m else None


def resolve_weekday(query: str, today: Union[_date, _dt]) -> Optional[_date]:
    """
    Date a weekday mention refers to.
    A weekday that is today or already past this week rolls to next week, and so
    does any weekday qualified with "next" ("next monday" on a Monday is 7 days out).
    """
    if isinstance(today, _dt):
        today = today.date()
    text = (query or "").lower()
    target = find_weekday(text)
    if target is None:
        return None
    is_next = bool(_NEXT_WEEKDAY_RE.search(text) or _WEEKDAY_NEXT_WEEK_RE.search(text))
    days = target - today.weekday()
    if days <= 0 or is_next:
        days += 7
    return today + timedelta(days=days)


def has_explicit_date(text: str) -> bool:
    t = text or ""
    return bool(_DMY_RE.search(t) or _YMD_RE.search(t))


def parse_explicit_date(query: str) -> Optional[_date]:
    """
    'DD/MM/YYYY' or 'YYYY-MM-DD' anywhere in the text.
    Returns None for no match and for impossible dates such as 31/02/2025.
    """
    text = query or ""
    m = _DMY_RE.search(text)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _YMD_RE.search(text)
        if not m:
            return None
        year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        return _date(year, month, day)
    except ValueError:
        return None


def parse_clock_time(text: str) -> Optional[_time]:
    """
    First clock time in the text: '3pm', '3:30 PM', '15:00', 'noon', 'midnight'.
    """
    m = _CLOCK_RE.search(text or "")
    if not m:
        return None
    if m.group(6):
        return _time(12, 0) if m.group(6).lower() == "noon" else _time(0, 0)
    if m.group(3):
        hh = int(m.group(1))
        mm = int(m.group(2) or 0)
        mer = m.group(3).lower().replace(".", "")
        if not (1 <= hh <= 12 and 0 <= mm <= 59):
            return None
        if mer == "pm" and hh != 12:
            hh += 12
        if mer == "am" and hh == 12:
            hh = 0
        return _time(hh, mm)
    hh = int(m.group(4))
    mm = int(m.group(5))
    if 0 <= hh <= 23 and 0 <= mm <= 59:
        return _time(hh, mm)
    return None


def parse_bare_hour(text: str) -> Optional[_time]:
    """
    Hour given without minutes or am/pm after "at" ("free at 3").
    1-7 read as afternoon, 8-12 as morning or noon, 13-23 as a 24-hour clock.
    """
    m = _BARE_HOUR_RE.search(text or "")
    if not m:
        return None
    hh = int(m.group(1))
    if 1 <= hh <= 7:
        return _time(hh + 12, 0)
    if 8 <= hh <= 23:
        return _time(hh, 0)
    return None
