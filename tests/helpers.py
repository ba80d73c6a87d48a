from datetime import datetime, timezone
from itertools import count

from schemas import CalendarEvent

UTC = timezone.utc

# Wednesday, April 16, 2025, 08:00 UTC
NOW = datetime(2025, 4, 16, 8, 0, tzinfo=UTC)

_ids = count(1)


def dt(day: int, hour: int, minute: int = 0, *, month: int = 4, year: int = 2025, tz=UTC) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=tz)


def make_event(title, start, end, **fields) -> CalendarEvent:
    fields.setdefault("id", str(next(_ids)))
    fields.setdefault("source", "google")
    return CalendarEvent(title=title, start=start, end=end, **fields)


def bullet_count(answer: str) -> int:
    """Number of meeting bullets ('• **Title** ...') in an answer."""
    return sum(1 for line in answer.splitlines() if line.startswith("• **"))
