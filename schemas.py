# schemas.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Placeholder some providers put in place of an empty body.
NO_DESCRIPTION_PLACEHOLDER = "No description available"


# -----------------------------
# Calendar event (caller-owned, immutable)
# -----------------------------
class CalendarEvent(BaseModel):
    id: str
    title: str
    start: datetime
    end: datetime

    location: Optional[str] = None
    description: Optional[str] = None
    source: Literal["google", "microsoft"]
    all_day: Optional[bool] = Field(default=None, alias="allDay")
    meeting_link: Optional[str] = Field(default=None, alias="meetingLink")

    # Pydantic v2 config
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("start", "end")
    @classmethod
    def _ensure_aware(cls, v: datetime) -> datetime:
        # Naive provider timestamps are UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_all_day(self) -> bool:
        return bool(self.all_day)

    @property
    def has_agenda(self) -> bool:
        text = (self.description or "").strip()
        return bool(text) and text.lower() != NO_DESCRIPTION_PLACEHOLDER.lower()

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape (camelCase keys, ISO instants), optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -----------------------------
# Request / response
# -----------------------------
class QueryRequest(BaseModel):
    query: str
    events: List[CalendarEvent]


class QueryResult(BaseModel):
    answer: str
    related_events: List[CalendarEvent] = Field(default_factory=list, alias="relatedEvents")
    strategy: Optional[str] = None  # "llm" or "rules"; not part of the wire shape

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"answer": self.answer}
        if self.related_events:
            payload["relatedEvents"] = [e.to_payload() for e in self.related_events]
        return payload
