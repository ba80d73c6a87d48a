import pytest

from config import Settings
from tests.helpers import NOW, UTC, dt, make_event


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tz():
    return UTC


@pytest.fixture
def standup():
    return make_event("Standup", dt(16, 10), dt(16, 10, 30), id="standup")


@pytest.fixture
def review():
    return make_event("Review", dt(16, 10, 15), dt(16, 11), id="review")


@pytest.fixture
def client_call():
    return make_event("Client Call", dt(17, 14), dt(17, 15), id="client-call", source="microsoft")


@pytest.fixture
def rules_only(monkeypatch):
    """Keep the LLM path switched off regardless of the environment."""
    settings = Settings(GROQ_API_KEY="", CALENDAR_TIMEZONE="UTC")
    monkeypatch.setattr("query_engine.get_settings", lambda: settings)
    return settings
