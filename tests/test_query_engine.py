from datetime import datetime
from unittest.mock import patch

import pytest
import requests

from config import Settings
from query_engine import answer_query, process_query
from schemas import QueryResult
from tests.helpers import NOW, UTC


@pytest.fixture
def events(standup, review, client_call):
    return [standup, review, client_call]


class TestProcessQuery:
    @pytest.mark.parametrize("query, events", [
        (None, []),
        (42, []),
        ("today", None),
        ("today", "not a list"),
        ("today", [{"title": "raw dict"}]),
    ])
    def test_rejects_bad_inputs(self, query, events):
        with pytest.raises(TypeError):
            process_query(query, events, now=NOW, tz=UTC)

    def test_rejects_naive_now(self):
        with pytest.raises(TypeError):
            process_query("today", [], now=datetime(2025, 4, 16, 8, 0), tz=UTC)

    def test_idempotent(self, events):
        first = process_query("When am I free today?", events, now=NOW, tz=UTC)
        second = process_query("When am I free today?", events, now=NOW, tz=UTC)
        assert first.answer == second.answer
        assert first.related_events == second.related_events

    def test_does_not_touch_input(self, events):
        before = list(events)
        process_query("Any overlaps?", events, now=NOW, tz=UTC)
        assert events == before

    def test_accepts_tuple(self, events):
        assert process_query("today", tuple(events), now=NOW, tz=UTC).strategy == "rules"

    def test_payload_shape(self, events):
        payload = process_query("What meetings do I have today?", events, now=NOW, tz=UTC).to_payload()
        assert set(payload) == {"answer", "relatedEvents"}
        assert payload["relatedEvents"][0]["id"] == "standup"

    def test_payload_without_related(self):
        assert process_query("today", [], now=NOW, tz=UTC).to_payload() == {
            "answer": "You have no meetings scheduled for today."
        }


class TestAnswerQuery:
    def test_primary_result_is_returned(self, events):
        seen = []

        def primary(query, evts, now, tz):
            seen.append(now)
            return QueryResult(answer="from primary", strategy="llm")

        result = answer_query("today", events, now=NOW, tz=UTC, primary=primary)
        assert result.answer == "from primary"
        assert seen == [NOW]

    def test_falls_back_when_primary_fails(self, events):
        def primary(*_):
            raise RuntimeError("boom")

        result = answer_query("What meetings do I have today?", events, now=NOW, tz=UTC, primary=primary)
        expected = process_query("What meetings do I have today?", events, now=NOW, tz=UTC)
        assert result.strategy == "rules"
        assert result.answer == expected.answer

    def test_rules_when_llm_not_configured(self, events, rules_only):
        assert answer_query("today", events, now=NOW, tz=UTC).strategy == "rules"

    def test_use_llm_false(self, events):
        assert answer_query("today", events, now=NOW, tz=UTC, use_llm=False).strategy == "rules"

    def test_llm_outage_falls_back(self, events, monkeypatch):
        settings = Settings(GROQ_API_KEY="test-key")
        monkeypatch.setattr("query_engine.get_settings", lambda: settings)
        monkeypatch.setattr("llm_handler.get_settings", lambda: settings)
        with patch("llm_handler.requests.post", side_effect=requests.ConnectionError("down")) as post:
            result = answer_query("What meetings do I have today?", events, now=NOW, tz=UTC)
        post.assert_called_once()
        assert result.strategy == "rules"
        assert result.answer.startswith("**Today's Schedule:**")

    def test_type_errors_are_not_swallowed(self):
        with pytest.raises(TypeError):
            answer_query("today", None, now=NOW, tz=UTC, use_llm=False)
