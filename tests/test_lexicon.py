import pytest

from handlers.lexicon import (
    extract_keywords,
    extract_meeting_types,
    extract_people,
    extract_person_name,
    extract_potential_persons,
    match_meeting_type,
    tokenize,
)


class TestKeywords:
    def test_plain_words(self):
        assert extract_keywords("Find meetings about project budget with John") == ["project", "budget", "john"]

    def test_meeting_type_wins(self):
        assert extract_keywords("Find meetings about project planning with John") == ["planning"]

    @pytest.mark.parametrize("query", ["Find my interviews", "any interviewing sessions?", "interview"])
    def test_type_variants(self, query):
        assert extract_keywords(query) == ["interview"]

    def test_one_on_one(self):
        assert extract_keywords("Do I have a 1:1 today?") == ["1:1"]

    def test_hyphenated_words_survive(self):
        assert extract_keywords("find quarterly all-hands") == ["quarterly", "all-hands"]
        assert extract_keywords("find the catch-up") == ["catch-up"]

    @pytest.mark.parametrize("query", [
        "Do I have any meetings today",
        "Do I have any today",
        "show me",
        "",
    ])
    def test_nothing_searchable(self, query):
        assert extract_keywords(query) == []

    def test_last_word_fallback(self):
        assert extract_keywords("show my calendar") == ["calendar"]

    def test_no_duplicates(self):
        assert extract_keywords("budget budget review of budget") == ["review"]
        assert extract_keywords("budget budget") == ["budget"]


def test_tokenize_strips_punctuation():
    assert tokenize("What's on, today?!") == ["whats", "on", "today"]
    assert tokenize("a 1:1 at 10:30") == ["a", "1:1", "at", "10:30"]


def test_match_meeting_type():
    assert match_meeting_type("Standups") == "standup"
    assert match_meeting_type("reviewing") == "review"
    assert match_meeting_type("lunch") is None


def test_extract_meeting_types_keeps_vocabulary_order():
    assert extract_meeting_types("demo then standup") == ["standup", "demo"]


class TestPersonName:
    @pytest.mark.parametrize("query, expected", [
        ("Do I have a meeting with John today?", "John"),
        ("Meetings with John Smith this week", "John Smith"),
        ("Meeting with Sarah on Monday", "Sarah"),
        ("Do I have meetings with Sarah?", "Sarah"),
        ("Show me all meetings with Sarah", "Sarah"),
        ("meeting with Ingrid", "Ingrid"),
        ("meetings with 'Alex'", "Alex"),
    ])
    def test_extract(self, query, expected):
        assert extract_person_name(query) == expected

    @pytest.mark.parametrize("query", ["What meetings do I have today?", "Sync with Bob"])
    def test_no_name(self, query):
        assert extract_person_name(query) is None

    def test_potential_persons_looser(self):
        assert extract_potential_persons("Anything with Maria tomorrow?") == ["Maria"]
        assert extract_potential_persons("nothing here") == []


def test_extract_people_from_event_text():
    assert extract_people("Sync with Sarah Connor", "Follow-up with Bob") == ["Sarah Connor", "Bob"]
    assert extract_people("Standup", None) == []
