"""
Keyword and person-name extraction for free-text calendar questions.

The vocabularies are module constants; nothing here mutates them.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

CALENDAR_WORDS = frozenset({
    "meeting", "meetings", "calendar", "schedule", "appointment", "appointments",
    "event", "events",
})

TEMPORAL_WORDS = frozenset({
    "today", "tomorrow", "yesterday", "next", "previous", "week", "month", "day",
})

FUNCTION_WORDS = frozenset({
    "the", "a", "an", "in", "on", "at", "with", "and", "or", "for", "about",
    "have", "has", "had", "do", "does", "did", "is", "are", "was", "were", "be",
    "being", "been", "this", "that", "these", "those", "any", "all", "some",
    "how", "many", "much", "when", "where", "what", "who", "why", "which",
    "find", "search", "show", "list", "tell", "give", "me", "my", "our", "your",
    "can", "you", "please", "there",
})

STOP_WORDS = CALENDAR_WORDS | TEMPORAL_WORDS | FUNCTION_WORDS

# Ordered; matching keeps this order.
MEETING_TYPES: Tuple[str, ...] = (
    "interview", "standup", "review", "planning", "retrospective", "demo",
    "presentation", "workshop", "1:1", "one-on-one", "sync", "catch-up",
    "check-in", "orientation", "training", "feedback",
)

# Drop punctuation except hyphens and the colon inside "1:1".
_PUNCT_RE = re.compile(r"(?!(?<=\d):(?=\d))[^\w\s-]")

_NAME_STOP = r"(?:on|at|in|today|tomorrow|yesterday|tonight|this|next|last|for|about|and)"
_PERSON_TAIL = r"(.+?)(?:\s*[?.!,;]|\s+" + _NAME_STOP + r"\b|\s*$)"
_MEETING_WITH_RE = re.compile(r"\bmeetings?\s+with\s+" + _PERSON_TAIL, re.IGNORECASE)
_WITH_RE = re.compile(r"\bwith\s+" + _PERSON_TAIL, re.IGNORECASE)
_CAPITALIZED_WITH_RE = re.compile(r"with\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")


def tokenize(query: str) -> List[str]:
    return _PUNCT_RE.sub("", (query or "").lower()).split()


def type_variants(meeting_type: str) -> Tuple[str, ...]:
    """Plain, plural and gerund forms: 'interview', 'interviews', 'interviewing'."""
    return (meeting_type, meeting_type + "s", meeting_type + "ing")


def match_meeting_type(word: str) -> Optional[str]:
    """Canonical meeting type for a single word, or None."""
    w = (word or "").lower()
    for t in MEETING_TYPES:
        if w in type_variants(t):
            return t
    return None


def extract_meeting_types(query: str) -> List[str]:
    words = set(tokenize(query))
    return [t for t in MEETING_TYPES if words.intersection(type_variants(t))]


def extract_keywords(query: str) -> List[str]:
    """
    Search terms for a query.

    Meeting types win outright ('Find interviews' -> ['interview']). Otherwise
    every word longer than two characters that is not a stop word. As a last
    resort the final word is used, unless it is a function or time word.
    """
    words = tokenize(query)

    found_types = extract_meeting_types(query)
    if found_types:
        return found_types

    keywords: List[str] = []
    for w in words:
        if len(w) > 2 and w not in STOP_WORDS and w not in keywords:
            keywords.append(w)

    if not keywords and words:
        last = words[-1]
        if len(last) > 2 and last not in FUNCTION_WORDS and last not in TEMPORAL_WORDS:
            return [last]
    return keywords


def _clean_name(raw: str) -> Optional[str]:
    name = raw.strip().strip("\"'“”").strip()
    return name or None


def extract_person_name(query: str) -> Optional[str]:
    """
    Name after 'meeting(s) with', e.g. 'Do I have a meeting with John today?' -> 'John'.
    Multi-word names are kept whole ('John Smith').
    """
    m = _MEETING_WITH_RE.search(query or "")
    return _clean_name(m.group(1)) if m else None


def extract_potential_persons(query: str) -> List[str]:
    """Looser 'with <name>' match used for highlighting."""
    m = _WITH_RE.search(query or "")
    if not m:
        return []
    name = _clean_name(m.group(1))
    return [name] if name else []


def extract_people(title: str, description: Optional[str] = None) -> List[str]:
    """Capitalized names following 'with' in an event's title or description."""
    people: List[str] = []
    for match in _CAPITALIZED_WITH_RE.findall(f"{title or ''} {description or ''}"):
        if match not in people:
            people.append(match)
    return people
