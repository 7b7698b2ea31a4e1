"""Keyword heuristics: task titles, priorities and multi-task splitting."""

import re
from typing import List, Optional

from .datetime_extractor import DATE_TOKEN_PATTERNS, TIME_TOKEN_PATTERNS, has_date_or_time_token

PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"

LOW_PRIORITY_PHRASES = [
    "not important",
    "low priority",
    "whenever possible",
    "not urgent",
    "no rush",
    "optional",
    "later",
]

HIGH_PRIORITY_PHRASES = [
    "high priority",
    "top priority",
    "very important",
    "important",
    "critical",
    "urgent",
    "asap",
    "immediately",
    "emergency",
]

_LOW_PRIORITY = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in LOW_PRIORITY_PHRASES) + r")\b", re.IGNORECASE
)
_HIGH_PRIORITY = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in HIGH_PRIORITY_PHRASES) + r")\b", re.IGNORECASE
)

_LEADING_FILLER = [
    re.compile(r"^(?:hey\s+|ok\s+|okay\s+)?(?:please\s+)?(?:can you\s+|could you\s+|would you\s+)?", re.IGNORECASE),
    re.compile(
        r"^(?:remind me to|remind me about|remind me|i need to|i have to|i want to|i'd like to|i would like to|let me|help me)\s+",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:schedule|add|create|book|set up|setup|put|plan|make)\s+"
        r"(?:me\s+)?(?:a\s+|an\s+|the\s+|my\s+)?(?:new\s+)?(?:task\s+|reminder\s+|event\s+)?"
        r"(?:to\s+|for\s+|called\s+|named\s+)?",
        re.IGNORECASE,
    ),
]

_CONNECTOR = r"(?:at|on|by|from|around|before|after|for|this|in|of)"
_DANGLING_CONNECTORS = re.compile(
    rf"^(?:{_CONNECTOR}|to|and|please)\b\s*|\s*\b(?:{_CONNECTOR}|to|and|please)$",
    re.IGNORECASE,
)
_TOKEN_PATTERNS = [
    re.compile(rf"(?:\b{_CONNECTOR}\s+)?(?:{pattern.pattern})", re.IGNORECASE)
    for pattern in DATE_TOKEN_PATTERNS + TIME_TOKEN_PATTERNS
]
_SEGMENT_SPLIT = re.compile(r"\band\b|\balso\b|[,;\n]", re.IGNORECASE)
_PUNCTUATION = " \t.,!?;:-"


def detect_priority(text: str, existing: Optional[str] = None) -> str:
    """
    Derive a priority from keywords in text.

    Low-priority phrases are checked first so that "not important"
    does not read as "important".

    Args:
        text: Raw user text
        existing: Priority suggested elsewhere (e.g. by the model)

    Returns:
        One of "low", "medium", "high"
    """
    if _LOW_PRIORITY.search(text):
        return "low"
    if _HIGH_PRIORITY.search(text):
        return "high"
    if existing and existing.lower() in PRIORITIES:
        return existing.lower()
    return DEFAULT_PRIORITY


def strip_date_time_tokens(text: str) -> str:
    """Remove date/time expressions (and a connector word in front of them)."""
    for pattern in _TOKEN_PATTERNS:
        text = pattern.sub(" ", text)
    return " ".join(text.split())


def extract_title(text: str) -> str:
    """
    Derive a task title from free text.

    Removes request filler ("remind me to", "schedule a task"), date and
    time expressions, and priority words.

    Args:
        text: Raw user text

    Returns:
        Title with its first letter capitalized, or an empty string
    """
    title = " ".join((text or "").split())
    for pattern in _LEADING_FILLER:
        title = pattern.sub("", title, count=1)

    title = strip_date_time_tokens(title)
    title = _LOW_PRIORITY.sub(" ", title)
    title = _HIGH_PRIORITY.sub(" ", title)
    title = " ".join(title.split()).strip(_PUNCTUATION)

    # Connectors can be left dangling at either end once tokens are gone.
    previous = None
    while previous != title:
        previous = title
        title = _DANGLING_CONNECTORS.sub("", title).strip(_PUNCTUATION)

    if title.lower() in ("task", "a task", "reminder", "event"):
        return ""
    return title[:1].upper() + title[1:]


def split_segments(text: str) -> List[str]:
    """
    Split text into separately scheduled requests.

    The split is only accepted when every segment carries its own date
    or time token; otherwise the whole text is one request ("lunch with
    Sam and Alex tomorrow" stays whole).

    Args:
        text: Raw user text

    Returns:
        List of segments (at least one when text is non-empty)
    """
    normalized = " ".join((text or "").split())
    if not normalized:
        return []

    segments = [s.strip(_PUNCTUATION) for s in _SEGMENT_SPLIT.split(normalized)]
    segments = [s for s in segments if s]
    if len(segments) > 1 and all(has_date_or_time_token(s) for s in segments):
        return segments
    return [normalized]


_PLAN_FILLER = re.compile(
    r"\b(?:plan|planner|weekly|week|routine|roadmap|curriculum|syllabus|schedule|program|bootcamp"
    r"|learning path|for this|for next|this|next|my|a|an|the|me|for|of)\b",
    re.IGNORECASE,
)
DEFAULT_PLAN_TOPIC = "Study"


def derive_plan_topic(text: str) -> str:
    """
    Derive the subject of a plan request.

    "plan a chest workout week" -> "Chest workout"

    Args:
        text: Raw user text

    Returns:
        Capitalized topic, DEFAULT_PLAN_TOPIC when nothing is left
    """
    topic = extract_title(text)
    topic = _PLAN_FILLER.sub(" ", topic)
    topic = " ".join(topic.split()).strip(_PUNCTUATION)
    previous = None
    while previous != topic:
        previous = topic
        topic = _DANGLING_CONNECTORS.sub("", topic).strip(_PUNCTUATION)
    if not topic:
        return DEFAULT_PLAN_TOPIC
    return topic[:1].upper() + topic[1:]
