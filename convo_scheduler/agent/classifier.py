"""Utterance classification for the scheduling conversation.

Classification is an ordered table of (predicate, kind) pairs; the first
predicate that matches wins. Each predicate takes normalized text
(trimmed, lower-cased, whitespace collapsed) and can be tested alone.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Tuple

from ..parsing.datetime_extractor import has_date_or_time_token

logger = logging.getLogger(__name__)


class UtteranceKind(str, Enum):
    """Category of a user message."""

    CONFIRMATION = "confirmation"
    REJECTION = "rejection"
    GREETING = "greeting"
    BARE_CREATE_REQUEST = "bare_create_request"
    PLAN_REQUEST = "plan_request"
    TOPIC_ONLY = "topic_only"
    ADJUSTMENT = "adjustment"
    PIPELINE = "pipeline"


@dataclass
class Classification:
    """Result of classifying one utterance."""

    kind: UtteranceKind
    normalized: str


CONFIRMATION_MAX_LENGTH = 40
REJECTION_MAX_LENGTH = 60
TOPIC_MIN_LENGTH = 6
BARE_REQUEST_MAX_WORDS = 4

CONFIRMATION_WORDS = [
    "yes",
    "y",
    "yep",
    "confirm",
    "ok",
    "looks good",
    "go ahead",
    "do it",
    "schedule it",
    "proceed",
]

REJECTION_WORDS = [
    "no",
    "n",
    "nope",
    "cancel",
    "stop",
    "never mind",
    "not now",
    "reject",
]

GREETING_WORDS = [
    "hi",
    "hello",
    "hey",
    "hiya",
    "howdy",
    "greetings",
    "good morning",
    "good afternoon",
    "good evening",
]

PLAN_KEYWORDS = [
    "plan",
    "planner",
    "weekly",
    "routine",
    "roadmap",
    "curriculum",
    "syllabus",
    "study schedule",
    "learning path",
    "learn",
    "workout week",
    "training program",
    "fitness program",
    "bootcamp",
]


def _alternation(words: List[str]) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


_CONFIRMATION = re.compile(rf"^(?:{_alternation(CONFIRMATION_WORDS)})(?:\s+please)?\s*[.!?]*$")
_REJECTION = re.compile(rf"^(?:{_alternation(REJECTION_WORDS)})(?:\s+it)?\s*[.!?]*$")
_GREETING = re.compile(rf"^(?:{_alternation(GREETING_WORDS)})\b")
_BARE_CREATE = re.compile(r"^(?:please\s+)?(?:create|add|schedule)\s+(?:a\s+)?(?:new\s+)?task\s*[.!?]*$")
_PLAN = re.compile(rf"\b(?:{_alternation(PLAN_KEYWORDS)})\b")


def normalize_utterance(text: str) -> str:
    """Trim, lower-case and collapse whitespace."""
    return " ".join((text or "").lower().split())


def is_confirmation(text: str) -> bool:
    """True for a short, explicit yes ("confirm", "ok!", "go ahead please")."""
    return len(text) <= CONFIRMATION_MAX_LENGTH and bool(_CONFIRMATION.match(text))


def is_rejection(text: str) -> bool:
    """True for a short, explicit no ("cancel it.", "not now")."""
    return len(text) <= REJECTION_MAX_LENGTH and bool(_REJECTION.match(text))


def is_greeting(text: str) -> bool:
    return bool(_GREETING.match(text))


def is_bare_create_request(text: str) -> bool:
    """True for "create a task"-style requests that name no task."""
    return len(text.split()) <= BARE_REQUEST_MAX_WORDS and bool(_BARE_CREATE.match(text))


def is_plan_request(text: str) -> bool:
    return bool(_PLAN.search(text))


def is_topic_only_request(text: str) -> bool:
    """True when the user named something to do but gave no schedule."""
    if not text or len(text) < TOPIC_MIN_LENGTH:
        return False
    if is_greeting(text) or is_bare_create_request(text) or is_plan_request(text):
        return False
    # A stray "confirm" or "cancel" names nothing to do
    if is_confirmation(text) or is_rejection(text):
        return False
    return not has_date_or_time_token(text)


def is_date_time_adjustment(text: str) -> bool:
    """True when the text carries any date or time token."""
    return has_date_or_time_token(text)


Rule = Tuple[Callable[[str], bool], UtteranceKind]

PENDING_RULES: List[Rule] = [
    (is_confirmation, UtteranceKind.CONFIRMATION),
    (is_rejection, UtteranceKind.REJECTION),
    (is_greeting, UtteranceKind.GREETING),
    (is_date_time_adjustment, UtteranceKind.ADJUSTMENT),
]

IDLE_RULES: List[Rule] = [
    (is_greeting, UtteranceKind.GREETING),
    (is_bare_create_request, UtteranceKind.BARE_CREATE_REQUEST),
    (is_plan_request, UtteranceKind.PLAN_REQUEST),
    (is_topic_only_request, UtteranceKind.TOPIC_ONLY),
]


def classify(text: str, has_pending_proposal: bool) -> Classification:
    """
    Classify an utterance.

    Args:
        text: Raw user text
        has_pending_proposal: Whether the user has a proposal awaiting
            confirmation (selects the rule table)

    Returns:
        Classification; PIPELINE when no rule matches
    """
    normalized = normalize_utterance(text)
    rules = PENDING_RULES if has_pending_proposal else IDLE_RULES

    for predicate, kind in rules:
        if predicate(normalized):
            logger.debug(f"Classified '{normalized[:60]}' as {kind.value}")
            return Classification(kind=kind, normalized=normalized)

    logger.debug(f"Classified '{normalized[:60]}' as {UtteranceKind.PIPELINE.value}")
    return Classification(kind=UtteranceKind.PIPELINE, normalized=normalized)
