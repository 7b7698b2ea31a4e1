"""Deterministic resolution of scheduling extractions into concrete dates.

The model never does date math. It only reports *what* the user said
(weekday, ordinal, month, time string, date words); this module turns
those fields back into a short phrase and runs it through the
deterministic extractor, so all absolute dates come from one place.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional

from .datetime_extractor import (
    WEEKDAY_ALIASES,
    WEEKDAYS,
    DateTimeExtraction,
    DateTimeExtractor,
    has_date_or_time_token,
    has_date_token,
    has_time_token,
    resolve_ordinal_weekday,
)
from .heuristics import detect_priority, extract_title, split_segments
from .schemas import SchedulingExtraction, SchedulingIntent, SchedulingTask

logger = logging.getLogger(__name__)


@dataclass
class ResolvedTask:
    """A task with its date/time resolved as far as the text allows."""

    title: str
    intent: SchedulingIntent
    priority: str
    date: Optional[date] = None
    time: Optional[time] = None
    explicit_today: bool = False


class ExtractionResolver:
    """Resolves SchedulingExtraction tasks against a reference moment."""

    def __init__(self, extractor: Optional[DateTimeExtractor] = None):
        self.extractor = extractor or DateTimeExtractor()

    def resolve(
        self,
        extraction: SchedulingExtraction,
        original_text: str,
        reference_now: datetime,
    ) -> List[ResolvedTask]:
        """
        Resolve every task of an extraction.

        Args:
            extraction: Validated extraction (model or heuristic)
            original_text: The user's message, used for priority keywords
                and as a fallback when a task carries no scheduling fields
            reference_now: Moment relative expressions are resolved against

        Returns:
            One ResolvedTask per extracted task, in order
        """
        return [
            self.resolve_task(extraction.intent, task, original_text, reference_now)
            for task in extraction.tasks
        ]

    def resolve_task(
        self,
        intent: SchedulingIntent,
        task: SchedulingTask,
        original_text: str,
        reference_now: datetime,
    ) -> ResolvedTask:
        """Resolve a single extracted task."""
        weekday = _normalize_weekday(task.weekday)
        ordinal_date = None
        if weekday and task.weekday_ordinal:
            ordinal_date = resolve_ordinal_weekday(
                weekday, task.weekday_ordinal, task.month, reference_now.date()
            )

        phrase_parts = []
        if task.date_expression:
            phrase_parts.append(task.date_expression)
        elif weekday and ordinal_date is None:
            phrase_parts.append(weekday)
        if task.time:
            phrase_parts.append(f"at {task.time}")

        if phrase_parts:
            reading = self.extractor.extract(" ".join(phrase_parts), reference_now)
        elif ordinal_date is None:
            reading = self.extractor.extract(original_text, reference_now)
        else:
            reading = DateTimeExtraction()

        if task.month and not (task.date_expression or weekday):
            logger.debug(f"Ignoring bare month {task.month} for '{task.task_title}' (no day given)")

        resolved = ResolvedTask(
            title=task.task_title,
            intent=intent,
            priority=detect_priority(original_text, task.priority),
            date=ordinal_date or reading.date,
            time=reading.time,
            explicit_today=reading.explicit_today,
        )
        logger.debug(f"Resolved task: {resolved}")
        return resolved


def _normalize_weekday(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    name = value.strip().lower()
    name = WEEKDAY_ALIASES.get(name, name)
    return name if name in WEEKDAYS else None


def heuristic_extraction(
    text: str,
    reference_now: datetime,
    extractor: Optional[DateTimeExtractor] = None,
) -> Optional[SchedulingExtraction]:
    """
    Build a SchedulingExtraction from text without any model.

    Args:
        text: Raw user text
        reference_now: Moment relative expressions are resolved against
        extractor: Optional extractor instance

    Returns:
        SchedulingExtraction, or None when the text has no date/time
        token or no usable title
    """
    extractor = extractor or DateTimeExtractor()
    if not has_date_or_time_token(text):
        return None

    tasks = []
    requires_clarification = False
    requires_time_confirmation = False

    for segment in split_segments(text):
        title = extract_title(segment)
        if not title:
            logger.debug(f"No title left in segment '{segment}'")
            return None

        reading = extractor.extract(segment, reference_now)
        if has_time_token(segment) and reading.time is None:
            requires_clarification = True
        if has_date_token(segment) and reading.date is None:
            requires_clarification = True
        if reading.time is None:
            requires_time_confirmation = True

        tasks.append(
            SchedulingTask(
                task_title=title,
                date_expression=_date_expression(reading),
                time=reading.time.strftime("%H:%M") if reading.time else None,
                priority=detect_priority(segment),
            )
        )

    return SchedulingExtraction(
        intent=SchedulingIntent.MULTI_SCHEDULE if len(tasks) > 1 else SchedulingIntent.CREATE_TASK,
        tasks=tasks,
        requires_time_confirmation=requires_time_confirmation,
        requires_clarification=requires_clarification,
    )


def _date_expression(reading: DateTimeExtraction) -> Optional[str]:
    # Concrete ISO dates keep the resolver independent of phrase order.
    if reading.date is None:
        return None
    if reading.explicit_today:
        return "today"
    return reading.date.isoformat()
