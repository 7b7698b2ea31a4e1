"""Deterministic date and time extraction from free text."""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Short forms accepted from structured fields (never matched in free text).
WEEKDAY_ALIASES = {
    "mon": "monday",
    "tue": "tuesday",
    "tues": "tuesday",
    "wed": "wednesday",
    "thu": "thursday",
    "thur": "thursday",
    "thurs": "thursday",
    "fri": "friday",
    "sat": "saturday",
    "sun": "sunday",
}

MONTHS = {
    "january": 1,
    "jan": 1,
    "february": 2,
    "feb": 2,
    "march": 3,
    "mar": 3,
    "april": 4,
    "apr": 4,
    "may": 5,
    "june": 6,
    "jun": 6,
    "july": 7,
    "jul": 7,
    "august": 8,
    "aug": 8,
    "september": 9,
    "sept": 9,
    "sep": 9,
    "october": 10,
    "oct": 10,
    "november": 11,
    "nov": 11,
    "december": 12,
    "dec": 12,
}

_MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))
_WEEKDAY_NAMES = "|".join(WEEKDAYS)

ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
NUMERIC_DATE = re.compile(r"\b(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})\b")
DAY_MONTH = re.compile(r"\b(\d{1,2})[/\-](\d{1,2})\b(?![/.\-]\d)")
DAY_MONTH_NAME = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTH_NAMES})\b(?:,?\s+(\d{{4}}))?",
    re.IGNORECASE,
)
MONTH_NAME_DAY = re.compile(
    rf"\b({_MONTH_NAMES})\s+(\d{{1,2}})(?:st|nd|rd|th)?\b(?:,?\s+(\d{{4}}))?",
    re.IGNORECASE,
)
DAY_AFTER_TOMORROW = re.compile(r"\bday after tomorrow\b", re.IGNORECASE)
TOMORROW = re.compile(r"\btomorrow\b", re.IGNORECASE)
TODAY = re.compile(r"\b(?:today|tonight)\b", re.IGNORECASE)
NEXT_WEEK = re.compile(r"\bnext week\b", re.IGNORECASE)
NEXT_MONTH = re.compile(r"\bnext month\b", re.IGNORECASE)
WEEKDAY = re.compile(rf"\b(?:next\s+)?({_WEEKDAY_NAMES})\b", re.IGNORECASE)
IN_DAYS = re.compile(r"\bin\s+(\d{1,3})\s+days?\b", re.IGNORECASE)
DAYS_FROM_NOW = re.compile(r"\b(\d{1,3})\s+days?\s+(?:from now|later)\b", re.IGNORECASE)
NEXT_SIGNAL = re.compile(r"\bnext\b", re.IGNORECASE)

CLOCK_TIME = re.compile(r"\b(\d{1,2}):(\d{2})(?:\s*(am|pm)\b)?", re.IGNORECASE)
MERIDIEM_TIME = re.compile(r"\b(\d{1,2})\s*(am|pm)\b", re.IGNORECASE)
AT_HOUR = re.compile(r"\bat\s+(\d{1,2})\b(?![:/.\-]\d)(?!\s*(?:am|pm)\b)", re.IGNORECASE)
NAMED_TIME = re.compile(r"\b(noon|midnight)\b", re.IGNORECASE)

DATE_TOKEN_PATTERNS: List[Pattern] = [
    ISO_DATE,
    NUMERIC_DATE,
    DAY_MONTH_NAME,
    MONTH_NAME_DAY,
    DAY_MONTH,
    DAY_AFTER_TOMORROW,
    TOMORROW,
    TODAY,
    NEXT_WEEK,
    NEXT_MONTH,
    WEEKDAY,
    IN_DAYS,
    DAYS_FROM_NOW,
]

TIME_TOKEN_PATTERNS: List[Pattern] = [
    CLOCK_TIME,
    MERIDIEM_TIME,
    AT_HOUR,
    NAMED_TIME,
]


@dataclass
class DateTimeExtraction:
    """Partial date/time reading of a piece of text.

    Either field may be None. ``explicit_today`` is set only when the
    text literally names today (or tonight).
    """

    date: Optional[date] = None
    time: Optional[time] = None
    explicit_today: bool = False

    @property
    def is_empty(self) -> bool:
        return self.date is None and self.time is None


def has_date_token(text: str) -> bool:
    """Return True if the text contains anything that looks like a date."""
    return any(pattern.search(text) for pattern in DATE_TOKEN_PATTERNS)


def has_time_token(text: str) -> bool:
    """Return True if the text contains anything that looks like a clock time."""
    return any(pattern.search(text) for pattern in TIME_TOKEN_PATTERNS)


def has_date_or_time_token(text: str) -> bool:
    """Return True if the text carries any recognizable date or time token."""
    return has_date_token(text) or has_time_token(text)


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def next_weekday(weekday: int, reference: date) -> date:
    """Next occurrence of ``weekday`` on or after ``reference`` (same day allowed)."""
    return reference + timedelta(days=(weekday - reference.weekday()) % 7)


def nth_weekday_of_month(year: int, month: int, weekday: int, ordinal: int) -> Optional[date]:
    """Return the n-th given weekday of a month, or None if the month is too short."""
    if ordinal < 1:
        return None
    first = date(year, month, 1)
    candidate = first + timedelta(days=(weekday - first.weekday()) % 7 + 7 * (ordinal - 1))
    if candidate.month != month:
        return None
    return candidate


def resolve_ordinal_weekday(
    weekday: str, ordinal: int, month: Optional[int], reference: date
) -> Optional[date]:
    """
    Resolve "the n-th <weekday> of <month>" to the next upcoming occurrence.

    Args:
        weekday: Weekday name (full or short form)
        ordinal: 1-based ordinal (1 = first)
        month: Month number, or None for the reference month
        reference: Day the expression is relative to

    Returns:
        Resolved date or None if the expression cannot exist
    """
    name = WEEKDAY_ALIASES.get(weekday.lower(), weekday.lower())
    if name not in WEEKDAYS:
        return None

    if month is None:
        # Current month first, then the following one.
        for offset in range(2):
            anchor = add_months(reference.replace(day=1), offset)
            candidate = nth_weekday_of_month(anchor.year, anchor.month, WEEKDAYS[name], ordinal)
            if candidate and candidate >= reference:
                return candidate
        return None

    if not 1 <= month <= 12:
        return None
    for year in (reference.year, reference.year + 1):
        candidate = nth_weekday_of_month(year, month, WEEKDAYS[name], ordinal)
        if candidate and candidate >= reference:
            return candidate
    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _upcoming(month: int, day: int, reference: date) -> Optional[date]:
    """Month/day without a year: the next occurrence on or after the reference day."""
    candidate = _safe_date(reference.year, month, day)
    if candidate is None or candidate < reference:
        return _safe_date(reference.year + 1, month, day)
    return candidate


def _expand_year(raw: str) -> Optional[int]:
    if len(raw) == 2:
        return 2000 + int(raw)
    if len(raw) == 4:
        return int(raw)
    return None


def _order_day_month(first: int, second: int) -> Optional[Tuple[int, int]]:
    """Return (day, month) for two ambiguous numeric components.

    A component above 12 can only be the day; otherwise the first
    component is the day.
    """
    if first > 12 and second > 12:
        return None
    if second > 12:
        return second, first
    return first, second


class DateTimeExtractor:
    """Reads dates and clock times out of free text without guessing."""

    def extract(self, text: str, reference_now: datetime) -> DateTimeExtraction:
        """
        Extract a date and/or time from text.

        Args:
            text: Raw user text
            reference_now: Moment relative expressions are resolved against

        Returns:
            DateTimeExtraction with whatever could be resolved
        """
        normalized = " ".join((text or "").lower().split())
        resolved_date, explicit_today = self.extract_date(normalized, reference_now.date())
        resolved_time = self.extract_time(normalized)

        logger.debug(
            f"Extracted from '{normalized}': date={resolved_date}, "
            f"time={resolved_time}, explicit_today={explicit_today}"
        )
        return DateTimeExtraction(
            date=resolved_date,
            time=resolved_time,
            explicit_today=explicit_today,
        )

    def extract_date(self, text: str, reference: date) -> Tuple[Optional[date], bool]:
        """
        Resolve the first date expression in text.

        Args:
            text: Normalized (lower-cased) text
            reference: Reference day

        Returns:
            Tuple of (date or None, whether "today" was named explicitly)
        """
        absolute = self._absolute_date(text, reference)
        if absolute is not None:
            return absolute, False

        if DAY_AFTER_TOMORROW.search(text):
            return reference + timedelta(days=2), False
        if TOMORROW.search(text):
            return reference + timedelta(days=1), False
        if TODAY.search(text):
            return reference, True

        # A named weekday wins over "next week"; "next" anywhere pushes it a week out.
        match = WEEKDAY.search(text)
        if match:
            resolved = next_weekday(WEEKDAYS[match.group(1).lower()], reference)
            if NEXT_SIGNAL.search(text):
                resolved += timedelta(days=7)
            return resolved, False

        if NEXT_WEEK.search(text):
            return reference + timedelta(days=7), False
        if NEXT_MONTH.search(text):
            return add_months(reference, 1), False

        match = IN_DAYS.search(text) or DAYS_FROM_NOW.search(text)
        if match:
            return reference + timedelta(days=int(match.group(1))), False

        return None, False

    def _absolute_date(self, text: str, reference: date) -> Optional[date]:
        match = ISO_DATE.search(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return _safe_date(year, month, day)

        match = NUMERIC_DATE.search(text)
        if match:
            year = _expand_year(match.group(3))
            ordered = _order_day_month(int(match.group(1)), int(match.group(2)))
            if year is None or ordered is None:
                return None
            day, month = ordered
            return _safe_date(year, month, day)

        match = DAY_MONTH_NAME.search(text)
        if match:
            return self._named_month_date(
                int(match.group(1)), match.group(2), match.group(3), reference
            )

        match = MONTH_NAME_DAY.search(text)
        if match:
            return self._named_month_date(
                int(match.group(2)), match.group(1), match.group(3), reference
            )

        match = DAY_MONTH.search(text)
        if match:
            ordered = _order_day_month(int(match.group(1)), int(match.group(2)))
            if ordered is None:
                return None
            day, month = ordered
            if not 1 <= month <= 12:
                return None
            return _upcoming(month, day, reference)

        return None

    def _named_month_date(
        self, day: int, month_name: str, year: Optional[str], reference: date
    ) -> Optional[date]:
        month = MONTHS[month_name.lower()]
        if year:
            return _safe_date(int(year), month, day)
        return _upcoming(month, day, reference)

    def extract_time(self, text: str) -> Optional[time]:
        """
        Resolve the first clock time in text.

        An out-of-range time (e.g. "25:00", "13pm", "7:75") yields None
        instead of falling back to another reading.

        Args:
            text: Normalized (lower-cased) text

        Returns:
            time or None
        """
        match = CLOCK_TIME.search(text)
        if match:
            hour, minute = int(match.group(1)), int(match.group(2))
            return _build_time(hour, minute, match.group(3))

        match = MERIDIEM_TIME.search(text)
        if match:
            return _build_time(int(match.group(1)), 0, match.group(2))

        match = AT_HOUR.search(text)
        if match:
            return _build_time(int(match.group(1)), 0, None)

        match = NAMED_TIME.search(text)
        if match:
            return time(12, 0) if match.group(1).lower() == "noon" else time(0, 0)

        return None


def _build_time(hour: int, minute: int, meridiem: Optional[str]) -> Optional[time]:
    if minute > 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return time(hour, minute)


_default_extractor = DateTimeExtractor()


def extract(text: str, reference_now: datetime) -> DateTimeExtraction:
    """
    Convenience function to extract a date/time with the default extractor.

    Args:
        text: Raw user text
        reference_now: Moment relative expressions are resolved against

    Returns:
        DateTimeExtraction
    """
    return _default_extractor.extract(text, reference_now)
