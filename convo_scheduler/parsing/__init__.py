"""Deterministic parsing of scheduling text."""

from .datetime_extractor import DateTimeExtraction, DateTimeExtractor
from .heuristics import derive_plan_topic, detect_priority, extract_title, split_segments
from .resolver import ExtractionResolver, ResolvedTask, heuristic_extraction
from .schemas import SchedulingExtraction, SchedulingIntent, SchedulingTask

__all__ = [
    "DateTimeExtraction",
    "DateTimeExtractor",
    "derive_plan_topic",
    "detect_priority",
    "extract_title",
    "split_segments",
    "ExtractionResolver",
    "ResolvedTask",
    "heuristic_extraction",
    "SchedulingExtraction",
    "SchedulingIntent",
    "SchedulingTask",
]
