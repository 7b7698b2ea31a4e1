"""Tests for title, priority and segment heuristics."""

import pytest

from convo_scheduler.parsing.heuristics import (
    DEFAULT_PLAN_TOPIC,
    derive_plan_topic,
    detect_priority,
    extract_title,
    split_segments,
    strip_date_time_tokens,
)


class TestDetectPriority:
    """Priority keywords."""

    @pytest.mark.parametrize("text", ["finish report asap", "URGENT: pay rent", "very important call"])
    def test_high(self, text):
        assert detect_priority(text) == "high"

    @pytest.mark.parametrize("text", ["not important", "water plants, no rush", "not urgent", "optional reading"])
    def test_low_checked_before_high(self, text):
        assert detect_priority(text) == "low"

    def test_default_medium(self):
        assert detect_priority("call mom") == "medium"

    def test_keeps_existing_without_keywords(self):
        assert detect_priority("call mom", "high") == "high"

    def test_keywords_override_existing(self):
        assert detect_priority("call mom, no rush", "high") == "low"

    def test_ignores_invalid_existing(self):
        assert detect_priority("call mom", "extreme") == "medium"


class TestExtractTitle:
    """Title cleanup."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("remind me to call mom tomorrow at 5pm", "Call mom"),
            ("gym tomorrow at 7am", "Gym"),
            ("Please schedule a meeting with Alex on friday", "Meeting with Alex"),
            ("finish report urgent tomorrow", "Finish report"),
            ("study for exam at 18:00", "Study for exam"),
        ],
    )
    def test_titles(self, text, expected):
        assert extract_title(text) == expected

    def test_nothing_left(self):
        assert extract_title("today at 5pm") == ""

    def test_bare_task_word(self):
        assert extract_title("schedule a task") == ""

    def test_strip_tokens(self):
        assert strip_date_time_tokens("yoga on monday at 7am") == "yoga"


class TestSplitSegments:
    """Multi-task splitting."""

    def test_splits_when_every_segment_is_scheduled(self):
        assert split_segments("gym at 7am and study at 5pm") == ["gym at 7am", "study at 5pm"]

    def test_keeps_whole_otherwise(self):
        text = "lunch with Sam and Alex tomorrow"
        assert split_segments(text) == [text]

    def test_empty(self):
        assert split_segments("   ") == []


class TestDerivePlanTopic:
    """Plan subjects."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("plan a chest workout week", "Chest workout"),
            ("create a weekly workout plan", "Workout"),
            ("plan my study schedule for this week", "Study"),
            ("I want to learn spanish", "Learn spanish"),
        ],
    )
    def test_topics(self, text, expected):
        assert derive_plan_topic(text) == expected

    def test_default_topic(self):
        assert derive_plan_topic("plan") == DEFAULT_PLAN_TOPIC
