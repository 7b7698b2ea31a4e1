"""Tests for utterance classification."""

import pytest

from convo_scheduler.agent.classifier import (
    UtteranceKind,
    classify,
    is_bare_create_request,
    is_confirmation,
    is_greeting,
    is_rejection,
    is_topic_only_request,
    normalize_utterance,
)


class TestPredicates:
    """Individual predicates on normalized text."""

    @pytest.mark.parametrize("text", ["confirm", "yes", "ok!", "go ahead please", "looks good."])
    def test_confirmations(self, text):
        assert is_confirmation(text)

    @pytest.mark.parametrize("text", ["yes but move it to 6pm", "okay fine whatever you think", "confirmation"])
    def test_not_confirmations(self, text):
        assert not is_confirmation(text)

    @pytest.mark.parametrize("text", ["no", "not now", "cancel it.", "never mind"])
    def test_rejections(self, text):
        assert is_rejection(text)

    def test_rejection_needs_whole_message(self):
        assert not is_rejection("no, make it 6pm instead")

    def test_greeting_word_boundary(self):
        assert is_greeting("hi there")
        assert is_greeting("good morning!")
        assert not is_greeting("highlight the report")

    @pytest.mark.parametrize("text", ["create a task", "add task", "schedule a new task", "please add a task"])
    def test_bare_create(self, text):
        assert is_bare_create_request(text)

    def test_bare_create_with_details_is_not_bare(self):
        assert not is_bare_create_request("create a task to call mom")

    def test_topic_only(self):
        assert is_topic_only_request("buy groceries")
        assert not is_topic_only_request("buy groceries tomorrow")
        assert not is_topic_only_request("gym")
        assert not is_topic_only_request("confirm")

    def test_normalize(self):
        assert normalize_utterance("  Gym   TOMORROW\tat 7AM ") == "gym tomorrow at 7am"
        assert normalize_utterance(None) == ""


class TestClassifyPending:
    """Rules applied while a proposal is pending."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("Confirm!", UtteranceKind.CONFIRMATION),
            ("go ahead please", UtteranceKind.CONFIRMATION),
            ("not now", UtteranceKind.REJECTION),
            ("hello", UtteranceKind.GREETING),
            ("yes but move it to 6pm", UtteranceKind.ADJUSTMENT),
            ("make it tuesday", UtteranceKind.ADJUSTMENT),
            ("actually buy groceries", UtteranceKind.PIPELINE),
        ],
    )
    def test_pending(self, text, kind):
        assert classify(text, has_pending_proposal=True).kind == kind


class TestClassifyIdle:
    """Rules applied with nothing pending."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("hi", UtteranceKind.GREETING),
            ("hi, gym tomorrow at 7am", UtteranceKind.GREETING),
            ("create a task", UtteranceKind.BARE_CREATE_REQUEST),
            ("make me a weekly workout plan", UtteranceKind.PLAN_REQUEST),
            ("I want to learn spanish", UtteranceKind.PLAN_REQUEST),
            ("buy groceries", UtteranceKind.TOPIC_ONLY),
            ("gym tomorrow at 7am", UtteranceKind.PIPELINE),
            ("confirm", UtteranceKind.PIPELINE),
        ],
    )
    def test_idle(self, text, kind):
        assert classify(text, has_pending_proposal=False).kind == kind

    def test_returns_normalized_text(self):
        result = classify("  Buy   Groceries ", has_pending_proposal=False)
        assert result.normalized == "buy groceries"
