"""Tests for the generative assist adapter and its response contract."""

import asyncio
import json

import pytest

from conftest import FIXED_NOW, ScriptedLLM
from convo_scheduler.agent.errors import (
    AssistUnavailable,
    MalformedAssistOutput,
    UnparseableRequest,
)
from convo_scheduler.agent.generative_assist import (
    FALLBACK_MESSAGE,
    FALLBACK_RESPONSE,
    GenerativeAssist,
    extract_json_object,
    validate_assistant_reply,
    validate_scheduling_extraction,
)
from convo_scheduler.context.models import ConversationTurn

PROPOSE_TASK = json.dumps(
    {
        "assistant_message": "How about tomorrow?",
        "action": {
            "type": "propose_task",
            "payload": {
                "title": "Gym",
                "suggested_start": "2025-01-02T07:00:00",
                "suggested_end": "2025-01-02T08:00:00",
                "priority": "Medium",
            },
        },
    }
)

EXTRACTION = json.dumps(
    {
        "intent": "create_task",
        "tasks": [{"taskTitle": "Gym", "dateExpression": "tomorrow", "time": "7am", "priority": "medium"}],
    }
)


class TestExtractJsonObject:
    """Locating JSON in raw output."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_surrounding_prose_and_fences(self):
        raw = 'Sure! ```json\n{"a": {"b": 2}}\n``` hope that helps'
        assert extract_json_object(raw) == {"a": {"b": 2}}

    @pytest.mark.parametrize("raw", [None, "", "no json here", "} backwards {", '{"a": }'])
    def test_malformed(self, raw):
        with pytest.raises(MalformedAssistOutput):
            extract_json_object(raw)


class TestValidateAssistantReply:
    """The conversational action contract."""

    def test_propose_task(self):
        reply = validate_assistant_reply(PROPOSE_TASK)
        assert reply.action.type == "propose_task"
        payload = reply.task_payload()
        assert payload.title == "Gym"
        assert payload.priority == "medium"

    def test_create_task_becomes_proposal(self):
        raw = json.dumps(
            {
                "assistant_message": "Done",
                "action": {
                    "type": "create_task",
                    "payload": {"title": "Gym", "start": "2025-01-02T07:00", "end": "2025-01-02T08:00", "priority": "low"},
                },
            }
        )
        payload = validate_assistant_reply(raw).task_payload()
        assert payload.suggested_start == "2025-01-02T07:00"
        assert payload.suggested_end == "2025-01-02T08:00"

    def test_null_payload_for_clarify(self):
        raw = json.dumps({"assistant_message": "When?", "action": {"type": "clarify", "payload": None}})
        reply = validate_assistant_reply(raw)
        assert reply.action.payload == {}

    def test_plan_requires_tasks(self):
        raw = json.dumps(
            {
                "assistant_message": "Plan",
                "action": {"type": "propose_plan", "payload": {"plan_title": "Week", "tasks": []}},
            }
        )
        with pytest.raises(MalformedAssistOutput):
            validate_assistant_reply(raw)

    @pytest.mark.parametrize(
        "data",
        [
            {"assistant_message": "", "action": {"type": "none", "payload": {}}},
            {"assistant_message": "Hi", "action": {"type": "delete_task", "payload": {}}},
            {"assistant_message": "Hi"},
            {
                "assistant_message": "Hi",
                "action": {"type": "propose_task", "payload": {"title": "Gym", "priority": "medium"}},
            },
            {
                "assistant_message": "Hi",
                "action": {
                    "type": "propose_task",
                    "payload": {"title": "Gym", "suggested_start": "a", "suggested_end": "b", "priority": "urgent"},
                },
            },
        ],
    )
    def test_contract_violations(self, data):
        with pytest.raises(MalformedAssistOutput):
            validate_assistant_reply(json.dumps(data))

    def test_fallback_is_valid(self):
        reply = validate_assistant_reply(FALLBACK_RESPONSE)
        assert reply.assistant_message == FALLBACK_MESSAGE
        assert reply.action.type == "none"


class TestValidateSchedulingExtraction:
    def test_valid(self):
        extraction = validate_scheduling_extraction(EXTRACTION)
        assert extraction.tasks[0].task_title == "Gym"

    def test_invalid(self):
        with pytest.raises(MalformedAssistOutput):
            validate_scheduling_extraction('{"intent": "create_task", "tasks": []}')


class TestGenerativeAssist:
    """Timeouts, fallbacks and retries."""

    def test_rejects_bad_settings(self):
        with pytest.raises(ValueError):
            GenerativeAssist(ScriptedLLM(), timeout_seconds=0)
        with pytest.raises(ValueError):
            GenerativeAssist(ScriptedLLM(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_invoke_passes_prompt_and_history(self):
        llm = ScriptedLLM([PROPOSE_TASK])
        assist = GenerativeAssist(llm)
        history = [ConversationTurn("user", "hi"), ConversationTurn("assistant", "Hello!")]

        raw = await assist.invoke("gym tomorrow", history, now=FIXED_NOW)

        assert raw == PROPOSE_TASK
        call = llm.calls[0]
        assert call["prompt"] == "gym tomorrow"
        assert call["json_mode"] is True
        assert call["history"] == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "Hello!"},
        ]
        assert "2025-01-01 09:00" in call["system_prompt"]
        assert "Wednesday" in call["system_prompt"]

    @pytest.mark.asyncio
    async def test_invoke_timeout_returns_fallback(self):
        assist = GenerativeAssist(ScriptedLLM([PROPOSE_TASK], delay=0.5), timeout_seconds=0.05)
        assert await assist.invoke("gym", now=FIXED_NOW) == FALLBACK_RESPONSE

    @pytest.mark.asyncio
    async def test_invoke_transport_error_returns_fallback(self):
        assist = GenerativeAssist(ScriptedLLM([ConnectionError("refused")]))
        assert await assist.invoke("gym", now=FIXED_NOW) == FALLBACK_RESPONSE

    @pytest.mark.asyncio
    async def test_respond_validates(self):
        assist = GenerativeAssist(ScriptedLLM(["not json"]))
        with pytest.raises(MalformedAssistOutput):
            await assist.respond("gym", now=FIXED_NOW)

    @pytest.mark.asyncio
    async def test_parse_request_retries_then_succeeds(self):
        llm = ScriptedLLM(["garbage", '{"intent": "nope"}', EXTRACTION])
        assist = GenerativeAssist(llm)

        extraction = await assist.parse_request("gym tomorrow at 7am")

        assert extraction.tasks[0].task_title == "Gym"
        assert len(llm.calls) == 3

    @pytest.mark.asyncio
    async def test_parse_request_gives_up(self):
        llm = ScriptedLLM(["garbage"] * 5)
        assist = GenerativeAssist(llm, max_attempts=3)

        with pytest.raises(UnparseableRequest) as exc_info:
            await assist.parse_request("gym tomorrow")

        assert exc_info.value.attempts == 3
        assert len(llm.calls) == 3

    @pytest.mark.asyncio
    async def test_parse_request_does_not_retry_timeouts(self):
        llm = ScriptedLLM([EXTRACTION, EXTRACTION], delay=0.5)
        assist = GenerativeAssist(llm, timeout_seconds=0.05)

        with pytest.raises(AssistUnavailable):
            await assist.parse_request("gym tomorrow")

        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_parse_request_uses_structured_prompt(self):
        llm = ScriptedLLM([EXTRACTION])
        await GenerativeAssist(llm).parse_request("gym tomorrow")
        assert "taskTitle" in llm.calls[0]["system_prompt"]

    @pytest.mark.asyncio
    async def test_timeout_cancels_slow_call(self):
        llm = ScriptedLLM([PROPOSE_TASK], delay=5)
        assist = GenerativeAssist(llm, timeout_seconds=0.05)
        await asyncio.wait_for(assist.invoke("gym", now=FIXED_NOW), timeout=1)
