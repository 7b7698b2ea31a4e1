"""Tests for the LLM base class and provider request shaping."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import ScriptedLLM
from convo_scheduler.llm.base import BaseLLM
from convo_scheduler.llm.gemini_llm import GeminiLLM
from convo_scheduler.llm.ollama_llm import OllamaLLM
from convo_scheduler.llm.openai_llm import OpenAILLM

HISTORY = [
    {"role": "user", "content": "hi"},
    {"role": "assistant", "content": "Hello!"},
]


class TestBaseLLM:
    def test_build_messages(self):
        messages = BaseLLM.build_messages("gym tomorrow", "be brief", HISTORY)

        assert messages == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "gym tomorrow"},
        ]

    def test_build_messages_without_system_prompt(self):
        assert BaseLLM.build_messages("hello") == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_generate_delegates(self):
        llm = ScriptedLLM(["{}"])

        response = await llm.generate("hello", system_prompt="sys", history=HISTORY, json_mode=True)

        assert response.text == "{}"
        assert llm.calls[0]["json_mode"] is True
        assert llm.calls[0]["history"] == HISTORY


class TestOpenAILLM:
    @pytest.fixture
    def llm(self):
        llm = OpenAILLM(api_key="test_key")
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content='{"ok": true}'))]
        llm.client = MagicMock()
        llm.client.chat.completions.create = AsyncMock(return_value=completion)
        return llm

    @pytest.mark.asyncio
    async def test_json_mode(self, llm):
        response = await llm.generate("gym", system_prompt="sys", history=HISTORY, json_mode=True)

        params = llm.client.chat.completions.create.call_args.kwargs
        assert params["response_format"] == {"type": "json_object"}
        assert params["messages"][0] == {"role": "system", "content": "sys"}
        assert len(params["messages"]) == 4
        assert response.text == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_plain_mode(self, llm):
        await llm.generate("gym")
        assert "response_format" not in llm.client.chat.completions.create.call_args.kwargs


class TestOllamaLLM:
    @pytest.mark.asyncio
    async def test_json_format_and_options(self):
        llm = OllamaLLM(model="llama3", context_window=4096)
        llm.client = MagicMock()
        llm.client.chat.return_value = {"message": {"content": '{"ok": true}'}}

        response = await llm.generate("gym", history=HISTORY, json_mode=True)

        params = llm.client.chat.call_args.kwargs
        assert params["format"] == "json"
        assert params["options"] == {"temperature": 0.2, "num_predict": 1024, "num_ctx": 4096}
        assert params["messages"][-1] == {"role": "user", "content": "gym"}
        assert response.text == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        llm = OllamaLLM(model="llama3")
        llm.client = MagicMock()
        llm.client.chat.side_effect = ConnectionError("refused")

        with pytest.raises(ConnectionError):
            await llm.generate("gym")


class TestGeminiLLM:
    @pytest.fixture
    def llm(self):
        return GeminiLLM(api_key="test_key")

    def test_build_contents_maps_roles(self, llm):
        contents = llm.build_contents("gym", HISTORY)

        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[-1]["parts"] == [{"text": "gym"}]

    @pytest.mark.asyncio
    async def test_json_mode_and_system_instruction(self, llm):
        llm.client = MagicMock()
        llm.client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text="{}"))

        response = await llm.generate("gym", system_prompt="sys", json_mode=True)

        config = llm.client.aio.models.generate_content.call_args.kwargs["config"]
        assert config["response_mime_type"] == "application/json"
        assert config["system_instruction"] == "sys"
        assert response.text == "{}"

    @pytest.mark.asyncio
    async def test_missing_text(self, llm):
        llm.client = MagicMock()
        llm.client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=None))

        response = await llm.generate("gym")

        assert response.text is None
