"""Shared fixtures for scheduler tests."""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from convo_scheduler.agent.generative_assist import GenerativeAssist
from convo_scheduler.agent.materializer import TaskMaterializer
from convo_scheduler.agent.state_machine import SchedulingStateMachine
from convo_scheduler.context.session_store import InMemorySessionStore
from convo_scheduler.llm.base import BaseLLM, LLMResponse
from convo_scheduler.tools.memory_task_writer import InMemoryTaskWriter

# Wednesday morning
FIXED_NOW = datetime(2025, 1, 1, 9, 0)


class ScriptedLLM(BaseLLM):
    """LLM double that replays queued texts (or raises queued exceptions)."""

    def __init__(self, responses: Optional[List[Any]] = None, delay: float = 0.0):
        self.responses = list(responses or [])
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def _generate_impl(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "history": history,
                "json_mode": json_mode,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.responses:
            raise RuntimeError("ScriptedLLM has no more responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return LLMResponse(text=item, model="scripted")

    def get_model_name(self) -> str:
        return "scripted"


class FixedClock:
    """Clock whose time tests can move."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def task_writer():
    return InMemoryTaskWriter()


@pytest.fixture
def materializer(task_writer):
    return TaskMaterializer(task_writer)


@pytest.fixture
def machine(session_store, materializer, clock):
    """Deterministic state machine (no generative assist)."""
    return SchedulingStateMachine(
        session_store=session_store,
        materializer=materializer,
        clock=clock,
    )


@pytest.fixture
def make_assisted_machine(session_store, materializer, clock):
    """Factory for a state machine backed by a ScriptedLLM."""

    def _make(responses, assist_mode="conversational", delay=0.0, timeout_seconds=1.0):
        llm = ScriptedLLM(responses, delay=delay)
        assist = GenerativeAssist(llm, timeout_seconds=timeout_seconds)
        machine = SchedulingStateMachine(
            session_store=session_store,
            materializer=materializer,
            assist=assist,
            assist_mode=assist_mode,
            clock=clock,
        )
        return machine, llm

    return _make
