"""Generative assist adapter.

Wraps a BaseLLM behind a hard timeout and a strict JSON contract. The
model's text is untrusted: it is always located, parsed and validated
before anything else sees it.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..context.models import ConversationTurn
from ..llm.base import BaseLLM
from ..parsing.schemas import SchedulingExtraction
from .assist_models import AssistantReply
from .errors import AssistUnavailable, MalformedAssistOutput, UnparseableRequest
from .prompts import get_conversational_prompt, get_structured_parse_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 3

FALLBACK_MESSAGE = "I'm having trouble responding right now. Please try again."
FALLBACK_RESPONSE = json.dumps(
    {"assistant_message": FALLBACK_MESSAGE, "action": {"type": "none", "payload": {}}}
)


def extract_json_object(raw: Optional[str]) -> Dict[str, Any]:
    """
    Locate and parse the JSON object in raw model output.

    The object is taken to span from the first '{' to the last '}'.

    Args:
        raw: Raw model text

    Returns:
        Parsed dictionary

    Raises:
        MalformedAssistOutput: If no object can be found or parsed
    """
    if not raw:
        raise MalformedAssistOutput("Empty model output")

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise MalformedAssistOutput("No JSON object in model output")

    try:
        data = json.loads(raw[start : end + 1])
    except json.JSONDecodeError as e:
        raise MalformedAssistOutput(f"Invalid JSON in model output: {e}") from e

    if not isinstance(data, dict):
        raise MalformedAssistOutput("Model output root is not a JSON object")
    return data


def validate_assistant_reply(raw: Optional[str]) -> AssistantReply:
    """
    Validate conversational model output.

    Raises:
        MalformedAssistOutput: If the output violates the action contract
    """
    data = extract_json_object(raw)
    try:
        return AssistantReply.model_validate(data)
    except ValidationError as e:
        raise MalformedAssistOutput(f"Assistant reply failed validation: {e}") from e


def validate_scheduling_extraction(raw: Optional[str]) -> SchedulingExtraction:
    """
    Validate structured parse output.

    Raises:
        MalformedAssistOutput: If the output violates the extraction schema
    """
    data = extract_json_object(raw)
    try:
        return SchedulingExtraction.model_validate(data)
    except ValidationError as e:
        raise MalformedAssistOutput(f"Scheduling extraction failed validation: {e}") from e


class GenerativeAssist:
    """Bounded, validated access to a generative model."""

    def __init__(
        self,
        llm: BaseLLM,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        weekday_hour: int = 16,
        weekend_hour: int = 10,
        default_duration: int = 60,
    ):
        """
        Initialize the adapter.

        Args:
            llm: Model used for every call
            timeout_seconds: Hard wall-clock limit per model call
            max_attempts: Attempts for structured parsing
            weekday_hour: Default start hour on weekdays, told to the model
            weekend_hour: Default start hour on weekends, told to the model
            default_duration: Default task length in minutes, told to the model
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.llm = llm
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.weekday_hour = weekday_hour
        self.weekend_hour = weekend_hour
        self.default_duration = default_duration

    async def _call(
        self,
        message: str,
        system_prompt: str,
        history: Sequence[ConversationTurn],
    ) -> str:
        """Call the model once under the timeout.

        Raises:
            AssistUnavailable: On timeout or any transport error
        """
        try:
            response = await asyncio.wait_for(
                self.llm.generate(
                    message,
                    system_prompt=system_prompt,
                    history=[turn.to_dict() for turn in history],
                    json_mode=True,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise AssistUnavailable(f"Model call timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise AssistUnavailable(f"Model call failed: {e}") from e

        return response.text or ""

    async def invoke(
        self,
        message: str,
        history: Sequence[ConversationTurn] = (),
        now: Optional[datetime] = None,
    ) -> str:
        """
        Ask the conversational model for a reply.

        Never raises for timeouts or transport errors; the built-in
        fallback response is returned instead.

        Args:
            message: User message
            history: Short rolling history, oldest first
            now: Reference moment injected into the prompt

        Returns:
            Raw model text (untrusted)
        """
        system_prompt = get_conversational_prompt(
            now or datetime.now(),
            weekday_hour=self.weekday_hour,
            weekend_hour=self.weekend_hour,
            duration=self.default_duration,
        )
        try:
            return await self._call(message, system_prompt, history)
        except AssistUnavailable as e:
            logger.warning(f"Generative assist unavailable, using fallback: {e}")
            return FALLBACK_RESPONSE

    def validate(self, raw: Optional[str]) -> AssistantReply:
        """Validate conversational output; see validate_assistant_reply."""
        return validate_assistant_reply(raw)

    async def respond(
        self,
        message: str,
        history: Sequence[ConversationTurn] = (),
        now: Optional[datetime] = None,
    ) -> AssistantReply:
        """
        Invoke the model and validate its reply.

        Raises:
            MalformedAssistOutput: If the reply violates the contract
        """
        raw = await self.invoke(message, history, now)
        return self.validate(raw)

    async def parse_request(
        self,
        message: str,
        history: Sequence[ConversationTurn] = (),
    ) -> SchedulingExtraction:
        """
        Extract scheduling fields with the structured contract.

        Each failed attempt is logged and retried, up to max_attempts.
        A timeout or transport error is not retried.

        Args:
            message: User message
            history: Short rolling history, oldest first

        Returns:
            Validated SchedulingExtraction

        Raises:
            AssistUnavailable: If the model call times out or fails
            UnparseableRequest: If every attempt produced invalid output
        """
        system_prompt = get_structured_parse_prompt()
        errors: List[str] = []

        for attempt in range(1, self.max_attempts + 1):
            raw = await self._call(message, system_prompt, history)
            try:
                extraction = validate_scheduling_extraction(raw)
            except MalformedAssistOutput as e:
                logger.warning(f"Structured parse attempt {attempt}/{self.max_attempts} failed: {e}")
                errors.append(str(e))
                continue

            logger.debug(f"Structured parse succeeded on attempt {attempt}: {extraction}")
            return extraction

        raise UnparseableRequest(
            f"Could not parse request after {self.max_attempts} attempts: {errors[-1]}",
            attempts=self.max_attempts,
        )
