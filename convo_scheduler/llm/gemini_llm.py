"""Gemini LLM implementation."""

import logging
from typing import Any, Dict, List, Optional

import google.genai as genai

from .base import BaseLLM, LLMResponse

logger = logging.getLogger(__name__)

# Gemini names the assistant role "model"
_ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiLLM(BaseLLM):
    """Gemini LLM implementation for Google Gemini models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.2,
        max_tokens: int = 1024,
        safety_settings: Optional[dict] = None,
    ):
        """
        Initialize Gemini LLM.

        Args:
            api_key: Gemini API key
            model: Model name (e.g., "gemini-2.0-flash")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            safety_settings: Optional safety settings
        """
        self.api_key = api_key
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.safety_settings = safety_settings

        self.client = genai.Client(api_key=api_key)

    def build_contents(
        self, prompt: str, history: Optional[List[Dict[str, str]]] = None
    ) -> List[Dict[str, Any]]:
        """Convert history plus prompt into Gemini content entries."""
        contents = []
        for turn in history or []:
            role = _ROLE_MAP.get(turn["role"], "user")
            contents.append({"role": role, "parts": [{"text": turn["content"]}]})
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return contents

    async def _generate_impl(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from Gemini.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt (used as system_instruction)
            history: Optional earlier turns, oldest first
            json_mode: Request an application/json response
            **kwargs: Additional parameters (temperature, max_tokens)

        Returns:
            LLMResponse with the raw text
        """
        config = {
            "temperature": kwargs.get("temperature", self.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if system_prompt:
            config["system_instruction"] = system_prompt
        if self.safety_settings:
            config["safety_settings"] = self.safety_settings
        if json_mode:
            config["response_mime_type"] = "application/json"

        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=self.build_contents(prompt, history),
            config=config,
        )

        text = response.text
        if text is None:
            logger.warning(f"Gemini returned no text (model: {self.model_name})")
        return LLMResponse(text=text, model=self.model_name)

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model_name
