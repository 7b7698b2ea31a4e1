"""Ollama LLM implementation."""

import asyncio
import logging
from typing import Dict, List, Optional

import ollama

from .base import BaseLLM, LLMResponse

logger = logging.getLogger(__name__)


class OllamaLLM(BaseLLM):
    """Ollama LLM implementation for local models."""

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:11434",
        temperature: float = 0.2,
        max_tokens: int = 1024,
        context_window: Optional[int] = None,
    ):
        """
        Initialize Ollama LLM.

        Args:
            model: Model name (e.g., "llama3.2", "mistral")
            base_url: Ollama server base URL
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            context_window: Context window size
        """
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.context_window = context_window
        self.client = ollama.Client(host=base_url)

    async def _generate_impl(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from Ollama.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            history: Optional earlier turns, oldest first
            json_mode: Constrain the output to a JSON object
            **kwargs: Additional parameters (temperature, max_tokens)

        Returns:
            LLMResponse with the raw text
        """
        options = {
            "temperature": kwargs.get("temperature", self.temperature),
            "num_predict": kwargs.get("max_tokens", self.max_tokens),
        }
        if self.context_window:
            options["num_ctx"] = self.context_window

        api_params = {
            "model": self.model,
            "messages": self.build_messages(prompt, system_prompt, history),
            "options": options,
        }
        if json_mode:
            api_params["format"] = "json"

        try:
            # The ollama client is blocking
            response = await asyncio.to_thread(lambda: self.client.chat(**api_params))
            logger.debug(f"Ollama raw response: {response}")
            message = response.get("message", {})
            return LLMResponse(text=message.get("content"), model=self.model)
        except Exception as e:
            logger.error(
                f"Ollama LLM generation failed - Model: {self.model}, "
                f"Base URL: {self.base_url}, Error: {e}",
                exc_info=True,
            )
            raise

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model

    async def validate(self) -> None:
        """
        Validate that the Ollama server is reachable and the model exists.

        Raises:
            Exception: If validation fails
        """
        try:
            logger.debug(f"Validating Ollama model: {self.model} at {self.base_url}")
            await self.generate("Hello", system_prompt="Respond with just 'Hi'.")
            logger.info(f"LLM validation successful: {self.model}")
        except Exception as e:
            logger.error(f"LLM validation failed: {e}")
            raise
