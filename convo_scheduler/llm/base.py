"""Base LLM interface."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Raw text returned by a model."""

    text: Optional[str] = None
    model: Optional[str] = None


class BaseLLM(ABC):
    """Abstract base class for LLM implementations.

    Callers go through generate(), which logs every request and response
    at DEBUG level and delegates to the provider's _generate_impl().
    The returned text is untrusted; callers must validate it.
    """

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            history: Optional earlier turns as {"role", "content"} dicts,
                oldest first
            json_mode: Ask the provider for a JSON object response
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the raw text
        """
        logger.debug(
            f"LLM request - Model: {self.get_model_name()}, "
            f"Prompt length: {len(prompt)}, History: {len(history or [])}, JSON: {json_mode}"
        )

        response = await self._generate_impl(prompt, system_prompt, history, json_mode, **kwargs)

        logger.debug(f"LLM response ({self.get_model_name()}): {response.text}")
        return response

    @abstractmethod
    async def _generate_impl(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """
        Implementation of generate. Subclasses must implement this.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            history: Optional earlier turns, oldest first
            json_mode: Ask the provider for a JSON object response
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the raw text
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the model name being used.

        Returns:
            Model name string
        """
        pass

    @staticmethod
    def build_messages(
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> List[Dict[str, str]]:
        """Build a chat message list: system, history, then the prompt."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        for turn in history or []:
            messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def validate(self) -> None:
        """
        Validate that the LLM is accessible and working.

        Default implementation makes a simple test call.
        Subclasses can override for more specific validation.

        Raises:
            Exception: If validation fails
        """
        await self.generate("Hello", system_prompt="Respond with just 'Hi'.")
