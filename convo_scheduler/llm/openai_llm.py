"""OpenAI LLM implementation."""

from typing import Dict, List, Optional

from openai import AsyncOpenAI

from .base import BaseLLM, LLMResponse


class OpenAILLM(BaseLLM):
    """OpenAI LLM implementation for ChatGPT/GPT models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: int = 1024,
        organization_id: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize OpenAI LLM.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o-mini")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            organization_id: Optional organization ID
            base_url: Optional OpenAI-compatible endpoint
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.organization_id = organization_id

        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization_id,
            base_url=base_url,
        )

    async def _generate_impl(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from OpenAI.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            history: Optional earlier turns, oldest first
            json_mode: Request a JSON object response format
            **kwargs: Additional parameters (temperature, max_tokens, model)

        Returns:
            LLMResponse with the raw text
        """
        model = kwargs.get("model", self.model)
        api_params = {
            "model": model,
            "messages": self.build_messages(prompt, system_prompt, history),
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if json_mode:
            api_params["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**api_params)
        return LLMResponse(text=response.choices[0].message.content, model=model)

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
