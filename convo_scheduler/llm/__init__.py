"""LLM abstraction module."""

from .base import BaseLLM, LLMResponse
from .ollama_llm import OllamaLLM
from .openai_llm import OpenAILLM
from .gemini_llm import GeminiLLM

__all__ = ["BaseLLM", "LLMResponse", "OllamaLLM", "OpenAILLM", "GeminiLLM"]
