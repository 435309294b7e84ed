"""LLM provider implementations"""

from expertassist.llm.providers.base import BaseLLMProvider
from expertassist.llm.providers.openai import OpenAIProvider
from expertassist.llm.providers.anthropic import AnthropicProvider

__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "AnthropicProvider",
]
