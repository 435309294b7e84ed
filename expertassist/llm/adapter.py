"""Unified LLM adapter interface"""

from typing import List, Optional
import structlog

from expertassist.schemas.llm import LLMMessage, LLMGenerateResponse
from expertassist.llm.providers.base import BaseLLMProvider
from expertassist.llm.providers.openai import OpenAIProvider
from expertassist.llm.providers.anthropic import AnthropicProvider

logger = structlog.get_logger()

PROVIDERS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


class LLMAdapter:
    """
    Routes generation requests to a configured provider.
    Retries once on the fallback provider when the primary fails.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        fallback_provider: Optional[str] = None,
        fallback_model: Optional[str] = None,
    ):
        self.provider = provider
        self.model = model
        self.fallback_provider = fallback_provider
        self.fallback_model = fallback_model

    def _get_provider_instance(self, provider: str, model: str) -> BaseLLMProvider:
        provider_class = PROVIDERS.get(provider)
        if not provider_class:
            raise ValueError(f"Unknown provider: {provider}")
        return provider_class(model=model)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMGenerateResponse:
        try:
            primary = self._get_provider_instance(self.provider, self.model)
            return await primary.generate(
                system_prompt=system_prompt,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            if not (self.fallback_provider and self.fallback_model):
                raise

            logger.warning(
                "Primary LLM provider failed, attempting fallback",
                provider=self.provider,
                model=self.model,
                error=str(e),
            )

            fallback = self._get_provider_instance(self.fallback_provider, self.fallback_model)
            try:
                return await fallback.generate(
                    system_prompt=system_prompt,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as fallback_error:
                logger.error(
                    "Fallback LLM provider also failed",
                    fallback_provider=self.fallback_provider,
                    fallback_model=self.fallback_model,
                    error=str(fallback_error),
                )
                raise


def get_llm_adapter(
    provider: str,
    model: str,
    fallback_provider: Optional[str] = None,
    fallback_model: Optional[str] = None,
) -> LLMAdapter:
    """Factory function to create LLM adapter"""
    return LLMAdapter(
        provider=provider,
        model=model,
        fallback_provider=fallback_provider,
        fallback_model=fallback_model,
    )
