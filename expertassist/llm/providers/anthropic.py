"""Anthropic Claude LLM provider"""

from typing import List
from anthropic import AsyncAnthropic
import structlog

from expertassist.config import settings
from expertassist.schemas.llm import LLMMessage, LLMGenerateResponse, UsageStats
from expertassist.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider implementation"""

    def __init__(self, model: str = "claude-3-sonnet-20240229"):
        super().__init__(model)
        self.client = AsyncAnthropic(api_key=settings.anthropic_api_key)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMGenerateResponse:
        """Generate response using the messages API"""
        # Anthropic requires alternating roles, so merge consecutive turns
        merged = []
        for msg in messages:
            if merged and merged[-1]["role"] == msg.role:
                merged[-1]["content"] += "\n" + msg.content
            else:
                merged.append({"role": msg.role, "content": msg.content})

        logger.debug("Anthropic request", model=self.model, message_count=len(merged))

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=merged,
        )

        text = "".join(block.text for block in response.content if block.type == "text")

        return LLMGenerateResponse(
            content=text or None,
            usage=UsageStats(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            provider="anthropic",
            model=self.model,
        )
