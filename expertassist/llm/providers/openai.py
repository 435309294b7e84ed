"""OpenAI LLM provider"""

from typing import List
from openai import AsyncOpenAI
import structlog

from expertassist.config import settings
from expertassist.schemas.llm import LLMMessage, LLMGenerateResponse, UsageStats
from expertassist.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider implementation"""

    def __init__(self, model: str = "gpt-4-turbo"):
        super().__init__(model)
        self.client = AsyncOpenAI(api_key=settings.openai_api_key)

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMGenerateResponse:
        """Generate response using the chat completions API"""
        openai_messages = [{"role": "system", "content": system_prompt}]
        openai_messages.extend(
            {"role": msg.role, "content": msg.content} for msg in messages
        )

        logger.debug("OpenAI request", model=self.model, message_count=len(openai_messages))

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=openai_messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        usage = None
        if response.usage:
            usage = UsageStats(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMGenerateResponse(
            content=response.choices[0].message.content,
            usage=usage,
            provider="openai",
            model=self.model,
        )
