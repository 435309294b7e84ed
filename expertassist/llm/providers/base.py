"""Base LLM provider interface"""

from abc import ABC, abstractmethod
from typing import List

from expertassist.schemas.llm import LLMMessage, LLMGenerateResponse


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers"""

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMGenerateResponse:
        """Generate a text completion"""
        pass
