"""Transcript and summary generation

Transcription and summarization sit behind separate interfaces so a live
transcript feed or a real model can replace either template independently.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import structlog

from expertassist.config import Settings
from expertassist.llm.adapter import LLMAdapter, get_llm_adapter
from expertassist.schemas.llm import LLMMessage

logger = structlog.get_logger()

ASSISTANT_SPEAKER = "AI Assistant"

SUMMARY_SYSTEM_PROMPT = (
    "You summarize phone calls placed by an AI assistant to a professional "
    "(realtor, lender, inspector, appraiser, attorney or insurance agent) on "
    "behalf of a client. Write a concise summary with three sections: "
    "'Key Information Gathered', 'Action Items' and 'Follow-up', each as a "
    "short bulleted list. Only use facts stated in the transcript."
)


@dataclass(frozen=True)
class CallContext:
    """What a transcript source knows about the call being transcribed"""
    goal: str
    expert_name: str
    user_name: str
    context_text: Optional[str] = None
    provider_call_sid: Optional[str] = None


class TranscriptSource(ABC):
    """Produces the transcript of a finished call"""

    @abstractmethod
    async def fetch_transcript(self, context: CallContext) -> str:
        pass


class Summarizer(ABC):
    """Turns a transcript into a structured summary"""

    @abstractmethod
    async def summarize(self, transcript: str, goal: str) -> str:
        pass


class TemplateTranscriptSource(TranscriptSource):
    """Deterministic conversation used while no call audio is captured"""

    async def fetch_transcript(self, context: CallContext) -> str:
        user = context.user_name
        expert = context.expert_name
        goal = context.goal
        context_line = (
            f" They provided the following context: {context.context_text}"
            if context.context_text
            else ""
        )

        turns = [
            (ASSISTANT_SPEAKER,
             f"Hi, this is an AI assistant calling from ExpertAssist AI on behalf of {user} "
             f"regarding {goal}. Is now a good time?"),
            (expert, "Yes, I have a few minutes. What can I help with?"),
            (ASSISTANT_SPEAKER,
             f"Great, thank you. {user} wanted me to ask you about {goal}.{context_line}"),
            (expert,
             f"I see. Well, regarding {goal}, I can tell you that we typically handle this "
             "by following these steps..."),
            (ASSISTANT_SPEAKER,
             "That's helpful information. Could you also let me know about the timeline "
             "for this process?"),
            (expert,
             "Certainly. The timeline usually depends on several factors, but in general..."),
            (ASSISTANT_SPEAKER,
             f"Thank you for that explanation. Is there anything else {user} should know "
             "or prepare regarding this matter?"),
            (expert, "Yes, they should make sure to have these documents ready..."),
            (ASSISTANT_SPEAKER,
             f"I've made note of all that information. Is there a best time for {user} "
             "to reach out if they have follow-up questions?"),
            (expert,
             "They can call me anytime during business hours, or email is sometimes better "
             "for detailed questions."),
            (ASSISTANT_SPEAKER,
             f"Great, I'll pass that along. Thank you so much for your time today. "
             f"I'll make sure {user} gets all this information."),
            (expert, "You're welcome. Goodbye."),
            (ASSISTANT_SPEAKER, "Goodbye."),
        ]

        return "\n\n".join(f"[{speaker}]: {text}" for speaker, text in turns)


class TemplateSummarizer(Summarizer):
    """Deterministic structured summary"""

    async def summarize(self, transcript: str, goal: str) -> str:
        return (
            f"Summary of Call Regarding: {goal}\n"
            "\n"
            "Key Information Gathered:\n"
            "- The expert explained the standard process for handling this request\n"
            "- Timeline depends on several factors\n"
            "- Documents should be prepared ahead of the next step\n"
            "\n"
            "Action Items:\n"
            "- Prepare required documents\n"
            "- Follow up with the expert via email for detailed questions\n"
            "\n"
            "Follow-up:\n"
            "- The expert is available during regular business hours, with email "
            "preferred for detailed inquiries."
        )


class LLMSummarizer(Summarizer):
    """Summarizes transcripts with the configured language model"""

    def __init__(self, adapter: LLMAdapter, max_transcript_chars: int = 8000):
        self.adapter = adapter
        self.max_transcript_chars = max_transcript_chars

    async def summarize(self, transcript: str, goal: str) -> str:
        response = await self.adapter.generate(
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            messages=[
                LLMMessage(
                    role="user",
                    content=(
                        f"Goal of the call: {goal}\n\n"
                        f"Transcript:\n{transcript[:self.max_transcript_chars]}"
                    ),
                )
            ],
            temperature=0.3,
            max_tokens=500,
        )

        if not response.content:
            raise ValueError(f"{response.provider} returned an empty summary")

        logger.info(
            "Call summary generated",
            provider=response.provider,
            model=response.model,
        )
        return response.content.strip()


def build_summarizer(settings: Settings) -> Summarizer:
    """Summarizer selected by SUMMARIZER_BACKEND"""
    if settings.summarizer_backend == "llm":
        return LLMSummarizer(
            get_llm_adapter(
                provider=settings.default_llm_provider,
                model=settings.default_llm_model,
                fallback_provider=settings.fallback_llm_provider,
                fallback_model=settings.fallback_llm_model,
            )
        )
    if settings.summarizer_backend != "template":
        raise ValueError(f"Unknown summarizer backend: {settings.summarizer_backend}")
    return TemplateSummarizer()
