"""Call lifecycle orchestration"""

from expertassist.calls.errors import (
    CallAlreadyFinishedError,
    CallNotFoundError,
    ExternalServiceTimeoutError,
    LifecycleConflictError,
)
from expertassist.calls.generation import (
    CallContext,
    LLMSummarizer,
    Summarizer,
    TemplateSummarizer,
    TemplateTranscriptSource,
    TranscriptSource,
    build_summarizer,
)
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.calls.reconciliation import reconcile_stuck_calls
from expertassist.calls.store import CallRecord, CallStore, SQLAlchemyCallStore

__all__ = [
    "CallAlreadyFinishedError",
    "CallNotFoundError",
    "ExternalServiceTimeoutError",
    "LifecycleConflictError",
    "CallContext",
    "LLMSummarizer",
    "Summarizer",
    "TemplateSummarizer",
    "TemplateTranscriptSource",
    "TranscriptSource",
    "build_summarizer",
    "CallOrchestrator",
    "reconcile_stuck_calls",
    "CallRecord",
    "CallStore",
    "SQLAlchemyCallStore",
]
