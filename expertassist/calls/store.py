"""Call record store

The orchestrator only talks to the store through typed records. Each
operation runs in its own session, so every write is committed on its own
and is visible to pollers immediately.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Collection, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from expertassist.calls.errors import CallNotFoundError
from expertassist.models.call import Call, CallStatus, NON_TERMINAL_STATUSES
from expertassist.models.expert import Expert
from expertassist.models.user import User

# Columns the orchestrator may write alongside a status change
WRITABLE_FIELDS = frozenset({
    "transcript",
    "summary",
    "failure_reason",
    "recording_url",
    "duration_seconds",
    "completed_at",
})


@dataclass(frozen=True)
class CallRecord:
    id: UUID
    goal: str
    user_id: UUID
    expert_id: Optional[UUID]
    status: CallStatus
    created_at: datetime
    updated_at: datetime
    recording_url: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    failure_reason: Optional[str] = None
    context_links: List[str] = field(default_factory=list)
    context_text: Optional[str] = None
    duration_seconds: Optional[int] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, call: Call) -> "CallRecord":
        return cls(
            id=call.id,
            goal=call.goal,
            user_id=call.user_id,
            expert_id=call.expert_id,
            status=CallStatus(call.status),
            created_at=call.created_at,
            updated_at=call.updated_at,
            recording_url=call.recording_url,
            transcript=call.transcript,
            summary=call.summary,
            failure_reason=call.failure_reason,
            context_links=list(call.context_links or []),
            context_text=call.context_text,
            duration_seconds=call.duration_seconds,
            completed_at=call.completed_at,
        )


@dataclass(frozen=True)
class ExpertRecord:
    id: UUID
    name: str
    phone_number: str


@dataclass(frozen=True)
class UserRecord:
    id: UUID
    full_name: str


class CallStore(ABC):
    """Persistence boundary for call lifecycles"""

    @abstractmethod
    async def get(self, call_id: UUID) -> Optional[CallRecord]:
        pass

    @abstractmethod
    async def get_expert(self, expert_id: UUID) -> Optional[ExpertRecord]:
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def transition(
        self,
        call_id: UUID,
        status: CallStatus,
        expected: Optional[Collection[CallStatus]] = None,
        **fields: Any,
    ) -> Optional[CallRecord]:
        """
        Write a new status (plus any result fields) in one update.

        When ``expected`` is given the write only happens if the current
        status is one of them; otherwise None is returned. Raises
        CallNotFoundError if the record does not exist.
        """
        pass

    @abstractmethod
    async def find_stale(self, updated_before: datetime) -> List[CallRecord]:
        """Non-terminal calls not updated since ``updated_before``"""
        pass


class SQLAlchemyCallStore(CallStore):
    """CallStore backed by the application database"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get(self, call_id: UUID) -> Optional[CallRecord]:
        async with self.session_factory() as db:
            call = await db.get(Call, call_id)
            return CallRecord.from_model(call) if call else None

    async def get_expert(self, expert_id: UUID) -> Optional[ExpertRecord]:
        if expert_id is None:
            return None
        async with self.session_factory() as db:
            expert = await db.get(Expert, expert_id)
            if not expert:
                return None
            return ExpertRecord(id=expert.id, name=expert.name, phone_number=expert.phone_number)

    async def get_user(self, user_id: UUID) -> Optional[UserRecord]:
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            if not user:
                return None
            return UserRecord(id=user.id, full_name=user.full_name)

    async def transition(
        self,
        call_id: UUID,
        status: CallStatus,
        expected: Optional[Collection[CallStatus]] = None,
        **fields: Any,
    ) -> Optional[CallRecord]:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot write call fields: {', '.join(sorted(unknown))}")

        async with self.session_factory() as db:
            stmt = (
                update(Call)
                .where(Call.id == call_id)
                .values(status=status, updated_at=datetime.utcnow(), **fields)
                .execution_options(synchronize_session=False)
            )
            if expected is not None:
                stmt = stmt.where(Call.status.in_(list(expected)))

            result = await db.execute(stmt)
            await db.commit()

            if result.rowcount == 0:
                exists = await db.scalar(select(Call.id).where(Call.id == call_id))
                if exists is None:
                    raise CallNotFoundError(f"Call with ID {call_id} not found", call_id)
                return None

            call = await db.get(Call, call_id, populate_existing=True)
            return CallRecord.from_model(call)

    async def find_stale(self, updated_before: datetime) -> List[CallRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Call)
                .where(
                    Call.status.in_(list(NON_TERMINAL_STATUSES)),
                    Call.updated_at < updated_before,
                )
                .order_by(Call.updated_at)
            )
            return [CallRecord.from_model(call) for call in result.scalars().all()]
