"""
Call lifecycle orchestrator.

Drives one call from PENDING to a terminal status:

    PENDING -> DIALING -> CONNECTED -> IN_PROGRESS -> SUMMARIZING -> COMPLETED

FAILED is reachable from any non-terminal status when a stage raises, and
CANCELLED when the call is ended explicitly. Every transition is a
conditional write on the previous status, so only the invocation that
claimed the call (PENDING -> DIALING) can advance it, and a terminal status
written by someone else is never overwritten.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Dict, Optional, Set, TypeVar
from uuid import UUID

import structlog

from expertassist.calls.errors import (
    CallAlreadyFinishedError,
    CallNotFoundError,
    ExternalServiceTimeoutError,
    LifecycleConflictError,
)
from expertassist.calls.generation import CallContext, Summarizer, TranscriptSource
from expertassist.calls.store import CallRecord, CallStore
from expertassist.models.call import CallStatus, NON_TERMINAL_STATUSES
from expertassist.telephony.gateway import TelephonyGateway

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class StopRequest:
    status: CallStatus
    reason: Optional[str] = None


class LifecycleSignal:
    """Cancellation signal for one running lifecycle"""

    def __init__(self):
        self.event = asyncio.Event()
        self.request: Optional[StopRequest] = None

    def stop(self, status: CallStatus, reason: Optional[str] = None) -> None:
        # First request wins
        if self.request is None:
            self.request = StopRequest(status=status, reason=reason)
        self.event.set()

    @property
    def stopped(self) -> bool:
        return self.event.is_set()


class LifecycleStopped(Exception):
    """The lifecycle was ended from outside and must not write further"""


class CallOrchestrator:
    """Runs call lifecycles against injected store, gateway and generators"""

    def __init__(
        self,
        store: CallStore,
        gateway: TelephonyGateway,
        transcripts: TranscriptSource,
        summarizer: Summarizer,
        *,
        callback_base_url: str,
        connect_delay: float = 2.0,
        call_duration: float = 6.0,
        external_timeout: Optional[float] = 30.0,
    ):
        self.store = store
        self.gateway = gateway
        self.transcripts = transcripts
        self.summarizer = summarizer
        self.callback_base_url = callback_base_url.rstrip("/")
        self.connect_delay = connect_delay
        self.call_duration = call_duration
        self.external_timeout = external_timeout

        self._signals: Dict[UUID, LifecycleSignal] = {}
        self._provider_sids: Dict[UUID, str] = {}
        self._tasks: Set[asyncio.Task] = set()

    # Background execution

    def start(self, call_id: UUID) -> asyncio.Task:
        """Run the lifecycle in the background and return immediately"""
        task = asyncio.create_task(self._run_in_background(call_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_in_background(self, call_id: UUID) -> None:
        try:
            await self.run_lifecycle(call_id)
        except Exception as e:
            logger.error("Error starting call lifecycle", call_id=str(call_id), error=str(e))

    async def shutdown(self) -> None:
        """Cancel lifecycles still running in this process"""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # Lifecycle

    async def run_lifecycle(self, call_id: UUID) -> Optional[CallRecord]:
        """
        Drive a PENDING call to a terminal status.

        Raises CallNotFoundError (no writes) when the call does not exist and
        LifecycleConflictError (no writes) when it is no longer PENDING.
        Failures after the call is claimed are recorded as FAILED instead of
        raised. Returns the final record, or None if the final write could
        not be made.
        """
        call = await self.store.get(call_id)
        if call is None:
            raise CallNotFoundError(f"Call with ID {call_id} not found", call_id)

        claimed = await self.store.transition(
            call_id, CallStatus.DIALING, expected={CallStatus.PENDING}
        )
        if claimed is None:
            current = await self.store.get(call_id)
            raise LifecycleConflictError(call_id, current.status if current else call.status)

        signal = LifecycleSignal()
        self._signals[call_id] = signal
        logger.info("Call lifecycle started", call_id=str(call_id))

        try:
            return await self._advance(claimed, signal)
        except LifecycleStopped:
            return await self._finish_stopped(claimed, signal)
        except Exception as e:
            logger.error("Error in call lifecycle", call_id=str(call_id), error=str(e))
            return await self._record_failure(call_id, e)
        finally:
            self._signals.pop(call_id, None)
            self._provider_sids.pop(call_id, None)

    async def _advance(self, call: CallRecord, signal: LifecycleSignal) -> CallRecord:
        expert = await self.store.get_expert(call.expert_id)
        user = await self.store.get_user(call.user_id)
        if expert is None or user is None:
            raise CallNotFoundError("Expert or user not found", call.id)

        placed = await self._external(
            self.gateway.place_call(
                expert.phone_number,
                callback_url=self.webhook_url("voice", call.id),
                status_callback_url=self.webhook_url("status", call.id),
            )
        )
        self._provider_sids[call.id] = placed.call_sid
        logger.info(
            "Outbound call placed",
            call_id=str(call.id),
            call_sid=placed.call_sid,
            provider_status=placed.status,
        )
        if signal.stopped:
            # Ended while the provider was still dialing
            raise LifecycleStopped()

        await self._transition(call.id, signal, CallStatus.DIALING, CallStatus.CONNECTED)
        connected_at = time.monotonic()
        await self._wait(signal, self.connect_delay)

        await self._transition(call.id, signal, CallStatus.CONNECTED, CallStatus.IN_PROGRESS)
        await self._wait(signal, self.call_duration)

        transcript = await self._external(
            self.transcripts.fetch_transcript(
                CallContext(
                    goal=call.goal,
                    expert_name=expert.name,
                    user_name=user.full_name,
                    context_text=call.context_text,
                    provider_call_sid=placed.call_sid,
                )
            )
        )

        await self._transition(call.id, signal, CallStatus.IN_PROGRESS, CallStatus.SUMMARIZING)
        summary = await self._external(self.summarizer.summarize(transcript, call.goal))
        duration = await self._measure_duration(placed.call_sid, connected_at)

        if signal.stopped:
            raise LifecycleStopped()

        completed = await self.store.transition(
            call.id,
            CallStatus.COMPLETED,
            expected={CallStatus.SUMMARIZING},
            transcript=transcript,
            summary=summary,
            duration_seconds=duration,
            completed_at=datetime.utcnow(),
        )
        if completed is None:
            raise LifecycleStopped()

        logger.info("Call completed", call_id=str(call.id), duration_seconds=duration)
        return completed

    async def _transition(
        self,
        call_id: UUID,
        signal: LifecycleSignal,
        current: CallStatus,
        new: CallStatus,
    ) -> CallRecord:
        if signal.stopped:
            raise LifecycleStopped()

        record = await self.store.transition(call_id, new, expected={current})
        if record is None:
            raise LifecycleStopped()

        logger.info("Call status updated", call_id=str(call_id), status=new.value)
        return record

    async def _wait(self, signal: LifecycleSignal, seconds: float) -> None:
        """Sleep for ``seconds`` unless the lifecycle is stopped first"""
        if seconds > 0:
            try:
                await asyncio.wait_for(signal.event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                return
        if signal.stopped:
            raise LifecycleStopped()

    async def _external(self, awaitable: Awaitable[T]) -> T:
        if not self.external_timeout:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.external_timeout)
        except asyncio.TimeoutError:
            raise ExternalServiceTimeoutError(
                f"External service did not respond within {self.external_timeout:g} seconds"
            )

    async def _measure_duration(self, call_sid: str, connected_at: float) -> int:
        """Provider-reported duration when available, else time since connect"""
        elapsed = max(int(round(time.monotonic() - connected_at)), 0)

        provider_status = await self._external(self.gateway.get_call_status(call_sid))
        if provider_status.duration and provider_status.duration.isdigit():
            reported = int(provider_status.duration)
            if reported > 0:
                return reported
        return elapsed

    async def _finish_stopped(
        self, call: CallRecord, signal: LifecycleSignal
    ) -> Optional[CallRecord]:
        await self._hang_up(call.id)

        request = signal.request
        if request is None:
            # Another writer already moved the call on
            logger.info("Call lifecycle superseded", call_id=str(call.id))
            return await self.store.get(call.id)

        logger.info(
            "Call lifecycle stopped",
            call_id=str(call.id),
            status=request.status.value,
        )
        record = await self.store.transition(
            call.id,
            request.status,
            expected=NON_TERMINAL_STATUSES,
            **self._terminal_fields(call, request.status, request.reason),
        )
        return record or await self.store.get(call.id)

    async def _record_failure(self, call_id: UUID, error: Exception) -> Optional[CallRecord]:
        await self._hang_up(call_id)

        # Best effort: a failed write leaves the call for the reconciler
        try:
            return await self.store.transition(
                call_id,
                CallStatus.FAILED,
                expected=NON_TERMINAL_STATUSES,
                failure_reason=str(error) or type(error).__name__,
                completed_at=datetime.utcnow(),
            )
        except Exception as write_error:
            logger.error(
                "Error updating call status to failed",
                call_id=str(call_id),
                error=str(write_error),
            )
            return None

    async def _hang_up(self, call_id: UUID) -> None:
        """Hang up the provider call placed for ``call_id``, if any, at most once"""
        call_sid = self._provider_sids.pop(call_id, None)
        if not call_sid:
            return
        try:
            await self._external(self.gateway.end_call(call_sid))
            logger.info("Provider call hung up", call_id=str(call_id), call_sid=call_sid)
        except Exception as e:
            logger.warning(
                "Failed to hang up provider call",
                call_id=str(call_id),
                call_sid=call_sid,
                error=str(e),
            )

    @staticmethod
    def _terminal_fields(call: CallRecord, status: CallStatus, reason: Optional[str]) -> dict:
        now = datetime.utcnow()
        fields = {"completed_at": now}
        if status == CallStatus.FAILED:
            fields["failure_reason"] = reason or "Call failed"
        elif status == CallStatus.CANCELLED:
            fields["duration_seconds"] = max(int((now - call.created_at).total_seconds()), 0)
        return fields

    # External control

    async def end_call(self, call_id: UUID) -> CallRecord:
        """Stop a call on the user's request and mark it CANCELLED"""
        call = await self.store.get(call_id)
        if call is None:
            raise CallNotFoundError(f"Call with ID {call_id} not found", call_id)
        if call.status.is_terminal:
            raise CallAlreadyFinishedError(call_id, call.status)

        signal = self._signals.get(call_id)
        if signal:
            signal.stop(CallStatus.CANCELLED)

        await self._hang_up(call_id)

        record = await self.store.transition(
            call_id,
            CallStatus.CANCELLED,
            expected=NON_TERMINAL_STATUSES,
            **self._terminal_fields(call, CallStatus.CANCELLED, None),
        )
        if record is None:
            current = await self.store.get(call_id)
            if current is None:
                raise CallNotFoundError(f"Call with ID {call_id} not found", call_id)
            # The running lifecycle may have written the cancellation itself
            if current.status != CallStatus.CANCELLED:
                raise CallAlreadyFinishedError(call_id, current.status)
            record = current

        logger.info("Call ended by user", call_id=str(call_id))
        return record

    async def abort(self, call_id: UUID, reason: str) -> Optional[CallRecord]:
        """Fail a call on the provider's behalf; no-op once terminal"""
        signal = self._signals.get(call_id)
        if signal:
            signal.stop(CallStatus.FAILED, reason)

        record = await self.store.transition(
            call_id,
            CallStatus.FAILED,
            expected=NON_TERMINAL_STATUSES,
            failure_reason=reason,
            completed_at=datetime.utcnow(),
        )
        if record:
            logger.warning("Call aborted", call_id=str(call_id), reason=reason)
        return record

    def webhook_url(self, hook: str, call_id: UUID) -> str:
        return f"{self.callback_base_url}/webhooks/twilio/{hook}?call_id={call_id}"

    def is_running(self, call_id: UUID) -> bool:
        return call_id in self._signals
