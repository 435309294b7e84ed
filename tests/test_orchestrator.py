"""Tests for the call lifecycle orchestrator"""

import asyncio
import pytest
from sqlalchemy import delete
from uuid import uuid4

from expertassist.calls.errors import (
    CallAlreadyFinishedError,
    CallNotFoundError,
    LifecycleConflictError,
)
from expertassist.calls.generation import (
    Summarizer,
    TemplateSummarizer,
    TemplateTranscriptSource,
    TranscriptSource,
)
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.calls.store import SQLAlchemyCallStore
from expertassist.models.call import CallStatus
from expertassist.models.expert import Expert
from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus
from expertassist.telephony.gateway import TelephonyGateway
from expertassist.telephony.providers.base import BaseTelephonyProvider
from expertassist.telephony.providers.simulated import SimulatedProvider


class UnreachableProvider(BaseTelephonyProvider):
    name = "unreachable"

    async def place_call(self, to_number, from_number, url, status_callback):
        raise RuntimeError("Twilio unavailable")

    async def get_call_status(self, call_sid):
        raise RuntimeError("Twilio unavailable")

    async def end_call(self, call_sid):
        raise RuntimeError("Twilio unavailable")


class GatedProvider(BaseTelephonyProvider):
    """Holds `place_call` until `dialed` is set and records hang-ups"""

    name = "gated"

    def __init__(self):
        self.dialed = asyncio.Event()
        self.dialing = asyncio.Event()
        self.ended = []

    async def place_call(self, to_number, from_number, url, status_callback):
        self.dialing.set()
        await self.dialed.wait()
        return PlacedCall(call_sid="CA0042", status="queued", to=to_number, from_=from_number)

    async def get_call_status(self, call_sid):
        return ProviderCallStatus(call_sid=call_sid, status="completed", duration="12")

    async def end_call(self, call_sid):
        self.ended.append(call_sid)


class SlowProvider(SimulatedProvider):
    async def place_call(self, to_number, from_number, url, status_callback):
        await asyncio.sleep(1)
        return await super().place_call(to_number, from_number, url, status_callback)


class BrokenSummarizer(Summarizer):
    async def summarize(self, transcript, goal):
        raise RuntimeError("Model overloaded")


class BrokenTranscriptSource(TranscriptSource):
    async def fetch_transcript(self, context):
        raise RuntimeError("Transcription service down")


class FailureWriteRejectingStore(SQLAlchemyCallStore):
    async def transition(self, call_id, status, expected=None, **fields):
        if status == CallStatus.FAILED:
            raise RuntimeError("database unavailable")
        return await super().transition(call_id, status, expected, **fields)


class SteppingClock:
    """Returns each time once, then keeps returning the last one"""

    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        if len(self.times) > 1:
            return self.times.pop(0)
        return self.times[0]


def build_orchestrator(store, gateway, **kwargs):
    options = {
        "transcripts": TemplateTranscriptSource(),
        "summarizer": TemplateSummarizer(),
        "callback_base_url": "http://test",
        "connect_delay": 0,
        "call_duration": 0,
        "external_timeout": 5.0,
    }
    options.update(kwargs)
    return CallOrchestrator(store, gateway, **options)


async def wait_for_status(store, call_id, status, attempts=200):
    for _ in range(attempts):
        record = await store.get(call_id)
        if record.status == status:
            return record
        await asyncio.sleep(0.01)
    raise AssertionError(f"Call never reached {status.value}")


@pytest.mark.asyncio
async def test_lifecycle_completes(orchestrator, call_store, pending_call):
    """A pending call runs through every stage and ends COMPLETED"""
    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.COMPLETED
    assert record.transcript
    assert "[AI Assistant]" in record.transcript
    assert "Jane Smith" in record.transcript
    assert "[John Doe]" in record.transcript
    assert "Client is Michael Johnson" in record.transcript
    assert record.summary.startswith(f"Summary of Call Regarding: {pending_call.goal}")
    assert record.failure_reason is None
    assert record.completed_at >= record.created_at
    assert record.duration_seconds >= 0
    assert not orchestrator.is_running(pending_call.id)

    # Reads after completion are stable
    first = await call_store.get(pending_call.id)
    second = await call_store.get(pending_call.id)
    assert first.transcript == second.transcript == record.transcript
    assert first.summary == second.summary == record.summary


@pytest.mark.asyncio
async def test_lifecycle_uses_provider_duration(call_store, test_settings, pending_call):
    clock = SteppingClock(1000.0, 1045.0)
    gateway = TelephonyGateway(test_settings, simulator=SimulatedProvider(clock=clock))
    orchestrator = build_orchestrator(call_store, gateway)

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.COMPLETED
    assert record.duration_seconds == 45


@pytest.mark.asyncio
async def test_lifecycle_unknown_call(orchestrator):
    with pytest.raises(CallNotFoundError):
        await orchestrator.run_lifecycle(uuid4())


@pytest.mark.asyncio
async def test_lifecycle_runs_only_once(orchestrator, call_store, pending_call):
    """A second invocation for the same call is rejected without writes"""
    completed = await orchestrator.run_lifecycle(pending_call.id)

    with pytest.raises(LifecycleConflictError):
        await orchestrator.run_lifecycle(pending_call.id)

    record = await call_store.get(pending_call.id)
    assert record.status == CallStatus.COMPLETED
    assert record.updated_at == completed.updated_at


@pytest.mark.asyncio
async def test_concurrent_lifecycles_single_flight(orchestrator, call_store, pending_call):
    results = await asyncio.gather(
        orchestrator.run_lifecycle(pending_call.id),
        orchestrator.run_lifecycle(pending_call.id),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, LifecycleConflictError)]
    finished = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(finished) == 1
    assert finished[0].status == CallStatus.COMPLETED


@pytest.mark.asyncio
async def test_gateway_failure_marks_call_failed(call_store, test_settings, pending_call):
    gateway = TelephonyGateway(test_settings, provider=UnreachableProvider())
    orchestrator = build_orchestrator(call_store, gateway)

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Twilio unavailable"
    assert record.transcript is None
    assert record.summary is None
    assert record.completed_at is not None


@pytest.mark.asyncio
async def test_summarizer_failure_marks_call_failed(call_store, gateway, pending_call):
    orchestrator = build_orchestrator(call_store, gateway, summarizer=BrokenSummarizer())

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Model overloaded"
    assert record.transcript is None
    assert record.summary is None


@pytest.mark.asyncio
async def test_transcript_failure_marks_call_failed(call_store, gateway, pending_call):
    orchestrator = build_orchestrator(call_store, gateway, transcripts=BrokenTranscriptSource())

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Transcription service down"
    assert record.summary is None


@pytest.mark.asyncio
async def test_slow_gateway_times_out(call_store, test_settings, pending_call):
    gateway = TelephonyGateway(test_settings, simulator=SlowProvider())
    orchestrator = build_orchestrator(call_store, gateway, external_timeout=0.05)

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert "did not respond" in record.failure_reason


@pytest.mark.asyncio
async def test_failure_write_error_is_not_raised(session_factory, gateway, pending_call):
    """When FAILED cannot be written the call is left for reconciliation"""
    store = FailureWriteRejectingStore(session_factory)
    orchestrator = build_orchestrator(store, gateway, summarizer=BrokenSummarizer())

    result = await orchestrator.run_lifecycle(pending_call.id)

    assert result is None
    record = await store.get(pending_call.id)
    assert record.status == CallStatus.SUMMARIZING


@pytest.mark.asyncio
async def test_end_call_cancels_running_lifecycle(call_store, gateway, pending_call):
    orchestrator = build_orchestrator(call_store, gateway, call_duration=5)
    task = asyncio.create_task(orchestrator.run_lifecycle(pending_call.id))

    await wait_for_status(call_store, pending_call.id, CallStatus.IN_PROGRESS)
    ended = await orchestrator.end_call(pending_call.id)
    final = await asyncio.wait_for(task, timeout=2)

    assert ended.status == CallStatus.CANCELLED
    assert final.status == CallStatus.CANCELLED
    assert final.transcript is None
    assert final.completed_at is not None
    assert final.duration_seconds >= 0


@pytest.mark.asyncio
async def test_end_call_while_dialing_hangs_up_placed_call(
    call_store, test_settings, pending_call
):
    """A call ended before the provider answers place_call is hung up once placed"""
    provider = GatedProvider()
    gateway = TelephonyGateway(test_settings, provider=provider)
    orchestrator = build_orchestrator(call_store, gateway)
    task = asyncio.create_task(orchestrator.run_lifecycle(pending_call.id))

    await asyncio.wait_for(provider.dialing.wait(), timeout=2)
    ended = await orchestrator.end_call(pending_call.id)
    assert ended.status == CallStatus.CANCELLED
    assert provider.ended == []

    provider.dialed.set()
    final = await asyncio.wait_for(task, timeout=2)

    assert final.status == CallStatus.CANCELLED
    assert provider.ended == ["CA0042"]


@pytest.mark.asyncio
async def test_failure_after_placement_hangs_up(call_store, test_settings, pending_call):
    provider = GatedProvider()
    provider.dialed.set()
    gateway = TelephonyGateway(test_settings, provider=provider)
    orchestrator = build_orchestrator(call_store, gateway, transcripts=BrokenTranscriptSource())

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Transcription service down"
    assert provider.ended == ["CA0042"]


@pytest.mark.asyncio
async def test_completed_call_is_not_hung_up(call_store, test_settings, pending_call):
    provider = GatedProvider()
    provider.dialed.set()
    gateway = TelephonyGateway(test_settings, provider=provider)
    orchestrator = build_orchestrator(call_store, gateway)

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.COMPLETED
    assert record.duration_seconds == 12
    assert provider.ended == []


@pytest.mark.asyncio
async def test_end_call_hangs_up_only_once(call_store, test_settings, pending_call):
    provider = GatedProvider()
    provider.dialed.set()
    gateway = TelephonyGateway(test_settings, provider=provider)
    orchestrator = build_orchestrator(call_store, gateway, call_duration=5)
    task = asyncio.create_task(orchestrator.run_lifecycle(pending_call.id))

    await wait_for_status(call_store, pending_call.id, CallStatus.IN_PROGRESS)
    await orchestrator.end_call(pending_call.id)
    final = await asyncio.wait_for(task, timeout=2)

    assert final.status == CallStatus.CANCELLED
    assert provider.ended == ["CA0042"]


@pytest.mark.asyncio
async def test_lifecycle_fails_when_expert_deleted(
    orchestrator, call_store, test_db, test_expert, pending_call
):
    await test_db.execute(delete(Expert).where(Expert.id == test_expert.id))
    await test_db.commit()

    record = await orchestrator.run_lifecycle(pending_call.id)

    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Expert or user not found"
    assert record.expert_id is None
    assert record.transcript is None
    assert record.summary is None
    assert record.completed_at is not None


@pytest.mark.asyncio
async def test_end_call_before_start(orchestrator, call_store, pending_call):
    """A pending call that is ended can no longer be started"""
    ended = await orchestrator.end_call(pending_call.id)
    assert ended.status == CallStatus.CANCELLED

    with pytest.raises(LifecycleConflictError):
        await orchestrator.run_lifecycle(pending_call.id)

    record = await call_store.get(pending_call.id)
    assert record.status == CallStatus.CANCELLED


@pytest.mark.asyncio
async def test_end_call_after_completion(orchestrator, pending_call):
    await orchestrator.run_lifecycle(pending_call.id)

    with pytest.raises(CallAlreadyFinishedError):
        await orchestrator.end_call(pending_call.id)


@pytest.mark.asyncio
async def test_end_call_unknown(orchestrator):
    with pytest.raises(CallNotFoundError):
        await orchestrator.end_call(uuid4())


@pytest.mark.asyncio
async def test_abort_fails_running_lifecycle(call_store, gateway, pending_call):
    orchestrator = build_orchestrator(call_store, gateway, connect_delay=5)
    task = asyncio.create_task(orchestrator.run_lifecycle(pending_call.id))

    await wait_for_status(call_store, pending_call.id, CallStatus.CONNECTED)
    await orchestrator.abort(pending_call.id, "Call busy (provider status)")
    final = await asyncio.wait_for(task, timeout=2)

    assert final.status == CallStatus.FAILED
    assert final.failure_reason == "Call busy (provider status)"
    assert final.summary is None


@pytest.mark.asyncio
async def test_abort_after_completion_is_noop(orchestrator, call_store, pending_call):
    completed = await orchestrator.run_lifecycle(pending_call.id)

    assert await orchestrator.abort(pending_call.id, "late webhook") is None

    record = await call_store.get(pending_call.id)
    assert record.status == CallStatus.COMPLETED
    assert record.summary == completed.summary


@pytest.mark.asyncio
async def test_start_runs_in_background(orchestrator, pending_call):
    task = orchestrator.start(pending_call.id)
    record = await asyncio.wait_for(task, timeout=2)

    assert record is None  # background runner discards the result
    final = await orchestrator.store.get(pending_call.id)
    assert final.status == CallStatus.COMPLETED


@pytest.mark.asyncio
async def test_shutdown_cancels_background_lifecycles(call_store, gateway, pending_call):
    orchestrator = build_orchestrator(call_store, gateway, call_duration=5)
    task = orchestrator.start(pending_call.id)

    await wait_for_status(call_store, pending_call.id, CallStatus.IN_PROGRESS)
    await orchestrator.shutdown()

    assert task.cancelled()
    assert not orchestrator.is_running(pending_call.id)


def test_webhook_url(orchestrator):
    call_id = uuid4()
    assert orchestrator.webhook_url("voice", call_id) == (
        f"http://test/webhooks/twilio/voice?call_id={call_id}"
    )
