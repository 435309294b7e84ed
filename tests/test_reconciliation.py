"""Tests for stuck call reconciliation"""

import pytest
from datetime import datetime, timedelta
from uuid import uuid4

from expertassist.calls.errors import CallNotFoundError
from expertassist.calls.reconciliation import reconcile_stuck_calls
from expertassist.models.call import Call, CallStatus


async def add_call(db, user, expert, status, updated_at):
    call = Call(
        id=uuid4(),
        user_id=user.id,
        expert_id=expert.id,
        goal=f"Call left in {status.value}",
        status=status,
        created_at=updated_at,
        updated_at=updated_at,
    )
    db.add(call)
    await db.commit()
    return call


@pytest.mark.asyncio
async def test_reconcile_fails_stale_calls(test_db, call_store, test_user, test_expert):
    now = datetime.utcnow()
    old = now - timedelta(hours=1)

    stuck = await add_call(test_db, test_user, test_expert, CallStatus.IN_PROGRESS, old)
    stuck_pending = await add_call(test_db, test_user, test_expert, CallStatus.PENDING, old)
    fresh = await add_call(test_db, test_user, test_expert, CallStatus.DIALING, now)
    finished = await add_call(test_db, test_user, test_expert, CallStatus.COMPLETED, old)

    reconciled = await reconcile_stuck_calls(call_store, timedelta(minutes=15), now=now)

    assert set(reconciled) == {stuck.id, stuck_pending.id}

    record = await call_store.get(stuck.id)
    assert record.status == CallStatus.FAILED
    assert record.failure_reason == "Call stalled in in_progress and was reconciled"
    assert record.completed_at is not None

    assert (await call_store.get(fresh.id)).status == CallStatus.DIALING
    assert (await call_store.get(finished.id)).status == CallStatus.COMPLETED


@pytest.mark.asyncio
async def test_reconcile_nothing_to_do(call_store):
    assert await reconcile_stuck_calls(call_store, timedelta(minutes=15)) == []


@pytest.mark.asyncio
async def test_reconcile_skips_calls_that_moved_on(test_db, call_store, test_user, test_expert):
    """A call that advanced after the scan keeps its new status"""
    old = datetime.utcnow() - timedelta(hours=1)
    call = await add_call(test_db, test_user, test_expert, CallStatus.CONNECTED, old)

    original_find_stale = call_store.find_stale

    async def find_then_advance(updated_before):
        found = await original_find_stale(updated_before)
        await call_store.transition(call.id, CallStatus.IN_PROGRESS, expected={CallStatus.CONNECTED})
        return found

    call_store.find_stale = find_then_advance

    reconciled = await reconcile_stuck_calls(call_store, timedelta(minutes=15))

    assert reconciled == []
    assert (await call_store.get(call.id)).status == CallStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_store_transition_conditions(call_store, pending_call):
    rejected = await call_store.transition(
        pending_call.id, CallStatus.CONNECTED, expected={CallStatus.DIALING}
    )
    assert rejected is None

    dialing = await call_store.transition(
        pending_call.id, CallStatus.DIALING, expected={CallStatus.PENDING}
    )
    assert dialing.status == CallStatus.DIALING
    assert dialing.updated_at >= pending_call.updated_at


@pytest.mark.asyncio
async def test_store_transition_rejects_unknown_fields(call_store, pending_call):
    with pytest.raises(ValueError):
        await call_store.transition(pending_call.id, CallStatus.DIALING, goal="rewritten")


@pytest.mark.asyncio
async def test_store_transition_unknown_call(call_store):
    with pytest.raises(CallNotFoundError):
        await call_store.transition(uuid4(), CallStatus.FAILED)


def test_reconcile_task_is_scheduled():
    from expertassist.jobs import tasks
    from expertassist.jobs.celery_app import celery_app

    entry = celery_app.conf.beat_schedule["reconcile-stuck-calls"]
    assert entry["task"] == tasks.reconcile_stuck_calls.name == "reconcile_stuck_calls"
