"""Recovery of calls stuck in a non-terminal status"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

import structlog

from expertassist.calls.store import CallStore
from expertassist.models.call import CallStatus

logger = structlog.get_logger()


async def reconcile_stuck_calls(
    store: CallStore,
    stale_after: timedelta,
    now: Optional[datetime] = None,
) -> List[UUID]:
    """
    Fail every non-terminal call that has not been updated for ``stale_after``.

    Each write is conditional on the status observed during the scan, so a
    lifecycle that advances in the meantime is left alone. Returns the ids of
    the calls that were failed.
    """
    cutoff = (now or datetime.utcnow()) - stale_after
    stale_calls = await store.find_stale(cutoff)

    reconciled = []
    for call in stale_calls:
        record = await store.transition(
            call.id,
            CallStatus.FAILED,
            expected={call.status},
            failure_reason=f"Call stalled in {call.status.value} and was reconciled",
            completed_at=datetime.utcnow(),
        )
        if record is None:
            continue

        reconciled.append(call.id)
        logger.warning(
            "Reconciled stuck call",
            call_id=str(call.id),
            stuck_status=call.status.value,
            last_update=call.updated_at.isoformat(),
        )

    logger.info("Call reconciliation finished", scanned=len(stale_calls), failed=len(reconciled))
    return reconciled
