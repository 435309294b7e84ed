"""Background job tasks"""

from datetime import timedelta
import asyncio
import structlog

from expertassist.jobs.celery_app import celery_app
from expertassist.config import settings

logger = structlog.get_logger()


_loop = None


def run_async(coro):
    """Helper to run async functions in sync context"""
    global _loop
    # One loop per worker process so pooled connections stay usable
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop.run_until_complete(coro)


@celery_app.task(name="reconcile_stuck_calls")
def reconcile_stuck_calls():
    """Fail calls whose lifecycle stopped advancing"""
    logger.info("Reconciling stuck calls", stale_call_minutes=settings.stale_call_minutes)

    async def _reconcile():
        from expertassist.calls.reconciliation import reconcile_stuck_calls as reconcile
        from expertassist.calls.store import SQLAlchemyCallStore
        from expertassist.database import SessionLocal

        store = SQLAlchemyCallStore(SessionLocal)
        return await reconcile(store, timedelta(minutes=settings.stale_call_minutes))

    reconciled = run_async(_reconcile())
    return [str(call_id) for call_id in reconciled]
