"""Shared dependencies for API routes"""

from fastapi import Depends, HTTPException, Request

from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.telephony.gateway import TelephonyGateway


def get_orchestrator(request: Request) -> CallOrchestrator:
    """Orchestrator built at application startup"""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Call service is not available")
    return orchestrator


def get_gateway(orchestrator: CallOrchestrator = Depends(get_orchestrator)) -> TelephonyGateway:
    return orchestrator.gateway
