"""Telephony API endpoints"""

from fastapi import APIRouter, Depends, HTTPException
import structlog

from expertassist.api.auth import get_current_active_user
from expertassist.api.dependencies import get_gateway
from expertassist.models.user import User
from expertassist.schemas.common import DataResponse
from expertassist.schemas.telephony import ProviderCallStatus
from expertassist.telephony.gateway import TelephonyGateway

router = APIRouter()
logger = structlog.get_logger()


@router.get("/calls/{call_sid}", response_model=DataResponse[ProviderCallStatus])
async def get_provider_call_status(
    call_sid: str,
    current_user: User = Depends(get_current_active_user),
    gateway: TelephonyGateway = Depends(get_gateway),
):
    """Get the provider's view of a call"""
    try:
        status = await gateway.get_call_status(call_sid)
    except Exception as e:
        logger.error("Error fetching call status", call_sid=call_sid, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to get call status")

    return DataResponse(data=status)
