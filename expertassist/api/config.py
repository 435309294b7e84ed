"""Runtime configuration endpoints"""

from fastapi import APIRouter, Depends

from expertassist.api.dependencies import get_gateway
from expertassist.config import Settings, get_settings
from expertassist.schemas.common import DataResponse
from expertassist.schemas.telephony import DemoStatus
from expertassist.telephony.gateway import TelephonyGateway

router = APIRouter()


@router.get("/demo-status", response_model=DataResponse[DemoStatus])
async def get_demo_status(
    settings: Settings = Depends(get_settings),
    gateway: TelephonyGateway = Depends(get_gateway),
):
    """Report whether outbound calls go to Twilio or the simulator"""
    return DataResponse(
        data=DemoStatus(
            demo_mode=settings.demo_mode,
            twilio_configured=settings.twilio_configured,
            valid_account_sid=settings.twilio_account_sid_valid,
            simulation_mode=gateway.simulation_mode,
        )
    )
