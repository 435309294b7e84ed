"""Twilio webhook handlers"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.request_validator import RequestValidator
from twilio.twiml.voice_response import VoiceResponse
import structlog

from expertassist.api.dependencies import get_gateway, get_orchestrator
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.config import Settings, get_settings, settings
from expertassist.database import get_db
from expertassist.models.call import Call
from expertassist.telephony.gateway import TelephonyGateway
from expertassist.telephony.status import PROVIDER_FAILURE_STATUSES, PROVIDER_STATUS_MAP

router = APIRouter()
logger = structlog.get_logger()

GREETING = (
    "Hello! This is an automated call from Expert Assist A.I. "
    "I am calling to gather some information. Please stay on the line."
)
FOLLOW_UP_PROMPT = "I will now ask you some questions. Please respond clearly."


async def verify_twilio_signature(
    request: Request,
    gateway: TelephonyGateway = Depends(get_gateway),
    app_settings: Settings = Depends(get_settings),
) -> None:
    """
    Reject webhook requests not signed with the account's auth token.
    Skipped in simulation mode, where no real provider calls back.
    """
    if gateway.simulation_mode:
        return

    # Twilio signs the URL it was given, which is built from API_BASE_URL
    url = f"{app_settings.api_base_url.rstrip('/')}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    params = dict(await request.form())
    signature = request.headers.get("X-Twilio-Signature", "")

    validator = RequestValidator(app_settings.twilio_auth_token)
    if not validator.validate(url, params, signature):
        logger.warning("Rejected unsigned webhook", path=request.url.path)
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")


@router.post("/voice", dependencies=[Depends(verify_twilio_signature)])
async def handle_voice_webhook(
    call_id: Optional[UUID] = None,
    CallSid: Optional[str] = Form(default=None),
    CallStatus: Optional[str] = Form(default=None),
):
    """
    Handle the answered outbound call.
    Returns TwiML greeting the expert.
    """
    logger.info(
        "Outbound call answered",
        call_id=str(call_id) if call_id else None,
        call_sid=CallSid,
        status=CallStatus,
    )

    response = VoiceResponse()
    response.say(GREETING, voice=settings.twilio_voice, language="en-US")
    response.pause(length=1)
    response.say(FOLLOW_UP_PROMPT, voice=settings.twilio_voice, language="en-US")

    return Response(content=str(response), media_type="application/xml")


@router.post("/status", dependencies=[Depends(verify_twilio_signature)])
async def handle_status_webhook(
    call_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    orchestrator: CallOrchestrator = Depends(get_orchestrator),
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    CallDuration: Optional[str] = Form(default=None),
    RecordingUrl: Optional[str] = Form(default=None),
):
    """Handle call status updates from Twilio"""
    provider_status = CallStatus.lower()
    mapped = PROVIDER_STATUS_MAP.get(provider_status)

    logger.info(
        "Call status update",
        call_id=str(call_id) if call_id else None,
        call_sid=CallSid,
        status=provider_status,
        mapped_status=mapped.value if mapped else None,
        duration=CallDuration,
    )

    if call_id is None:
        logger.warning("Status update without call id", call_sid=CallSid)
        return {"status": "ok"}

    result = await db.execute(select(Call).where(Call.id == call_id))
    call = result.scalar_one_or_none()

    if not call:
        logger.warning("Call not found", call_id=str(call_id), call_sid=CallSid)
        return {"status": "ok"}

    if RecordingUrl:
        call.recording_url = RecordingUrl
        await db.commit()
        logger.info("Recording stored", call_id=str(call_id))

    if provider_status in PROVIDER_FAILURE_STATUSES:
        await orchestrator.abort(call_id, f"Call {provider_status} (provider status)")

    return {"status": "ok"}
