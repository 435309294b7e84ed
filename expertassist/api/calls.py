"""Call API endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from expertassist.calls.errors import CallAlreadyFinishedError, CallNotFoundError
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.database import get_db
from expertassist.models.call import Call, CallStatus
from expertassist.models.expert import Expert
from expertassist.models.user import User
from expertassist.schemas.call import (
    CallInitiateRequest,
    CallResponse,
    CallListItem,
    TranscriptData,
    RecordingData,
)
from expertassist.schemas.common import DataResponse, ListResponse
from expertassist.api.auth import get_current_active_user
from expertassist.api.dependencies import get_orchestrator

router = APIRouter()
logger = structlog.get_logger()

RETRYABLE_STATUSES = (CallStatus.FAILED, CallStatus.CANCELLED)


async def get_owned_call(call_id: UUID, user: User, db: AsyncSession) -> Call:
    """Load a call belonging to ``user`` or raise 404"""
    result = await db.execute(
        select(Call).where(Call.id == call_id, Call.user_id == user.id)
    )
    call = result.scalar_one_or_none()

    if not call:
        raise HTTPException(status_code=404, detail="Call not found")

    return call


async def create_pending_call(
    db: AsyncSession,
    orchestrator: CallOrchestrator,
    user: User,
    expert_id: UUID,
    goal: str,
    context_links: list,
    context_text: Optional[str],
) -> Call:
    """Persist a PENDING call for an owned expert and hand it to the orchestrator"""
    result = await db.execute(
        select(Expert.id).where(Expert.id == expert_id, Expert.user_id == user.id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Expert not found")

    call = Call(
        goal=goal,
        expert_id=expert_id,
        user_id=user.id,
        status=CallStatus.PENDING,
        context_links=context_links or [],
        context_text=context_text or "",
    )
    db.add(call)
    await db.commit()

    logger.info(
        "Call record created",
        call_id=str(call.id),
        expert_id=str(expert_id),
        user_id=str(user.id),
    )

    # Lifecycle runs after the response is sent
    orchestrator.start(call.id)

    return call


@router.post("/initiate", response_model=DataResponse[CallResponse], status_code=201)
async def initiate_call(
    request: CallInitiateRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: CallOrchestrator = Depends(get_orchestrator),
):
    """Initiate a new call"""
    if not request.goal or not request.expert_id:
        raise HTTPException(status_code=400, detail="Goal and expert ID are required")

    call = await create_pending_call(
        db,
        orchestrator,
        current_user,
        expert_id=request.expert_id,
        goal=request.goal,
        context_links=request.context_links,
        context_text=request.context_text,
    )

    return DataResponse(data=CallResponse.model_validate(call))


@router.get("", response_model=ListResponse[CallListItem])
async def list_calls(
    status: Optional[CallStatus] = None,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's calls, newest first"""
    query = select(Call).where(Call.user_id == current_user.id)

    if status:
        query = query.where(Call.status == status)

    query = query.order_by(Call.created_at.desc()).options(selectinload(Call.expert))

    result = await db.execute(query)
    calls = [CallListItem.model_validate(call) for call in result.scalars().all()]

    return ListResponse(count=len(calls), data=calls)


@router.get("/{call_id}", response_model=DataResponse[CallResponse])
async def get_call(
    call_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get call by ID"""
    call = await get_owned_call(call_id, current_user, db)
    return DataResponse(data=CallResponse.model_validate(call))


@router.get("/{call_id}/transcript", response_model=DataResponse[TranscriptData])
async def get_call_transcript(
    call_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get call transcript"""
    call = await get_owned_call(call_id, current_user, db)

    if not call.transcript:
        raise HTTPException(status_code=404, detail="Transcript not available for this call")

    return DataResponse(data=TranscriptData(call_id=call.id, transcript=call.transcript))


@router.get("/{call_id}/recording", response_model=DataResponse[RecordingData])
async def get_call_recording(
    call_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get call recording URL"""
    call = await get_owned_call(call_id, current_user, db)

    if not call.recording_url:
        raise HTTPException(status_code=404, detail="Recording not available for this call")

    return DataResponse(data=RecordingData(call_id=call.id, recording_url=call.recording_url))


@router.post("/{call_id}/end", response_model=DataResponse[CallResponse])
async def end_call(
    call_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: CallOrchestrator = Depends(get_orchestrator),
):
    """End an in-flight call"""
    await get_owned_call(call_id, current_user, db)

    try:
        record = await orchestrator.end_call(call_id)
    except CallNotFoundError:
        raise HTTPException(status_code=404, detail="Call not found")
    except CallAlreadyFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return DataResponse(data=CallResponse.model_validate(record))


@router.post("/{call_id}/retry", response_model=DataResponse[CallResponse], status_code=201)
async def retry_call(
    call_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: CallOrchestrator = Depends(get_orchestrator),
):
    """Start a fresh call with the goal, expert and context of a finished one"""
    previous = await get_owned_call(call_id, current_user, db)

    if previous.status not in RETRYABLE_STATUSES:
        raise HTTPException(
            status_code=409,
            detail=f"Only failed or cancelled calls can be retried (call is {previous.status.value})",
        )

    if previous.expert_id is None:
        raise HTTPException(status_code=404, detail="Expert not found")

    call = await create_pending_call(
        db,
        orchestrator,
        current_user,
        expert_id=previous.expert_id,
        goal=previous.goal,
        context_links=list(previous.context_links or []),
        context_text=previous.context_text,
    )

    logger.info("Call retried", previous_call_id=str(call_id), call_id=str(call.id))
    return DataResponse(data=CallResponse.model_validate(call))
