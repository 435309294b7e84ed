"""Expert management API endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expertassist.database import get_db
from expertassist.models.expert import Expert, ExpertType
from expertassist.models.user import User
from expertassist.schemas.common import DataResponse, ListResponse
from expertassist.schemas.expert import ExpertCreate, ExpertUpdate, ExpertResponse
from expertassist.api.auth import get_current_active_user

router = APIRouter()


async def get_owned_expert(expert_id: UUID, user: User, db: AsyncSession) -> Expert:
    """Load an expert belonging to ``user`` or raise 404"""
    result = await db.execute(
        select(Expert).where(Expert.id == expert_id, Expert.user_id == user.id)
    )
    expert = result.scalar_one_or_none()

    if not expert:
        raise HTTPException(status_code=404, detail="Expert not found")

    return expert


@router.post("", response_model=DataResponse[ExpertResponse], status_code=201)
async def create_expert(
    expert_data: ExpertCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new expert"""
    expert = Expert(user_id=current_user.id, **expert_data.model_dump())
    db.add(expert)
    await db.commit()
    await db.refresh(expert)

    return DataResponse(data=ExpertResponse.model_validate(expert))


@router.get("", response_model=ListResponse[ExpertResponse])
async def list_experts(
    expert_type: Optional[ExpertType] = Query(None, alias="expertType"),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's experts"""
    query = select(Expert).where(Expert.user_id == current_user.id)

    if expert_type:
        query = query.where(Expert.expert_type == expert_type)

    result = await db.execute(query.order_by(Expert.name))
    experts = [ExpertResponse.model_validate(expert) for expert in result.scalars().all()]

    return ListResponse(count=len(experts), data=experts)


@router.get("/{expert_id}", response_model=DataResponse[ExpertResponse])
async def get_expert(
    expert_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get expert by ID"""
    expert = await get_owned_expert(expert_id, current_user, db)
    return DataResponse(data=ExpertResponse.model_validate(expert))


@router.put("/{expert_id}", response_model=DataResponse[ExpertResponse])
async def update_expert(
    expert_id: UUID,
    expert_data: ExpertUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Update expert"""
    expert = await get_owned_expert(expert_id, current_user, db)

    for field, value in expert_data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "phone_number", "expert_type"):
            raise HTTPException(status_code=400, detail=f"{field} cannot be empty")
        setattr(expert, field, value)

    await db.commit()
    await db.refresh(expert)

    return DataResponse(data=ExpertResponse.model_validate(expert))


@router.delete("/{expert_id}", response_model=DataResponse[dict])
async def delete_expert(
    expert_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete expert"""
    expert = await get_owned_expert(expert_id, current_user, db)

    await db.delete(expert)
    await db.commit()

    return DataResponse(data={})
