"""
User-Meetings API - join, leave, participants and membership statistics.
"""
from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.exceptions import CapacityExceeded, KnowledgeConnectError
from app.db.session import get_db
from app.middleware.prometheus import meeting_joins_total
from app.models.user import User
from app.schemas.meeting import ParticipantOut
from app.schemas.membership import (
    BulkDeleteOut,
    LeaveRequest,
    MappingOut,
    MeetingStatsOut,
    ParticipantCountOut,
)
from app.services import membership

router = APIRouter(prefix="/user-meetings", tags=["user-meetings"])


@router.post("/join/{meeting_id}", response_model=MappingOut, status_code=status.HTTP_201_CREATED)
async def join_meeting(
    meeting_id: int,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        mapping, created = await membership.join(db, meeting_id, current_user.id)
    except CapacityExceeded:
        meeting_joins_total.labels(result="full").inc()
        raise
    except KnowledgeConnectError:
        meeting_joins_total.labels(result="rejected").inc()
        raise

    meeting_joins_total.labels(result="joined" if created else "rejoined").inc()
    if not created:
        response.status_code = status.HTTP_200_OK
    return mapping


@router.patch("/leave/{meeting_id}", response_model=MappingOut)
async def leave_meeting(
    meeting_id: int,
    payload: LeaveRequest | None = Body(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payload = payload or LeaveRequest()
    feedback = payload.feedback.model_dump(exclude_none=True) if payload.feedback else None
    return await membership.leave(
        db,
        meeting_id,
        current_user.id,
        status=payload.status,
        notes=payload.notes,
        feedback=feedback,
    )


@router.get("/user", response_model=list[MappingOut])
async def get_user_meetings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await membership.get_user_mappings(db, current_user.id)


@router.get("/meeting/{meeting_id}", response_model=list[ParticipantOut])
async def get_meeting_users(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await membership.get_meeting_participants(db, meeting_id)


@router.delete("/meeting/{meeting_id}/all", response_model=BulkDeleteOut)
async def delete_all_mappings(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = await membership.delete_all_mappings(db, meeting_id, current_user.id)
    return {"message": "All mappings deleted successfully", "deleted_count": deleted}


@router.get("/meetings/{meeting_id}/stats", response_model=MeetingStatsOut)
async def get_meeting_stats(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await membership.get_stats(db, meeting_id)


@router.get("/meetings/{meeting_id}/count", response_model=ParticipantCountOut)
async def get_participant_count(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"count": await membership.count_participants(db, meeting_id)}
