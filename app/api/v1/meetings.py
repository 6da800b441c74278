"""
Meetings API - create, list, detail, update, status and delete.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.meeting import (
    MeetingCreate,
    MeetingDetailOut,
    MeetingOut,
    MeetingStatusUpdate,
    MeetingSummaryOut,
    MeetingUpdate,
)
from app.services import meetings as meeting_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


# ── Create Meeting ────────────────────────────────────────
@router.post("", response_model=MeetingOut, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    payload: MeetingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.create_meeting(db, current_user.id, payload)


# ── List Meetings ─────────────────────────────────────────
@router.get("", response_model=list[MeetingOut])
async def list_meetings(
    topic_id: int | None = Query(default=None, gt=0),
    skip: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.list_meetings(db, topic_id=topic_id, skip=skip, limit=limit)


# ── Get Single Meeting (with participants) ────────────────
@router.get("/{meeting_id}", response_model=MeetingDetailOut)
async def get_meeting(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.get_meeting(db, meeting_id)


# ── Update Meeting ────────────────────────────────────────
@router.put("/{meeting_id}", response_model=MeetingOut)
async def update_meeting(
    meeting_id: int,
    payload: MeetingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.update_meeting(db, meeting_id, current_user.id, payload)


# ── Update Status ─────────────────────────────────────────
@router.patch("/{meeting_id}/status", response_model=MeetingOut)
async def update_meeting_status(
    meeting_id: int,
    payload: MeetingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.update_status(db, meeting_id, current_user.id, payload.status)


# ── Delete Meeting ────────────────────────────────────────
@router.delete("/{meeting_id}", response_model=MeetingSummaryOut)
async def delete_meeting(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await meeting_service.delete_meeting(db, meeting_id, current_user.id)
