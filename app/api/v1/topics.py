"""
Topics API - discussion subjects that meetings hang off.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.topic import TopicCreate, TopicOut, TopicUpdate
from app.services import topics as topic_service

router = APIRouter(prefix="/topics", tags=["topics"])


@router.get("", response_model=list[TopicOut])
async def list_topics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.list_topics(db)


@router.get("/user", response_model=list[TopicOut])
async def list_user_topics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.list_topics(db, user_id=current_user.id)


@router.get("/{topic_id}", response_model=TopicOut)
async def get_topic(
    topic_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.get_topic(db, topic_id)


@router.post("", response_model=TopicOut, status_code=status.HTTP_201_CREATED)
async def create_topic(
    payload: TopicCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.create_topic(db, current_user.id, payload)


@router.patch("/{topic_id}", response_model=TopicOut)
async def update_topic(
    topic_id: int,
    payload: TopicUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.update_topic(db, topic_id, current_user.id, payload)


@router.delete("/{topic_id}")
async def delete_topic(
    topic_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.delete_topic(db, topic_id, current_user.id)


@router.post("/{topic_id}/join", response_model=TopicOut)
async def join_topic(
    topic_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await topic_service.join_topic(db, topic_id, current_user.id)
