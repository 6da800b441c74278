"""
Topic Service - topic CRUD and append-only self-join.
"""
import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import AlreadyJoined, AuthorizationError, NotFoundError
from app.core.security import sanitize_input
from app.models.topic import Topic, TopicParticipant
from app.schemas.topic import TopicCreate, TopicUpdate
from app.services import meetings as meeting_service

logger = logging.getLogger("knowledgeconnect.topics")


def _display_options():
    return (selectinload(Topic.created_by), selectinload(Topic.participants))


async def get_topic(db: AsyncSession, topic_id: int) -> Topic:
    result = await db.execute(
        select(Topic)
        .options(*_display_options())
        .where(Topic.id == topic_id)
        .execution_options(populate_existing=True)
    )
    topic = result.scalar_one_or_none()
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


async def list_topics(db: AsyncSession, user_id: int | None = None) -> list[Topic]:
    """All topics, newest first; restricted to ``user_id``'s when given."""
    stmt = select(Topic).options(*_display_options()).order_by(Topic.created_at.desc(), Topic.id.desc())
    if user_id is not None:
        joined = select(TopicParticipant.topic_id).where(TopicParticipant.user_id == user_id)
        stmt = stmt.where(or_(Topic.created_by_id == user_id, Topic.id.in_(joined)))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_topic(db: AsyncSession, creator_id: int, payload: TopicCreate) -> Topic:
    topic = Topic(
        title=sanitize_input(payload.title),
        description=sanitize_input(payload.description),
        category=sanitize_input(payload.category),
        tags=[sanitize_input(t) for t in payload.tags],
        created_by_id=creator_id,
    )
    try:
        db.add(topic)
        await db.flush()
        db.add(TopicParticipant(topic_id=topic.id, user_id=creator_id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Created topic %d by user %d", topic.id, creator_id)
    return await get_topic(db, topic.id)


async def _get_owned(db: AsyncSession, topic_id: int, user_id: int, action: str) -> Topic:
    topic = await get_topic(db, topic_id)
    if topic.created_by_id != user_id:
        raise AuthorizationError(f"Not authorized to {action} this topic")
    return topic


async def update_topic(db: AsyncSession, topic_id: int, user_id: int, patch: TopicUpdate) -> Topic:
    topic = await _get_owned(db, topic_id, user_id, "update")
    updates = patch.model_dump(exclude_none=True)
    for key, value in updates.items():
        if key == "tags":
            value = [sanitize_input(t) for t in value]
        else:
            value = sanitize_input(value)
        setattr(topic, key, value)
    await db.commit()
    return await get_topic(db, topic_id)


async def delete_topic(db: AsyncSession, topic_id: int, user_id: int) -> dict:
    """Delete a topic together with its meetings and their mappings."""
    topic = await _get_owned(db, topic_id, user_id, "delete")
    snapshot = {"message": "Topic deleted successfully", "id": topic.id, "title": topic.title}
    try:
        removed = await meeting_service.delete_topic_meetings(db, topic_id)
        await db.execute(delete(TopicParticipant).where(TopicParticipant.topic_id == topic_id))
        await db.delete(topic)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Deleted topic %d and %d meetings", topic_id, removed)
    return snapshot


async def join_topic(db: AsyncSession, topic_id: int, user_id: int) -> Topic:
    topic = await get_topic(db, topic_id)
    if any(p.id == user_id for p in topic.participants):
        raise AlreadyJoined("Already joined this topic")
    try:
        db.add(TopicParticipant(topic_id=topic_id, user_id=user_id))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AlreadyJoined("Already joined this topic") from exc
    except Exception:
        await db.rollback()
        raise
    return await get_topic(db, topic_id)
