"""
Meeting Service
===============
CRUD over meetings. Mapping rows are never touched here directly: the
organizer mapping and the cascade on delete go through
``app.services.membership`` inside this module's transactions.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import AuthorizationError, NotFoundError
from app.core.security import sanitize_input
from app.models.meeting import Meeting
from app.models.topic import Topic
from app.models.user_meeting_mapping import UserMeetingMapping
from app.schemas.meeting import MeetingCreate, MeetingSummaryOut, MeetingUpdate, ParticipantOut
from app.services import membership

logger = logging.getLogger("knowledgeconnect.meetings")

SANITIZED_FIELDS = {"title", "subtitle", "description", "location"}


# ── Helpers ───────────────────────────────────────────────
def _display_options():
    return (selectinload(Meeting.organizer), selectinload(Meeting.topic))


async def _get_resolved(db: AsyncSession, meeting_id: int) -> Meeting:
    result = await db.execute(
        select(Meeting)
        .options(*_display_options())
        .where(Meeting.id == meeting_id)
        .execution_options(populate_existing=True)
    )
    meeting = result.scalar_one_or_none()
    if meeting is None:
        raise NotFoundError("Meeting not found")
    return meeting


async def _get_owned(db: AsyncSession, meeting_id: int, organizer_id: int, action: str) -> Meeting:
    meeting = await _get_resolved(db, meeting_id)
    if meeting.organizer_id != organizer_id:
        raise AuthorizationError(f"Only the meeting organizer can {action} this meeting")
    return meeting


async def _enrich_meeting(db: AsyncSession, meeting: Meeting, include_participants: bool = False) -> dict:
    """Convert Meeting ORM to a response dict with computed fields."""
    data = MeetingSummaryOut.model_validate(meeting).model_dump()
    data["participant_count"] = await membership.count_participants(db, meeting.id)
    if include_participants:
        participants = await membership.get_meeting_participants(db, meeting.id)
        data["participants"] = [ParticipantOut.model_validate(p).model_dump() for p in participants]
    return data


# ── Create ────────────────────────────────────────────────
async def create_meeting(db: AsyncSession, organizer_id: int, payload: MeetingCreate) -> dict:
    if await db.get(Topic, payload.topic_id) is None:
        raise NotFoundError("Topic not found")

    fields = payload.model_dump()
    for key in SANITIZED_FIELDS:
        fields[key] = sanitize_input(fields[key])
    meeting = Meeting(organizer_id=organizer_id, **fields)

    try:
        db.add(meeting)
        await db.flush()
        membership.add_organizer(db, meeting)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Created meeting %d for topic %d by user %d", meeting.id, meeting.topic_id, organizer_id)
    meeting = await _get_resolved(db, meeting.id)
    return await _enrich_meeting(db, meeting)


# ── Read ──────────────────────────────────────────────────
async def list_meetings(
    db: AsyncSession,
    topic_id: int | None = None,
    skip: int = 0,
    limit: int | None = None,
) -> list[dict]:
    # Single query with a correlated count; no N+1
    participant_count = (
        select(func.count(UserMeetingMapping.id))
        .where(
            UserMeetingMapping.meeting_id == Meeting.id,
            UserMeetingMapping.status == membership.ACCEPTED,
        )
        .correlate(Meeting)
        .scalar_subquery()
    )
    stmt = select(Meeting, participant_count.label("participant_count")).options(*_display_options())
    if topic_id is not None:
        stmt = stmt.where(Meeting.topic_id == topic_id)
    stmt = stmt.order_by(Meeting.scheduled_time, Meeting.id).offset(skip)
    if limit is not None:
        stmt = stmt.limit(limit)

    rows = (await db.execute(stmt)).all()
    return [
        {**MeetingSummaryOut.model_validate(r.Meeting).model_dump(), "participant_count": r.participant_count or 0}
        for r in rows
    ]


async def get_meeting(db: AsyncSession, meeting_id: int) -> dict:
    meeting = await _get_resolved(db, meeting_id)
    return await _enrich_meeting(db, meeting, include_participants=True)


# ── Update ────────────────────────────────────────────────
async def update_meeting(db: AsyncSession, meeting_id: int, organizer_id: int, patch: MeetingUpdate) -> dict:
    meeting = await _get_owned(db, meeting_id, organizer_id, "update")

    updates = patch.model_dump(exclude_unset=True)
    try:
        if "capacity" in updates:
            await membership.ensure_capacity_fits(db, meeting_id, updates["capacity"])
        for key, value in updates.items():
            if key in SANITIZED_FIELDS:
                value = sanitize_input(value)
            setattr(meeting, key, value)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Updated meeting %d fields=%s", meeting_id, sorted(updates))
    meeting = await _get_resolved(db, meeting_id)
    return await _enrich_meeting(db, meeting)


async def update_status(db: AsyncSession, meeting_id: int, organizer_id: int, status: str) -> dict:
    meeting = await _get_owned(db, meeting_id, organizer_id, "change the status of")
    try:
        meeting.status = status
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Meeting %d status -> %s", meeting_id, status)
    meeting = await _get_resolved(db, meeting_id)
    return await _enrich_meeting(db, meeting)


# ── Delete ────────────────────────────────────────────────
async def delete_meeting(db: AsyncSession, meeting_id: int, organizer_id: int) -> dict:
    """Delete the meeting and all of its mappings in one transaction."""
    meeting = await _get_owned(db, meeting_id, organizer_id, "delete")
    snapshot = MeetingSummaryOut.model_validate(meeting).model_dump()

    try:
        deleted = await membership.purge_meeting(db, meeting_id)
        await db.delete(meeting)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Deleting meeting %d for user %d (%d mappings removed)", meeting_id, organizer_id, deleted)
    return snapshot


async def delete_topic_meetings(db: AsyncSession, topic_id: int) -> int:
    """Stage deletion of every meeting of a topic in the caller's transaction."""
    result = await db.execute(select(Meeting).where(Meeting.topic_id == topic_id))
    meetings = result.scalars().all()
    for meeting in meetings:
        await membership.purge_meeting(db, meeting.id)
        await db.delete(meeting)
    return len(meetings)
