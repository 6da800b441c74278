"""
Membership Service
==================
Owns every write to ``user_meeting_mappings``: join, leave, bulk delete, and
the organizer/cascade hooks used by the meeting and topic services.

Join and leave-with-``accepted`` run the capacity check and the mapping write
in one transaction that holds the meeting's write lock, so two requests
racing for the last seat cannot both pass the check.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import (
    AlreadyJoined,
    AuthorizationError,
    CapacityExceeded,
    MappingNotFound,
    NotFoundError,
    ValidationError,
)
from app.models.meeting import Meeting
from app.models.user_meeting_mapping import MAPPING_STATUSES, UserMeetingMapping

logger = logging.getLogger("knowledgeconnect.membership")

ACCEPTED = "accepted"
LEFT = "left"
ORGANIZER = "organizer"
PARTICIPANT = "participant"


# ── Helpers ───────────────────────────────────────────────
def _resolved_options():
    """Load user and meeting (with organizer and topic) for display."""
    return (
        selectinload(UserMeetingMapping.user),
        selectinload(UserMeetingMapping.meeting).selectinload(Meeting.organizer),
        selectinload(UserMeetingMapping.meeting).selectinload(Meeting.topic),
    )


async def _lock_meeting(db: AsyncSession, meeting_id: int) -> Meeting:
    """Take the meeting's write lock for the rest of the current transaction.

    The self-assigning UPDATE row-locks the meeting on PostgreSQL and takes
    the database write lock on SQLite; concurrent callers block here until
    the holder commits or rolls back.
    """
    result = await db.execute(
        update(Meeting)
        .where(Meeting.id == meeting_id)
        .values(updated_at=Meeting.updated_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Meeting not found")
    return await db.get(Meeting, meeting_id, populate_existing=True)


async def _count_accepted(db: AsyncSession, meeting_id: int) -> int:
    result = await db.execute(
        select(func.count(UserMeetingMapping.id)).where(
            UserMeetingMapping.meeting_id == meeting_id,
            UserMeetingMapping.status == ACCEPTED,
        )
    )
    return result.scalar() or 0


async def _find_mapping(db: AsyncSession, meeting_id: int, user_id: int) -> UserMeetingMapping | None:
    result = await db.execute(
        select(UserMeetingMapping).where(
            UserMeetingMapping.meeting_id == meeting_id,
            UserMeetingMapping.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_resolved_mapping(db: AsyncSession, mapping_id: int) -> UserMeetingMapping:
    result = await db.execute(
        select(UserMeetingMapping)
        .options(*_resolved_options())
        .where(UserMeetingMapping.id == mapping_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ── Join / Leave ──────────────────────────────────────────
async def join(db: AsyncSession, meeting_id: int, user_id: int) -> tuple[UserMeetingMapping, bool]:
    """Accept ``user_id`` into the meeting.

    Returns ``(mapping, created)``; ``created`` is False on the re-join path
    where a ``left`` mapping is reactivated.
    """
    try:
        meeting = await _lock_meeting(db, meeting_id)

        accepted = await _count_accepted(db, meeting_id)
        if accepted >= meeting.capacity:
            raise CapacityExceeded()

        mapping = await _find_mapping(db, meeting_id, user_id)
        if mapping is not None:
            if mapping.status != LEFT:
                raise AlreadyJoined()
            mapping.status = ACCEPTED
            mapping.joined_at = datetime.utcnow()
            created = False
        else:
            mapping = UserMeetingMapping(
                user_id=user_id,
                meeting_id=meeting_id,
                status=ACCEPTED,
                role=ORGANIZER if meeting.organizer_id == user_id else PARTICIPANT,
                joined_at=datetime.utcnow(),
            )
            db.add(mapping)
            created = True

        await db.commit()
    except IntegrityError as exc:
        # uq_user_meeting: another request inserted the same pair first.
        await db.rollback()
        raise AlreadyJoined() from exc
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "User %d %s meeting %d (%d/%d)",
        user_id, "joined" if created else "re-joined", meeting_id, accepted + 1, meeting.capacity,
    )
    return await get_resolved_mapping(db, mapping.id), created


async def leave(
    db: AsyncSession,
    meeting_id: int,
    user_id: int,
    status: str | None = None,
    notes: str | None = None,
    feedback: dict | None = None,
) -> UserMeetingMapping:
    """Move the caller's mapping to ``status`` (``left`` by default).

    ``feedback`` is merged into the stored feedback; the submission time is
    stamped only when a rating is present.
    """
    new_status = status or LEFT
    try:
        meeting = await _lock_meeting(db, meeting_id) if new_status == ACCEPTED else None

        mapping = await _find_mapping(db, meeting_id, user_id)
        if mapping is None:
            raise MappingNotFound()

        if meeting is not None and mapping.status != ACCEPTED:
            if await _count_accepted(db, meeting_id) >= meeting.capacity:
                raise CapacityExceeded()

        mapping.status = new_status
        if notes:
            mapping.notes = notes
        if feedback:
            if feedback.get("comment") is not None:
                mapping.feedback_comment = feedback["comment"]
            if feedback.get("rating") is not None:
                mapping.feedback_rating = feedback["rating"]
                mapping.feedback_submitted_at = datetime.utcnow()

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("User %d set mapping for meeting %d to %s", user_id, meeting_id, new_status)
    return await get_resolved_mapping(db, mapping.id)


# ── Reads ─────────────────────────────────────────────────
async def get_user_mappings(db: AsyncSession, user_id: int) -> list[UserMeetingMapping]:
    result = await db.execute(
        select(UserMeetingMapping)
        .options(*_resolved_options())
        .where(UserMeetingMapping.user_id == user_id)
        .order_by(UserMeetingMapping.joined_at.desc(), UserMeetingMapping.id.desc())
    )
    return list(result.scalars().all())


async def get_meeting_participants(db: AsyncSession, meeting_id: int) -> list[UserMeetingMapping]:
    result = await db.execute(
        select(UserMeetingMapping)
        .options(selectinload(UserMeetingMapping.user))
        .where(
            UserMeetingMapping.meeting_id == meeting_id,
            UserMeetingMapping.status == ACCEPTED,
        )
        .order_by(UserMeetingMapping.joined_at, UserMeetingMapping.id)
    )
    return list(result.scalars().all())


async def count_participants(db: AsyncSession, meeting_id: int) -> int:
    return await _count_accepted(db, meeting_id)


async def get_stats(db: AsyncSession, meeting_id: int) -> dict[str, int]:
    result = await db.execute(
        select(UserMeetingMapping.status, func.count(UserMeetingMapping.id))
        .where(UserMeetingMapping.meeting_id == meeting_id)
        .group_by(UserMeetingMapping.status)
    )
    stats = {"total": 0, **{s: 0 for s in MAPPING_STATUSES}}
    for status, count in result.all():
        stats[status] = count
        stats["total"] += count
    return stats


# ── Organizer-only / cascade ──────────────────────────────
async def delete_all_mappings(db: AsyncSession, meeting_id: int, requester_id: int) -> int:
    meeting = await db.get(Meeting, meeting_id)
    if meeting is None:
        raise NotFoundError("Meeting not found")
    if meeting.organizer_id != requester_id:
        raise AuthorizationError("Only the meeting organizer can delete all mappings")

    try:
        deleted = await purge_meeting(db, meeting_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Deleted %d mappings for meeting %d", deleted, meeting_id)
    return deleted


def add_organizer(db: AsyncSession, meeting: Meeting) -> UserMeetingMapping:
    """Stage the organizer's mapping in the caller's transaction."""
    mapping = UserMeetingMapping(
        user_id=meeting.organizer_id,
        meeting_id=meeting.id,
        status=ACCEPTED,
        role=ORGANIZER,
        joined_at=datetime.utcnow(),
    )
    db.add(mapping)
    return mapping


async def purge_meeting(db: AsyncSession, meeting_id: int) -> int:
    """Delete every mapping of a meeting in the caller's transaction."""
    result = await db.execute(
        delete(UserMeetingMapping)
        .where(UserMeetingMapping.meeting_id == meeting_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def ensure_capacity_fits(db: AsyncSession, meeting_id: int, capacity: int) -> None:
    """Lock the meeting and refuse a capacity below its accepted count.

    Must run inside the caller's transaction; the lock is held until it ends.
    """
    await _lock_meeting(db, meeting_id)
    accepted = await _count_accepted(db, meeting_id)
    if capacity < accepted:
        raise ValidationError(
            f"Capacity cannot be lower than the {accepted} accepted participants"
        )
