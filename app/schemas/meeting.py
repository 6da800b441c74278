"""
Meeting Schemas - Pydantic models for request/response validation.
"""
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.auth import UserBrief
from app.schemas.topic import TopicBrief

MeetingStatus = Literal["scheduled", "in-progress", "completed", "cancelled"]
MeetingMode = Literal["online", "offline"]


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class MeetingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str = Field(min_length=1)
    topic_id: int = Field(gt=0)
    scheduled_time: datetime
    duration: int = Field(gt=0, description="Minutes")
    location: str = Field(min_length=1, max_length=255)
    meeting_link: str | None = Field(default=None, max_length=512)
    capacity: int = Field(gt=0)
    mode: MeetingMode
    status: MeetingStatus = "scheduled"

    @field_validator("scheduled_time")
    @classmethod
    def normalize_scheduled_time(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class MeetingUpdate(BaseModel):
    """Fields an organizer may change. Anything else is rejected."""
    title: str | None = Field(default=None, min_length=1, max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    scheduled_time: datetime | None = None
    duration: int | None = Field(default=None, gt=0)
    location: str | None = Field(default=None, min_length=1, max_length=255)
    meeting_link: str | None = Field(default=None, max_length=512)
    status: MeetingStatus | None = None
    capacity: int | None = Field(default=None, gt=0)
    mode: MeetingMode | None = None

    # Only subtitle and meeting_link may be cleared with an explicit null
    @field_validator(
        "title", "description", "scheduled_time", "duration", "location", "status", "capacity", "mode",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value

    @field_validator("scheduled_time")
    @classmethod
    def normalize_scheduled_time(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value)

    class Config:
        extra = "forbid"


class MeetingStatusUpdate(BaseModel):
    status: MeetingStatus


class MeetingSummaryOut(BaseModel):
    id: int
    title: str
    subtitle: str | None = None
    description: str
    topic_id: int
    topic: TopicBrief | None = None
    organizer_id: int
    organizer: UserBrief | None = None
    scheduled_time: datetime
    duration: int
    location: str
    meeting_link: str | None = None
    capacity: int
    mode: MeetingMode
    status: MeetingStatus
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MeetingOut(MeetingSummaryOut):
    # Computed by the service layer
    participant_count: int = 0


class ParticipantOut(BaseModel):
    id: int
    user_id: int
    user: UserBrief | None = None
    role: str
    status: str
    joined_at: datetime

    class Config:
        from_attributes = True


class MeetingDetailOut(MeetingOut):
    participants: list[ParticipantOut] = []
