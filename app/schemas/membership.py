"""
Membership Schemas - join/leave payloads and mapping responses.
"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.auth import UserBrief
from app.schemas.meeting import MeetingSummaryOut

MappingStatus = Literal["pending", "accepted", "rejected", "left"]
MappingRole = Literal["participant", "organizer"]


class FeedbackIn(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class FeedbackOut(BaseModel):
    rating: int | None = None
    comment: str = ""
    submitted_at: datetime | None = None


class LeaveRequest(BaseModel):
    status: MappingStatus | None = None
    notes: str | None = Field(default=None, max_length=5000)
    feedback: FeedbackIn | None = None

    class Config:
        extra = "forbid"


class MappingOut(BaseModel):
    id: int
    user_id: int
    meeting_id: int
    status: MappingStatus
    role: MappingRole
    joined_at: datetime
    notes: str = ""
    feedback: FeedbackOut
    user: UserBrief | None = None
    meeting: MeetingSummaryOut | None = None

    class Config:
        from_attributes = True


class MeetingStatsOut(BaseModel):
    total: int = 0
    accepted: int = 0
    pending: int = 0
    rejected: int = 0
    left: int = 0


class ParticipantCountOut(BaseModel):
    count: int


class BulkDeleteOut(BaseModel):
    message: str
    deleted_count: int
