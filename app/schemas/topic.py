"""
Topic Schemas - Pydantic models for request/response validation.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.auth import UserBrief


class TopicCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    category: str = Field(min_length=1, max_length=100)
    tags: list[str] = Field(default_factory=list)


class TopicUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    tags: list[str] | None = None

    class Config:
        extra = "forbid"


class TopicBrief(BaseModel):
    id: int
    title: str
    category: str

    class Config:
        from_attributes = True


class TopicOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    category: str
    tags: list[str] = []
    created_by_id: int
    created_by: UserBrief | None = None
    participants: list[UserBrief] = []
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
