from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base, one_of

MEETING_STATUSES = ("scheduled", "in-progress", "completed", "cancelled")
MEETING_MODES = ("online", "offline")


class Meeting(Base):
    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_meeting_capacity_positive"),
        CheckConstraint("duration >= 1", name="ck_meeting_duration_positive"),
        one_of("status", MEETING_STATUSES, name="ck_meeting_status"),
        one_of("mode", MEETING_MODES, name="ck_meeting_mode"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id"), index=True, nullable=False)
    organizer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    scheduled_time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    meeting_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    mode: Mapped[str] = mapped_column(String(20), default="online", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organizer = relationship("User", back_populates="organized_meetings")
    topic = relationship("Topic", back_populates="meetings")
    mappings = relationship("UserMeetingMapping", back_populates="meeting", passive_deletes=True)
