from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

DEFAULT_AVATAR = "https://s3.amazonaws.com/37assets/svn/765-default-avatar.png"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Stored lower-cased so the unique index is case-insensitive in practice.
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    institute_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    qualification: Mapped[str | None] = mapped_column(String(255), nullable=True)
    course: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expertise: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    profile_picture: Mapped[str] = mapped_column(String(512), default=DEFAULT_AVATAR, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organized_meetings = relationship("Meeting", back_populates="organizer")
    meeting_mappings = relationship("UserMeetingMapping", back_populates="user")
