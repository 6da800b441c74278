from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base, one_of

MAPPING_STATUSES = ("pending", "accepted", "rejected", "left")
MAPPING_ROLES = ("participant", "organizer")


class UserMeetingMapping(Base):
    """Membership of one user in one meeting.

    Rows are written only through ``app.services.membership``; the capacity
    check there relies on being the single writer.
    """
    __tablename__ = "user_meeting_mappings"
    __table_args__ = (
        UniqueConstraint("user_id", "meeting_id", name="uq_user_meeting"),
        CheckConstraint(
            "feedback_rating IS NULL OR (feedback_rating >= 1 AND feedback_rating <= 5)",
            name="ck_feedback_rating_range",
        ),
        one_of("status", MAPPING_STATUSES, name="ck_mapping_status"),
        one_of("role", MAPPING_ROLES, name="ck_mapping_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    meeting_id: Mapped[int] = mapped_column(ForeignKey("meetings.id", ondelete="CASCADE"), index=True, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="accepted", index=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="participant", nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    feedback_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback_comment: Mapped[str] = mapped_column(Text, default="", nullable=False)
    feedback_submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user = relationship("User", back_populates="meeting_mappings")
    meeting = relationship("Meeting", back_populates="mappings")

    @property
    def feedback(self) -> dict:
        return {
            "rating": self.feedback_rating,
            "comment": self.feedback_comment,
            "submitted_at": self.feedback_submitted_at,
        }
