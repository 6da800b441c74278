from app.db.base_class import Base
from app.models.user import User
from app.models.topic import Topic, TopicParticipant
from app.models.meeting import Meeting
from app.models.user_meeting_mapping import UserMeetingMapping

__all__ = [
    "Base",
    "User",
    "Topic",
    "TopicParticipant",
    "Meeting",
    "UserMeetingMapping",
]
