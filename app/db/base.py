# Import all models so Base.metadata is fully populated before create_all.
from app.db.base_class import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.topic import Topic, TopicParticipant  # noqa: F401
from app.models.meeting import Meeting  # noqa: F401
from app.models.user_meeting_mapping import UserMeetingMapping  # noqa: F401
