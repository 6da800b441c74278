"""
Seed a development database with three users, three topics and two meetings.

Usage:
    python -m scripts.seed

Rows go through the service layer, so organizer mappings and capacity rules
apply exactly as they do for API traffic. Running it again is a no-op once
the seed users exist.
"""
import asyncio
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.models.user import User
from app.schemas.meeting import MeetingCreate
from app.schemas.topic import TopicCreate
from app.services import meetings as meeting_service
from app.services import membership
from app.services import topics as topic_service

SEED_PASSWORD = "password123"

USERS = [
    {
        "full_name": "John Doe",
        "email": "john@example.com",
        "student_email": "john.student@university.edu",
        "institute_name": "University of Technology",
        "country": "United States",
        "location": "New York",
        "qualification": "Bachelor's Degree",
        "course": "Computer Science",
        "expertise": ["Programming", "Web Development", "Data Structures"],
        "bio": "Passionate about technology and education",
    },
    {
        "full_name": "Jane Smith",
        "email": "jane@example.com",
        "student_email": "jane.student@university.edu",
        "institute_name": "Tech Institute",
        "country": "Canada",
        "location": "Toronto",
        "qualification": "Master's Degree",
        "course": "Artificial Intelligence",
        "expertise": ["Machine Learning", "Deep Learning", "Python"],
        "bio": "AI researcher and educator",
    },
    {
        "full_name": "Mike Johnson",
        "email": "mike@example.com",
        "student_email": "mike.student@university.edu",
        "institute_name": "Science University",
        "country": "United Kingdom",
        "location": "London",
        "qualification": "PhD",
        "course": "Physics",
        "expertise": ["Quantum Mechanics", "Mathematics", "Research"],
        "bio": "Physics professor and researcher",
    },
]

# (creator index, joiner index, payload)
TOPICS = [
    (0, 1, {
        "title": "Introduction to React",
        "description": "Learn the fundamentals of React and build modern web applications",
        "category": "technology",
        "tags": ["react", "javascript", "web development"],
    }),
    (1, 2, {
        "title": "Machine Learning Basics",
        "description": "Understanding the core concepts of machine learning and its applications",
        "category": "technology",
        "tags": ["machine learning", "python", "data science"],
    }),
    (2, 0, {
        "title": "Quantum Computing",
        "description": "Exploring the principles and potential of quantum computing",
        "category": "science",
        "tags": ["quantum", "physics", "computing"],
    }),
]


async def seed(db: AsyncSession) -> dict:
    """Create the seed data unless it is already present."""
    existing = await db.execute(select(User.id).where(User.email == USERS[0]["email"]))
    if existing.first() is not None:
        return {"created": False}

    users = [User(password_hash=hash_password(SEED_PASSWORD), **fields) for fields in USERS]
    db.add_all(users)
    await db.commit()

    topics = []
    for creator, joiner, fields in TOPICS:
        topic = await topic_service.create_topic(db, users[creator].id, TopicCreate(**fields))
        await topic_service.join_topic(db, topic.id, users[joiner].id)
        topics.append(topic)

    now = datetime.utcnow().replace(microsecond=0)
    react = await meeting_service.create_meeting(db, users[0].id, MeetingCreate(
        title="React study session",
        description="Components, props and state",
        topic_id=topics[0].id,
        scheduled_time=now + timedelta(days=7),
        duration=60,
        location="Online",
        meeting_link="https://meet.google.com/abc-xyz-123",
        capacity=10,
        mode="online",
    ))
    ml = await meeting_service.create_meeting(db, users[1].id, MeetingCreate(
        title="Gradient descent walkthrough",
        description="Loss surfaces and optimizers",
        topic_id=topics[1].id,
        scheduled_time=now + timedelta(days=3),
        duration=90,
        location="Online",
        meeting_link="https://meet.google.com/def-uvw-456",
        capacity=10,
        mode="online",
    ))

    # Jane is invited to the React session but has not confirmed yet
    await membership.join(db, react["id"], users[1].id)
    await membership.leave(db, react["id"], users[1].id, status="pending")
    await membership.join(db, ml["id"], users[2].id)

    return {
        "created": True,
        "users": len(users),
        "topics": len(topics),
        "meetings": [react["id"], ml["id"]],
    }


async def main() -> None:
    Base.metadata.create_all(bind=engine)
    async with AsyncSessionLocal() as db:
        result = await seed(db)
    if result["created"]:
        print(f"Database seeded: {result['users']} users, {result['topics']} topics, meetings {result['meetings']}")
    else:
        print("Seed users already present, nothing to do.")


if __name__ == "__main__":
    asyncio.run(main())
