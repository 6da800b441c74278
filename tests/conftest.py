import os
import uuid

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_knowledgeconnect.db")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
if os.path.exists("test_knowledgeconnect.db"):
    os.remove("test_knowledgeconnect.db")

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import engine  # noqa: E402

Base.metadata.create_all(bind=engine)

PASSWORD = "testpassword123"


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Factory: register a fresh user and return (user, auth headers)."""

    def _register(name: str = "Student"):
        email = f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:8]}@example.com"
        response = client.post(
            "/api/users/register",
            json={"full_name": name, "email": email, "password": PASSWORD, "institute_name": "KC Institute"},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest.fixture
def make_topic(client):
    def _make(headers, title: str = "Distributed Systems"):
        response = client.post(
            "/api/topics",
            json={"title": title, "description": "Reading group", "category": "Computer Science", "tags": ["cs"]},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_meeting(client, make_topic):
    def _make(headers, capacity: int = 10, topic_id: int | None = None, **overrides):
        if topic_id is None:
            topic_id = make_topic(headers)["id"]
        payload = {
            "title": "Consensus protocols",
            "subtitle": "Raft vs Paxos",
            "description": "Walk through the Raft paper",
            "topic_id": topic_id,
            "scheduled_time": "2030-01-31T10:00:00Z",
            "duration": 60,
            "location": "Library room 2",
            "capacity": capacity,
            "mode": "offline",
        }
        payload.update(overrides)
        response = client.post("/api/meetings", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
