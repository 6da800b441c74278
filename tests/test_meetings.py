from fastapi.testclient import TestClient

BASE_PAYLOAD = {
    "title": "Consensus protocols",
    "description": "Walk through the Raft paper",
    "scheduled_time": "2030-01-31T10:00:00Z",
    "duration": 60,
    "capacity": 5,
    "mode": "offline",
}


def test_create_meeting_adds_organizer_mapping(client: TestClient, register_user, make_meeting):
    organizer, headers = register_user("Organizer")
    meeting = make_meeting(headers, capacity=5)

    assert meeting["organizer_id"] == organizer["id"]
    assert meeting["organizer"]["full_name"] == "Organizer"
    assert meeting["status"] == "scheduled"
    assert meeting["participant_count"] == 1
    assert meeting["scheduled_time"].startswith("2030-01-31T10:00:00")

    participants = client.get(f"/api/user-meetings/meeting/{meeting['id']}", headers=headers).json()
    assert len(participants) == 1
    assert participants[0]["user_id"] == organizer["id"]
    assert participants[0]["role"] == "organizer"
    assert participants[0]["status"] == "accepted"

    stats = client.get(f"/api/user-meetings/meetings/{meeting['id']}/stats", headers=headers).json()
    assert stats["total"] == 1


def test_create_meeting_missing_field(client: TestClient, register_user, make_topic):
    _, headers = register_user("Organizer")
    topic = make_topic(headers)

    response = client.post("/api/meetings", json={**BASE_PAYLOAD, "topic_id": topic["id"]}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "location is required"}


def test_create_meeting_bad_topic(client: TestClient, register_user):
    _, headers = register_user("Organizer")
    payload = {**BASE_PAYLOAD, "location": "Room 1"}

    malformed = client.post("/api/meetings", json={**payload, "topic_id": "abc"}, headers=headers)
    assert malformed.status_code == 400

    missing = client.post("/api/meetings", json={**payload, "topic_id": 999999}, headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Topic not found"}


def test_create_meeting_requires_auth(client: TestClient):
    response = client.post("/api/meetings", json=BASE_PAYLOAD)
    assert response.status_code == 401


def test_create_meeting_strips_markup(client: TestClient, register_user, make_meeting):
    _, headers = register_user("Organizer")
    meeting = make_meeting(headers, title="<script>alert(1)</script>Raft")
    assert "<script>" not in meeting["title"]
    assert meeting["title"].endswith("Raft")


def test_list_and_detail(client: TestClient, register_user, make_topic, make_meeting):
    _, org_headers = register_user("Organizer")
    guest, guest_headers = register_user("Guest")
    topic = make_topic(org_headers, "Databases")
    first = make_meeting(org_headers, topic_id=topic["id"], scheduled_time="2030-03-01T09:00:00Z")
    second = make_meeting(org_headers, topic_id=topic["id"], scheduled_time="2030-02-01T09:00:00Z")
    client.post(f"/api/user-meetings/join/{first['id']}", headers=guest_headers)

    listed = client.get("/api/meetings", params={"topic_id": topic["id"]}, headers=guest_headers)
    assert listed.status_code == 200
    meetings = listed.json()
    assert [m["id"] for m in meetings] == [second["id"], first["id"]]
    assert [m["participant_count"] for m in meetings] == [1, 2]

    paged = client.get("/api/meetings", params={"topic_id": topic["id"], "skip": 1, "limit": 1}, headers=guest_headers)
    assert [m["id"] for m in paged.json()] == [first["id"]]

    detail = client.get(f"/api/meetings/{first['id']}", headers=guest_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["participant_count"] == 2
    assert body["topic"]["title"] == "Databases"
    assert guest["id"] in [p["user_id"] for p in body["participants"]]


def test_get_missing_meeting(client: TestClient, register_user):
    _, headers = register_user("Reader")
    response = client.get("/api/meetings/999999", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Meeting not found"}


def test_organizer_updates_meeting(client: TestClient, register_user, make_meeting):
    _, headers = register_user("Organizer")
    meeting = make_meeting(headers)

    response = client.put(
        f"/api/meetings/{meeting['id']}",
        json={"title": "Raft deep dive", "capacity": 12, "mode": "online", "meeting_link": "https://meet.example.com/raft"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Raft deep dive"
    assert body["capacity"] == 12
    assert body["mode"] == "online"
    assert body["description"] == meeting["description"]


def test_unknown_update_field_rejected(client: TestClient, register_user, make_meeting):
    _, org_headers = register_user("Organizer")
    _, other_headers = register_user("Other")
    meeting = make_meeting(org_headers)

    for headers in (org_headers, other_headers):
        response = client.put(f"/api/meetings/{meeting['id']}", json={"foo": "bar"}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid updates!"}


def test_non_organizer_cannot_modify(client: TestClient, register_user, make_meeting):
    _, org_headers = register_user("Organizer")
    _, other_headers = register_user("Intruder")
    meeting = make_meeting(org_headers)
    url = f"/api/meetings/{meeting['id']}"

    update = client.put(url, json={"title": "Hijacked"}, headers=other_headers)
    assert update.status_code == 403
    assert update.json() == {"error": "Only the meeting organizer can update this meeting"}

    status = client.patch(f"{url}/status", json={"status": "cancelled"}, headers=other_headers)
    assert status.status_code == 403

    delete = client.delete(url, headers=other_headers)
    assert delete.status_code == 403

    assert client.get(url, headers=org_headers).json()["title"] == "Consensus protocols"


def test_capacity_cannot_drop_below_accepted(client: TestClient, register_user, make_meeting):
    _, org_headers = register_user("Organizer")
    _, first = register_user("First")
    _, second = register_user("Second")
    meeting = make_meeting(org_headers, capacity=5)
    for headers in (first, second):
        client.post(f"/api/user-meetings/join/{meeting['id']}", headers=headers)

    response = client.put(f"/api/meetings/{meeting['id']}", json={"capacity": 2}, headers=org_headers)
    assert response.status_code == 400
    assert client.get(f"/api/meetings/{meeting['id']}", headers=org_headers).json()["capacity"] == 5

    response = client.put(f"/api/meetings/{meeting['id']}", json={"capacity": 3}, headers=org_headers)
    assert response.status_code == 200
    assert response.json()["capacity"] == 3


def test_update_status(client: TestClient, register_user, make_meeting):
    _, headers = register_user("Organizer")
    meeting = make_meeting(headers)
    url = f"/api/meetings/{meeting['id']}/status"

    response = client.patch(url, json={"status": "in-progress"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "in-progress"

    invalid = client.patch(url, json={"status": "postponed"}, headers=headers)
    assert invalid.status_code == 400


def test_delete_meeting_removes_mappings(client: TestClient, register_user, make_meeting):
    _, org_headers = register_user("Organizer")
    _, guest_headers = register_user("Guest")
    meeting = make_meeting(org_headers)
    client.post(f"/api/user-meetings/join/{meeting['id']}", headers=guest_headers)

    response = client.delete(f"/api/meetings/{meeting['id']}", headers=org_headers)
    assert response.status_code == 200
    assert response.json()["id"] == meeting["id"]

    assert client.get(f"/api/meetings/{meeting['id']}", headers=org_headers).status_code == 404
    assert client.get(f"/api/user-meetings/meeting/{meeting['id']}", headers=org_headers).json() == []
    count = client.get(f"/api/user-meetings/meetings/{meeting['id']}/count", headers=org_headers)
    assert count.json() == {"count": 0}
    mine = client.get("/api/user-meetings/user", headers=guest_headers).json()
    assert meeting["id"] not in [m["meeting_id"] for m in mine]


def test_update_clears_optional_fields(client: TestClient, register_user, make_meeting):
    _, headers = register_user("Organizer")
    meeting = make_meeting(headers, meeting_link="https://meet.example.com/raft")
    assert meeting["meeting_link"] == "https://meet.example.com/raft"

    response = client.put(
        f"/api/meetings/{meeting['id']}", json={"meeting_link": None, "subtitle": None}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["meeting_link"] is None
    assert response.json()["subtitle"] is None
    assert response.json()["title"] == meeting["title"]


def test_update_rejects_null_required_fields(client: TestClient, register_user, make_meeting):
    _, headers = register_user("Organizer")
    meeting = make_meeting(headers)
    url = f"/api/meetings/{meeting['id']}"

    for field in ("title", "capacity", "scheduled_time", "mode"):
        response = client.put(url, json={field: None}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"].startswith(f"{field}:")

    current = client.get(url, headers=headers).json()
    assert current["title"] == meeting["title"]
    assert current["capacity"] == meeting["capacity"]
