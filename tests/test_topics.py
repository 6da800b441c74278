def test_create_and_fetch_topic(client, register_user, make_topic):
    creator, headers = register_user("Creator")
    topic = make_topic(headers, "Compilers")

    assert topic["title"] == "Compilers"
    assert topic["tags"] == ["cs"]
    assert topic["created_by_id"] == creator["id"]
    assert [p["id"] for p in topic["participants"]] == [creator["id"]]

    fetched = client.get(f"/api/topics/{topic['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == topic["id"]

    listed = client.get("/api/topics", headers=headers)
    assert topic["id"] in [t["id"] for t in listed.json()]


def test_create_topic_requires_category(client, register_user):
    _, headers = register_user("Creator")
    response = client.post("/api/topics", json={"title": "No category"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "category is required"}


def test_missing_topic(client, register_user):
    _, headers = register_user("Reader")
    response = client.get("/api/topics/999999", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Topic not found"}


def test_join_topic_once(client, register_user, make_topic):
    _, creator_headers = register_user("Creator")
    member, headers = register_user("Member")
    topic = make_topic(creator_headers)

    joined = client.post(f"/api/topics/{topic['id']}/join", headers=headers)
    assert joined.status_code == 200
    assert member["id"] in [p["id"] for p in joined.json()["participants"]]

    again = client.post(f"/api/topics/{topic['id']}/join", headers=headers)
    assert again.status_code == 400
    assert again.json() == {"error": "Already joined this topic"}

    creator_again = client.post(f"/api/topics/{topic['id']}/join", headers=creator_headers)
    assert creator_again.status_code == 400


def test_user_topics(client, register_user, make_topic):
    _, creator_headers = register_user("Creator")
    _, headers = register_user("Member")
    created = make_topic(headers, "Own topic")
    joined = make_topic(creator_headers, "Joined topic")
    unrelated = make_topic(creator_headers, "Unrelated topic")
    client.post(f"/api/topics/{joined['id']}/join", headers=headers)

    ids = [t["id"] for t in client.get("/api/topics/user", headers=headers).json()]
    assert created["id"] in ids
    assert joined["id"] in ids
    assert unrelated["id"] not in ids


def test_update_topic(client, register_user, make_topic):
    _, headers = register_user("Creator")
    _, other_headers = register_user("Other")
    topic = make_topic(headers)
    url = f"/api/topics/{topic['id']}"

    response = client.patch(url, json={"title": "Operating Systems", "tags": ["os", "<b>kernels</b>"]}, headers=headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Operating Systems"
    assert response.json()["tags"] == ["os", "kernels"]

    forbidden = client.patch(url, json={"title": "Mine now"}, headers=other_headers)
    assert forbidden.status_code == 403
    assert forbidden.json() == {"error": "Not authorized to update this topic"}

    unknown = client.patch(url, json={"created_by_id": 1}, headers=headers)
    assert unknown.status_code == 400
    assert unknown.json() == {"error": "Invalid updates!"}


def test_delete_topic_cascades_meetings(client, register_user, make_topic, make_meeting):
    _, headers = register_user("Creator")
    _, guest_headers = register_user("Guest")
    topic = make_topic(headers)
    meeting = make_meeting(headers, topic_id=topic["id"])
    client.post(f"/api/user-meetings/join/{meeting['id']}", headers=guest_headers)

    forbidden = client.delete(f"/api/topics/{topic['id']}", headers=guest_headers)
    assert forbidden.status_code == 403

    response = client.delete(f"/api/topics/{topic['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Topic deleted successfully", "id": topic["id"], "title": topic["title"]}

    assert client.get(f"/api/topics/{topic['id']}", headers=headers).status_code == 404
    assert client.get(f"/api/meetings/{meeting['id']}", headers=headers).status_code == 404
    assert client.get("/api/user-meetings/user", headers=guest_headers).json() == []
