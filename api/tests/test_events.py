import os


def _event(client, headers, **overrides):
    payload = {"title": "Crypto Day", "startDate": "2025-03-01T10:00:00Z", "location": "Delhi"}
    payload.update(overrides)
    return client.post("/api/events", json=payload, headers=headers)


def test_create_event_defaults(client, admin_headers):
    response = _event(client, admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["eventId"] == body["id"]
    assert body["status"] == "pending"
    assert body["source"] == "college"
    assert body["eventType"] == "conference"
    assert body["startDate"] == "2025-03-01T10:00:00"
    assert body["endDate"] == "2025-03-02T10:00:00"


def test_event_requires_title_and_start(client, admin_headers):
    assert client.post("/api/events", json={"title": "No date"}, headers=admin_headers).status_code == 400
    assert client.post("/api/events", json={"startDate": "2025-03-01"}, headers=admin_headers).status_code == 400


def test_end_before_start_is_rejected(client, admin_headers):
    response = _event(client, admin_headers, endDate="2025-02-01T10:00:00Z")
    assert response.status_code == 400


def test_event_image_data_uri(client, admin_headers, png_bytes, png_data_uri, uploads_dir):
    body = _event(client, admin_headers, imageUrl=png_data_uri).json()
    assert body["imageUrl"].startswith("/uploads/events/")
    with open(os.path.join(uploads_dir, "events", os.path.basename(body["imageUrl"])), "rb") as f:
        assert f.read() == png_bytes

    served = client.get(body["imageUrl"])
    assert served.status_code == 200
    assert served.content == png_bytes


def test_oversized_or_bad_image_leaves_nothing(client, admin_headers, uploads_dir):
    response = _event(client, admin_headers, imageUrl="data:image/png;base64,@@not-base64@@")
    assert response.status_code == 400
    assert client.get("/api/events").json() == []

    events_dir = os.path.join(uploads_dir, "events")
    leftovers = [name for name in os.listdir(events_dir) if name.endswith(".part")] if os.path.isdir(events_dir) else []
    assert leftovers == []


def test_approve_event(client, admin_headers):
    event = _event(client, admin_headers).json()
    response = client.post(f"/api/events/{event['id']}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"

    # Editing does not reset the approval
    updated = client.put(
        f"/api/events/{event['id']}",
        json={"title": "Crypto Day 2", "startDate": "2025-03-01T10:00:00Z"},
        headers=admin_headers,
    ).json()
    assert updated["status"] == "approved"
    assert updated["title"] == "Crypto Day 2"


def test_status_cannot_be_set_directly(client, admin_headers):
    event = _event(client, admin_headers, status="approved").json()
    assert event["status"] == "pending"


def test_approve_unknown_event(client, admin_headers):
    assert client.post("/api/events/999/approve", headers=admin_headers).status_code == 404


def test_regular_user_cannot_approve(client, admin_headers, regular_headers):
    event = _event(client, admin_headers).json()
    assert client.post(f"/api/events/{event['id']}/approve", headers=regular_headers).status_code == 403
    assert client.get(f"/api/events/{event['id']}").json()["status"] == "pending"


def test_event_filters(client, admin_headers):
    workshop = _event(client, admin_headers, title="ZK Workshop", eventType="workshop").json()
    _event(client, admin_headers, title="Lattice Conference", startDate="2025-01-01T09:00:00Z")
    client.post(f"/api/events/{workshop['id']}/approve", headers=admin_headers)

    titles = [event["title"] for event in client.get("/api/events").json()]
    assert titles == ["Lattice Conference", "ZK Workshop"]

    assert [e["title"] for e in client.get("/api/events?category=workshop").json()] == ["ZK Workshop"]
    assert [e["title"] for e in client.get("/api/events?status=pending").json()] == ["Lattice Conference"]
    assert [e["title"] for e in client.get("/api/events?search=lattice").json()] == ["Lattice Conference"]


def test_import_skips_duplicates(client, admin, admin_headers):
    first = client.post("/api/events/import?source=iacr", headers=admin_headers)
    assert first.status_code == 200
    assert first.json()["added"] == 4
    assert first.json()["skipped"] == 0

    second = client.post("/api/events/import?source=iacr", headers=admin_headers).json()
    assert second["added"] == 0
    assert second["skipped"] == 4

    events = client.get("/api/events?search=Eurocrypt").json()
    assert len(events) == 1
    assert events[0]["status"] == "approved"
    assert events[0]["source"] == "iacr"

    logs = client.get(f"/api/users/{admin.id}/audit-logs", headers=admin_headers).json()
    assert [log["action_type"] for log in logs].count("IMPORT") == 2


def test_import_all_sources(client, admin_headers):
    body = client.post("/api/events/import", headers=admin_headers).json()
    assert body["added"] == 9
    assert "message" in body


def test_import_unknown_source(client, admin_headers):
    response = client.post("/api/events/import?source=nowhere", headers=admin_headers)
    assert response.status_code == 400
    assert client.get("/api/events").json() == []


def test_shared_upload_survives_until_last_event(client, admin_headers, png_bytes):
    uploaded = client.post(
        "/api/upload?type=event",
        files={"image": ("banner.png", png_bytes, "image/png")},
        headers=admin_headers,
    ).json()
    first = _event(client, admin_headers, title="Day one", imageUrl=uploaded["url"]).json()
    second = _event(client, admin_headers, title="Day two", imageUrl=uploaded["url"]).json()
    assert first["imageUrl"] == second["imageUrl"] == uploaded["url"]

    assert client.delete(f"/api/events/{first['id']}", headers=admin_headers).status_code == 200
    assert client.get(uploaded["url"]).content == png_bytes

    # Moving the remaining event off the image releases it
    client.put(
        f"/api/events/{second['id']}",
        json={"title": "Day two", "startDate": "2025-03-01T10:00:00Z", "imageUrl": "https://example.org/new.png"},
        headers=admin_headers,
    )
    assert client.get(uploaded["url"]).status_code == 404


def test_image_shared_across_entities_is_kept(client, admin_headers, png_data_uri, png_bytes):
    professor = client.post(
        "/api/professors", json={"name": "Shafi Goldwasser", "profile_image": png_data_uri}, headers=admin_headers
    ).json()
    event = _event(client, admin_headers, imageUrl=professor["profile_image"]).json()

    assert client.delete(f"/api/professors/{professor['id']}", headers=admin_headers).status_code == 200
    assert client.get(event["imageUrl"]).content == png_bytes
