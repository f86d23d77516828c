def test_type_is_required_and_checked(client, admin_headers):
    assert client.post("/api/resources", json={"title": "No type"}, headers=admin_headers).status_code == 400

    response = client.post("/api/resources", json={"title": "Odd", "type": "podcast"}, headers=admin_headers)
    assert response.status_code == 400
    assert "type must be one of" in response.json()["message"]


def test_note_keeps_only_content(client, admin_headers):
    response = client.post(
        "/api/resources",
        json={
            "title": "Notes on AES",
            "type": "note",
            "content": "SubBytes, ShiftRows, MixColumns",
            "url": "https://example.org/aes",
            "file_path": "/uploads/resources/old.pdf",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["resourceId"] == body["id"]
    assert body["content"] == "SubBytes, ShiftRows, MixColumns"
    assert body["url"] is None
    assert body["file_path"] is None


def test_link_resource_keeps_url(client, admin_headers):
    body = client.post(
        "/api/resources",
        json={"title": "Handbook", "type": "book", "url": "https://cacr.uwaterloo.ca/hac/", "tags": ["classic"]},
        headers=admin_headers,
    ).json()
    assert body["url"] == "https://cacr.uwaterloo.ca/hac/"
    assert body["file_path"] is None
    assert body["tags"] == ["classic"]


def test_uploaded_file_replaces_url(client, admin_headers):
    response = client.post(
        "/api/resources",
        data={"title": "Lecture slides", "type": "pdf", "url": "https://example.org/slides"},
        files={"file": ("slides.pdf", b"%PDF-1.4 slides", "application/pdf")},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["file_path"].startswith("/uploads/resources/")
    assert body["url"] is None
    assert client.get(body["file_path"]).content == b"%PDF-1.4 slides"


def test_video_resource_requires_video_content_type(client, admin_headers):
    rejected = client.post(
        "/api/resources",
        data={"title": "Talk", "type": "video"},
        files={"file": ("talk.mp4", b"not really a video", "application/pdf")},
        headers=admin_headers,
    )
    assert rejected.status_code == 400

    accepted = client.post(
        "/api/resources",
        data={"title": "Talk", "type": "video"},
        files={"file": ("talk.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        headers=admin_headers,
    )
    assert accepted.status_code == 201
    assert accepted.json()["file_path"].endswith(".mp4")


def test_filter_by_type(client, admin_headers):
    client.post("/api/resources", json={"title": "Paper", "type": "article", "content": "..."}, headers=admin_headers)
    client.post("/api/resources", json={"title": "Deck", "type": "ppt"}, headers=admin_headers)

    assert [r["title"] for r in client.get("/api/resources?type=ppt").json()] == ["Deck"]
    assert [r["title"] for r in client.get("/api/resources/type/article").json()] == ["Paper"]
    assert client.get("/api/resources/type/podcast").status_code == 400


def test_authorized_role_manages_resources(client, authorized_headers, regular_headers):
    created = client.post(
        "/api/resources", json={"title": "Survey", "type": "article"}, headers=authorized_headers
    ).json()
    assert client.delete(f"/api/resources/{created['id']}", headers=regular_headers).status_code == 403
    assert client.delete(f"/api/resources/{created['id']}", headers=authorized_headers).status_code == 200
