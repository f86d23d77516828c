def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body
    assert "X-Process-Time" in response.headers


def test_detailed_health(client):
    body = client.get("/api/health/detailed").json()
    assert body["status"] == "ok"
    assert body["database"]["status"] == "connected"
    assert body["uploads"]["exists"] is True


def test_unknown_route_has_message(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["message"] == "Not Found"


def test_upload_endpoint(client, admin_headers, png_bytes):
    response = client.post(
        "/api/upload?type=professor",
        files={"image": ("face.png", png_bytes, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["url"].startswith("/uploads/professors/")
    assert body["originalname"] == "face.png"
    assert body["mimetype"] == "image/png"
    assert body["size"] == len(png_bytes)


def test_upload_requires_token(client, png_bytes):
    response = client.post("/api/upload", files={"image": ("face.png", png_bytes, "image/png")})
    assert response.status_code == 401


def test_upload_rejects_unknown_kind(client, regular_headers, png_bytes):
    response = client.post(
        "/api/upload?type=poster",
        files={"image": ("face.png", png_bytes, "image/png")},
        headers=regular_headers,
    )
    assert response.status_code == 400
