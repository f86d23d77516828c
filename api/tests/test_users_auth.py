from datetime import timedelta

from cryptolab.auth.jwt_utils import create_access_token


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_login_returns_token_and_user(client, make_user):
    user = make_user("authorized", email="alice@example.com", password="correct horse")
    response = _login(client, "alice@example.com", "correct horse")
    assert response.status_code == 200
    body = response.json()
    assert body["token"] == body["access_token"]
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == user.id
    assert body["user"]["permissions"] == ["access_dashboard", "manage_courses", "manage_contents"]
    assert body["user"]["last_login"] is not None
    assert "password_hash" not in body["user"]

    profile = client.get("/api/auth/profile", headers={"x-auth-token": body["token"]})
    assert profile.status_code == 200
    assert profile.json()["email"] == "alice@example.com"


def test_login_is_case_insensitive_on_email(client, make_user):
    make_user("regular", email="bob@example.com", password="pw-123456")
    assert _login(client, "Bob@Example.com", "pw-123456").status_code == 200


def test_wrong_password(client, make_user):
    make_user("regular", email="carol@example.com", password="right-one")
    response = _login(client, "carol@example.com", "wrong-one")
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_inactive_user_cannot_login(client, make_user):
    make_user("regular", email="dave@example.com", password="pw-123456", is_active=False)
    assert _login(client, "dave@example.com", "pw-123456").status_code == 401


def test_login_rate_limit(client):
    for _ in range(5):
        assert _login(client, "nobody@example.com", "x").status_code == 401
    assert _login(client, "nobody@example.com", "x").status_code == 429


def test_profile_requires_token(client):
    response = client.get("/api/auth/profile")
    assert response.status_code == 401
    assert response.json()["message"] == "No token, authorization denied"


def test_expired_token(client, admin):
    token = create_access_token(str(admin.id), expires_delta=timedelta(minutes=-5))
    assert client.get("/api/auth/profile", headers={"x-auth-token": token}).status_code == 401


def test_token_of_deleted_user(client, admin_headers, make_user, headers_for):
    doomed = make_user("authorized", email="gone@example.com")
    doomed_headers = headers_for(doomed)
    assert client.delete(f"/api/users/{doomed.id}", headers=admin_headers).status_code == 200
    assert client.get("/api/auth/profile", headers=doomed_headers).status_code == 401


def test_users_require_manage_users(client, authorized_headers, regular_headers):
    assert client.get("/api/users").status_code == 401
    assert client.get("/api/users", headers=authorized_headers).status_code == 403
    assert client.get("/api/users", headers=regular_headers).status_code == 403


def test_admin_creates_user(client, admin_headers):
    response = client.post(
        "/api/users",
        json={"name": "Eve", "surname": "Adams", "email": "Eve@Example.com", "password": "pw-eve-123", "role": "authorized"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == body["id"]
    assert body["email"] == "eve@example.com"
    assert "password" not in body
    assert "password_hash" not in body

    assert _login(client, "eve@example.com", "pw-eve-123").status_code == 200


def test_user_validation(client, admin, admin_headers):
    duplicate = client.post(
        "/api/users",
        json={"name": "Copy", "email": admin.email, "password": "pw-123456"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "User with this email already exists"

    bad_role = client.post(
        "/api/users",
        json={"name": "Mallory", "email": "m@example.com", "password": "pw-123456", "role": "superuser"},
        headers=admin_headers,
    )
    assert bad_role.status_code == 400

    no_password = client.post("/api/users", json={"name": "Nopass", "email": "n@example.com"}, headers=admin_headers)
    assert no_password.status_code == 400


def test_update_without_password_keeps_it(client, admin_headers):
    user = client.post(
        "/api/users",
        json={"name": "Frank", "email": "frank@example.com", "password": "frank-pass"},
        headers=admin_headers,
    ).json()

    response = client.put(
        f"/api/users/{user['id']}",
        json={"name": "Franklin", "email": "frank@example.com", "role": "authorized", "password": ""},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Franklin"
    assert response.json()["role"] == "authorized"
    assert _login(client, "frank@example.com", "frank-pass").status_code == 200


def test_admin_cannot_delete_self(client, admin, admin_headers):
    response = client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400
    assert client.get(f"/api/users/{admin.id}", headers=admin_headers).status_code == 200


def test_audit_log_records_mutations(client, admin, admin_headers):
    course = client.post("/api/courses", json={"title": "Audited"}, headers=admin_headers).json()
    client.delete(f"/api/courses/{course['id']}", headers=admin_headers)

    logs = client.get(f"/api/users/{admin.id}/audit-logs", headers=admin_headers).json()
    actions = [(log["action_type"], log["entity_type"], log["entity_id"]) for log in logs]
    assert ("CREATE", "course", course["id"]) in actions
    assert ("DELETE", "course", course["id"]) in actions
    created = next(log for log in logs if log["action_type"] == "CREATE")
    assert created["new_value"]["title"] == "Audited"


def test_failed_write_is_not_audited(client, admin, admin_headers):
    client.post("/api/lectures", json={"title": "Orphan", "course_id": 404}, headers=admin_headers)
    assert client.get(f"/api/users/{admin.id}/audit-logs", headers=admin_headers).json() == []
