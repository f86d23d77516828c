import json


def test_project_aliases_and_defaults(client, admin_headers):
    response = client.post(
        "/api/projects",
        json={
            "title": "Post-quantum signatures",
            "startDate": "2025-02-01",
            "members": ["Alice", {"name": "Bob", "role": "Student"}],
            "technologies": ["lattices", "rust"],
            "status": "unknown-state",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["projectId"] == body["id"]
    assert body["category"] == "Research"
    assert body["status"] == "planning"
    assert body["start_date"] == "2025-02-01"
    assert body["team_members"] == ["Alice", {"name": "Bob", "role": "Student"}]
    assert body["tags"] == ["lattices", "rust"]

    fetched = client.get(f"/api/projects/{body['id']}").json()
    assert fetched["tags"] == ["lattices", "rust"]


def test_json_array_strings_from_forms(client, admin_headers):
    response = client.post(
        "/api/projects",
        data={"title": "ZK voting", "type": "Thesis", "tags": json.dumps(["zk", "voting"]), "status": "active"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["category"] == "Thesis"
    assert body["status"] == "active"
    assert body["tags"] == ["zk", "voting"]


def test_unparseable_tags_are_rejected(client, admin_headers):
    response = client.post("/api/projects", json={"title": "Broken", "tags": "[not json"}, headers=admin_headers)
    assert response.status_code == 400
    assert "tags" in response.json()["message"]
    assert client.get("/api/projects").json() == []


def test_professor_becomes_single_guide(client, admin_headers):
    professor = client.post("/api/professors", json={"name": "Dan Boneh"}, headers=admin_headers).json()
    response = client.post(
        "/api/projects",
        json={
            "title": "Pairing-based crypto",
            "professor_id": professor["id"],
            "team_members": [{"name": "Old Guide", "role": "Guide"}, "Carol"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    members = response.json()["team_members"]
    guides = [member for member in members if isinstance(member, dict) and member.get("role") == "Guide"]
    assert guides == [{"name": "Dan Boneh", "role": "Guide", "professor_id": professor["id"]}]
    assert "Carol" in members


def test_unknown_guide_professor(client, admin_headers):
    response = client.post("/api/projects", json={"title": "No guide", "professor_id": 77}, headers=admin_headers)
    assert response.status_code == 400


def test_projects_by_type(client, admin_headers):
    client.post("/api/projects", json={"title": "A", "type": "Thesis"}, headers=admin_headers)
    client.post("/api/projects", json={"title": "B"}, headers=admin_headers)
    titles = [project["title"] for project in client.get("/api/projects/type/Thesis").json()]
    assert titles == ["A"]


def test_project_file_upload(client, admin_headers):
    response = client.post(
        "/api/projects",
        data={"title": "With report"},
        files={"file": ("report.pdf", b"%PDF-1.4 report", "application/pdf")},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["file_path"].startswith("/uploads/projects/")


def test_regular_user_cannot_update_project(client, admin_headers, regular_headers):
    project = client.post("/api/projects", json={"title": "Stable"}, headers=admin_headers).json()
    response = client.put(f"/api/projects/{project['id']}", json={"title": "Changed"}, headers=regular_headers)
    assert response.status_code == 403
    assert client.get(f"/api/projects/{project['id']}").json()["title"] == "Stable"
