# tests/test_api_projects.py
from fastapi.testclient import TestClient

from prompt_builder.config import CONTENT_BLOCK_TYPES
from prompt_builder.db.projects import ProjectDAO


def test_list_contains_default_project(client):
    body = client.get("/api/projects").json()
    assert body["status"] == "success"
    assert [p["id"] for p in body["projects"]] == [1]


def test_create_empty_project(client):
    resp = client.post("/api/projects", json={"name": "  Blog  ", "description": "posts"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    assert body["project"]["name"] == "Blog"

    detail = client.get(f"/api/projects/{body['project']['id']}").json()["project"]
    assert detail["stats"]["component_count"] == 0
    assert detail["stats"]["content_block_count"] == len(CONTENT_BLOCK_TYPES)
    assert detail["settings"]["text_transformer_active_action"] == "analyze"


def test_create_copied_project(client):
    resp = client.post("/api/projects", json={"name": "Copy", "copyFromProjectId": 1})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    assert body["project"]["copied_from"] == 1
    assert body["project"]["copied_from_name"] == "Default Project"

    source = client.get("/api/projects/1/components").json()["data"]
    copy = client.get(f"/api/projects/{body['project']['id']}/components").json()["data"]
    assert len(copy["components"]) == len(source["components"])
    assert len(copy["visibility"]) == len(source["visibility"])


def test_create_with_unknown_source_creates_nothing(client):
    resp = client.post("/api/projects", json={"name": "Orphan", "copyFromProjectId": 404})

    assert resp.status_code == 404
    names = [p["name"] for p in client.get("/api/projects").json()["projects"]]
    assert "Orphan" not in names


def test_partial_success_still_returns_created(client, monkeypatch):
    def boom(self, source_id, target_id):
        raise RuntimeError("copy exploded")

    monkeypatch.setattr(ProjectDAO, "copy_into", boom)
    resp = client.post("/api/projects", json={"name": "Half", "copyFromProjectId": 1})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "partial_success"
    assert body["copy_error"] == "copy exploded"
    assert client.get(f"/api/projects/{body['project']['id']}").status_code == 200


def test_create_requires_name(client):
    assert client.post("/api/projects", json={"name": "   "}).status_code == 400
    assert client.post("/api/projects", json={}).status_code == 400


def test_update_project(client):
    project_id = client.post("/api/projects", json={"name": "Old"}).json()["project"]["id"]

    resp = client.put(f"/api/projects/{project_id}", json={"name": "New"})
    assert resp.status_code == 200
    assert client.get(f"/api/projects/{project_id}").json()["project"]["name"] == "New"

    assert client.put("/api/projects/999", json={"name": "Ghost"}).status_code == 404


def test_delete_project(client):
    project_id = client.post("/api/projects", json={"name": "Doomed"}).json()["project"]["id"]

    resp = client.delete(f"/api/projects/{project_id}")
    assert resp.status_code == 200
    assert resp.json()["message"] == 'Project "Doomed" deleted successfully'
    assert client.get(f"/api/projects/{project_id}").status_code == 404
    assert client.delete(f"/api/projects/{project_id}").status_code == 404


def test_default_project_cannot_be_deleted(client):
    resp = client.delete("/api/projects/1")

    assert resp.status_code == 403
    assert resp.json()["status"] == "error"
    assert client.get("/api/projects/1").status_code == 200


def test_project_components_payload(client):
    body = client.get("/api/projects/1/components").json()

    assert body["project"] == {"id": 1, "name": "Default Project"}
    data = body["data"]
    assert set(data["contentBlocks"]) == set(CONTENT_BLOCK_TYPES)
    assert all(block["content"] == "" for block in data["contentBlocks"].values())
    assert data["settings"]["project_id"] == 1
    assert client.get("/api/projects/999/components").status_code == 404


def test_unexpected_errors_answer_500(file_db, tmp_path, monkeypatch):
    from prompt_builder.api.main import create_app
    from prompt_builder.db.infra.backup_utils import BackupManager

    def broken(self):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(ProjectDAO, "list", broken)
    app = create_app(file_db, BackupManager(file_db, tmp_path / "bk"))
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/projects")

    assert resp.status_code == 500
    assert resp.json()["status"] == "error"


def test_zero_source_id_creates_empty_project(client):
    resp = client.post("/api/projects", json={"name": "Zero", "copyFromProjectId": 0})

    assert resp.status_code == 201
    assert resp.json()["message"] == "Empty project created successfully"
