# tests/test_api_components.py
from prompt_builder.config import COMPONENT_TYPE_KEYS


def _type_id(client, type_key):
    types = client.get("/api/components").json()["types"]
    return next(t["id"] for t in types if t["type_key"] == type_key)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_default_project_component_data(client):
    data = client.get("/api/components").json()

    assert {t["type_key"] for t in data["types"]} == set(COMPONENT_TYPE_KEYS)
    assert data["components"]
    assert all(c["project_id"] == 1 for c in data["components"])
    assert {ps["set_key"] for ps in data["promptSets"]} == {"custom_build", "blog_post"}
    assert len(data["visibility"]) == len(data["promptSets"]) * len(data["types"])


def test_create_update_delete_user_component(client):
    role_id = _type_id(client, "role")

    resp = client.post(
        "/api/user-components",
        json={"component_type_id": role_id, "selection": "Pirate", "prompt_value": "Talk like a pirate."},
    )
    assert resp.status_code == 201
    component_id = resp.json()["id"]

    created = next(c for c in client.get("/api/components").json()["components"] if c["id"] == component_id)
    assert created["is_starter"] is False
    assert created["is_active"] is True
    assert created["type_key"] == "role"

    resp = client.put(f"/api/user-components/{component_id}", json={"is_active": False})
    assert resp.status_code == 200

    assert client.delete(f"/api/user-components/{component_id}").status_code == 200
    assert client.delete(f"/api/user-components/{component_id}").status_code == 404


def test_component_validation_errors(client):
    role_id = _type_id(client, "role")

    resp = client.post("/api/user-components", json={"component_type_id": role_id, "selection": ""})
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"

    resp = client.post("/api/user-components", json={"component_type_id": 9999, "selection": "x"})
    assert resp.status_code == 404

    existing = client.get("/api/components").json()["components"][0]["id"]
    assert client.put(f"/api/user-components/{existing}", json={}).status_code == 400
    assert client.put("/api/user-components/999999", json={"selection": "x"}).status_code == 404


def test_rename_component_type(client):
    resp = client.put("/api/component-types/tone", json={"displayName": "Voice"})
    assert resp.status_code == 200
    types = client.get("/api/components").json()["types"]
    assert next(t for t in types if t["type_key"] == "tone")["display_name"] == "Voice"

    assert client.put("/api/component-types/nope", json={"displayName": "X"}).status_code == 404
    assert client.put("/api/component-types/tone", json={}).status_code == 400


def test_visibility_upsert_keeps_one_row(client):
    data = client.get("/api/components").json()
    prompt_set_id = data["promptSets"][0]["id"]
    type_id = data["types"][0]["id"]
    body = {"promptSetId": prompt_set_id, "componentTypeId": type_id, "isVisible": False}

    assert client.put("/api/prompt-set-visibility", json=body).status_code == 200
    body["isVisible"] = True
    assert client.put("/api/prompt-set-visibility", json=body).status_code == 200

    rows = [
        v for v in client.get("/api/components").json()["visibility"]
        if v["prompt_set_id"] == prompt_set_id and v["component_type_id"] == type_id
    ]
    assert len(rows) == 1
    assert rows[0]["is_visible"] is True

    body["promptSetId"] = 999999
    assert client.put("/api/prompt-set-visibility", json=body).status_code == 404


def test_project_settings_update(client):
    resp = client.put("/api/project-settings", json={"ui_settings": {"theme": "dark"}})
    assert resp.status_code == 200
    settings = client.get("/api/projects/1").json()["project"]["settings"]
    assert settings["ui_settings"] == {"theme": "dark"}

    assert client.put("/api/project-settings", json={}).status_code == 400
    assert client.put("/api/project-settings", json={"unknown": 1}).status_code == 400


def test_components_of_other_projects(client):
    project_id = client.post("/api/projects", json={"name": "Side"}).json()["project"]["id"]
    role_id = _type_id(client, "role")

    resp = client.post(
        f"/api/projects/{project_id}/components",
        json={"component_type_id": role_id, "selection": "Scoped"},
    )
    assert resp.status_code == 201
    component_id = resp.json()["id"]

    # not reachable through another project
    assert client.delete(f"/api/projects/1/components/{component_id}").status_code == 404
    assert client.put(
        f"/api/projects/{project_id}/components/{component_id}", json={"user_value": "mine"}
    ).status_code == 200
    assert client.delete(f"/api/projects/{project_id}/components/{component_id}").status_code == 200
    assert client.post(
        "/api/projects/999/components", json={"component_type_id": role_id, "selection": "x"}
    ).status_code == 404
