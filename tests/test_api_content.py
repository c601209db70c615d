# tests/test_api_content.py
BASE = "/api/projects/1/content-blocks/finalPrompt/drafts"


def test_blocks_start_with_one_empty_active_draft(client):
    body = client.get(BASE).json()

    assert len(body["drafts"]) == 1
    assert body["activeDraftId"] == body["drafts"][0]["id"]
    assert body["drafts"][0]["content"] == ""


def test_draft_lifecycle(client):
    resp = client.post(BASE, json={"content": "first", "makeActive": False})
    assert resp.status_code == 201
    draft_id = resp.json()["id"]
    assert client.get(BASE).json()["activeDraftId"] != draft_id

    assert client.put(f"{BASE}/{draft_id}/activate").status_code == 200
    assert client.get(BASE).json()["activeDraftId"] == draft_id

    assert client.put(f"{BASE}/{draft_id}", json={"content": "edited"}).status_code == 200
    content = client.get("/api/projects/1/components").json()["data"]["contentBlocks"]["finalPrompt"]
    assert content["content"] == "edited"

    assert client.delete(f"{BASE}/{draft_id}").status_code == 200
    # the pointer dangles; readers see no active draft
    assert client.get(BASE).json()["activeDraftId"] is None
    assert client.delete(f"{BASE}/{draft_id}").status_code == 404


def test_new_drafts_become_active_by_default(client):
    draft_id = client.post(BASE, json={"content": "hello"}).json()["id"]
    assert client.get(BASE).json()["activeDraftId"] == draft_id


def test_bad_targets(client):
    assert client.get("/api/projects/1/content-blocks/sidebar/drafts").status_code == 400
    assert client.get("/api/projects/999/content-blocks/finalPrompt/drafts").status_code == 404
    assert client.put(f"{BASE}/missing/activate").status_code == 404
    assert client.put(f"{BASE}/missing", json={"content": "x"}).status_code == 404
