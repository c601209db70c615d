# tests/test_api_maintenance.py
def test_backup_list_and_restore(client):
    resp = client.post("/api/backup")
    assert resp.status_code == 200
    backup = resp.json()["backup"]["filename"]

    names = [b["name"] for b in client.get("/api/backups").json()["backups"]]
    assert names == [backup]

    client.post("/api/projects", json={"name": "Temporary"})
    resp = client.post(f"/api/restore/{backup}")
    assert resp.status_code == 200
    assert resp.json()["preRestoreBackup"] != backup

    projects = [p["name"] for p in client.get("/api/projects").json()["projects"]]
    assert projects == ["Default Project"]


def test_restore_errors(client):
    assert client.post("/api/restore/not-a-backup.txt").status_code == 400
    assert client.post("/api/restore/backup_2001_01_01_00_00_00_000000.db").status_code == 404


def test_integrity_optimize_cleanup_size(client):
    body = client.get("/api/db/integrity").json()
    assert body["status"] == "success"
    assert body["data"]["valid"] is True

    assert client.post("/api/db/optimize").json()["status"] == "success"

    body = client.post("/api/db/cleanup").json()
    assert body["status"] == "success"
    assert body["data"]["removed_items"] == 0

    body = client.get("/api/db/size").json()
    assert body["data"]["total_size"] > 0


def test_failed_maintenance_answers_500(client, monkeypatch):
    from prompt_builder.db.infra import maintenance
    from prompt_builder.models import MaintenanceResult

    monkeypatch.setattr(
        maintenance, "optimize_database", lambda db: MaintenanceResult(success=False, error="locked")
    )
    resp = client.post("/api/db/optimize")

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Database optimization failed", "error": "locked"}
