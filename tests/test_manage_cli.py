# tests/test_manage_cli.py
from prompt_builder.db.infra.manage import main


def _run(tmp_path, *args):
    return main(["--db", str(tmp_path / "cli.db"), "--backup-dir", str(tmp_path / "bk"), *args])


def test_commands_other_than_migrate_need_existing_store(tmp_path, capsys):
    assert _run(tmp_path, "status") == 1
    assert "Database file not found" in capsys.readouterr().err
    assert not (tmp_path / "cli.db").exists()


def test_migrate_then_status(tmp_path, capsys):
    assert _run(tmp_path, "migrate") == 0
    assert "Applied 4 migration(s)." in capsys.readouterr().out

    assert _run(tmp_path, "migrate") == 0
    assert "No pending migrations." in capsys.readouterr().out

    assert _run(tmp_path, "status") == 0
    out = capsys.readouterr().out
    assert "4 applied, 0 pending." in out
    assert "001_" in out


def test_seed_is_idempotent(tmp_path, capsys):
    assert _run(tmp_path, "seed") == 0
    assert "Seeded" in capsys.readouterr().out

    assert _run(tmp_path, "seed") == 0
    assert "Database already seeded." in capsys.readouterr().out


def test_backup_list_and_restore(tmp_path, capsys):
    _run(tmp_path, "seed")
    assert _run(tmp_path, "backups") == 0
    assert "No backups found." in capsys.readouterr().out

    assert _run(tmp_path, "backup") == 0
    capsys.readouterr()
    name = sorted(p.name for p in (tmp_path / "bk").iterdir())[0]

    assert _run(tmp_path, "backups") == 0
    assert name in capsys.readouterr().out

    assert _run(tmp_path, "restore", name) == 0
    assert f"Database restored from backup: {name}" in capsys.readouterr().out

    assert _run(tmp_path, "restore", "../escape.db") == 1
    assert "Failed:" in capsys.readouterr().err


def test_maintenance_commands(tmp_path, capsys):
    _run(tmp_path, "seed")
    capsys.readouterr()

    assert _run(tmp_path, "integrity") == 0
    assert "All integrity checks passed." in capsys.readouterr().out

    assert _run(tmp_path, "optimize") == 0
    assert _run(tmp_path, "cleanup") == 0
    capsys.readouterr()

    assert _run(tmp_path, "size") == 0
    out = capsys.readouterr().out
    assert "Total size:" in out
    assert "project_components" in out


def test_quiet_suppresses_output(tmp_path, capsys):
    assert _run(tmp_path, "-q", "seed") == 0
    assert capsys.readouterr().out == ""


def test_failures_reach_stderr_even_when_quiet(tmp_path, capsys):
    _run(tmp_path, "seed")
    capsys.readouterr()

    assert _run(tmp_path, "-q", "restore", "backup_2001_01_01_00_00_00_000000.db") == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Failed: Backup file not found" in captured.err


def test_missing_store_suggests_seed_command(tmp_path, capsys):
    assert _run(tmp_path, "size") == 1
    err = capsys.readouterr().err
    assert "Next step:" in err
    assert "seed" in err
