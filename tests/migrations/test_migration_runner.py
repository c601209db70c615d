# tests/migrations/test_migration_runner.py
import re
import sqlite3

import pytest

from prompt_builder.config import COMPONENT_TYPE_KEYS, MIGRATIONS_PATH
from prompt_builder.db.infra.core import Database
from prompt_builder.db.infra.migrations import MigrationRunner, apply_migrations
from prompt_builder.errors import MigrationError


def _table_names(db):
    with db.transaction() as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {r["name"] for r in rows}


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def test_fresh_store_gets_full_schema_and_catalog():
    with Database(":memory:") as db:
        applied = apply_migrations(db, MIGRATIONS_PATH)

        assert applied == sorted(p.name for p in MIGRATIONS_PATH.glob("*.sql"))
        tables = _table_names(db)
        for table in (
            "migrations",
            "component_types",
            "projects",
            "project_components",
            "project_prompt_sets",
            "project_prompt_set_visibility",
            "project_content_blocks",
            "project_drafts",
            "project_settings",
        ):
            assert table in tables

        with db.transaction() as conn:
            keys = {r["type_key"] for r in conn.execute("SELECT type_key FROM component_types")}
        assert keys == set(COMPONENT_TYPE_KEYS)


def test_second_run_applies_nothing():
    with Database(":memory:") as db:
        runner = MigrationRunner(db)
        first = runner.run()
        second = runner.run()

        assert first
        assert second == []
        with db.transaction() as conn:
            count = conn.execute("SELECT COUNT(*) FROM migrations").fetchone()[0]
        assert count == len(first)


def test_failing_script_rolls_back_and_is_not_recorded(tmp_path):
    _write(tmp_path / "001_ok.sql", "CREATE TABLE ok_table (id INTEGER PRIMARY KEY);\n")
    _write(
        tmp_path / "002_broken.sql",
        "CREATE TABLE half_done (id INTEGER PRIMARY KEY);\n"
        "INSERT INTO half_done (id) VALUES (1);\n"
        "INSERT INTO no_such_table (id) VALUES (1);\n",
    )
    _write(tmp_path / "003_never.sql", "CREATE TABLE never_table (id INTEGER PRIMARY KEY);\n")

    with Database(":memory:") as db:
        runner = MigrationRunner(db, tmp_path)
        with pytest.raises(MigrationError) as excinfo:
            runner.run()

        assert excinfo.value.script == "002_broken.sql"
        assert "no_such_table" in excinfo.value.statement

        tables = _table_names(db)
        assert "ok_table" in tables
        assert "half_done" not in tables
        assert "never_table" not in tables
        assert runner.applied_set() == {"001_ok.sql"}
        assert [s.name for s in runner.pending()] == ["002_broken.sql", "003_never.sql"]


def test_fixed_script_is_applied_on_next_run(tmp_path):
    broken = _write(tmp_path / "001_fix_me.sql", "CREATE TABLE x (id INTEGER PRIMARY KEY;\n")

    with Database(":memory:") as db:
        runner = MigrationRunner(db, tmp_path)
        with pytest.raises(MigrationError):
            runner.run()

        _write(broken, "CREATE TABLE x (id INTEGER PRIMARY KEY);\n")
        assert runner.run() == ["001_fix_me.sql"]


def test_scripts_run_in_filename_order(tmp_path):
    _write(tmp_path / "002_second.sql", "INSERT INTO log (step) VALUES ('second');\n")
    _write(tmp_path / "001_first.sql", "CREATE TABLE log (step TEXT);\nINSERT INTO log (step) VALUES ('first');\n")
    _write(tmp_path / "notes.txt", "ignored")

    with Database(":memory:") as db:
        applied = MigrationRunner(db, tmp_path).run()

        assert applied == ["001_first.sql", "002_second.sql"]
        with db.transaction() as conn:
            steps = [r["step"] for r in conn.execute("SELECT step FROM log ORDER BY rowid")]
        assert steps == ["first", "second"]


def test_ledger_is_append_only():
    with Database(":memory:") as db:
        MigrationRunner(db).run()

        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("DELETE FROM migrations")
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("UPDATE migrations SET name = 'renamed'")

        with db.transaction() as conn:
            names = [r["name"] for r in conn.execute("SELECT name FROM migrations")]
        assert "renamed" not in names


def test_missing_directory_is_a_migration_error(tmp_path):
    with Database(":memory:") as db:
        with pytest.raises(MigrationError):
            MigrationRunner(db, tmp_path / "missing").run()


def test_status_reports_applied_and_pending(tmp_path):
    _write(tmp_path / "001_a.sql", "CREATE TABLE a (id INTEGER);\n")

    with Database(":memory:") as db:
        runner = MigrationRunner(db, tmp_path)
        assert runner.status() == {"applied": [], "pending": ["001_a.sql"]}

        runner.run()
        status = runner.status()
        assert [row["name"] for row in status["applied"]] == ["001_a.sql"]
        assert status["pending"] == []


def test_ledger_uses_store_timestamp_format(db):
    with db.transaction() as conn:
        stamps = [r["applied_at"] for r in conn.execute("SELECT applied_at FROM migrations")]

    assert stamps
    for stamp in stamps:
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}", stamp)
