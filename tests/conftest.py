# tests/conftest.py
import pytest

from prompt_builder.db.infra.core import Database
from prompt_builder.db.infra.migrations import MigrationRunner
from prompt_builder.db.seeding import initialize_database_if_needed


@pytest.fixture
def db():
    """Fresh in-memory store with the full schema, no seed data."""
    database = Database(":memory:")
    MigrationRunner(database).run()
    yield database
    database.close()


@pytest.fixture
def seeded_db(db):
    """Migrated store with the Default Project and starter catalog."""
    initialize_database_if_needed(db)
    return db


@pytest.fixture
def file_db(tmp_path):
    """Seeded store backed by a real file (backups, restore, VACUUM)."""
    database = Database(tmp_path / "promptgen.db")
    MigrationRunner(database).run()
    initialize_database_if_needed(database)
    yield database
    database.close()


@pytest.fixture
def client(file_db, tmp_path):
    """API client over a seeded file store, backups under tmp_path."""
    from fastapi.testclient import TestClient

    from prompt_builder.api.main import create_app
    from prompt_builder.db.infra.backup_utils import BackupManager

    app = create_app(file_db, BackupManager(file_db, tmp_path / "backups", max_backups=5))
    with TestClient(app) as test_client:
        yield test_client
