"""Process entry point: migrate, seed, then serve the API."""
import logging

import uvicorn

from prompt_builder.api.main import create_app
from prompt_builder.config import (
    API_HOST,
    API_PORT,
    BACKUPS_PATH,
    DB_FILE_PATH,
    MAX_BACKUPS,
    configure_logging,
)
from prompt_builder.db.infra.backup_utils import BackupManager
from prompt_builder.db.infra.core import Database, init_db

logger = logging.getLogger(__name__)


def bootstrap(db_path=DB_FILE_PATH, backup_dir=BACKUPS_PATH, max_backups: int = MAX_BACKUPS):
    """
    Open the store, bring it to the latest schema, seed it and build the app.

    Migration and seed failures propagate: there is no partial service.
    """
    configure_logging()
    db = Database(db_path)
    try:
        init_db(db)
    except Exception:
        db.close()
        raise
    return create_app(db, BackupManager(db, backup_dir, max_backups))


def main():
    app = bootstrap()
    logger.info("Serving prompt builder API on %s:%s", API_HOST, API_PORT)
    try:
        uvicorn.run(app, host=API_HOST, port=API_PORT)
    finally:
        app.state.db.close()


if __name__ == "__main__":
    main()
