# db/infra/core.py
import json
import logging
import sqlite3
import threading

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from prompt_builder.config import MIGRATIONS_PATH
from prompt_builder.errors import ValidationError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

# Same format as the column defaults declared by the migrations
NOW_SQL = "strftime('%Y-%m-%d %H:%M:%f', 'now')"


def _configure_connection(conn: sqlite3.Connection) -> sqlite3.Connection:
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


class Database:
    """
    The single store handle of the process.

    Opened once at startup and passed to every component that needs it.
    The connection runs in autocommit mode; units of work are delimited
    explicitly with `transaction()`, which nests through SAVEPOINTs.

    Usage:

        db = Database(DB_FILE_PATH)
        with db.transaction() as conn:
            conn.execute(...)
    """

    def __init__(self, path=MEMORY_PATH):
        self.path = str(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._depth = 0
        self._lock = threading.RLock()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"Database({self.path!r})"

    def connect(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                logger.debug("Opening database at %s", self.path)
                conn = sqlite3.connect(
                    self.path,
                    isolation_level=None,
                    check_same_thread=False,
                )
                self._conn = _configure_connection(conn)
            return self._conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                logger.debug("Closing database at %s", self.path)
                self._conn.close()
                self._conn = None
                self._depth = 0

    @contextmanager
    def transaction(self):
        """
        Yield the connection inside an all-or-nothing unit of work.

        The outermost level issues BEGIN/COMMIT/ROLLBACK. Nested levels use
        a SAVEPOINT, so a failure caught by the caller only undoes the inner
        unit.
        """
        with self._lock:
            conn = self.connect()
            savepoint = None
            if self._depth == 0:
                conn.execute("BEGIN")
            else:
                savepoint = f"sp_{self._depth}"
                conn.execute(f"SAVEPOINT {savepoint}")
            self._depth += 1
            try:
                yield conn
            except BaseException:
                self._depth -= 1
                if savepoint is None:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                elif conn.in_transaction:
                    conn.execute(f"ROLLBACK TO {savepoint}")
                    conn.execute(f"RELEASE {savepoint}")
                raise
            else:
                self._depth -= 1
                if savepoint is None:
                    conn.execute("COMMIT")
                else:
                    conn.execute(f"RELEASE {savepoint}")

    @contextmanager
    def autocommit(self):
        """
        Yield the connection outside any transaction.

        Needed for statements SQLite refuses inside a transaction (VACUUM)
        and for the online backup API.
        """
        with self._lock:
            if self._depth:
                raise RuntimeError("Cannot leave an open transaction for an autocommit statement")
            yield self.connect()


def init_db(db: Database, migrations_dir=MIGRATIONS_PATH) -> None:
    """
    Initialize the database:
    - apply pending migrations
    - seed default content if the store is empty
    """
    # Imported here to keep core free of import cycles with the DAO modules
    from prompt_builder.db.infra.migrations import MigrationRunner
    from prompt_builder.db.seeding import initialize_database_if_needed

    logger.info("Initializing database at %s", db.path)
    try:
        MigrationRunner(db, migrations_dir).run()
        initialize_database_if_needed(db)
    except Exception:
        logger.exception("Database initialization failed")
        raise


def safe_json_loads(value: str | None, default):
    """
    Safely load JSON from DB fields.
    Returns default if value is None, empty, or invalid.
    """
    if not value or not value.strip():
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON in DB field")
        return default


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def coerce_flag(value, field_name: str = "flag") -> int:
    """
    Coerce a boolean-like value to the 0/1 integer stored in flag columns.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int) and value in (0, 1):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
        return int(value.strip().lower() in _TRUE_STRINGS)
    raise ValidationError(f"{field_name} must be a boolean, got {value!r}")


def is_valid_json(value: str | None) -> bool:
    if value is None:
        return False
    try:
        json.loads(value)
    except (TypeError, json.JSONDecodeError):
        return False
    return True


# -----------------------
# Connection helper
# -----------------------

@contextmanager
def get_conn(path, readonly: bool = False):
    """
    Short-lived side connection (backup verification, inspection tools).
    """
    if readonly:
        uri = Path(path).resolve().as_uri() + "?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
    else:
        conn = sqlite3.connect(str(path))
    _configure_connection(conn)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
