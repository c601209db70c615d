# db/infra/migrations.py
"""
Apply SQL migrations exactly once, in filename order.

Each script is split into statements, and the statements plus the ledger
insert for that script run in one transaction. A failing script is rolled
back entirely, is not recorded, and stops the run.
"""
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Set

from prompt_builder.config import MIGRATIONS_PATH
from prompt_builder.db.infra.core import NOW_SQL, Database
from prompt_builder.errors import MigrationError

logger = logging.getLogger(__name__)

LEDGER_DDL = (
    """
    CREATE TABLE IF NOT EXISTS migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        applied_at TEXT NOT NULL
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS migrations_no_update
    BEFORE UPDATE ON migrations
    BEGIN
        SELECT RAISE(ABORT, 'migrations ledger is append-only');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS migrations_no_delete
    BEFORE DELETE ON migrations
    BEGIN
        SELECT RAISE(ABORT, 'migrations ledger is append-only');
    END
    """,
)

# -----------------------
# Statement splitting
# -----------------------
_RE_SINGLE_QUOTED = re.compile(r"'(?:''|[^'])*'")
_RE_CONSTRUCT_START = re.compile(r"\bCREATE\s+(?:TEMP\s+|TEMPORARY\s+)?TRIGGER\b", re.I)
_RE_BLOCK_OPEN = re.compile(r"\b(?:BEGIN|CASE)\b", re.I)
_RE_BODY_OPEN = re.compile(r"\bBEGIN\b", re.I)
_RE_BLOCK_CLOSE = re.compile(r"\bEND\b", re.I)

TERMINATOR = ";"


def split_sql_statements(sql: str) -> List[str]:
    """
    Split a migration script into executable statements.

    Two states: outside a construct, a line ending in ';' closes the
    statement. Inside a CREATE TRIGGER construct, BEGIN/CASE open a block
    and END closes one; the statement only closes once the body's BEGIN
    has been seen, the depth is back to zero and the line ends in ';'.
    Blank lines and '--' comment lines are skipped. A trailing
    unterminated statement is kept.
    """
    statements: List[str] = []
    buffer: List[str] = []
    in_construct = False
    in_body = False
    depth = 0

    def _flush():
        text = "\n".join(buffer).strip()
        if text:
            statements.append(text)
        buffer.clear()

    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue

        buffer.append(line.rstrip())
        # keywords inside string literals never count
        code = _RE_SINGLE_QUOTED.sub("''", stripped)

        if not in_construct and _RE_CONSTRUCT_START.search(code):
            in_construct = True
            in_body = False
            depth = 0

        if in_construct:
            opened = len(_RE_BLOCK_OPEN.findall(code))
            closed = len(_RE_BLOCK_CLOSE.findall(code))
            depth += opened - closed
            # a CASE ... END in the WHEN clause precedes the body
            in_body = in_body or bool(_RE_BODY_OPEN.search(code))
            if in_body and closed and depth <= 0:
                in_construct = False
                in_body = False
                depth = 0
                if stripped.endswith(TERMINATOR):
                    _flush()
        elif stripped.endswith(TERMINATOR):
            _flush()

    _flush()
    return statements


@dataclass(frozen=True)
class MigrationScript:
    name: str
    path: Path

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8")


class MigrationRunner:
    """
    Bring the schema from whatever state it is in to the latest known state.

    runner = MigrationRunner(db, MIGRATIONS_PATH)
    applied_now = runner.run()
    """

    def __init__(self, db: Database, migrations_dir=MIGRATIONS_PATH):
        self._db = db
        self._dir = Path(migrations_dir)

    # -----------------------
    # internal helpers
    # -----------------------

    def _ensure_ledger(self) -> None:
        with self._db.transaction() as conn:
            for ddl in LEDGER_DDL:
                conn.execute(ddl)

    # -----------------------
    # READ operations
    # -----------------------

    def discover_scripts(self) -> List[MigrationScript]:
        if not self._dir.is_dir():
            raise MigrationError(str(self._dir), "migrations directory not found")
        names = sorted(
            fname for fname in os.listdir(self._dir)
            if fname.endswith(".sql") and (self._dir / fname).is_file()
        )
        return [MigrationScript(name=fname, path=self._dir / fname) for fname in names]

    def applied_set(self) -> Set[str]:
        self._ensure_ledger()
        with self._db.transaction() as conn:
            rows = conn.execute("SELECT name FROM migrations").fetchall()
        return {row["name"] for row in rows}

    def pending(self) -> List[MigrationScript]:
        applied = self.applied_set()
        return [script for script in self.discover_scripts() if script.name not in applied]

    def status(self) -> dict:
        self._ensure_ledger()
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT name, applied_at FROM migrations ORDER BY id"
            ).fetchall()
        return {
            "applied": [dict(row) for row in rows],
            "pending": [script.name for script in self.pending()],
        }

    # -----------------------
    # WRITE operations
    # -----------------------

    def apply(self, script: MigrationScript) -> None:
        try:
            sql = script.read()
        except OSError as e:
            raise MigrationError(script.name, f"cannot read script: {e}") from e

        statements = split_sql_statements(sql)
        logger.info("Processing migration %s with %d statements", script.name, len(statements))

        self._ensure_ledger()
        statement = None
        try:
            with self._db.transaction() as conn:
                for statement in statements:
                    logger.debug("Executing statement: %s", statement[:100])
                    conn.execute(statement)
                statement = None
                conn.execute(
                    f"INSERT INTO migrations (name, applied_at) VALUES (?, {NOW_SQL})",
                    (script.name,),
                )
        except Exception as e:
            logger.exception("Error applying migration %s", script.name)
            raise MigrationError(script.name, str(e), statement) from e

        logger.info("Applied migration: %s", script.name)

    def run(self) -> List[str]:
        pending = self.pending()
        if not pending:
            logger.info("No pending migrations")
            return []

        logger.info("Running pending migrations: %s", [s.name for s in pending])
        applied_now: List[str] = []
        for script in pending:
            self.apply(script)
            applied_now.append(script.name)

        logger.info("All migrations completed successfully")
        return applied_now


def apply_migrations(db: Database, migrations_dir=MIGRATIONS_PATH) -> List[str]:
    return MigrationRunner(db, migrations_dir).run()
