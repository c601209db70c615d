# db/infra/maintenance.py
"""
Database maintenance helpers: integrity checks, index upkeep, VACUUM/ANALYZE,
cleanup and size reporting.

Every helper reports through a result object instead of raising, so a
failed maintenance run never takes the process down.
"""
import logging
from typing import Dict

from prompt_builder.config import COMPONENT_TYPE_KEYS, CONTENT_BLOCK_TYPES
from prompt_builder.db.infra.backup_utils import BackupManager
from prompt_builder.db.infra.core import Database, is_valid_json
from prompt_builder.db.infra.schema import EXPECTED_INDEXES, FLAG_COLUMNS, JSON_COLUMNS, SCHEMA
from prompt_builder.db.infra.sql_utils import quote_ident
from prompt_builder.models import CheckResult, IntegrityReport, MaintenanceResult

logger = logging.getLogger(__name__)


# -----------------------
# Integrity checks
# -----------------------

def check_table_structure(db: Database) -> CheckResult:
    try:
        with db.transaction() as conn:
            tables = {
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                ).fetchall()
            }
            missing = [t for t in SCHEMA if t not in tables]
            if missing:
                return CheckResult(False, f"Missing required tables: {', '.join(missing)}")

            for table, table_def in SCHEMA.items():
                columns = {
                    row["name"]: row
                    for row in conn.execute(f"PRAGMA table_info({quote_ident(table)})").fetchall()
                }
                for name, expected in table_def["columns"].items():
                    column = columns.get(name)
                    if column is None:
                        return CheckResult(False, f"Missing column in {table}: {name}")
                    if column["type"].upper() != expected["type"]:
                        return CheckResult(
                            False,
                            f"Invalid type for column {table}.{name}: "
                            f"expected {expected['type']}, got {column['type']}",
                        )
                    if bool(column["notnull"]) != expected["notnull"]:
                        return CheckResult(
                            False, f"Invalid notnull constraint for column {table}.{name}"
                        )
    except Exception as e:
        logger.exception("Error checking table structure")
        return CheckResult(False, f"Error checking table structure: {e}")
    return CheckResult(True)


def check_data_integrity(db: Database) -> CheckResult:
    try:
        with db.transaction() as conn:
            status = conn.execute("PRAGMA quick_check").fetchone()[0]
            if status != "ok":
                return CheckResult(False, f"SQLite quick_check failed: {status}")

            violations = conn.execute("PRAGMA foreign_key_check").fetchall()
            if violations:
                return CheckResult(False, f"Found {len(violations)} foreign key violations")

            placeholders = ",".join("?" for _ in COMPONENT_TYPE_KEYS)
            bad_types = conn.execute(
                f"SELECT COUNT(*) FROM component_types WHERE type_key NOT IN ({placeholders})",
                COMPONENT_TYPE_KEYS,
            ).fetchone()[0]
            if bad_types:
                return CheckResult(False, f"Found {bad_types} records with invalid type_key")

            placeholders = ",".join("?" for _ in CONTENT_BLOCK_TYPES)
            bad_blocks = conn.execute(
                f"SELECT COUNT(*) FROM project_content_blocks WHERE block_type NOT IN ({placeholders})",
                CONTENT_BLOCK_TYPES,
            ).fetchone()[0]
            if bad_blocks:
                return CheckResult(False, f"Found {bad_blocks} records with invalid block_type")

            for table, columns in FLAG_COLUMNS.items():
                for column in columns:
                    bad = conn.execute(
                        f"SELECT COUNT(*) FROM {quote_ident(table)} "
                        f"WHERE {quote_ident(column)} NOT IN (0, 1)"
                    ).fetchone()[0]
                    if bad:
                        return CheckResult(
                            False, f"Found {bad} records with invalid {column} value in {table}"
                        )

            for table, columns in JSON_COLUMNS.items():
                for column in columns:
                    rows = conn.execute(
                        f"SELECT {quote_ident(column)} AS value FROM {quote_ident(table)}"
                    ).fetchall()
                    bad = sum(1 for row in rows if not is_valid_json(row["value"]))
                    if bad:
                        return CheckResult(
                            False, f"Found {bad} records with invalid JSON in {table}.{column}"
                        )
    except Exception as e:
        logger.exception("Error checking data integrity")
        return CheckResult(False, f"Error checking data integrity: {e}")
    return CheckResult(True)


def check_index_integrity(db: Database) -> CheckResult:
    try:
        with db.transaction() as conn:
            indexes = {
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'index'"
                ).fetchall()
            }
    except Exception as e:
        logger.exception("Error checking index integrity")
        return CheckResult(False, f"Error checking index integrity: {e}")

    missing = [name for name in EXPECTED_INDEXES if name not in indexes]
    if missing:
        return CheckResult(False, f"Missing required indexes: {', '.join(missing)}")
    return CheckResult(True)


def run_integrity_checks(db: Database) -> IntegrityReport:
    results: Dict[str, CheckResult] = {
        "table_structure": check_table_structure(db),
        "data_integrity": check_data_integrity(db),
        "index_integrity": check_index_integrity(db),
    }
    errors = [f"{name}: {result.error}" for name, result in results.items() if not result.valid]
    if errors:
        logger.warning("Integrity checks failed: %s", errors)
    return IntegrityReport(valid=not errors, results=results, errors=errors or None)


# -----------------------
# Optimization
# -----------------------

def create_indexes(db: Database) -> MaintenanceResult:
    try:
        with db.transaction() as conn:
            for ddl in EXPECTED_INDEXES.values():
                conn.execute(ddl)
    except Exception as e:
        logger.exception("Error creating indexes")
        return MaintenanceResult(success=False, error=f"Error creating indexes: {e}")
    return MaintenanceResult(success=True, message="Indexes are up to date")


def optimize_database(db: Database) -> MaintenanceResult:
    """VACUUM, restore missing indexes, then ANALYZE."""
    logger.info("Optimizing database")
    try:
        with db.autocommit() as conn:
            conn.execute("VACUUM")
        index_result = create_indexes(db)
        if not index_result.success:
            return index_result
        with db.autocommit() as conn:
            conn.execute("ANALYZE")
    except Exception as e:
        logger.exception("Error optimizing database")
        return MaintenanceResult(success=False, error=f"Error optimizing database: {e}")
    return MaintenanceResult(success=True, message="Database optimized successfully")


def cleanup_database(db: Database, backups: BackupManager) -> MaintenanceResult:
    """
    Back up, delete inactive user-created components, then VACUUM.
    Starter components are kept even when inactive.
    """
    backup = backups.create_backup()
    if not backup.success:
        return MaintenanceResult(
            success=False,
            error=f"Error during database cleanup: Failed to create backup before cleanup ({backup.error})",
        )

    logger.info("Cleaning up inactive components")
    try:
        with db.transaction() as conn:
            cur = conn.execute(
                "DELETE FROM project_components WHERE is_active = 0 AND is_starter = 0"
            )
            removed = cur.rowcount
        with db.autocommit() as conn:
            conn.execute("VACUUM")
    except Exception as e:
        logger.exception("Error during database cleanup")
        return MaintenanceResult(success=False, error=f"Error during database cleanup: {e}")

    logger.info("Removed %d inactive components", removed)
    return MaintenanceResult(
        success=True,
        message="Database cleanup completed successfully",
        data={"removed_items": removed, "backup_name": backup.data["filename"]},
    )


def get_database_size(db: Database) -> MaintenanceResult:
    try:
        with db.transaction() as conn:
            page_count = conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = conn.execute("PRAGMA page_size").fetchone()[0]
            names = [
                row["name"]
                for row in conn.execute(
                    """
                    SELECT name FROM sqlite_master
                    WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
                    ORDER BY name
                    """
                ).fetchall()
            ]
            tables = [
                {
                    "name": name,
                    "row_count": conn.execute(
                        f"SELECT COUNT(*) FROM {quote_ident(name)}"
                    ).fetchone()[0],
                }
                for name in names
            ]
    except Exception as e:
        logger.exception("Error getting database size")
        return MaintenanceResult(success=False, error=f"Error getting database size: {e}")

    return MaintenanceResult(
        success=True,
        data={"total_size": page_count * page_size, "tables": tables},
    )
