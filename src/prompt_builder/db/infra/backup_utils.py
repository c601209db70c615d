# prompt_builder/db/infra/backup_utils.py
"""
Timestamped backups of the store, retained up to a fixed count.

BackupManager(db, backup_dir, max_backups, migrations_dir):
- create_backup() -> MaintenanceResult
- list_backups() -> list of {name, path, time, size}, newest first
- verify_backup(path) -> CheckResult
- restore_from_backup(name) -> MaintenanceResult

Behavior:
- Snapshots are taken with the sqlite3 online backup API from the live
  connection, so they are consistent even while the file is open.
- Restores copy the backup into the live connection with the same API;
  the injected Database handle stays valid afterwards. Pending migrations
  are then applied to the restored store; if that fails, the pre-restore
  backup is copied back and the restore is reported as failed.
- The current store is backed up before every restore.
- Only the `max_backups` newest files are kept. The file being restored
  from is never pruned by that restore.
"""
from __future__ import annotations

import logging
import os
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from prompt_builder.config import BACKUPS_PATH, MAX_BACKUPS, MIGRATIONS_PATH
from prompt_builder.db.infra.core import Database, get_conn
from prompt_builder.db.infra.migrations import MigrationRunner
from prompt_builder.db.infra.schema import REQUIRED_TABLES
from prompt_builder.errors import ValidationError
from prompt_builder.models import CheckResult, MaintenanceResult

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup_"
BACKUP_SUFFIX = ".db"
# Microseconds keep names unique and make lexical order chronological
BACKUP_TIMESTAMP_FORMAT = "%Y_%m_%d_%H_%M_%S_%f"

_RE_BACKUP_NAME = re.compile(r"^backup_[0-9_]+\.db$")


def make_backup_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{BACKUP_PREFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}{BACKUP_SUFFIX}"


def validate_backup_name(name: str) -> str:
    """
    Accept only bare backup file names produced by make_backup_name().
    Rejects path separators and traversal.
    """
    if not name or os.sep in name or "/" in name or "\\" in name:
        raise ValidationError(f"Invalid backup name: {name!r}")
    if not _RE_BACKUP_NAME.match(name):
        raise ValidationError(f"Invalid backup name: {name!r}")
    return name


class BackupManager:
    def __init__(
        self,
        db: Database,
        backup_dir=BACKUPS_PATH,
        max_backups: int = MAX_BACKUPS,
        migrations_dir=MIGRATIONS_PATH,
    ):
        if db is None:
            raise ValueError("BackupManager requires a Database")
        if max_backups < 1:
            raise ValueError("max_backups must be at least 1")
        self.db = db
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups
        self.migrations_dir = Path(migrations_dir)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    # -----------------------
    # internal helpers
    # -----------------------

    def _backup_files(self) -> List[Path]:
        files = [
            p for p in self.backup_dir.iterdir()
            if p.is_file() and p.name.startswith(BACKUP_PREFIX) and p.name.endswith(BACKUP_SUFFIX)
        ]
        return sorted(files, key=lambda p: p.name, reverse=True)

    def _next_path(self) -> Path:
        path = self.backup_dir / make_backup_name()
        # Same-microsecond collisions only happen on coarse clocks
        while path.exists():
            path = self.backup_dir / make_backup_name()
        return path

    def _prune(self, protect: Optional[Path] = None) -> List[str]:
        removed = []
        keep = 0
        for path in self._backup_files():
            if protect is not None and path.resolve() == protect.resolve():
                continue
            keep += 1
            if keep > self.max_backups:
                path.unlink()
                removed.append(path.name)
                logger.info("Deleted old backup: %s", path.name)
        return removed

    def _snapshot(self, dest_path: Path) -> None:
        dest_conn = sqlite3.connect(dest_path)
        try:
            with self.db.autocommit() as conn:
                conn.backup(dest_conn)
        finally:
            dest_conn.close()

    def _copy_into_live(self, source: Path) -> None:
        with get_conn(source, readonly=True) as src_conn:
            with self.db.autocommit() as conn:
                src_conn.backup(conn)

    def _create(self, protect: Optional[Path] = None) -> MaintenanceResult:
        backup_path = self._next_path()
        logger.info("Creating database backup %s", backup_path.name)
        try:
            self._snapshot(backup_path)
            check = self.verify_backup(backup_path)
            if not check.valid:
                raise RuntimeError(f"Backup verification failed: {check.error}")
            self._prune(protect=protect)
        except Exception as e:
            logger.exception("Backup creation failed")
            if backup_path.exists():
                backup_path.unlink()
            return MaintenanceResult(success=False, error=str(e))

        return MaintenanceResult(
            success=True,
            message=f"Backup created: {backup_path.name}",
            data={"filename": backup_path.name, "path": str(backup_path)},
        )

    # -----------------------
    # Public API
    # -----------------------

    def create_backup(self) -> MaintenanceResult:
        return self._create()

    def list_backups(self) -> List[Dict[str, Any]]:
        backups = []
        for path in self._backup_files():
            stat = path.stat()
            backups.append(
                {
                    "name": path.name,
                    "path": str(path),
                    "time": datetime.fromtimestamp(stat.st_mtime).isoformat(),
                    "size": stat.st_size,
                }
            )
        return backups

    def verify_backup(self, backup_path) -> CheckResult:
        """
        Open the file read-only and check it is a healthy store with the
        core tables present.
        """
        backup_path = Path(backup_path)
        if not backup_path.exists():
            return CheckResult(valid=False, error=f"Backup file not found: {backup_path.name}")
        try:
            with get_conn(backup_path, readonly=True) as conn:
                conn.execute("SELECT 1").fetchone()
                status = conn.execute("PRAGMA quick_check").fetchone()[0]
                if status != "ok":
                    return CheckResult(valid=False, error=f"Integrity check failed: {status}")
                tables = {
                    row["name"]
                    for row in conn.execute(
                        "SELECT name FROM sqlite_master WHERE type = 'table'"
                    ).fetchall()
                }
        except sqlite3.Error as e:
            logger.warning("Backup verification failed for %s: %s", backup_path.name, e)
            return CheckResult(valid=False, error=str(e))

        missing = [t for t in REQUIRED_TABLES if t not in tables]
        if missing:
            return CheckResult(valid=False, error=f"Missing required tables: {', '.join(missing)}")
        return CheckResult(valid=True)

    def restore_from_backup(self, backup_name: str) -> MaintenanceResult:
        try:
            validate_backup_name(backup_name)
        except ValidationError as e:
            return MaintenanceResult(success=False, error=str(e))

        source = self.backup_dir / backup_name
        logger.info("Restoring from backup: %s", backup_name)
        if not source.exists():
            return MaintenanceResult(success=False, error=f"Backup file not found: {backup_name}")

        check = self.verify_backup(source)
        if not check.valid:
            return MaintenanceResult(
                success=False, error=f"Backup verification failed: {check.error}"
            )

        pre_restore = self._create(protect=source)
        if not pre_restore.success:
            return MaintenanceResult(
                success=False,
                error="Failed to create backup of current database before restore",
            )

        try:
            self._copy_into_live(source)
        except Exception as e:
            logger.exception("Restore from %s failed", backup_name)
            return MaintenanceResult(success=False, error=str(e))

        pre_restore_name = pre_restore.data["filename"]
        try:
            # an older backup may predate later migrations
            applied = MigrationRunner(self.db, self.migrations_dir).run()
        except Exception as e:
            logger.exception("Migrating restored backup %s failed", backup_name)
            error = f"Restored backup could not be migrated: {e}"
            try:
                self._copy_into_live(self.backup_dir / pre_restore_name)
            except Exception as revert_error:
                logger.exception("Reverting to %s failed", pre_restore_name)
                error = f"{error}; reverting to {pre_restore_name} failed: {revert_error}"
            return MaintenanceResult(
                success=False,
                error=error,
                data={"pre_restore_backup": pre_restore_name},
            )

        logger.info("Database restored from backup: %s", backup_name)
        return MaintenanceResult(
            success=True,
            message=f"Database restored from backup: {backup_name}",
            data={"pre_restore_backup": pre_restore_name, "migrations_applied": applied},
        )
