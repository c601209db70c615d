"""Maintenance router: backups, restore, integrity, optimize, cleanup, size.

Maintenance failures are reported as 500 bodies; the process keeps serving.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from prompt_builder.api.dependencies import get_backups, get_db
from prompt_builder.db.infra import maintenance
from prompt_builder.db.infra.backup_utils import BackupManager, validate_backup_name
from prompt_builder.db.infra.core import Database
from prompt_builder.errors import NotFoundError
from prompt_builder.models import MaintenanceResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["maintenance"])


def _failure(message: str, result: MaintenanceResult) -> JSONResponse:
    logger.error("%s: %s", message, result.error)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": message, "error": result.error},
    )


@router.post("/backup")
def create_backup(backups: BackupManager = Depends(get_backups)):
    result = backups.create_backup()
    if not result.success:
        return _failure("Backup creation failed", result)
    return {
        "status": "ok",
        "message": "Backup created successfully",
        "backup": result.data,
    }


@router.get("/backups")
def list_backups(backups: BackupManager = Depends(get_backups)) -> dict:
    return {"status": "ok", "backups": backups.list_backups()}


@router.post("/restore/{backup_name}")
def restore_backup(backup_name: str, backups: BackupManager = Depends(get_backups)):
    validate_backup_name(backup_name)
    if not (backups.backup_dir / backup_name).exists():
        raise NotFoundError(f"Backup file not found: {backup_name}")

    result = backups.restore_from_backup(backup_name)
    if not result.success:
        return _failure("Restore failed", result)
    return {
        "status": "ok",
        "message": result.message,
        "preRestoreBackup": result.data["pre_restore_backup"],
    }


@router.get("/db/integrity")
def integrity(db: Database = Depends(get_db)) -> dict:
    return {"status": "success", "data": maintenance.run_integrity_checks(db).to_dict()}


@router.post("/db/optimize")
def optimize(db: Database = Depends(get_db)):
    result = maintenance.optimize_database(db)
    if not result.success:
        return _failure("Database optimization failed", result)
    return {"status": "success", "message": "Database optimization completed successfully"}


@router.post("/db/cleanup")
def cleanup(
    db: Database = Depends(get_db),
    backups: BackupManager = Depends(get_backups),
):
    result = maintenance.cleanup_database(db, backups)
    if not result.success:
        return _failure("Database cleanup failed", result)
    return {"status": "success", "message": result.message, "data": result.data}


@router.get("/db/size")
def size(db: Database = Depends(get_db)):
    result = maintenance.get_database_size(db)
    if not result.success:
        return _failure("Failed to get database size", result)
    return {"status": "success", "data": result.data}
