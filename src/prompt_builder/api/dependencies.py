"""Request-scoped access to the objects wired in by create_app()."""

from fastapi import Request

from prompt_builder.db.infra.backup_utils import BackupManager
from prompt_builder.db.infra.core import Database


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_backups(request: Request) -> BackupManager:
    return request.app.state.backups
