"""db/settings.py

One settings row per project. JSON-typed columns are decoded on read.
"""
import json
import logging
from contextlib import contextmanager
from typing import Any, Mapping, Optional

from prompt_builder.config import DEFAULT_SETTINGS
from prompt_builder.db.infra.core import Database, is_valid_json, safe_json_loads
from prompt_builder.errors import NotFoundError, ValidationError
from prompt_builder.models import ProjectSettings

logger = logging.getLogger(__name__)

JSON_FIELDS = ("text_transformer_options", "ui_settings")
UPDATABLE_FIELDS = ("text_transformer_active_action",) + JSON_FIELDS


def _encode(field: str, value: Any) -> str:
    if field not in JSON_FIELDS:
        if value is None or not str(value).strip():
            raise ValidationError(f"{field} must not be empty")
        return str(value)
    if isinstance(value, str):
        if not is_valid_json(value):
            raise ValidationError(f"{field} must be valid JSON")
        return value
    try:
        return json.dumps(value if value is not None else {})
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} is not JSON serializable: {e}")


class SettingsDAO:
    def __init__(self, db: Database):
        if db is None:
            raise ValueError("SettingsDAO requires a Database")
        self._db = db

    @contextmanager
    def _connection(self):
        with self._db.transaction() as conn:
            yield conn

    def get(self, project_id: int) -> Optional[ProjectSettings]:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT project_id, text_transformer_active_action,
                       text_transformer_options, ui_settings
                FROM project_settings
                WHERE project_id = ?
                """,
                (project_id,),
            ).fetchone()
        if row is None:
            return None
        return ProjectSettings(
            project_id=row["project_id"],
            text_transformer_active_action=row["text_transformer_active_action"],
            text_transformer_options=safe_json_loads(row["text_transformer_options"], {}),
            ui_settings=safe_json_loads(row["ui_settings"], {}),
        )

    def ensure_defaults(self, project_id: int) -> bool:
        """Create the default settings row if absent. Returns True if created."""
        with self._connection() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO project_settings
                    (project_id, text_transformer_active_action,
                     text_transformer_options, ui_settings)
                VALUES (?, ?, ?, ?)
                """,
                (
                    project_id,
                    DEFAULT_SETTINGS["text_transformer_active_action"],
                    json.dumps(DEFAULT_SETTINGS["text_transformer_options"]),
                    json.dumps(DEFAULT_SETTINGS["ui_settings"]),
                ),
            )
        return cur.rowcount > 0

    def update(self, project_id: int, changes: Mapping[str, Any]) -> bool:
        """
        Upsert the allowed subset of `changes`. Returns False if no allowed
        field was given.
        """
        fields = [key for key in UPDATABLE_FIELDS if key in changes]
        if not fields:
            return False
        values = [_encode(key, changes[key]) for key in fields]

        logger.info("Updating settings for project %s: %s", project_id, fields)
        try:
            with self._connection() as conn:
                if not conn.execute(
                    "SELECT 1 FROM projects WHERE id = ?", (project_id,)
                ).fetchone():
                    raise NotFoundError(f"Project {project_id} not found")
                self.ensure_defaults(project_id)
                conn.execute(
                    f"UPDATE project_settings SET {', '.join(f'{k} = ?' for k in fields)} "
                    "WHERE project_id = ?",
                    (*values, project_id),
                )
        except NotFoundError:
            raise
        except Exception:
            logger.exception("Failed to update settings for project %s", project_id)
            raise
        return True


@contextmanager
def settings_dao(db: Database):
    with db.transaction():
        yield SettingsDAO(db)
