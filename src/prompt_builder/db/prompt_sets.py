"""db/prompt_sets.py

Project prompt sets and their per-component-type visibility.

with prompt_set_dao(db) as dao:
    set_id = dao.create(project_id, "outline", "Outline")
    dao.set_visibility(project_id, set_id, type_id, False)
"""
import logging
from contextlib import contextmanager
from typing import Any, List, Mapping, Optional

from prompt_builder.db.infra.core import Database, NOW_SQL, coerce_flag
from prompt_builder.errors import NotFoundError, ValidationError
from prompt_builder.models import ProjectPromptSet, PromptSetVisibility

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("display_name", "is_active")


def _row_to_prompt_set(row) -> ProjectPromptSet:
    return ProjectPromptSet(
        id=row["id"],
        project_id=row["project_id"],
        set_key=row["set_key"],
        display_name=row["display_name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        modified_at=row["modified_at"],
    )


def _parse_id(value, name: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}: {value!r}")


class PromptSetDAO:
    def __init__(self, db: Database):
        if db is None:
            raise ValueError("PromptSetDAO requires a Database")
        self._db = db

    # -----------------------
    # internal helpers
    # -----------------------

    @contextmanager
    def _connection(self):
        with self._db.transaction() as conn:
            yield conn

    # -----------------------
    # READ operations
    # -----------------------

    def list(self, project_id: int) -> List[ProjectPromptSet]:
        logger.debug("Loading prompt sets for project %s from DB", project_id)
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    """
                    SELECT id, project_id, set_key, display_name, is_active,
                           created_at, modified_at
                    FROM project_prompt_sets
                    WHERE project_id = ?
                    ORDER BY id
                    """,
                    (project_id,),
                ).fetchall()
        except Exception:
            logger.exception("Failed to load prompt sets for project %s", project_id)
            raise
        return [_row_to_prompt_set(row) for row in rows]

    def get_by_key(self, project_id: int, set_key: str) -> Optional[ProjectPromptSet]:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT id, project_id, set_key, display_name, is_active,
                       created_at, modified_at
                FROM project_prompt_sets
                WHERE project_id = ? AND set_key = ?
                """,
                (project_id, set_key),
            ).fetchone()
        return _row_to_prompt_set(row) if row else None

    def list_visibility(self, project_id: int) -> List[PromptSetVisibility]:
        logger.debug("Loading prompt set visibility for project %s", project_id)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT project_id, prompt_set_id, component_type_id, is_visible
                FROM project_prompt_set_visibility
                WHERE project_id = ?
                ORDER BY prompt_set_id, component_type_id
                """,
                (project_id,),
            ).fetchall()
        return [
            PromptSetVisibility(
                project_id=row["project_id"],
                prompt_set_id=row["prompt_set_id"],
                component_type_id=row["component_type_id"],
                is_visible=bool(row["is_visible"]),
            )
            for row in rows
        ]

    # -----------------------
    # WRITE operations
    # -----------------------

    def create(self, project_id: int, set_key: str, display_name: str, is_active=False) -> int:
        if not set_key or not str(set_key).strip():
            raise ValidationError("set_key is required")
        if not display_name or not str(display_name).strip():
            raise ValidationError("display_name is required")

        logger.info("Creating prompt set %s in project %s", set_key, project_id)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO project_prompt_sets
                        (project_id, set_key, display_name, is_active)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        project_id,
                        str(set_key).strip(),
                        str(display_name).strip(),
                        coerce_flag(is_active, "is_active"),
                    ),
                )
        except Exception:
            logger.exception("Failed to create prompt set %s in project %s", set_key, project_id)
            raise
        return cur.lastrowid

    def ensure(self, project_id: int, set_key: str, display_name: str, is_active=False) -> int:
        """
        Return the id of the prompt set with `set_key`, creating it if absent.
        An existing set is reused as-is.
        """
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO project_prompt_sets
                    (project_id, set_key, display_name, is_active)
                VALUES (?, ?, ?, ?)
                """,
                (project_id, set_key, display_name, coerce_flag(is_active, "is_active")),
            )
            row = conn.execute(
                "SELECT id FROM project_prompt_sets WHERE project_id = ? AND set_key = ?",
                (project_id, set_key),
            ).fetchone()
        return row["id"]

    def update(self, project_id: int, prompt_set_id: int, changes: Mapping[str, Any]) -> bool:
        fields = [key for key in UPDATABLE_FIELDS if key in changes]
        if not fields:
            return False

        values = []
        for key in fields:
            if key == "is_active":
                values.append(coerce_flag(changes[key], "is_active"))
            else:
                if not changes[key] or not str(changes[key]).strip():
                    raise ValidationError("display_name must not be empty")
                values.append(str(changes[key]).strip())

        set_clauses = [f"{key} = ?" for key in fields]
        set_clauses.append(f"modified_at = {NOW_SQL}")

        logger.info("Updating prompt set %s in project %s", prompt_set_id, project_id)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    f"UPDATE project_prompt_sets SET {', '.join(set_clauses)} "
                    "WHERE project_id = ? AND id = ?",
                    (*values, project_id, prompt_set_id),
                )
        except Exception:
            logger.exception("Failed to update prompt set %s", prompt_set_id)
            raise
        return cur.rowcount > 0

    def set_visibility(self, project_id: int, prompt_set_id, component_type_id, is_visible) -> None:
        """
        Upsert one visibility row. Calling it repeatedly always leaves exactly
        one row holding the latest value.
        """
        prompt_set_id = _parse_id(prompt_set_id, "promptSetId")
        component_type_id = _parse_id(component_type_id, "componentTypeId")
        flag = coerce_flag(is_visible, "isVisible")

        logger.info(
            "Setting visibility of type %s in prompt set %s (project %s) to %s",
            component_type_id, prompt_set_id, project_id, bool(flag),
        )
        try:
            with self._connection() as conn:
                owner = conn.execute(
                    "SELECT project_id FROM project_prompt_sets WHERE id = ?",
                    (prompt_set_id,),
                ).fetchone()
                if owner is None or owner["project_id"] != project_id:
                    raise NotFoundError(
                        f"Prompt set {prompt_set_id} not found in project {project_id}"
                    )
                if not conn.execute(
                    "SELECT 1 FROM component_types WHERE id = ?", (component_type_id,)
                ).fetchone():
                    raise NotFoundError(f"Component type {component_type_id} not found")

                conn.execute(
                    """
                    INSERT INTO project_prompt_set_visibility
                        (project_id, prompt_set_id, component_type_id, is_visible)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (project_id, prompt_set_id, component_type_id)
                    DO UPDATE SET is_visible = excluded.is_visible
                    """,
                    (project_id, prompt_set_id, component_type_id, flag),
                )
        except NotFoundError:
            raise
        except Exception:
            logger.exception("Failed to update visibility for prompt set %s", prompt_set_id)
            raise


# -----------------------
# Transaction-scoped DAO
# -----------------------

@contextmanager
def prompt_set_dao(db: Database):
    """
    Yield a PromptSetDAO bound to a single transaction.
    """
    with db.transaction():
        yield PromptSetDAO(db)
