"""db/components.py

Component types (global catalog) and project-scoped components.

Construction:

- ComponentDAO(db)

Support for atomic multi-step operations:

with component_dao(db) as dao:
    dao.create(project_id, {...})
    dao.update(project_id, component_id, {...})
"""
import logging
from contextlib import contextmanager
from typing import Any, List, Mapping, Optional

from prompt_builder.db.infra.core import Database, NOW_SQL, coerce_flag
from prompt_builder.errors import NotFoundError, ValidationError
from prompt_builder.models import ComponentType, ProjectComponent

logger = logging.getLogger(__name__)

# Only these columns may be changed after creation
UPDATABLE_FIELDS = ("is_active", "selection", "prompt_value", "user_value")

_COMPONENT_SELECT = """
    SELECT pc.id,
           pc.project_id,
           pc.component_type_id,
           ct.type_key,
           ct.display_name,
           pc.is_active,
           pc.is_starter,
           pc.selection,
           pc.prompt_value,
           pc.user_value,
           pc.created_at,
           pc.modified_at
    FROM project_components pc
    JOIN component_types ct ON pc.component_type_id = ct.id
"""


def _row_to_component(row) -> ProjectComponent:
    return ProjectComponent(
        id=row["id"],
        project_id=row["project_id"],
        component_type_id=row["component_type_id"],
        type_key=row["type_key"],
        display_name=row["display_name"],
        is_active=bool(row["is_active"]),
        is_starter=bool(row["is_starter"]),
        selection=row["selection"],
        prompt_value=row["prompt_value"] or "",
        user_value=row["user_value"] or "",
        created_at=row["created_at"],
        modified_at=row["modified_at"],
    )


class ComponentDAO:
    def __init__(self, db: Database):
        if db is None:
            raise ValueError("ComponentDAO requires a Database")
        self._db = db

    # -----------------------
    # internal helpers
    # -----------------------

    @contextmanager
    def _connection(self):
        with self._db.transaction() as conn:
            yield conn

    # -----------------------
    # Component types
    # -----------------------

    def list_types(self) -> List[ComponentType]:
        logger.debug("Loading component types from DB")
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    "SELECT id, type_key, display_name FROM component_types ORDER BY id"
                ).fetchall()
        except Exception:
            logger.exception("Failed to load component types from DB")
            raise
        return [ComponentType(**dict(row)) for row in rows]

    def get_type_by_key(self, type_key: str) -> Optional[ComponentType]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, type_key, display_name FROM component_types WHERE type_key = ?",
                (type_key,),
            ).fetchone()
        return ComponentType(**dict(row)) if row else None

    def rename_type(self, type_key: str, display_name: str) -> bool:
        if not display_name or not str(display_name).strip():
            raise ValidationError("displayName is required")

        logger.info("Renaming component type %s", type_key)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    f"""
                    UPDATE component_types
                    SET display_name = ?, modified_at = {NOW_SQL}
                    WHERE type_key = ?
                    """,
                    (str(display_name).strip(), type_key),
                )
        except Exception:
            logger.exception("Failed to rename component type %s", type_key)
            raise
        return cur.rowcount > 0

    # -----------------------
    # READ operations
    # -----------------------

    def list(self, project_id: int) -> List[ProjectComponent]:
        logger.debug("Loading components for project %s from DB", project_id)
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    _COMPONENT_SELECT + " WHERE pc.project_id = ? ORDER BY ct.id, pc.id",
                    (project_id,),
                ).fetchall()
        except Exception:
            logger.exception("Failed to load components for project %s", project_id)
            raise
        return [_row_to_component(row) for row in rows]

    def get(self, project_id: int, component_id: int) -> Optional[ProjectComponent]:
        with self._connection() as conn:
            row = conn.execute(
                _COMPONENT_SELECT + " WHERE pc.project_id = ? AND pc.id = ?",
                (project_id, component_id),
            ).fetchone()
        return _row_to_component(row) if row else None

    def count(self, project_id: int) -> int:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM project_components WHERE project_id = ?",
                (project_id,),
            ).fetchone()
        return row[0]

    # -----------------------
    # WRITE operations
    # -----------------------

    def create(self, project_id: int, data: Mapping[str, Any]) -> int:
        """
        Create a user component. User-created rows are never starters.
        """
        return self._insert(project_id, data, is_starter=False)

    def insert_copy(self, project_id: int, source: ProjectComponent) -> int:
        """
        Duplicate a component into another project, keeping its starter flag.
        """
        return self._insert(
            project_id,
            {
                "component_type_id": source.component_type_id,
                "is_active": source.is_active,
                "selection": source.selection,
                "prompt_value": source.prompt_value,
                "user_value": source.user_value,
            },
            is_starter=source.is_starter,
        )

    def _insert(self, project_id: int, data: Mapping[str, Any], *, is_starter: bool) -> int:
        type_id = data.get("component_type_id")
        if type_id is None or isinstance(type_id, bool):
            raise ValidationError("component_type_id is required")
        try:
            type_id = int(type_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid component_type_id: {type_id!r}")

        selection = data.get("selection")
        if selection is None or not str(selection).strip():
            raise ValidationError("selection is required")

        is_active = coerce_flag(data.get("is_active", True), "is_active")

        logger.info("Creating component (type %s) in project %s", type_id, project_id)
        try:
            with self._connection() as conn:
                if not conn.execute(
                    "SELECT 1 FROM projects WHERE id = ?", (project_id,)
                ).fetchone():
                    raise NotFoundError(f"Project {project_id} not found")
                if not conn.execute(
                    "SELECT 1 FROM component_types WHERE id = ?", (type_id,)
                ).fetchone():
                    raise NotFoundError(f"Component type {type_id} not found")

                cur = conn.execute(
                    """
                    INSERT INTO project_components
                        (project_id,
                         component_type_id,
                         is_active,
                         is_starter,
                         selection,
                         prompt_value,
                         user_value)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        project_id,
                        type_id,
                        is_active,
                        int(bool(is_starter)),
                        str(selection),
                        data.get("prompt_value") or "",
                        data.get("user_value") or "",
                    ),
                )
        except NotFoundError:
            raise
        except Exception:
            logger.exception("Failed to create component in project %s", project_id)
            raise
        return cur.lastrowid

    def update(self, project_id: int, component_id: int, changes: Mapping[str, Any]) -> bool:
        """
        Apply the allowed subset of `changes` and stamp modified_at.

        Returns False when nothing was applied (no allowed field given, or
        no such component in the project).
        """
        fields = [key for key in UPDATABLE_FIELDS if key in changes]
        if not fields:
            return False

        values = []
        for key in fields:
            if key == "is_active":
                values.append(coerce_flag(changes[key], "is_active"))
            elif key == "selection":
                if changes[key] is None or not str(changes[key]).strip():
                    raise ValidationError("selection must not be empty")
                values.append(str(changes[key]))
            else:
                values.append("" if changes[key] is None else str(changes[key]))

        set_clauses = [f"{key} = ?" for key in fields]
        set_clauses.append(f"modified_at = {NOW_SQL}")
        sql = (
            f"UPDATE project_components SET {', '.join(set_clauses)} "
            "WHERE project_id = ? AND id = ?"
        )

        logger.info("Updating component %s in project %s", component_id, project_id)
        try:
            with self._connection() as conn:
                cur = conn.execute(sql, (*values, project_id, component_id))
        except Exception:
            logger.exception("Failed to update component %s", component_id)
            raise
        return cur.rowcount > 0

    def delete(self, project_id: int, component_id: int) -> bool:
        logger.info("Deleting component %s from project %s", component_id, project_id)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    "DELETE FROM project_components WHERE project_id = ? AND id = ?",
                    (project_id, component_id),
                )
        except Exception:
            logger.exception("Failed to delete component %s", component_id)
            raise
        return cur.rowcount > 0


# -----------------------
# Transaction-scoped DAO
# -----------------------

@contextmanager
def component_dao(db: Database):
    """
    Yield a ComponentDAO bound to a single transaction.
    """
    with db.transaction():
        yield ComponentDAO(db)

