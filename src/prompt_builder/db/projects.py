"""db/projects.py

Projects are the root aggregate: every scoped table cascades with them.

Construction:

- ProjectDAO(db)

Support for atomic multi-step operations:

with project_dao(db) as dao:
    project_id = dao.create("Launch", "")
    dao.initialize(project_id)
"""
import logging
import sqlite3
from contextlib import contextmanager
from typing import Dict, List, Optional

from prompt_builder.config import (
    CONTENT_BLOCK_TYPES,
    DEFAULT_PROJECT_ID,
    DEFAULT_PROMPT_SETS,
)
from prompt_builder.db.components import ComponentDAO
from prompt_builder.db.content import ContentDAO
from prompt_builder.db.infra.core import Database, NOW_SQL
from prompt_builder.db.prompt_sets import PromptSetDAO
from prompt_builder.db.settings import SettingsDAO
from prompt_builder.errors import NotFoundError, PolicyError, ValidationError
from prompt_builder.models import Project

logger = logging.getLogger(__name__)


def _clean_name(name) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("Project name is required")
    return str(name).strip()


def _row_to_project(row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        created_at=row["created_at"],
        modified_at=row["modified_at"],
    )


class ProjectDAO:
    def __init__(self, db: Database):
        if db is None:
            raise ValueError("ProjectDAO requires a Database")
        self._db = db

    # -----------------------
    # internal helpers
    # -----------------------

    @contextmanager
    def _connection(self):
        with self._db.transaction() as conn:
            yield conn

    def _require(self, project_id: int) -> Project:
        project = self.get(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    # -----------------------
    # READ operations
    # -----------------------

    def list(self) -> List[Project]:
        logger.debug("Loading projects from DB")
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    """
                    SELECT id, name, description, created_at, modified_at
                    FROM projects
                    ORDER BY id
                    """
                ).fetchall()
        except Exception:
            logger.exception("Failed to load projects from DB")
            raise
        return [_row_to_project(row) for row in rows]

    def get(self, project_id: int) -> Optional[Project]:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT id, name, description, created_at, modified_at
                FROM projects WHERE id = ?
                """,
                (project_id,),
            ).fetchone()
        return _row_to_project(row) if row else None

    def stats(self, project_id: int) -> Dict[str, object]:
        with self._connection() as conn:
            def _count(table: str) -> int:
                return conn.execute(
                    f"SELECT COUNT(*) FROM {table} WHERE project_id = ?", (project_id,)
                ).fetchone()[0]

            return {
                "component_count": _count("project_components"),
                "prompt_set_count": _count("project_prompt_sets"),
                "content_block_count": _count("project_content_blocks"),
                "has_settings": _count("project_settings") > 0,
            }

    # -----------------------
    # WRITE operations
    # -----------------------

    def create(self, name: str, description: str = "") -> int:
        name = _clean_name(name)
        description = (description or "").strip()

        logger.info("Creating project %s", name)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    "INSERT INTO projects (name, description) VALUES (?, ?)",
                    (name, description),
                )
        except Exception:
            logger.exception("Failed to create project %s", name)
            raise
        return cur.lastrowid

    def update(self, project_id: int, *, name=None, description=None) -> bool:
        fields: Dict[str, str] = {}
        if name is not None:
            fields["name"] = _clean_name(name)
        if description is not None:
            fields["description"] = str(description).strip()
        if not fields:
            return False

        set_clauses = [f"{key} = ?" for key in fields]
        set_clauses.append(f"modified_at = {NOW_SQL}")

        logger.info("Updating project %s", project_id)
        try:
            with self._connection() as conn:
                cur = conn.execute(
                    f"UPDATE projects SET {', '.join(set_clauses)} WHERE id = ?",
                    (*fields.values(), project_id),
                )
        except Exception:
            logger.exception("Failed to update project %s", project_id)
            raise
        return cur.rowcount > 0

    def delete(self, project_id: int) -> Project:
        """
        Delete a project and, through foreign-key cascades, everything scoped
        to it. The Default Project can never be deleted.
        """
        if project_id == DEFAULT_PROJECT_ID:
            raise PolicyError("Cannot delete the Default Project")

        logger.info("Deleting project %s", project_id)
        try:
            with self._connection() as conn:
                project = self._require(project_id)
                conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        except NotFoundError:
            raise
        except Exception:
            logger.exception("Failed to delete project %s", project_id)
            raise
        return project

    def initialize(self, project_id: int) -> None:
        """
        Scaffold a project: default prompt sets, one content block per block
        type (each with an empty active draft) and default settings.
        Existing pieces are kept, so this is safe to re-run.
        """
        logger.info("Initializing project %s", project_id)
        with self._connection():
            self._require(project_id)

            prompt_sets = PromptSetDAO(self._db)
            for set_key, display_name, is_active in DEFAULT_PROMPT_SETS:
                prompt_sets.ensure(project_id, set_key, display_name, is_active)

            content = ContentDAO(self._db)
            for block_type in CONTENT_BLOCK_TYPES:
                content.ensure_block(project_id, block_type)

            SettingsDAO(self._db).ensure_defaults(project_id)

    def copy_into(self, source_id: int, target_id: int) -> Dict[str, int]:
        """
        Copy components, prompt sets, visibility, active draft contents and
        settings from `source_id` into the initialized project `target_id`,
        in that order, as one unit.
        """
        logger.info("Copying project %s into %s", source_id, target_id)
        summary = {"components": 0, "prompt_sets": 0, "visibility": 0, "drafts": 0}

        with self._connection():
            self._require(source_id)
            self._require(target_id)

            components = ComponentDAO(self._db)
            for component in components.list(source_id):
                components.insert_copy(target_id, component)
                summary["components"] += 1

            prompt_sets = PromptSetDAO(self._db)
            existing = {ps.set_key: ps for ps in prompt_sets.list(target_id)}
            id_map: Dict[int, int] = {}
            for source_set in prompt_sets.list(source_id):
                target_set = existing.get(source_set.set_key)
                if target_set is not None:
                    id_map[source_set.id] = target_set.id
                    prompt_sets.update(
                        target_id,
                        target_set.id,
                        {"display_name": source_set.display_name, "is_active": source_set.is_active},
                    )
                else:
                    try:
                        id_map[source_set.id] = prompt_sets.create(
                            target_id,
                            source_set.set_key,
                            source_set.display_name,
                            source_set.is_active,
                        )
                    except sqlite3.IntegrityError:
                        found = prompt_sets.get_by_key(target_id, source_set.set_key)
                        if found is None:
                            raise
                        id_map[source_set.id] = found.id
                summary["prompt_sets"] += 1

            for row in prompt_sets.list_visibility(source_id):
                new_set_id = id_map.get(row.prompt_set_id)
                if new_set_id is None:
                    continue
                prompt_sets.set_visibility(
                    target_id, new_set_id, row.component_type_id, row.is_visible
                )
                summary["visibility"] += 1

            content = ContentDAO(self._db)
            for block in content.list_blocks(source_id):
                draft = content.get_active_draft(source_id, block.block_type)
                if draft is None or not draft.content:
                    continue
                content.ensure_block(target_id, block.block_type)
                content.create_draft(target_id, block.block_type, content=draft.content)
                summary["drafts"] += 1

            settings = SettingsDAO(self._db)
            source_settings = settings.get(source_id)
            if source_settings is not None:
                settings.update(
                    target_id,
                    {
                        "text_transformer_active_action": source_settings.text_transformer_active_action,
                        "text_transformer_options": source_settings.text_transformer_options,
                        "ui_settings": source_settings.ui_settings,
                    },
                )

        logger.info("Copied project %s into %s: %s", source_id, target_id, summary)
        return summary


# -----------------------
# Transaction-scoped DAO
# -----------------------

@contextmanager
def project_dao(db: Database):
    """
    Yield a ProjectDAO bound to a single transaction.
    """
    with db.transaction():
        yield ProjectDAO(db)
