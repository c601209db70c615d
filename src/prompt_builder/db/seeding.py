"""db/seeding.py

One-time population of the Default Project with the starter catalog.
"""
import logging

from prompt_builder.config import (
    DEFAULT_PROJECT_DESCRIPTION,
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
)
from prompt_builder.db.components import ComponentDAO
from prompt_builder.db.infra.core import Database
from prompt_builder.db.projects import ProjectDAO
from prompt_builder.db.prompt_sets import PromptSetDAO
from prompt_builder.db.starter_components import PLACEHOLDER_SELECTION, STARTER_COMPONENTS
from prompt_builder.errors import SeedError

logger = logging.getLogger(__name__)


def _ensure_default_project(conn) -> None:
    conn.execute(
        "INSERT OR IGNORE INTO projects (id, name, description) VALUES (?, ?, ?)",
        (DEFAULT_PROJECT_ID, DEFAULT_PROJECT_NAME, DEFAULT_PROJECT_DESCRIPTION),
    )


def _seed_components(conn, components: ComponentDAO) -> int:
    inserted = 0
    for type_key, entry in STARTER_COMPONENTS.items():
        component_type = components.get_type_by_key(type_key)
        if component_type is None:
            raise SeedError(f"Component type {type_key!r} missing from catalog")

        prompts = entry.get("prompts") or {PLACEHOLDER_SELECTION: ""}
        for selection, prompt_value in prompts.items():
            conn.execute(
                """
                INSERT INTO project_components
                    (project_id, component_type_id, is_active, is_starter,
                     selection, prompt_value, user_value)
                VALUES (?, ?, 1, 1, ?, ?, '')
                """,
                (DEFAULT_PROJECT_ID, component_type.id, selection, prompt_value),
            )
            inserted += 1
    return inserted


def _seed_visibility(conn, db: Database) -> None:
    # Every type starts visible in every prompt set of the Default Project
    type_ids = [t.id for t in ComponentDAO(db).list_types()]
    for prompt_set in PromptSetDAO(db).list(DEFAULT_PROJECT_ID):
        for type_id in type_ids:
            conn.execute(
                """
                INSERT OR IGNORE INTO project_prompt_set_visibility
                    (project_id, prompt_set_id, component_type_id, is_visible)
                VALUES (?, ?, ?, 1)
                """,
                (DEFAULT_PROJECT_ID, prompt_set.id, type_id),
            )


def initialize_database_if_needed(db: Database) -> int:
    """
    Seed the Default Project unless it already has components.

    Runs as one transaction. Returns the number of components inserted
    (0 when the store was already seeded).
    """
    components = ComponentDAO(db)
    try:
        with db.transaction() as conn:
            _ensure_default_project(conn)
            ProjectDAO(db).initialize(DEFAULT_PROJECT_ID)

            if components.count(DEFAULT_PROJECT_ID) > 0:
                logger.info("Default project already seeded; skipping")
                return 0

            logger.info("Seeding starter components into the default project")
            inserted = _seed_components(conn, components)
            _seed_visibility(conn, db)
    except SeedError:
        logger.exception("Seeding aborted")
        raise
    except Exception:
        logger.exception("Failed to seed database")
        raise

    logger.info("Seeded %d starter components", inserted)
    return inserted
