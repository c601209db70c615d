"""Components router: catalog, Default Project components, visibility, settings."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from prompt_builder.api.dependencies import get_db
from prompt_builder.api.schemas import (
    ComponentCreate,
    ComponentTypeRename,
    ComponentUpdate,
    VisibilityUpdate,
)
from prompt_builder.config import DEFAULT_PROJECT_ID
from prompt_builder.db.components import ComponentDAO
from prompt_builder.db.infra.core import Database
from prompt_builder.db.projects import ProjectDAO
from prompt_builder.db.prompt_sets import PromptSetDAO
from prompt_builder.db.settings import SettingsDAO
from prompt_builder.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["components"])


def component_data(db: Database, project_id: int) -> dict[str, Any]:
    """Types, components, prompt sets and visibility of one project."""
    components = ComponentDAO(db)
    prompt_sets = PromptSetDAO(db)
    return {
        "types": [t.to_dict() for t in components.list_types()],
        "components": [c.to_dict() for c in components.list(project_id)],
        "promptSets": [ps.to_dict() for ps in prompt_sets.list(project_id)],
        "visibility": [v.to_dict() for v in prompt_sets.list_visibility(project_id)],
    }


def require_project(db: Database, project_id: int) -> None:
    if ProjectDAO(db).get(project_id) is None:
        raise NotFoundError("Project not found")


# -----------------------
# Shared component handlers
# -----------------------

def _create_component(db: Database, project_id: int, body: ComponentCreate) -> dict:
    component_id = ComponentDAO(db).create(project_id, body.model_dump())
    return {"id": component_id}


def _update_component(db: Database, project_id: int, component_id: int, body: ComponentUpdate) -> dict:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No updatable fields provided")
    if not ComponentDAO(db).update(project_id, component_id, changes):
        raise NotFoundError("Component not found")
    return {"message": "Component updated successfully"}


def _delete_component(db: Database, project_id: int, component_id: int) -> dict:
    if not ComponentDAO(db).delete(project_id, component_id):
        raise NotFoundError("Component not found")
    return {"message": "Component deleted successfully"}


# -----------------------
# Default Project
# -----------------------

@router.get("/components")
def get_components(db: Database = Depends(get_db)) -> dict:
    """All component data of the Default Project."""
    return component_data(db, DEFAULT_PROJECT_ID)


@router.put("/component-types/{type_key}")
def rename_component_type(
    type_key: str,
    body: ComponentTypeRename,
    db: Database = Depends(get_db),
) -> dict:
    if not ComponentDAO(db).rename_type(type_key, body.display_name):
        raise NotFoundError("Component type not found")
    return {"message": "Component type renamed successfully"}


@router.put("/prompt-set-visibility")
def update_visibility(body: VisibilityUpdate, db: Database = Depends(get_db)) -> dict:
    PromptSetDAO(db).set_visibility(
        DEFAULT_PROJECT_ID, body.prompt_set_id, body.component_type_id, body.is_visible
    )
    return {"message": "Visibility updated successfully"}


@router.put("/project-settings")
def update_project_settings(
    settings: dict[str, Any] | None = Body(default=None),
    db: Database = Depends(get_db),
) -> dict:
    if not settings:
        raise ValidationError("Settings object is required")
    if not SettingsDAO(db).update(DEFAULT_PROJECT_ID, settings):
        raise ValidationError("No valid settings fields provided")
    return {"message": "Project settings updated successfully"}


@router.post("/user-components", status_code=status.HTTP_201_CREATED)
def create_user_component(body: ComponentCreate, db: Database = Depends(get_db)) -> dict:
    return _create_component(db, DEFAULT_PROJECT_ID, body)


@router.put("/user-components/{component_id}")
def update_user_component(
    component_id: int,
    body: ComponentUpdate,
    db: Database = Depends(get_db),
) -> dict:
    return _update_component(db, DEFAULT_PROJECT_ID, component_id, body)


@router.delete("/user-components/{component_id}")
def delete_user_component(component_id: int, db: Database = Depends(get_db)) -> dict:
    return _delete_component(db, DEFAULT_PROJECT_ID, component_id)


# -----------------------
# Any project
# -----------------------

@router.post("/projects/{project_id}/components", status_code=status.HTTP_201_CREATED)
def create_project_component(
    project_id: int,
    body: ComponentCreate,
    db: Database = Depends(get_db),
) -> dict:
    return _create_component(db, project_id, body)


@router.put("/projects/{project_id}/components/{component_id}")
def update_project_component(
    project_id: int,
    component_id: int,
    body: ComponentUpdate,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    return _update_component(db, project_id, component_id, body)


@router.delete("/projects/{project_id}/components/{component_id}")
def delete_project_component(
    project_id: int,
    component_id: int,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    return _delete_component(db, project_id, component_id)
