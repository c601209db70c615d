"""Projects router."""

import logging

from fastapi import APIRouter, Depends, status

from prompt_builder.api.dependencies import get_db
from prompt_builder.api.routers.components import component_data
from prompt_builder.api.schemas import ProjectCreate, ProjectUpdate
from prompt_builder.db.content import ContentDAO
from prompt_builder.db.infra.core import Database
from prompt_builder.db.projects import ProjectDAO
from prompt_builder.db.services import ProjectService
from prompt_builder.db.settings import SettingsDAO
from prompt_builder.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("")
def list_projects(db: Database = Depends(get_db)) -> dict:
    return {
        "status": "success",
        "projects": [p.to_dict() for p in ProjectDAO(db).list()],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(body: ProjectCreate, db: Database = Depends(get_db)) -> dict:
    """
    Create a project, optionally copied from another one.

    Scaffolding or copy failures still answer 201, with
    status "partial_success" and the id of the created project.
    """
    result = ProjectService(db).create_project(
        body.name, body.description, body.copy_from_project_id
    )
    if result.is_partial:
        logger.warning("Project %s created with errors: %s", result.project_id, result.warning)
    return result.to_dict()


@router.get("/{project_id}")
def get_project(project_id: int, db: Database = Depends(get_db)) -> dict:
    dao = ProjectDAO(db)
    project = dao.get(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    settings = SettingsDAO(db).get(project_id)
    payload = project.to_dict()
    payload["settings"] = settings.to_dict() if settings else None
    payload["stats"] = dao.stats(project_id)
    return {"status": "success", "project": payload}


@router.put("/{project_id}")
def update_project(project_id: int, body: ProjectUpdate, db: Database = Depends(get_db)) -> dict:
    if not ProjectDAO(db).update(project_id, name=body.name, description=body.description):
        raise NotFoundError("Project not found")
    return {"status": "success", "message": "Project updated successfully"}


@router.delete("/{project_id}")
def delete_project(project_id: int, db: Database = Depends(get_db)) -> dict:
    project = ProjectDAO(db).delete(project_id)
    return {"status": "success", "message": f'Project "{project.name}" deleted successfully'}


@router.get("/{project_id}/components")
def get_project_components(project_id: int, db: Database = Depends(get_db)) -> dict:
    """Everything the editor needs to render one project."""
    project = ProjectDAO(db).get(project_id)
    if project is None:
        raise NotFoundError("Project not found")

    content = ContentDAO(db)
    blocks = {}
    for block in content.list_blocks(project_id):
        draft = content.get_active_draft(project_id, block.block_type)
        blocks[block.block_type] = {
            **block.to_dict(),
            "content": draft.content if draft else "",
        }

    settings = SettingsDAO(db).get(project_id)
    data = component_data(db, project_id)
    data["contentBlocks"] = blocks
    data["settings"] = settings.to_dict() if settings else {}
    return {
        "status": "success",
        "project": {"id": project.id, "name": project.name},
        "data": data,
    }
