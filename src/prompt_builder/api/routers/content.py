"""Content router: drafts of a project's content blocks."""

import logging

from fastapi import APIRouter, Depends, status

from prompt_builder.api.dependencies import get_db
from prompt_builder.api.routers.components import require_project
from prompt_builder.api.schemas import DraftCreate, DraftUpdate
from prompt_builder.db.content import ContentDAO
from prompt_builder.db.infra.core import Database
from prompt_builder.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/projects/{project_id}/content-blocks/{block_type}/drafts",
    tags=["content"],
)


@router.get("")
def list_drafts(project_id: int, block_type: str, db: Database = Depends(get_db)) -> dict:
    """Draft history, newest first, plus the active draft id (if it still resolves)."""
    require_project(db, project_id)
    content = ContentDAO(db)
    drafts = content.list_drafts(project_id, block_type)
    active = content.get_active_draft(project_id, block_type)
    return {
        "status": "success",
        "activeDraftId": active.id if active else None,
        "drafts": [d.to_dict() for d in drafts],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_draft(
    project_id: int,
    block_type: str,
    body: DraftCreate,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    draft_id = ContentDAO(db).create_draft(
        project_id, block_type, content=body.content, make_active=body.make_active
    )
    return {"status": "success", "id": draft_id}


@router.put("/{draft_id}")
def update_draft(
    project_id: int,
    block_type: str,
    draft_id: str,
    body: DraftUpdate,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    if not ContentDAO(db).update_draft_content(project_id, block_type, draft_id, body.content):
        raise NotFoundError("Draft not found")
    return {"status": "success", "message": "Draft updated successfully"}


@router.put("/{draft_id}/activate")
def activate_draft(
    project_id: int,
    block_type: str,
    draft_id: str,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    ContentDAO(db).set_active_draft(project_id, block_type, draft_id)
    return {"status": "success", "message": "Active draft updated"}


@router.delete("/{draft_id}")
def delete_draft(
    project_id: int,
    block_type: str,
    draft_id: str,
    db: Database = Depends(get_db),
) -> dict:
    require_project(db, project_id)
    if not ContentDAO(db).delete_draft(project_id, block_type, draft_id):
        raise NotFoundError("Draft not found")
    return {"status": "success", "message": "Draft deleted successfully"}
