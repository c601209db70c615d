# src/prompt_builder/db/services.py
import logging
from typing import Optional

from prompt_builder.db.infra.core import Database
from prompt_builder.db.projects import ProjectDAO, project_dao
from prompt_builder.errors import NotFoundError, ValidationError
from prompt_builder.models import CreateProjectResult

logger = logging.getLogger(__name__)


# -----------------------
# Project Service
# -----------------------
class ProjectService:
    """
    Multi-step project workflows with partial-success reporting.

    Creating a project is three separate units of work: the project row,
    its scaffolding, and the optional copy. A failure in a later unit is
    rolled back on its own and reported; the project row stays.
    """

    def __init__(self, db: Database):
        self.db = db

    def create_project(
        self,
        name: str,
        description: str = "",
        copy_from_project_id: Optional[int] = None,
    ) -> CreateProjectResult:
        dao = ProjectDAO(self.db)

        source = None
        if copy_from_project_id:
            try:
                source_id = int(copy_from_project_id)
            except (TypeError, ValueError):
                raise ValidationError("Invalid source project ID")
            source = dao.get(source_id)
            if source is None:
                raise NotFoundError("Source project not found")

        project_id = dao.create(name, description)
        result = CreateProjectResult(
            project_id=project_id,
            name=name.strip(),
            description=(description or "").strip(),
        )

        try:
            with project_dao(self.db) as tx:
                tx.initialize(project_id)
        except Exception as e:
            logger.exception("Error initializing new project %s", project_id)
            result.status = "partial_success"
            result.message = "Project created but initialization failed"
            result.warning = "Project structure may be incomplete"
            result.init_error = str(e)
            return result

        if source is None:
            result.message = "Empty project created successfully"
            return result

        try:
            with project_dao(self.db) as tx:
                tx.copy_into(source.id, project_id)
        except Exception as e:
            logger.exception("Error copying project %s into %s", source.id, project_id)
            result.status = "partial_success"
            result.message = "Project created but copying failed"
            result.warning = "Project was created empty due to copy error"
            result.copy_error = str(e)
            return result

        result.message = "Project created and copied successfully"
        result.copied_from = source.id
        result.copied_from_name = source.name
        return result
