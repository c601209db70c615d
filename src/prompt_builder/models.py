# models.py
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# -------------------------
# Catalog & project models
# -------------------------

@dataclass(frozen=True)
class ComponentType:
    id: int
    type_key: str
    display_name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Project:
    id: int
    name: str
    description: str
    created_at: str
    modified_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProjectComponent:
    """
    One prompt fragment of a given type inside a project.
    Joined with its component type for display.
    """
    id: int
    project_id: int
    component_type_id: int
    type_key: str
    display_name: str
    is_active: bool
    is_starter: bool
    selection: str
    prompt_value: str
    user_value: str
    created_at: str
    modified_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProjectPromptSet:
    id: int
    project_id: int
    set_key: str
    display_name: str
    is_active: bool
    created_at: str
    modified_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PromptSetVisibility:
    project_id: int
    prompt_set_id: int
    component_type_id: int
    is_visible: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------
# Content models
# -------------------------

@dataclass(frozen=True)
class ProjectDraft:
    id: str
    content_block_id: int
    content: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DraftRef:
    """
    Weak pointer from a content block to its active draft.

    The id is not backed by a foreign key and may dangle; resolve() returns
    None in that case instead of failing.
    """
    draft_id: Optional[str]

    def resolve(self, resolver: Callable[[str], Optional[ProjectDraft]]) -> Optional[ProjectDraft]:
        if not self.draft_id:
            return None
        draft = resolver(self.draft_id)
        if draft is None:
            logger.debug("Active draft %s does not resolve", self.draft_id)
        return draft


@dataclass(frozen=True)
class ProjectContentBlock:
    id: int
    project_id: int
    block_type: str
    active_draft: DraftRef
    created_at: str

    @property
    def active_draft_id(self) -> Optional[str]:
        return self.active_draft.draft_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "block_type": self.block_type,
            "active_draft_id": self.active_draft_id,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class ProjectSettings:
    project_id: int
    text_transformer_active_action: str
    text_transformer_options: Dict[str, Any] = field(default_factory=dict)
    ui_settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------
# Operation results
# -------------------------

@dataclass
class CreateProjectResult:
    """
    Outcome of creating a project.

    status is "success" or "partial_success". A partial success still
    carries the id of the created project so the caller can retry the
    failed step or delete the project.
    """
    project_id: int
    name: str
    description: str
    status: str = "success"
    message: str = ""
    warning: Optional[str] = None
    init_error: Optional[str] = None
    copy_error: Optional[str] = None
    copied_from: Optional[int] = None
    copied_from_name: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        return self.status == "partial_success"

    def to_dict(self) -> Dict[str, Any]:
        project: Dict[str, Any] = {
            "id": self.project_id,
            "name": self.name,
            "description": self.description,
        }
        if self.copied_from is not None:
            project["copied_from"] = self.copied_from
            project["copied_from_name"] = self.copied_from_name
        payload: Dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "project": project,
        }
        if self.warning:
            payload["warning"] = self.warning
        if self.init_error:
            payload["init_error"] = self.init_error
        if self.copy_error:
            payload["copy_error"] = self.copy_error
        return payload


@dataclass
class MaintenanceResult:
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CheckResult:
    valid: bool
    error: Optional[str] = None


@dataclass
class IntegrityReport:
    valid: bool
    results: Dict[str, CheckResult]
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
