"""Request bodies.

Field names follow the browser client: camelCase aliases where it sends
camelCase, snake_case where it sends column names.
"""

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ComponentTypeRename(_Body):
    """Rename a component type."""

    display_name: str = Field(alias="displayName", min_length=1)


class VisibilityUpdate(_Body):
    """Upsert one prompt set visibility row."""

    prompt_set_id: int = Field(alias="promptSetId")
    component_type_id: int = Field(alias="componentTypeId")
    is_visible: bool = Field(alias="isVisible")


class ComponentCreate(_Body):
    """Create a user component."""

    component_type_id: int
    selection: str = Field(min_length=1)
    prompt_value: str = ""
    user_value: str = ""
    is_active: bool = True


class ComponentUpdate(_Body):
    """Partial component update. Only fields that were sent are applied."""

    is_active: bool | None = None
    selection: str | None = None
    prompt_value: str | None = None
    user_value: str | None = None


class ProjectCreate(_Body):
    """Create a project, optionally copying another one."""

    name: str
    description: str = ""
    copy_from_project_id: int | None = Field(default=None, alias="copyFromProjectId")


class ProjectUpdate(_Body):
    """Rename or re-describe a project."""

    name: str
    description: str | None = None


class DraftCreate(_Body):
    """Save a new draft of a content block."""

    content: str = ""
    make_active: bool = Field(default=True, alias="makeActive")


class DraftUpdate(_Body):
    """Replace the text of an existing draft."""

    content: str
