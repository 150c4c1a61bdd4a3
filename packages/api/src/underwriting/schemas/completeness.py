# This project was developed with assistance from AI tools.
"""Role form and completeness schemas."""

from datetime import datetime
from typing import Any, Literal

from db.enums import FormType, UserRole
from pydantic import BaseModel, ConfigDict, Field


class FieldSpec(BaseModel):
    """One entry in a form schema."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    optional: bool = False
    # "flag" stores booleans as yes/no; "list" stores a list of names joined with ", ".
    kind: Literal["text", "flag", "list"] = "text"


class FormSchema(BaseModel):
    """Ordered field list for one role form, plus who may save it."""

    model_config = ConfigDict(frozen=True)

    form_type: FormType
    field_specs: tuple[FieldSpec, ...]
    editor_roles: frozenset[UserRole]
    underwriting_only: bool = False

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.field_specs)


class CompletenessResult(BaseModel):
    missing: list[str] = Field(default_factory=list)
    is_complete: bool


class RoleFormSnapshot(BaseModel):
    """Latest full save of a role form. Saves replace ``values`` wholesale."""

    model_config = ConfigDict(frozen=True)

    form_type: FormType
    values: dict[str, str] = Field(default_factory=dict)
    last_updated_at: datetime | None = None
    last_updated_by: str | None = None
    last_updated_role: UserRole | None = None


class FormSaveRequest(BaseModel):
    """Full value bag from a role's form submission."""

    values: dict[str, Any] = Field(default_factory=dict)


class FormResponse(BaseModel):
    loan_id: str
    form_type: FormType
    values: dict[str, str]
    missing: list[str]
    is_complete: bool
    editable: bool
    last_updated_at: datetime | None = None
    last_updated_by: str | None = None
