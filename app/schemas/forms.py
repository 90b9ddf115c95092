import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


FieldType = Literal["text", "email", "select", "multi_select", "boolean", "rating"]
ScaleType = Literal["numeric", "stars"]

CHOICE_TYPES = ("select", "multi_select")


def new_field_id() -> str:
    return str(uuid.uuid4())


class FieldConditional(BaseModel):
    """Show the owning field only when `field_key` currently holds `option`."""
    field_key: str
    option: str


class FormField(BaseModel):
    """
    One question in a form.

    Type-specific attributes are only meaningful for the matching `type`;
    `normalize()` nulls the others out before the schema is persisted.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_field_id)
    type: FieldType = "text"
    label: str = ""
    key: str = ""
    required: bool = False
    order: int | None = None

    # text
    min_count: int | None = None
    max_count: int | None = None

    # select / multi_select
    options: list[str] | None = None
    is_ranked: bool | None = None

    # rating
    scale_min: float | None = None
    scale_max: float | None = None
    scale_type: ScaleType | None = None
    allow_float: bool | None = None
    min_label: str | None = None
    max_label: str | None = None

    # email (domain restriction is enforced by the submission frontend)
    is_student_email: bool | None = None

    conditional: FieldConditional | None = None

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, v: Any) -> bool:
        return bool(v)


class FormSchema(BaseModel):
    fields: list[FormField] = Field(default_factory=list)


class FormMeta(BaseModel):
    title: str = ""
    slug: str = ""
    is_active: bool = True
    event_id: uuid.UUID | None = None


class FormUpsert(FormMeta):
    """Complete replacement of a form: meta + schema (there is no patch)."""
    model_config = ConfigDict(populate_by_name=True)

    form_schema: FormSchema = Field(default_factory=FormSchema, alias="schema")


class FormOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    slug: str
    is_active: bool
    event_id: str | None
    form_schema: FormSchema = Field(alias="schema")
    created_at: datetime
    updated_at: datetime


class FormValidationOut(BaseModel):
    """Save preview: the first violation (if any) and the normalized fields."""
    valid: bool
    error: str | None = None
    fields: list[FormField]


class SubmissionCreate(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    status: str = Field(default="submitted", min_length=1, max_length=40)


class SubmissionOut(BaseModel):
    id: str
    form_id: str
    status: str
    answers: dict[str, Any]
    created_at: datetime


class VisibilityRequest(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)


class VisibilityOut(BaseModel):
    visible_keys: list[str]
    answers: dict[str, Any]  # hidden-field answers removed
