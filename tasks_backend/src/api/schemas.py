from __future__ import annotations

from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationInfo,
    field_validator,
    model_validator,
)


def _require_text(v: Optional[str], field: str) -> Optional[str]:
    """
    Reject blank strings. Values are stored exactly as sent; whitespace is only
    used to decide emptiness.
    """
    if v is not None and not v.strip():
        raise ValueError(f"{field} must not be empty")
    return v


# PUBLIC_INTERFACE
class Credentials(BaseModel):
    """
    Schema for /register and /login bodies.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "ada@example.com", "password": "correct horse"}}
    )

    email: Optional[StrictStr] = Field(default=None, description="Login email (case-sensitive)")
    password: Optional[StrictStr] = Field(default=None, description="Plaintext password")

    @model_validator(mode="after")
    def require_both(self) -> "Credentials":
        """Both fields must be present and non-blank."""
        if not self.email or not self.email.strip() or not self.password:
            raise ValueError("Email and password required")
        return self


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a task. Every field is required; isChecked must be a
    real JSON boolean.
    """

    # Bodies use the wire name isChecked only.
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Buy groceries", "date": "2024-01-01", "isChecked": False}
        },
    )

    title: StrictStr = Field(..., description="Task title")
    date: StrictStr = Field(..., description="Application-defined date string")
    is_checked: StrictBool = Field(..., alias="isChecked", description="Completion flag")

    @field_validator("title", "date")
    @classmethod
    def not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _require_text(v, info.field_name)  # type: ignore[return-value]


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for partially updating a task.
    All fields are optional; only fields present in the body are applied.
    Sending null for a field is rejected rather than treated as absent.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"isChecked": True}},
    )

    title: Optional[StrictStr] = Field(default=None, description="Task title")
    date: Optional[StrictStr] = Field(default=None, description="Application-defined date string")
    is_checked: Optional[StrictBool] = Field(default=None, alias="isChecked", description="Completion flag")

    @field_validator("title", "date", "is_checked")
    @classmethod
    def not_null(cls, v: Any, info: ValidationInfo) -> Any:
        # Defaults are not validated, so this only sees explicitly sent values.
        name = "isChecked" if info.field_name == "is_checked" else info.field_name
        if v is None:
            raise ValueError(f"{name} must not be null")
        if isinstance(v, str):
            _require_text(v, name)
        return v

    def changes(self) -> dict:
        """The fields present in the request body, keyed by store field name."""
        return self.model_dump(exclude_unset=True)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"id": 1, "userId": 1, "title": "Buy groceries", "date": "2024-01-01", "isChecked": False}
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    user_id: int = Field(..., alias="userId", description="Owning user's id")
    title: str = Field(..., description="Task title")
    date: str = Field(..., description="Application-defined date string")
    is_checked: bool = Field(..., alias="isChecked", description="Completion flag")


class TaskEnvelope(BaseModel):
    task: TaskOut


class TaskListEnvelope(BaseModel):
    tasks: List[TaskOut]


class TokenResponse(BaseModel):
    token: str = Field(..., description="Bearer token for the Authorization header")


class MessageResponse(BaseModel):
    message: str


class ProfileStats(BaseModel):
    total: int = Field(..., description="Number of tasks the user owns")
    completed: int = Field(..., description="Number of those tasks with isChecked true")


class ProfileOut(BaseModel):
    email: str
    image: str = Field(..., description="Relative image path, or empty string when unset")
    stats: ProfileStats


class ImageUploadResponse(BaseModel):
    message: str
    image: str = Field(..., description="Relative path of the stored image")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
