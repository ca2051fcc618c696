"""User and authentication schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _clean_projects(projects: list[str]) -> list[str]:
    cleaned: list[str] = []
    for project in projects:
        project = project.strip()
        if project and project not in cleaned:
            cleaned.append(project)
    return cleaned


class LoginRequest(BaseModel):
    """Credentials for signing in."""

    email: str = Field(..., min_length=3, description="Login email")
    password: str = Field(..., min_length=1, description="Password")


class UserResponse(BaseModel):
    """Schema for user data in responses."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Login email")
    role: str = Field(..., description="admin, project_user or client")
    assigned_projects: list[str] = Field(default_factory=list, description="Projects the user can access")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    last_login_at: datetime | None = Field(default=None, description="Last successful login")

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    """Issued access token and the signed-in user."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class PrincipalResponse(BaseModel):
    """Current principal as seen by access control."""

    user_id: str
    email: str | None = None
    role: str
    assigned_projects: list[str]


class UserCreate(BaseModel):
    """Admin request to create a user."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    role: Literal["admin", "project_user"]
    assigned_projects: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Please provide a valid email address")
        return v

    @field_validator("assigned_projects")
    @classmethod
    def clean_projects(cls, v: list[str]) -> list[str]:
        return _clean_projects(v)


class UserUpdate(BaseModel):
    """Admin request to update a user. Omitted fields are left unchanged."""

    email: str | None = Field(default=None, min_length=3)
    password: str | None = Field(default=None, min_length=6)
    role: Literal["admin", "project_user"] | None = None
    assigned_projects: list[str] | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Please provide a valid email address")
        return v

    @field_validator("assigned_projects")
    @classmethod
    def clean_projects(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return _clean_projects(v)
