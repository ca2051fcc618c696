"""Project schemas."""

from pydantic import BaseModel, Field


class ProjectStats(BaseModel):
    name: str
    total_leads: int
    assigned_users: int
    report_owners: int
    status_counts: dict[str, int]


class ProjectListResponse(BaseModel):
    projects: list[ProjectStats]


class ProjectRename(BaseModel):
    current_name: str = Field(..., description="Existing project label")
    new_name: str = Field(..., description="New project label")


class ProjectDelete(BaseModel):
    project_name: str
