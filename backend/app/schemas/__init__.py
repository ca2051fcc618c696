"""Pydantic schemas for API request/response validation."""

from backend.app.schemas.user import (
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from backend.app.schemas.report import (
    LeadStatusUpdate,
    MeetingDetails,
    ReportCreate,
    ReportCreateResponse,
    ReportEnvelope,
    ReportResponse,
    ReportStatusResponse,
    ReportSummary,
    ReportUpdate,
    SectionBatchRequest,
    SectionBatchResponse,
    SingleSectionRequest,
)
from backend.app.schemas.project import (
    ProjectDelete,
    ProjectListResponse,
    ProjectRename,
    ProjectStats,
)

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "PrincipalResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    "LeadStatusUpdate",
    "MeetingDetails",
    "ReportCreate",
    "ReportCreateResponse",
    "ReportEnvelope",
    "ReportResponse",
    "ReportStatusResponse",
    "ReportSummary",
    "ReportUpdate",
    "SectionBatchRequest",
    "SectionBatchResponse",
    "SingleSectionRequest",
    "ProjectDelete",
    "ProjectListResponse",
    "ProjectRename",
    "ProjectStats",
]
