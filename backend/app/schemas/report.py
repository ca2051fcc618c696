"""Report-related schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from backend.app.core.config import SECTION_KEYS


class MeetingDetails(BaseModel):
    """Meeting the report prepares for."""

    date: str | None = None
    time: str | None = None
    timezone: str | None = None
    platform: str | None = None
    link: str | None = None
    location: str | None = None
    name: str | None = None
    objective: str | None = None
    problem_pitch: str | None = None


class ReportCreate(BaseModel):
    """Request to generate a report for a lead."""

    email: str = Field(..., description="Lead email used for enrichment")
    report_owner_name: str = Field(..., description="Operator owning the report")
    project: str | None = Field(default=None, description="Project label; blank means Unassigned")
    meeting: MeetingDetails | None = None
    enabled_sections: list[str] | None = Field(
        default=None,
        description="Sections to generate; defaults to the configured set"
    )
    lead_industry: str | None = None
    lead_designation: str | None = None
    lead_background: str | None = None
    company_overview: str | None = None
    initial_note: str | None = None

    @field_validator("enabled_sections")
    @classmethod
    def validate_sections(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        unknown = [key for key in v if key not in SECTION_KEYS]
        if unknown:
            raise ValueError(f"Unknown section keys: {unknown}")
        return v


class ReportCreateResponse(BaseModel):
    report_id: str
    status: str


class ReportStatusResponse(BaseModel):
    """Status-only view used by pollers."""

    status: str
    error: str | None = None


class ReportResponse(BaseModel):
    """Full report record."""

    id: str
    email: str
    report_owner_name: str
    project: str
    created_by: str | None = None
    status: str
    error: str | None = None
    lifecycle_run: int
    meeting_details: dict[str, Any] | None = None
    enabled_sections: list[str] = Field(default_factory=list)
    lead_data: dict[str, Any] | None = None
    enrichment_data: dict[str, Any] | None = None
    company_news: dict[str, Any] | None = None
    report_markdown: str | None = None
    section_content: dict[str, Any] = Field(default_factory=dict)
    ai_content_error: str | None = None
    report_generation_warning: str | None = None
    lead_status: str
    notes: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    news_refreshed_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReportEnvelope(BaseModel):
    """Status plus the record, present only once completed."""

    status: str
    data: ReportResponse | None = None
    error: str | None = None


class ReportSummary(BaseModel):
    """Row in the report history list."""

    id: str
    email: str
    report_owner_name: str
    project: str
    status: str
    lead_status: str
    lead_name: str | None = None
    company_name: str | None = None
    created_at: datetime


class FormOptionsResponse(BaseModel):
    """Choices offered by the report creation form."""

    projects: list[str] = Field(..., description="Accessible project labels, excluding Unassigned")
    report_owners: list[str] = Field(..., description="Distinct owner names on visible reports")


class NewsRefreshResponse(BaseModel):
    success: bool = True
    message: str
    company_news: dict[str, Any]


class ReportUpdate(BaseModel):
    """Content edits. Omitted fields are left unchanged."""

    lead_data: dict[str, Any] | None = None
    section_content: dict[str, Any] | None = None
    report_markdown: str | None = None
    meeting_details: MeetingDetails | None = None
    notes: list[dict[str, Any]] | None = None

    @field_validator("section_content")
    @classmethod
    def validate_section_keys(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v is None:
            return v
        unknown = [key for key in v if key not in SECTION_KEYS]
        if unknown:
            raise ValueError(f"Unknown section keys: {unknown}")
        return v


class LeadStatusUpdate(BaseModel):
    status: str = Field(..., description="warm, hot, meeting_scheduled, meeting_rescheduled or meeting_done")


class SectionBatchRequest(BaseModel):
    """Sections to (re)generate for a completed report.

    ``sections`` is either a list of keys or a mapping of key to enabled flag.
    """

    sections: list[str] | dict[str, bool]

    @field_validator("sections")
    @classmethod
    def validate_section_keys(cls, v: list[str] | dict[str, bool]) -> list[str] | dict[str, bool]:
        unknown = [key for key in v if key not in SECTION_KEYS]
        if unknown:
            raise ValueError(f"Unknown section keys: {unknown}")
        return v


class SectionBatchResponse(BaseModel):
    generated_sections: list[str]
    skipped_sections: dict[str, str]
    progress: list[dict[str, Any]]
    section_content: dict[str, Any]


class SingleSectionRequest(BaseModel):
    section: str
    lead_data: dict[str, Any]
    enrichment_data: dict[str, Any] | None = None

    @field_validator("section")
    @classmethod
    def validate_section(cls, v: str) -> str:
        if v not in SECTION_KEYS:
            raise ValueError(f"Unknown section: {v}")
        return v
