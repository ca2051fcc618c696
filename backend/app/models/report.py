"""Report model for storing generated lead reports."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.core.config import UNASSIGNED_PROJECT
from backend.app.db.base import Base


class LeadStatus(str, enum.Enum):
    """Sales status of the lead a report describes."""

    WARM = "warm"
    HOT = "hot"
    MEETING_SCHEDULED = "meeting_scheduled"
    MEETING_RESCHEDULED = "meeting_rescheduled"
    MEETING_DONE = "meeting_done"

    @classmethod
    def normalize(cls, value: str | None) -> "LeadStatus":
        """Map free input to a known status, defaulting to warm."""
        if value:
            candidate = value.strip().lower()
            for member in cls:
                if member.value == candidate:
                    return member
        return cls.WARM


class Report(Base):
    """Lead report and its generation state."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    # Ownership
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    report_owner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project: Mapped[str] = mapped_column(
        String(255), nullable=False, default=UNASSIGNED_PROJECT, index=True
    )
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Generation status
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="processing")
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    lifecycle_run: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Inputs
    meeting_details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    enabled_sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Generated content
    lead_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    enrichment_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    company_news: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    report_markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    section_content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    ai_content_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    report_generation_warning: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Sales tracking
    lead_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=LeadStatus.WARM.value
    )
    notes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    news_refreshed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, status={self.status}, project={self.project})>"
