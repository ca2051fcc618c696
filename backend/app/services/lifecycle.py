"""Report generation lifecycle."""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InvalidTransitionError,
    ReportGenerationInProgressError,
    ReportNotFoundError,
)
from backend.app.models.report import Report

logger = logging.getLogger(__name__)


class ReportStatus(str, enum.Enum):
    """Generation phases of a report."""

    PROCESSING = "processing"
    FETCHING_ENRICHMENT = "fetching_enrichment"
    GENERATING_AI = "generating_ai"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ReportStatus.COMPLETED, ReportStatus.FAILED})

_SUCCESSOR = {
    ReportStatus.PROCESSING: ReportStatus.FETCHING_ENRICHMENT,
    ReportStatus.FETCHING_ENRICHMENT: ReportStatus.GENERATING_AI,
    ReportStatus.GENERATING_AI: ReportStatus.COMPLETED,
}


@dataclass(frozen=True)
class StatusSnapshot:
    """Status-only view of a report."""

    status: ReportStatus
    error: str | None = None

    def to_dict(self) -> dict:
        return {"status": self.status.value, "error": self.error}


class LifecycleTracker:
    """
    Owns the status field of report records.

    Statuses only move forward one step at a time, or sideways to failed from a
    non-terminal state. Writes go through the given session; the caller decides
    when to commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, report_id: str) -> Report:
        report = await self.db.get(Report, report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def create(self, **fields) -> Report:
        """Add a new report in the initial state."""
        report = Report(**fields)
        report.status = ReportStatus.PROCESSING.value
        report.error = None
        self.db.add(report)
        return report

    async def read(self, report_id: str) -> StatusSnapshot:
        report = await self._load(report_id)
        return StatusSnapshot(status=ReportStatus(report.status), error=report.error)

    async def advance(self, report_id: str, next_status: ReportStatus | str) -> Report:
        """
        Move a report to the immediate successor of its current status.

        Raises:
            InvalidTransitionError: next_status is not the immediate successor
        """
        report = await self._load(report_id)
        current = ReportStatus(report.status)
        try:
            requested = ReportStatus(next_status)
        except ValueError:
            raise InvalidTransitionError(report_id, current.value, str(next_status)) from None
        if _SUCCESSOR.get(current) is not requested:
            logger.error(f"[LIFECYCLE] Rejected {report_id}: {current.value} -> {requested.value}")
            raise InvalidTransitionError(report_id, current.value, requested.value)

        report.status = requested.value
        report.error = None
        if requested is ReportStatus.COMPLETED:
            report.completed_at = datetime.utcnow()
        await self.db.flush()
        logger.info(f"[LIFECYCLE] {report_id}: {current.value} -> {requested.value}")
        return report

    async def fail(self, report_id: str, message: str | None) -> Report:
        """Move a non-terminal report to failed and store the error message."""
        report = await self._load(report_id)
        current = ReportStatus(report.status)
        if current.is_terminal:
            raise InvalidTransitionError(report_id, current.value, ReportStatus.FAILED.value)

        report.status = ReportStatus.FAILED.value
        report.error = message or "Unknown error"
        await self.db.flush()
        logger.warning(f"[LIFECYCLE] {report_id}: {current.value} -> failed ({report.error})")
        return report

    async def restart(self, report_id: str) -> Report:
        """Start a new run for a report whose previous run has finished."""
        report = await self._load(report_id)
        current = ReportStatus(report.status)
        if not current.is_terminal:
            raise ReportGenerationInProgressError(report_id)

        report.status = ReportStatus.PROCESSING.value
        report.error = None
        report.completed_at = None
        report.lifecycle_run = (report.lifecycle_run or 1) + 1
        await self.db.flush()
        logger.info(f"[LIFECYCLE] {report_id}: restarted as run {report.lifecycle_run}")
        return report
