"""
Background generation of lead reports.

One pipeline instance owns every in-flight run in the process. A run takes a
report from processing to completed (or failed), fetching enrichment and news,
writing the narrative report and the per-section insights.
"""

import asyncio
import logging
from typing import Any

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    EnrichmentServiceError,
    LeadReportException,
    LLMServiceError,
    NoSectionsEnabledError,
    ReportGenerationInProgressError,
    ReportNotFoundError,
)
from backend.app.db.base import Database
from backend.app.models.report import Report
from backend.app.services.enrichment import EnrichmentClient, NewsClient, build_lead_data
from backend.app.services.lifecycle import LifecycleTracker, ReportStatus
from backend.app.services.llm import LLMService, build_report_template
from backend.app.services.section_generator import SectionGeneratorOrchestrator

logger = logging.getLogger(__name__)

# Lead profile fields entered by the operator; enrichment never overwrites them
OPERATOR_LEAD_FIELDS = ("leadIndustry", "leadDesignation", "leadBackground", "companyOverview")

ALL_SECTIONS_FAILED = "AI content could not be generated for any section."


class ReportPipeline:
    """
    Runs report generation as asyncio tasks.

    Args:
        database: Storage handle; each run opens its own session
        enrichment: Person lookup client
        news: Company news client
        llm: Narrative and section generator
    """

    def __init__(
        self,
        database: Database,
        enrichment: EnrichmentClient,
        news: NewsClient,
        llm: LLMService,
    ):
        self.database = database
        self.enrichment = enrichment
        self.news = news
        self.llm = llm
        self._tasks: dict[str, asyncio.Task] = {}

    def is_running(self, report_id: str) -> bool:
        task = self._tasks.get(report_id)
        return task is not None and not task.done()

    def schedule(self, report_id: str) -> asyncio.Task:
        """
        Start a run for a report in the background.

        Raises:
            ReportGenerationInProgressError: A run for this report is in flight
        """
        if self.is_running(report_id):
            raise ReportGenerationInProgressError(report_id)

        task = asyncio.create_task(self.run(report_id), name=f"report-{report_id}")
        self._tasks[report_id] = task
        task.add_done_callback(lambda t, rid=report_id: self._forget(rid, t))
        logger.info(f"[PIPELINE] Scheduled report {report_id}")
        return task

    def _forget(self, report_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(report_id) is task:
            del self._tasks[report_id]

    async def wait(self, report_id: str) -> None:
        """Wait for the in-flight run of a report, if any."""
        task = self._tasks.get(report_id)
        if task is not None:
            await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait for every in-flight run."""
        pending = [task for task in self._tasks.values() if not task.done()]
        while pending:
            await asyncio.gather(*pending, return_exceptions=True)
            pending = [task for task in self._tasks.values() if not task.done()]

    async def shutdown(self) -> None:
        """Cancel in-flight runs and wait for them to settle."""
        tasks = list(self._tasks.values())
        if not tasks:
            return
        logger.info(f"[PIPELINE] Cancelling {len(tasks)} running report(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def run(self, report_id: str) -> None:
        """Execute one lifecycle run. Errors end in the failed state, never propagate."""
        async with self.database.session() as db:
            tracker = LifecycleTracker(db)
            try:
                await self._execute(db, tracker, report_id)
            except asyncio.CancelledError:
                await db.rollback()
                await self._record_failure(db, tracker, report_id, "Report generation was interrupted")
                raise
            except ReportNotFoundError:
                logger.warning(f"[PIPELINE] Report {report_id} disappeared during generation")
                await db.rollback()
            except Exception as e:
                logger.exception(f"[PIPELINE] Report {report_id} failed")
                await db.rollback()
                await self._record_failure(db, tracker, report_id, self._failure_message(e))

    @staticmethod
    def _failure_message(error: Exception) -> str:
        if isinstance(error, EnrichmentServiceError):
            return f"Failed to fetch lead data: {error.message}"
        if isinstance(error, LeadReportException):
            return error.message
        return f"Failed to generate report: {error}" if str(error) else "Unknown error"

    async def _record_failure(self, db, tracker: LifecycleTracker, report_id: str, message: str) -> None:
        try:
            await tracker.fail(report_id, message)
            await db.commit()
        except LeadReportException as e:
            logger.error(f"[PIPELINE] Could not mark report {report_id} as failed: {e.message}")

    async def _execute(self, db, tracker: LifecycleTracker, report_id: str) -> None:
        report = await db.get(Report, report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        run = report.lifecycle_run

        # Step 1: enrichment and news
        await tracker.advance(report_id, ReportStatus.FETCHING_ENRICHMENT)
        await db.commit()
        logger.info(f"[PIPELINE] Report {report_id} run {run}: fetching enrichment for {report.email}")

        enrichment = await self.enrichment.fetch_person(report.email)
        lead_data = self._merge_lead_data(report, build_lead_data(enrichment, report.email))
        company_news = await self.news.fetch_company_news(lead_data.get("companyName"))

        report.enrichment_data = enrichment
        report.company_news = company_news
        await tracker.advance(report_id, ReportStatus.GENERATING_AI)
        await db.commit()

        # Step 2: narrative report and section insights
        logger.info(f"[PIPELINE] Report {report_id} run {run}: generating AI content")
        markdown, warning = await self._generate_narrative(lead_data)
        section_content, ai_content_error = await self._generate_sections(
            report.enabled_sections if report.enabled_sections is not None else settings.default_sections,
            lead_data,
            enrichment,
        )

        # Single content write, then completion
        report.lead_data = lead_data
        report.report_markdown = markdown
        report.report_generation_warning = warning
        report.section_content = section_content
        report.ai_content_error = ai_content_error
        await tracker.advance(report_id, ReportStatus.COMPLETED)
        await db.commit()
        logger.info(
            f"[PIPELINE] Report {report_id} run {run} completed "
            f"({len(section_content)} sections, warning={warning is not None})"
        )

    @staticmethod
    def _merge_lead_data(report: Report, enriched: dict[str, Any]) -> dict[str, Any]:
        existing = report.lead_data or {}
        merged = dict(enriched)
        for key in OPERATOR_LEAD_FIELDS:
            merged[key] = existing.get(key, "")
        merged["project"] = report.project
        return merged

    async def _generate_narrative(self, lead_data: dict[str, Any]) -> tuple[str, str | None]:
        try:
            return await self.llm.generate_lead_report(lead_data), None
        except LLMServiceError as e:
            logger.warning(f"[PIPELINE] Narrative generation skipped: {e.message}")
            return build_report_template(lead_data), f"AI report enhancement skipped: {e.message}"

    async def _generate_sections(
        self,
        enabled_sections,
        lead_data: dict[str, Any],
        enrichment: dict[str, Any],
    ) -> tuple[dict[str, Any], str | None]:
        orchestrator = SectionGeneratorOrchestrator(self.llm)
        try:
            batch = await orchestrator.generate(enabled_sections, lead_data, enrichment)
        except NoSectionsEnabledError as e:
            return {}, e.message

        if batch.is_empty:
            return {}, ALL_SECTIONS_FAILED
        return batch.content, None
