"""Lead report API endpoints."""

import logging
import re
import uuid
from datetime import datetime
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_principal, get_llm, get_news, get_pipeline
from backend.app.core.config import UNASSIGNED_PROJECT, settings
from backend.app.core.exceptions import (
    InvalidInputError,
    InvalidReportIdError,
    ReportGenerationInProgressError,
    ReportNotFoundError,
    ReportNotReadyError,
)
from backend.app.db.base import get_db
from backend.app.models.report import LeadStatus, Report
from backend.app.schemas.report import (
    FormOptionsResponse,
    LeadStatusUpdate,
    NewsRefreshResponse,
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
from backend.app.services.access_control import (
    Principal,
    can_access_project,
    ensure_can_edit,
    ensure_project_access,
    filter_accessible_projects,
)
from backend.app.services.enrichment import NewsClient
from backend.app.services.lifecycle import LifecycleTracker, ReportStatus
from backend.app.services.llm import LLMService
from backend.app.services.pdf_generator import PDFGenerator
from backend.app.services.report_export import render_report_markdown
from backend.app.services.report_pipeline import ReportPipeline
from backend.app.services.section_generator import BatchProgress, SectionGeneratorOrchestrator

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)

_pdf_generator: PDFGenerator | None = None


def get_pdf_generator() -> PDFGenerator:
    """Get or create PDF generator instance."""
    global _pdf_generator
    if _pdf_generator is None:
        _pdf_generator = PDFGenerator()
    return _pdf_generator


def parse_report_id(report_id: str) -> str:
    """Validate the identifier format before touching storage."""
    try:
        return str(UUID(report_id))
    except (ValueError, AttributeError, TypeError):
        raise InvalidReportIdError(report_id) from None


async def load_report(db: AsyncSession, report_id: str, principal: Principal) -> Report:
    """Fetch a report the principal is allowed to see."""
    report_id = parse_report_id(report_id)
    report = await db.get(Report, report_id)
    if report is None:
        raise ReportNotFoundError(report_id)
    ensure_project_access(principal, report.project)
    return report


def _download_filename(report: Report, extension: str) -> str:
    name = (report.lead_data or {}).get("name") or report.email.split("@")[0]
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", name).strip("_") or "lead"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return quote(f"lead_report_{slug}_{timestamp}.{extension}")


@router.post("", response_model=ReportCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    pipeline: ReportPipeline = Depends(get_pipeline),
) -> ReportCreateResponse:
    """Create a report and start generating it in the background."""
    ensure_can_edit(principal)
    email = report_data.email.strip()
    if not email or "@" not in email:
        raise InvalidInputError("Please provide a valid email address")
    owner = report_data.report_owner_name.strip()
    if not owner:
        raise InvalidInputError("Please provide your name as the report owner")

    project = (report_data.project or "").strip() or UNASSIGNED_PROJECT
    ensure_project_access(principal, project)

    now = datetime.utcnow()
    notes = []
    if report_data.initial_note and report_data.initial_note.strip():
        notes.append({
            "id": str(uuid.uuid4()),
            "content": report_data.initial_note.strip(),
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        })

    tracker = LifecycleTracker(db)
    report = tracker.create(
        email=email,
        report_owner_name=owner,
        project=project,
        created_by=principal.user_id,
        meeting_details=report_data.meeting.model_dump(exclude_none=True) if report_data.meeting else None,
        enabled_sections=(
            report_data.enabled_sections
            if report_data.enabled_sections is not None
            else list(settings.default_sections)
        ),
        lead_data={
            "project": project,
            "leadIndustry": report_data.lead_industry or "",
            "leadDesignation": report_data.lead_designation or "",
            "leadBackground": report_data.lead_background or "",
            "companyOverview": report_data.company_overview or "",
        },
        notes=notes,
        section_content={},
        lead_status=LeadStatus.WARM.value,
    )
    await db.commit()

    pipeline.schedule(report.id)
    logger.info(f"[REPORT] {principal.email} created report {report.id} for {email} in {project!r}")
    return ReportCreateResponse(report_id=report.id, status=report.status)


@router.get("", response_model=list[ReportSummary])
async def list_reports(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[ReportSummary]:
    """Reports visible to the current principal, newest first."""
    result = await db.execute(select(Report).order_by(Report.created_at.desc()))
    summaries = []
    for report in result.scalars().all():
        if not can_access_project(principal, report.project):
            continue
        lead = report.lead_data or {}
        summaries.append(ReportSummary(
            id=report.id,
            email=report.email,
            report_owner_name=report.report_owner_name,
            project=report.project,
            status=report.status,
            lead_status=report.lead_status,
            lead_name=lead.get("name") or None,
            company_name=lead.get("companyName") or None,
            created_at=report.created_at,
        ))
    return summaries


@router.get("/form-options", response_model=FormOptionsResponse)
async def get_form_options(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> FormOptionsResponse:
    """Project labels and report owner names for the creation form."""
    result = await db.execute(select(Report.project, Report.report_owner_name))
    projects: set[str] = set()
    owners: set[str] = set()
    for project, owner in result.all():
        if project and project.strip() and project != UNASSIGNED_PROJECT:
            projects.add(project)
        if owner and owner.strip() and can_access_project(principal, project):
            owners.add(owner.strip())

    return FormOptionsResponse(
        projects=filter_accessible_projects(principal, sorted(projects)),
        report_owners=sorted(owners),
    )


@router.post("/ai-generate")
async def generate_single_section(
    request: SingleSectionRequest,
    _: Principal = Depends(get_current_principal),
    llm: LLMService = Depends(get_llm),
) -> dict:
    """Generate content for one section without storing it."""
    return await llm.generate_section(request.section, request.lead_data, request.enrichment_data)


@router.get("/{report_id}/status", response_model=ReportStatusResponse)
async def get_report_status(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ReportStatusResponse:
    """Status and error only; polled by clients while a report is generated."""
    report = await load_report(db, report_id, principal)
    snapshot = await LifecycleTracker(db).read(report.id)
    return ReportStatusResponse(**snapshot.to_dict())


@router.get("/{report_id}", response_model=ReportEnvelope)
async def get_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ReportEnvelope:
    """Full record once completed; status (and error) otherwise."""
    report = await load_report(db, report_id, principal)
    data = ReportResponse.model_validate(report) if report.status == ReportStatus.COMPLETED.value else None
    return ReportEnvelope(status=report.status, data=data, error=report.error)


@router.patch("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: str,
    update: ReportUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ReportResponse:
    """Edit report content fields."""
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)

    if update.lead_data is not None:
        # Project moves go through the projects API
        report.lead_data = {**(report.lead_data or {}), **update.lead_data, "project": report.project}
    if update.section_content is not None:
        report.section_content = {**(report.section_content or {}), **update.section_content}
    if update.report_markdown is not None:
        report.report_markdown = update.report_markdown
    if update.meeting_details is not None:
        report.meeting_details = update.meeting_details.model_dump(exclude_none=True)
    if update.notes is not None:
        report.notes = update.notes

    await db.commit()
    await db.refresh(report)
    logger.info(f"[REPORT] {principal.email} edited report {report.id}")
    return ReportResponse.model_validate(report)


@router.patch("/{report_id}/lead-status")
async def update_lead_status(
    report_id: str,
    update: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    """Set the sales status of the lead."""
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)
    report.lead_status = LeadStatus.normalize(update.status).value
    await db.commit()
    return {"success": True, "lead_status": report.lead_status}


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)
    await db.delete(report)
    await db.commit()
    logger.info(f"[REPORT] {principal.email} deleted report {report.id}")
    return {"success": True}


@router.post("/{report_id}/regenerate", response_model=ReportCreateResponse, status_code=status.HTTP_202_ACCEPTED)
async def regenerate_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    pipeline: ReportPipeline = Depends(get_pipeline),
) -> ReportCreateResponse:
    """Start a new generation run for a finished report."""
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)
    if pipeline.is_running(report.id):
        raise ReportGenerationInProgressError(report.id)

    await LifecycleTracker(db).restart(report.id)
    await db.commit()

    pipeline.schedule(report.id)
    return ReportCreateResponse(report_id=report.id, status=report.status)


@router.post("/{report_id}/refresh-news", response_model=NewsRefreshResponse)
async def refresh_news(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    news: NewsClient = Depends(get_news),
) -> NewsRefreshResponse:
    """Fetch recent company news again for an existing report."""
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)

    person = (report.enrichment_data or {}).get("person") or {}
    company_name = (person.get("organization") or {}).get("name") or (report.lead_data or {}).get("companyName")
    if not company_name or company_name == "N/A":
        raise InvalidInputError("No company name found in report")

    logger.info(f"[REPORT] Refreshing news for report {report.id}, company: {company_name}")
    company_news = await news.fetch_company_news(company_name)
    articles = company_news.get("articles") or []
    if not articles:
        return NewsRefreshResponse(
            message="No news articles found for this company",
            company_news=NewsClient.empty(),
        )

    report.company_news = company_news
    report.news_refreshed_at = datetime.utcnow()
    await db.commit()
    return NewsRefreshResponse(
        message=f"Found {len(articles)} news articles",
        company_news=company_news,
    )


@router.post("/{report_id}/sections/generate", response_model=SectionBatchResponse)
async def generate_sections(
    report_id: str,
    request: SectionBatchRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    llm: LLMService = Depends(get_llm),
) -> SectionBatchResponse:
    """
    Generate the selected sections one after another for a completed report.

    Successful sections are merged into the stored content with a single
    update; failed sections are reported as skipped.
    """
    ensure_can_edit(principal)
    report = await load_report(db, report_id, principal)
    if report.status != ReportStatus.COMPLETED.value:
        raise ReportNotReadyError(report.id, report.status)

    progress: list[BatchProgress] = []
    orchestrator = SectionGeneratorOrchestrator(llm, on_progress=progress.append)
    batch = await orchestrator.generate(request.sections, report.lead_data or {}, report.enrichment_data)

    if batch.content:
        report.section_content = {**(report.section_content or {}), **batch.content}
        report.ai_content_error = None
        await db.commit()

    logger.info(
        f"[REPORT] Sections for {report.id}: generated={batch.generated_sections} "
        f"skipped={list(batch.skipped_sections)}"
    )
    return SectionBatchResponse(
        generated_sections=batch.generated_sections,
        skipped_sections=batch.skipped_sections,
        progress=[p.to_dict() for p in progress],
        section_content=report.section_content or {},
    )


@router.get("/{report_id}/markdown")
async def download_markdown_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    """Download a completed report as Markdown."""
    report = await load_report(db, report_id, principal)
    if report.status != ReportStatus.COMPLETED.value:
        raise ReportNotReadyError(report.id, report.status)

    markdown_content = render_report_markdown(report)
    return Response(
        content=markdown_content.encode("utf-8"),
        media_type="text/markdown; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{_download_filename(report, 'md')}",
        }
    )


@router.get("/{report_id}/pdf")
async def download_pdf_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    """Download a completed report as PDF."""
    report = await load_report(db, report_id, principal)
    if report.status != ReportStatus.COMPLETED.value:
        raise ReportNotReadyError(report.id, report.status)

    markdown_content = render_report_markdown(report)
    pdf_bytes = get_pdf_generator().markdown_to_pdf(
        markdown_content,
        title=(report.lead_data or {}).get("name"),
    )
    logger.info(f"[REPORT] Generated PDF for report {report.id}")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{_download_filename(report, 'pdf')}",
        }
    )
