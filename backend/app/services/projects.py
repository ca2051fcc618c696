"""
Project labels and their statistics.

Projects are not stored on their own: a project exists while any report or user
assignment carries its label. Every function receives the session explicitly
and flushes without committing.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import UNASSIGNED_PROJECT
from backend.app.core.exceptions import InvalidInputError
from backend.app.models.report import LeadStatus, Report
from backend.app.models.user import User, UserRole
from backend.app.services.access_control import Principal, filter_accessible_projects

logger = logging.getLogger(__name__)


def normalize_project_name(value: str | None) -> str:
    return value.strip() if isinstance(value, str) else ""


def project_names_match(value: str | None, target: str | None) -> bool:
    """Trimmed, case-insensitive comparison; empty names never match."""
    left = normalize_project_name(value).lower()
    right = normalize_project_name(target).lower()
    return bool(left) and left == right


def report_project(value: str | None) -> str:
    """Project label a report is filed under."""
    project = normalize_project_name(value)
    if not project or project in ("N/A", "NA"):
        return UNASSIGNED_PROJECT
    return project


async def list_projects(db: AsyncSession, principal: Principal) -> list[dict]:
    """
    Projects visible to the principal with lead statistics.

    Returns:
        Sorted list of dicts with name, total_leads, assigned_users,
        report_owners and status_counts
    """
    reports = (await db.execute(
        select(Report.project, Report.lead_status, Report.report_owner_name)
    )).all()
    users = (await db.execute(select(User.role, User.assigned_projects))).all()

    names: set[str] = set()
    for project, _, _ in reports:
        names.add(report_project(project))
    for _, assigned in users:
        names.update(p for p in (normalize_project_name(a) for a in assigned or []) if p)

    stats = {
        name: {
            "name": name,
            "total_leads": 0,
            "assigned_users": 0,
            "report_owners": set(),
            "status_counts": {status.value: 0 for status in LeadStatus},
        }
        for name in filter_accessible_projects(principal, sorted(names))
    }

    for project, lead_status, owner in reports:
        entry = stats.get(report_project(project))
        if entry is None:
            continue
        entry["total_leads"] += 1
        entry["status_counts"][LeadStatus.normalize(lead_status).value] += 1
        if normalize_project_name(owner):
            entry["report_owners"].add(owner.strip())

    for role, assigned in users:
        if role == UserRole.ADMIN.value:
            continue
        for project in {normalize_project_name(a) for a in assigned or []}:
            if project in stats:
                stats[project]["assigned_users"] += 1

    for entry in stats.values():
        entry["report_owners"] = len(entry["report_owners"])
    return list(stats.values())


async def rename_project(db: AsyncSession, current_name: str, new_name: str) -> int:
    """
    Rename a project on every report and user assignment.

    Returns:
        Number of reports moved
    """
    current = normalize_project_name(current_name)
    new = normalize_project_name(new_name)
    if not current or not new:
        raise InvalidInputError("Project name is required")
    if current == new:
        return 0

    moved = await _relabel_reports(db, current, new)
    await _relabel_assignments(db, current, new)
    await db.flush()
    logger.info(f"[PROJECTS] Renamed {current!r} -> {new!r} ({moved} reports)")
    return moved


async def delete_project(db: AsyncSession, project_name: str) -> int:
    """
    Delete a project label. Reports are kept and moved to the unassigned project.

    Returns:
        Number of reports detached
    """
    name = normalize_project_name(project_name)
    if not name:
        raise InvalidInputError("Project name is required")
    if project_names_match(name, UNASSIGNED_PROJECT):
        raise InvalidInputError(f"Cannot delete {UNASSIGNED_PROJECT} project")

    detached = await _relabel_reports(db, name, UNASSIGNED_PROJECT)
    await _relabel_assignments(db, name, None)
    await db.flush()
    logger.info(f"[PROJECTS] Deleted {name!r} ({detached} reports detached)")
    return detached


async def _relabel_reports(db: AsyncSession, current: str, new: str) -> int:
    reports = (await db.execute(select(Report))).scalars().all()
    count = 0
    for report in reports:
        if project_names_match(report.project, current):
            report.project = new
            if report.lead_data:
                report.lead_data = {**report.lead_data, "project": new}
            count += 1
    return count


async def _relabel_assignments(db: AsyncSession, current: str, new: str | None) -> None:
    users = (await db.execute(select(User))).scalars().all()
    for user in users:
        existing = list(user.assigned_projects or [])
        updated: list[str] = []
        for project in existing:
            value = (new if project_names_match(project, current) else project)
            if value and value not in updated:
                updated.append(value)
        if updated != existing:
            user.assigned_projects = updated
