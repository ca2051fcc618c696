"""Project-scoped access control.

Every role decision in the application goes through this module. A principal is
rebuilt from the persisted user on each request, so role or project changes made
by an admin take effect without waiting for the token to expire.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import AuthenticationRequiredError, PermissionDeniedError
from backend.app.models.user import User, UserRole

logger = logging.getLogger(__name__)

PROJECT_SCOPED_ROLES = frozenset({UserRole.PROJECT_USER.value, UserRole.CLIENT.value})


@dataclass(frozen=True)
class Principal:
    """Identity the access checks run against."""

    user_id: str
    role: str
    assigned_projects: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.id,
            role=user.role,
            assigned_projects=frozenset(user.assigned_projects or ()),
            email=user.email,
        )

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Principal":
        projects = claims.get("assigned_projects") or ()
        if isinstance(projects, str):
            projects = (projects,)
        return cls(
            user_id=str(claims.get("sub")),
            role=str(claims.get("role") or ""),
            assigned_projects=frozenset(str(p) for p in projects),
            email=claims.get("email"),
        )


def can_access_project(principal: Principal, project: str | None) -> bool:
    """
    Decide whether a principal may see data labelled with a project.

    Admins see everything. Project users and clients see a project only when it
    is non-empty and assigned to them. Any other role is denied.
    """
    if principal.role == UserRole.ADMIN.value:
        return True
    if principal.role in PROJECT_SCOPED_ROLES:
        return bool(project) and project in principal.assigned_projects
    return False


def filter_accessible_projects(principal: Principal, all_projects: Iterable[str]) -> list[str]:
    """Return the projects the principal may access, preserving input order."""
    return [project for project in all_projects if can_access_project(principal, project)]


def ensure_project_access(principal: Principal, project: str | None) -> None:
    """Raise PermissionDeniedError unless the principal may access the project."""
    if not can_access_project(principal, project):
        logger.info(f"[ACCESS] Denied user_id={principal.user_id} role={principal.role} project={project!r}")
        raise PermissionDeniedError(
            message="You do not have access to this project",
            details=project or None,
        )


def ensure_admin(principal: Principal) -> None:
    """Raise PermissionDeniedError unless the principal is an admin."""
    if not principal.is_admin:
        raise PermissionDeniedError(message="Admin access required")


def can_edit_reports(principal: Principal) -> bool:
    """Clients have read-only access; admins and project users may write."""
    return principal.role in (UserRole.ADMIN.value, UserRole.PROJECT_USER.value)


def ensure_can_edit(principal: Principal) -> None:
    """Raise PermissionDeniedError for principals limited to reading reports."""
    if not can_edit_reports(principal):
        logger.info(f"[ACCESS] Read-only principal user_id={principal.user_id} role={principal.role}")
        raise PermissionDeniedError(message="Clients cannot edit reports")


def requires_assigned_projects(role: str) -> bool:
    """Project-scoped roles must carry at least one project assignment."""
    return role in PROJECT_SCOPED_ROLES


async def resolve_principal(db: AsyncSession, claims: dict[str, Any]) -> Principal:
    """
    Build the principal for a request from verified token claims.

    The persisted user record is authoritative. The claims are used only when
    the lookup itself fails; a missing user means the account was deleted and
    the token no longer authenticates anyone.
    """
    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationRequiredError(details="Invalid authentication token")

    try:
        user = await db.get(User, str(user_id))
    except SQLAlchemyError as e:
        logger.warning(f"[ACCESS] User lookup failed for {user_id}, using token claims: {e}")
        return Principal.from_claims(claims)

    if user is None:
        raise AuthenticationRequiredError(details="User no longer exists")
    return Principal.from_user(user)
