"""User management API endpoints (admin only)."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import require_admin
from backend.app.core.exceptions import (
    DuplicateUserError,
    InvalidInputError,
    SelfDeletionError,
    UserNotFoundError,
)
from backend.app.core.security import hash_password
from backend.app.db.base import get_db
from backend.app.models.user import User
from backend.app.schemas.user import UserCreate, UserResponse, UserUpdate
from backend.app.services.access_control import Principal, requires_assigned_projects

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


def _projects_for_role(role: str, assigned_projects: list[str]) -> list[str]:
    """Admins carry no assignments; project users and clients need at least one."""
    if not requires_assigned_projects(role):
        return []
    if not assigned_projects:
        raise InvalidInputError("Project users and clients must have at least one assigned project")
    return assigned_projects


async def _email_taken(db: AsyncSession, email: str, exclude_id: str | None = None) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_id:
        query = query.where(User.id != exclude_id)
    return (await db.execute(query)).first() is not None


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> list[UserResponse]:
    """List all users, newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserResponse:
    """Create a user."""
    projects = _projects_for_role(user_data.role, user_data.assigned_projects)
    if await _email_taken(db, user_data.email):
        raise DuplicateUserError(user_data.email)

    user = User(
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        role=user_data.role,
        assigned_projects=projects,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"[USERS] {admin.email} created {user.email} ({user.role})")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> UserResponse:
    """Update email, password, role or project assignments."""
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    role = user_data.role or user.role
    if user_data.assigned_projects is not None:
        requested_projects = user_data.assigned_projects
    else:
        requested_projects = list(user.assigned_projects or [])
    projects = _projects_for_role(role, requested_projects)

    if user_data.email and user_data.email != user.email:
        if await _email_taken(db, user_data.email, exclude_id=user.id):
            raise DuplicateUserError(user_data.email)
        user.email = user_data.email
    if user_data.password:
        user.password_hash = hash_password(user_data.password)
    user.role = role
    user.assigned_projects = projects

    await db.commit()
    await db.refresh(user)
    logger.info(f"[USERS] {admin.email} updated {user.email} ({user.role}, projects={projects})")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> dict:
    """Delete a user. Admins cannot delete themselves."""
    if user_id == admin.user_id:
        raise SelfDeletionError()

    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    await db.delete(user)
    await db.commit()
    logger.info(f"[USERS] {admin.email} deleted {user.email}")
    return {"success": True}
