"""Authentication endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_principal
from backend.app.core.config import settings
from backend.app.core.exceptions import AuthenticationRequiredError
from backend.app.core.security import create_access_token, verify_password
from backend.app.db.base import get_db
from backend.app.models.user import User
from backend.app.schemas.user import LoginRequest, LoginResponse, PrincipalResponse, UserResponse
from backend.app.services.access_control import Principal

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Verify credentials, set the auth cookie and return the token."""
    result = await db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(credentials.password, user.password_hash):
        logger.info(f"[AUTH] Failed login for {credentials.email.strip().lower()}")
        raise AuthenticationRequiredError(details="Invalid email or password")

    user.last_login_at = datetime.utcnow()
    await db.commit()

    token = create_access_token(user.id, user.email, user.role, user.assigned_projects or [])
    max_age = settings.jwt_expiration_hours * 3600
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )
    logger.info(f"[AUTH] User {user.email} signed in")

    return LoginResponse(
        access_token=token,
        expires_in=max_age,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(response: Response) -> dict:
    """Clear the auth cookie."""
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return {"success": True}


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: Principal = Depends(get_current_principal)) -> PrincipalResponse:
    """Current principal with fresh role and project assignments."""
    return PrincipalResponse(
        user_id=principal.user_id,
        email=principal.email,
        role=principal.role,
        assigned_projects=sorted(principal.assigned_projects),
    )


@router.post("/signup")
async def signup() -> None:
    """Public sign-up is disabled; accounts are created by admins."""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Public signup is disabled. Contact an administrator for access."
    )
