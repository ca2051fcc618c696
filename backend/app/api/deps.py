"""Shared dependencies for API routes."""

from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import AuthenticationRequiredError
from backend.app.core.security import decode_access_token
from backend.app.db.base import get_db
from backend.app.services.access_control import Principal, ensure_admin, resolve_principal
from backend.app.services.enrichment import NewsClient
from backend.app.services.llm import LLMService
from backend.app.services.report_pipeline import ReportPipeline

security_scheme = HTTPBearer(auto_error=False)


async def get_token_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> dict[str, Any]:
    """Extract and validate JWT claims from the bearer header or the auth cookie."""
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationRequiredError(details="Authentication credentials were not provided")

    claims = decode_access_token(token)
    if claims is None:
        raise AuthenticationRequiredError(details="Invalid or expired token")
    return claims


async def get_current_principal(
    db: AsyncSession = Depends(get_db),
    claims: dict[str, Any] = Depends(get_token_claims),
) -> Principal:
    """Principal with role and projects re-read from the database."""
    return await resolve_principal(db, claims)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    ensure_admin(principal)
    return principal


def get_pipeline(request: Request) -> ReportPipeline:
    return request.app.state.pipeline


def get_llm(request: Request) -> LLMService:
    return request.app.state.llm_service


def get_news(request: Request) -> NewsClient:
    return request.app.state.pipeline.news
