"""Password hashing and JWT helpers."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a plain password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    assigned_projects: list[str],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    The role and project claims are a snapshot taken at login; request handling
    re-reads them from the database.

    Args:
        user_id: Subject of the token
        email: User email
        role: Role at login time
        assigned_projects: Assigned projects at login time
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "assigned_projects": list(assigned_projects),
        "iat": int(now.timestamp()),
        "exp": expire,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    logger.info(f"[AUTH] Issued access token for user_id={user_id}")
    return token


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"[AUTH] Rejected token: {e}")
        return None
    if not payload.get("sub"):
        return None
    return payload
