"""User model."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class UserRole(str, enum.Enum):
    """Roles known to the access control layer."""

    ADMIN = "admin"
    PROJECT_USER = "project_user"
    CLIENT = "client"


class User(Base):
    """
    User account able to sign in and read reports.

    Attributes:
        id: Unique user identifier (UUID)
        email: Login email, stored lower-cased
        password_hash: bcrypt hash of the password
        role: One of UserRole values
        assigned_projects: Project labels the user may access (ignored for admins)
        created_at: Creation timestamp
        updated_at: Last modification timestamp
        last_login_at: Last successful login
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=UserRole.PROJECT_USER.value,
    )
    assigned_projects: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
