"""Database models."""

from backend.app.models.user import User, UserRole
from backend.app.models.report import Report, LeadStatus

__all__ = ["User", "UserRole", "Report", "LeadStatus"]
