"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin
from app.models.organization import Organization
from app.models.org_structure import Branch, Department
from app.models.user import User, UserRole, EmployeeStatus
from app.models.announcement import (
    Announcement,
    AnnouncementStatus,
    AnnouncementView,
    announcement_branches,
    announcement_departments,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "Organization",
    "Branch",
    "Department",
    "User",
    "UserRole",
    "EmployeeStatus",
    "Announcement",
    "AnnouncementStatus",
    "AnnouncementView",
    "announcement_branches",
    "announcement_departments",
]
