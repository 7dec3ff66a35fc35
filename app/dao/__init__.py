"""Data Access Objects."""

from app.dao.base import BaseDAO
from app.dao.user import UserDAO
from app.dao.org_structure import BranchDAO, DepartmentDAO
from app.dao.announcement import AnnouncementDAO, SyncResult
from app.dao.announcement_view import AnnouncementViewDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "BranchDAO",
    "DepartmentDAO",
    "AnnouncementDAO",
    "SyncResult",
    "AnnouncementViewDAO",
]
