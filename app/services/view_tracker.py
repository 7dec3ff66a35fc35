"""
View tracking for announcements.

WHAT: Records that an employee has seen an announcement, at most once.

WHY: "Seen by" figures must not double count when the same employee
opens an announcement in two tabs at once. Uniqueness is enforced by the
announcement_views primary key; no application lock is taken.
"""

import logging
from typing import Set

from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.announcement_view import AnnouncementViewDAO

logger = logging.getLogger(__name__)


class ViewTracker:
    """Idempotent view recording and counting."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.view_dao = AnnouncementViewDAO(session)

    async def mark_viewed(self, announcement_id: int, employee_id: int) -> bool:
        """
        Record a view.

        Args:
            announcement_id: Announcement ID
            employee_id: Employee ID

        Returns:
            True only if this call created the record
        """
        recorded = await self.view_dao.mark_viewed(announcement_id, employee_id)

        logger.info(
            "Announcement view recorded" if recorded else "Announcement view already recorded",
            extra={
                "announcement_id": announcement_id,
                "employee_id": employee_id,
                "recorded": recorded,
            },
        )
        return recorded

    async def view_count(self, announcement_id: int) -> int:
        """Number of employees that have viewed the announcement."""
        return await self.view_dao.view_count(announcement_id)

    async def viewed_employee_ids(self, announcement_id: int) -> Set[int]:
        """Ids of employees that have viewed the announcement."""
        return await self.view_dao.viewed_employee_ids(announcement_id)

    async def has_viewed(self, announcement_id: int, employee_id: int) -> bool:
        return await self.view_dao.has_viewed(announcement_id, employee_id)
