"""
Announcement view Data Access Object.

WHAT: Records and counts which employees have seen an announcement.

WHY: Marking a view must be idempotent under concurrent requests. The
composite primary key rejects duplicates; this DAO turns that rejection
into a no-op instead of an error.

HOW: A single INSERT ... ON CONFLICT DO NOTHING on PostgreSQL and SQLite,
a savepoint around a plain INSERT on any other backend. There is never a
read before the write.
"""

from datetime import datetime
from typing import Set

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.announcement import AnnouncementView


# Dialects with native INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class AnnouncementViewDAO(BaseDAO[AnnouncementView]):
    """
    Data Access Object for AnnouncementView.

    WHAT: View record storage.

    WHY: Know who has seen an announcement, at most once per employee.
    """

    def __init__(self, session: AsyncSession):
        """Initialize AnnouncementViewDAO."""
        super().__init__(AnnouncementView, session)

    async def mark_viewed(self, announcement_id: int, employee_id: int) -> bool:
        """
        Record that an employee has seen an announcement.

        Args:
            announcement_id: Announcement ID
            employee_id: Employee (user) ID

        Returns:
            True if this call created the record, False if it already existed
        """
        values = {
            "announcement_id": announcement_id,
            "employee_id": employee_id,
            "viewed_at": datetime.utcnow(),
        }

        dialect = self.session.get_bind().dialect.name
        conflict_insert = _CONFLICT_INSERTS.get(dialect)

        if conflict_insert is not None:
            stmt = (
                conflict_insert(AnnouncementView)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["announcement_id", "employee_id"])
            )
            result = await self.session.execute(stmt)
            return result.rowcount == 1

        try:
            async with self.session.begin_nested():
                self.session.add(AnnouncementView(**values))
        except IntegrityError:
            return False
        return True

    async def view_count(self, announcement_id: int) -> int:
        """
        Count view records of an announcement.

        Args:
            announcement_id: Announcement ID

        Returns:
            Number of distinct employees that viewed it
        """
        return await self.count(announcement_id=announcement_id)

    async def viewed_employee_ids(self, announcement_id: int) -> Set[int]:
        """
        Get the ids of employees that viewed an announcement.

        Args:
            announcement_id: Announcement ID

        Returns:
            Set of employee IDs
        """
        result = await self.session.execute(
            select(AnnouncementView.employee_id).where(
                AnnouncementView.announcement_id == announcement_id
            )
        )
        return set(result.scalars().all())

    async def has_viewed(self, announcement_id: int, employee_id: int) -> bool:
        """Check whether a view record exists for the pair."""
        result = await self.session.execute(
            select(func.count())
            .select_from(AnnouncementView)
            .where(
                AnnouncementView.announcement_id == announcement_id,
                AnnouncementView.employee_id == employee_id,
            )
        )
        return result.scalar_one() > 0
