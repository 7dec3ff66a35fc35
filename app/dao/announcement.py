"""
Announcement Data Access Object (DAO).

WHAT: Database operations for announcements and their targeting sets.

WHY: The DAO pattern:
1. Separates data access from business logic
2. Enforces org-scoping for multi-tenancy
3. Keeps department/branch association updates minimal (set reconciliation)

HOW: Extends BaseDAO with announcement-specific queries:
- CRUD operations
- Filtered, paginated listing
- Department/branch synchronization
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple, FrozenSet

from sqlalchemy import Table, delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.announcement import (
    Announcement,
    AnnouncementStatus,
    AnnouncementView,
    announcement_branches,
    announcement_departments,
)
from app.models.org_structure import Branch, Department


# Columns the listing endpoint may sort by
SORTABLE_FIELDS = ("title", "category", "start_date", "end_date", "created_at")


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of reconciling one association set.

    WHAT: The ids that were attached and detached.

    WHY: Callers (and tests) can see exactly which rows changed instead of
    assuming a delete-all-then-insert.
    """

    added: FrozenSet[int] = field(default_factory=frozenset)
    removed: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class AnnouncementDAO(BaseDAO[Announcement]):
    """
    Data Access Object for Announcement model.

    WHAT: The announcement store.

    WHY: Centralizes announcement persistence.

    HOW: Extends BaseDAO with announcement-specific methods.
    """

    def __init__(self, session: AsyncSession):
        """Initialize AnnouncementDAO."""
        super().__init__(Announcement, session)

    async def create_announcement(
        self,
        org_id: int,
        created_by: int,
        title: str,
        category: str,
        content: str,
        start_date: date,
        description: Optional[str] = None,
        end_date: Optional[date] = None,
        attachments: Optional[str] = None,
        is_featured: bool = False,
        is_high_priority: bool = False,
        is_company_wide: bool = True,
    ) -> Announcement:
        """
        Create a new announcement row.

        Targeting sets are attached afterwards via sync_departments /
        sync_branches.

        Args:
            org_id: Organization ID
            created_by: Creator user ID
            title: Announcement title
            category: Announcement category
            content: Body (HTML or plain text)
            start_date: First day the announcement is active
            description: Optional short summary
            end_date: Optional last active day
            attachments: Optional media reference
            is_featured: Featured flag
            is_high_priority: High priority flag
            is_company_wide: Company-wide targeting flag

        Returns:
            Created Announcement
        """
        return await self.create(
            org_id=org_id,
            created_by=created_by,
            title=title,
            category=category,
            content=content,
            description=description,
            start_date=start_date,
            end_date=end_date,
            attachments=attachments,
            is_featured=is_featured,
            is_high_priority=is_high_priority,
            is_company_wide=is_company_wide,
        )

    async def update_announcement(
        self,
        announcement: Announcement,
        **fields: Any,
    ) -> Announcement:
        """
        Apply column updates to an announcement.

        Args:
            announcement: Announcement to update
            **fields: Column values to set (unknown names are ignored)

        Returns:
            Updated announcement
        """
        for name, value in fields.items():
            if hasattr(Announcement, name) and name not in ("id", "org_id", "created_by"):
                setattr(announcement, name, value)

        await self.session.flush()
        await self.session.refresh(announcement)
        return announcement

    async def delete_announcement(self, announcement: Announcement) -> None:
        """
        Delete an announcement with its associations and view records.

        WHY: View rows are removed explicitly so the lifecycle does not
        depend on the backend enforcing ON DELETE CASCADE. The ORM removes
        the department/branch association rows together with the row.

        Args:
            announcement: Announcement to delete
        """
        await self.session.execute(
            delete(AnnouncementView).where(
                AnnouncementView.announcement_id == announcement.id
            )
        )
        await self.session.delete(announcement)
        await self.session.flush()

    async def list_announcements(
        self,
        org_id: int,
        search: Optional[str] = None,
        category: Optional[str] = None,
        department_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        featured: Optional[bool] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort_by: str = "created_at",
        sort_desc: bool = True,
        skip: int = 0,
        limit: int = 20,
        today: Optional[date] = None,
    ) -> Tuple[List[Announcement], int]:
        """
        List announcements of an organization with filters.

        WHAT: The admin/employee listing query.

        WHY: Department and branch filters also match company-wide
        announcements, since those reach every department and branch.

        Args:
            org_id: Organization ID
            search: Free text matched against title, description and content
            category: Exact category
            department_id: Targeted department (or company-wide)
            branch_id: Targeted branch (or company-wide)
            status: active, upcoming or expired relative to ``today``
            priority: high or normal
            featured: Featured flag
            date_from: Announcements starting or ending on or after this date
            date_to: Announcements starting or ending on or before this date
            sort_by: One of SORTABLE_FIELDS
            sort_desc: Sort direction
            skip: Pagination offset
            limit: Pagination limit
            today: Reference date for the status filter

        Returns:
            Tuple of (announcements page, total matching count)
        """
        today = today or date.today()
        query = select(Announcement).where(Announcement.org_id == org_id)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Announcement.title.ilike(pattern),
                    Announcement.description.ilike(pattern),
                    Announcement.content.ilike(pattern),
                )
            )

        if category:
            query = query.where(Announcement.category == category)

        if department_id is not None:
            query = query.where(
                or_(
                    Announcement.is_company_wide.is_(True),
                    Announcement.departments.any(Department.id == department_id),
                )
            )

        if branch_id is not None:
            query = query.where(
                or_(
                    Announcement.is_company_wide.is_(True),
                    Announcement.branches.any(Branch.id == branch_id),
                )
            )

        if status == AnnouncementStatus.ACTIVE.value:
            query = query.where(
                Announcement.start_date <= today,
                or_(Announcement.end_date.is_(None), Announcement.end_date >= today),
            )
        elif status == AnnouncementStatus.UPCOMING.value:
            query = query.where(Announcement.start_date > today)
        elif status == AnnouncementStatus.EXPIRED.value:
            query = query.where(
                Announcement.end_date.isnot(None), Announcement.end_date < today
            )

        if priority == "high":
            query = query.where(Announcement.is_high_priority.is_(True))
        elif priority == "normal":
            query = query.where(Announcement.is_high_priority.is_(False))

        if featured is not None:
            query = query.where(Announcement.is_featured.is_(featured))

        # Range bounds match on either end of the announcement window
        if date_from:
            query = query.where(
                or_(
                    Announcement.start_date >= date_from,
                    Announcement.end_date >= date_from,
                )
            )

        if date_to:
            query = query.where(
                or_(
                    Announcement.start_date <= date_to,
                    Announcement.end_date <= date_to,
                )
            )

        total = (
            await self.session.execute(
                select(func.count()).select_from(query.subquery())
            )
        ).scalar_one()

        if sort_by not in SORTABLE_FIELDS:
            sort_by = "created_at"
        column = getattr(Announcement, sort_by)
        query = query.order_by(
            column.desc() if sort_desc else column.asc(),
            Announcement.id.desc() if sort_desc else Announcement.id.asc(),
        )

        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def get_prioritized(self, org_id: int) -> List[Announcement]:
        """
        All announcements of an organization, most important first.

        WHY: The dashboard board shows high priority, then featured, then
        the newest announcements regardless of their status.
        """
        result = await self.session.execute(
            select(Announcement)
            .where(Announcement.org_id == org_id)
            .order_by(
                Announcement.is_high_priority.desc(),
                Announcement.is_featured.desc(),
                Announcement.created_at.desc(),
                Announcement.id.desc(),
            )
        )
        return list(result.scalars().all())

    async def get_featured(self, org_id: int) -> List[Announcement]:
        """Featured announcements, newest first."""
        result = await self.session.execute(
            select(Announcement)
            .where(Announcement.org_id == org_id, Announcement.is_featured.is_(True))
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
        )
        return list(result.scalars().all())

    async def get_high_priority(self, org_id: int) -> List[Announcement]:
        """High priority announcements, newest first."""
        result = await self.session.execute(
            select(Announcement)
            .where(Announcement.org_id == org_id, Announcement.is_high_priority.is_(True))
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
        )
        return list(result.scalars().all())

    async def get_upcoming(
        self,
        org_id: int,
        today: date,
        limit: int = 5,
    ) -> List[Announcement]:
        """
        Announcements starting after ``today``, soonest first.

        Args:
            org_id: Organization ID
            today: Reference date
            limit: Maximum number returned
        """
        result = await self.session.execute(
            select(Announcement)
            .where(Announcement.org_id == org_id, Announcement.start_date > today)
            .order_by(Announcement.start_date.asc(), Announcement.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_categories(self, org_id: int) -> List[str]:
        """Distinct categories in use, alphabetically, for filter dropdowns."""
        result = await self.session.execute(
            select(Announcement.category)
            .where(Announcement.org_id == org_id)
            .distinct()
            .order_by(Announcement.category)
        )
        return list(result.scalars().all())

    async def sync_departments(
        self,
        announcement: Announcement,
        department_ids: Iterable[int],
    ) -> SyncResult:
        """
        Reconcile the announcement's departments with ``department_ids``.

        Args:
            announcement: Announcement to update
            department_ids: Desired department set

        Returns:
            SyncResult with the attached and detached ids
        """
        return await self._sync(
            announcement,
            announcement_departments,
            "department_id",
            "departments",
            department_ids,
        )

    async def sync_branches(
        self,
        announcement: Announcement,
        branch_ids: Iterable[int],
    ) -> SyncResult:
        """
        Reconcile the announcement's branches with ``branch_ids``.

        Args:
            announcement: Announcement to update
            branch_ids: Desired branch set

        Returns:
            SyncResult with the attached and detached ids
        """
        return await self._sync(
            announcement,
            announcement_branches,
            "branch_id",
            "branches",
            branch_ids,
        )

    async def _sync(
        self,
        announcement: Announcement,
        table: Table,
        column_name: str,
        relationship_name: str,
        desired_ids: Iterable[int],
    ) -> SyncResult:
        """Insert missing and delete surplus association rows, nothing else."""
        column = table.c[column_name]

        result = await self.session.execute(
            select(column).where(table.c.announcement_id == announcement.id)
        )
        current = set(result.scalars().all())
        desired = set(desired_ids)

        to_add = desired - current
        to_remove = current - desired

        if to_remove:
            await self.session.execute(
                delete(table).where(
                    table.c.announcement_id == announcement.id,
                    column.in_(to_remove),
                )
            )

        if to_add:
            await self.session.execute(
                insert(table),
                [
                    {"announcement_id": announcement.id, column_name: target_id}
                    for target_id in sorted(to_add)
                ],
            )

        if to_add or to_remove:
            await self.session.refresh(announcement, attribute_names=[relationship_name])

        return SyncResult(added=frozenset(to_add), removed=frozenset(to_remove))
