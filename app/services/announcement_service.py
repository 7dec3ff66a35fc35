"""
Announcement Service.

WHAT: Business logic for announcement operations.

WHY: The service layer:
1. Encapsulates announcement business rules (dates, targeting, tenancy)
2. Coordinates the store, audience resolution, view tracking and dispatch
3. Keeps HTTP concerns out of the domain logic

HOW: Orchestrates AnnouncementDAO, AudienceResolver, ViewTracker,
StatisticsAggregator and NotificationDispatcher. Every public method takes
an explicit TenantScope.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AnnouncementNotFoundError,
    EmployeeNotFoundError,
    OrganizationAccessDenied,
    ValidationError,
)
from app.dao.announcement import AnnouncementDAO
from app.dao.org_structure import BranchDAO, DepartmentDAO
from app.dao.user import UserDAO
from app.models.announcement import Announcement
from app.models.org_structure import Branch, Department
from app.models.user import User, UserRole
from app.services.audience import AudienceResolver, TenantScope
from app.services.dispatcher import DispatchReport, NotificationDispatcher
from app.services.email import EmailService, get_email_service
from app.services.email_template_service import (
    AnnouncementEmailRenderer,
    get_announcement_renderer,
)
from app.services.statistics import AnnouncementStatistics, StatisticsAggregator
from app.services.view_tracker import ViewTracker

logger = logging.getLogger(__name__)


# Columns an update may touch
UPDATABLE_FIELDS = (
    "title",
    "category",
    "description",
    "content",
    "start_date",
    "end_date",
    "attachments",
    "is_featured",
    "is_high_priority",
    "is_company_wide",
)

# Updatable columns that are NOT NULL in storage
REQUIRED_FIELDS = (
    "title",
    "category",
    "content",
    "start_date",
    "is_featured",
    "is_high_priority",
    "is_company_wide",
)


@dataclass
class AnnouncementDetail:
    """An announcement with its reach figures, as seen by one viewer."""

    announcement: Announcement
    view_count: int
    total_employees: int
    view_percentage: int
    is_viewed: bool


@dataclass
class AnnouncementDashboard:
    """Everything the announcement board shows in one request."""

    all_announcements: List[Announcement]
    featured: List[Announcement]
    high_priority: List[Announcement]
    upcoming: List[Announcement]
    categories: List[str]
    departments: List[Department]
    branches: List[Branch]


class AnnouncementService:
    """
    Service for announcement operations.

    WHAT: Provides business logic for announcements.

    WHY: Announcements enable:
    - Company-wide or department/branch scoped notices
    - E-mail notification of the targeted employees
    - "Seen by" tracking and reach statistics

    HOW: Coordinates DAOs and domain components, enforces business rules.
    """

    def __init__(
        self,
        session: AsyncSession,
        email_service: Optional[EmailService] = None,
        renderer: Optional[AnnouncementEmailRenderer] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        """
        Initialize AnnouncementService.

        Args:
            session: Async database session
            email_service: Transport (defaults to the global EmailService)
            renderer: E-mail renderer (defaults to the global renderer)
            dispatcher: Notification dispatcher
        """
        self.session = session
        self.announcement_dao = AnnouncementDAO(session)
        self.user_dao = UserDAO(session)
        self.branch_dao = BranchDAO(session)
        self.department_dao = DepartmentDAO(session)
        self.audience_resolver = AudienceResolver(session)
        self.view_tracker = ViewTracker(session)
        self.statistics = StatisticsAggregator(self.view_tracker)
        self.email_service = email_service or get_email_service()
        self.renderer = renderer or get_announcement_renderer()
        self.dispatcher = dispatcher or NotificationDispatcher()

    # =========================================================================
    # Validation
    # =========================================================================

    async def _validate(
        self,
        scope: TenantScope,
        start_date: date,
        end_date: Optional[date],
        is_company_wide: bool,
        department_ids: Iterable[int],
        branch_ids: Iterable[int],
    ) -> None:
        """
        Validate an announcement before anything is written.

        Raises:
            ValidationError: On bad dates, missing targets or foreign targets
        """
        department_ids = set(department_ids)
        branch_ids = set(branch_ids)

        if end_date is not None and end_date < start_date:
            raise ValidationError(
                message="End date must be on or after the start date",
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
            )

        if is_company_wide:
            return

        if not department_ids and not branch_ids:
            raise ValidationError(
                message="Select at least one department or branch, or make the announcement company-wide",
            )

        known_departments = await self.department_dao.get_ids_in_org(
            department_ids, scope.org_id
        )
        unknown_departments = department_ids - known_departments
        if unknown_departments:
            raise ValidationError(
                message="Department not found in organization",
                department_ids=sorted(unknown_departments),
            )

        known_branches = await self.branch_dao.get_ids_in_org(branch_ids, scope.org_id)
        unknown_branches = branch_ids - known_branches
        if unknown_branches:
            raise ValidationError(
                message="Branch not found in organization",
                branch_ids=sorted(unknown_branches),
            )

    # =========================================================================
    # Announcement Management
    # =========================================================================

    async def create_announcement(
        self,
        scope: TenantScope,
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
        department_ids: Optional[List[int]] = None,
        branch_ids: Optional[List[int]] = None,
        send_notifications: bool = True,
    ) -> Tuple[Announcement, Optional[DispatchReport]]:
        """
        Create an announcement and notify its audience.

        WHY: The create succeeds once validation and persistence succeed;
        individual send failures only show up in the dispatch report.

        Returns:
            Tuple of (announcement, dispatch report or None)

        Raises:
            ValidationError: If validation fails (nothing is written)
        """
        department_ids = department_ids or []
        branch_ids = branch_ids or []

        await self._validate(
            scope, start_date, end_date, is_company_wide, department_ids, branch_ids
        )

        announcement = await self.announcement_dao.create_announcement(
            org_id=scope.org_id,
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

        await self._sync_targets(announcement, is_company_wide, department_ids, branch_ids)

        logger.info(
            "Announcement created",
            extra={
                "announcement_id": announcement.id,
                "org_id": scope.org_id,
                "created_by": created_by,
                "is_company_wide": is_company_wide,
            },
        )

        report = None
        if send_notifications:
            report = await self.dispatch_notifications(announcement, scope)

        return announcement, report

    async def get_announcement(
        self,
        announcement_id: int,
        scope: TenantScope,
    ) -> Announcement:
        """
        Get an announcement by ID within the tenant.

        Raises:
            AnnouncementNotFoundError: If not found
            OrganizationAccessDenied: If it belongs to another tenant
        """
        announcement = await self.announcement_dao.get_by_id(announcement_id)
        if not announcement:
            raise AnnouncementNotFoundError(announcement_id=announcement_id)

        if announcement.org_id != scope.org_id:
            logger.warning(
                "Cross-organization announcement access denied",
                extra={"announcement_id": announcement_id, "org_id": scope.org_id},
            )
            raise OrganizationAccessDenied(announcement_id=announcement_id)

        return announcement

    async def update_announcement(
        self,
        announcement_id: int,
        scope: TenantScope,
        department_ids: Optional[List[int]] = None,
        branch_ids: Optional[List[int]] = None,
        send_notifications: bool = True,
        **fields: Any,
    ) -> Tuple[Announcement, Optional[DispatchReport]]:
        """
        Update an announcement and re-notify its audience.

        Only the fields passed are changed (None clears an optional column);
        department_ids / branch_ids left as None keep the current targeting.

        Returns:
            Tuple of (announcement, dispatch report or None)

        Raises:
            AnnouncementNotFoundError: If not found
            ValidationError: If a required field is cleared or the resulting
                announcement is invalid
        """
        announcement = await self.get_announcement(announcement_id, scope)

        changes = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
        if cleared:
            raise ValidationError(message="Required fields cannot be cleared", fields=cleared)

        start_date = changes.get("start_date", announcement.start_date)
        end_date = changes.get("end_date", announcement.end_date)
        is_company_wide = changes.get("is_company_wide", announcement.is_company_wide)
        if department_ids is None:
            department_ids = announcement.department_ids
        if branch_ids is None:
            branch_ids = announcement.branch_ids

        await self._validate(
            scope, start_date, end_date, is_company_wide, department_ids, branch_ids
        )

        announcement = await self.announcement_dao.update_announcement(announcement, **changes)
        await self._sync_targets(announcement, is_company_wide, department_ids, branch_ids)

        logger.info(
            "Announcement updated",
            extra={
                "announcement_id": announcement.id,
                "org_id": scope.org_id,
                "fields": sorted(changes),
            },
        )

        report = None
        if send_notifications:
            report = await self.dispatch_notifications(announcement, scope)

        return announcement, report

    async def delete_announcement(
        self,
        announcement_id: int,
        scope: TenantScope,
    ) -> None:
        """
        Delete an announcement, its targeting rows and its view records.

        Raises:
            AnnouncementNotFoundError: If not found
        """
        announcement = await self.get_announcement(announcement_id, scope)
        await self.announcement_dao.delete_announcement(announcement)

        logger.info(
            "Announcement deleted",
            extra={"announcement_id": announcement_id, "org_id": scope.org_id},
        )

    async def list_announcements(
        self,
        scope: TenantScope,
        **filters: Any,
    ) -> Tuple[List[Announcement], int]:
        """
        List announcements of the tenant.

        Args:
            scope: Tenant scope
            **filters: Passed to AnnouncementDAO.list_announcements

        Returns:
            Tuple of (page, total)
        """
        return await self.announcement_dao.list_announcements(
            org_id=scope.org_id, **filters
        )

    async def _sync_targets(
        self,
        announcement: Announcement,
        is_company_wide: bool,
        department_ids: Iterable[int],
        branch_ids: Iterable[int],
    ) -> None:
        # Company-wide announcements never keep targeting rows
        if is_company_wide:
            department_ids, branch_ids = [], []

        departments = await self.announcement_dao.sync_departments(announcement, department_ids)
        branches = await self.announcement_dao.sync_branches(announcement, branch_ids)

        if departments.changed or branches.changed:
            logger.debug(
                "Announcement targeting synchronized",
                extra={
                    "announcement_id": announcement.id,
                    "departments_added": sorted(departments.added),
                    "departments_removed": sorted(departments.removed),
                    "branches_added": sorted(branches.added),
                    "branches_removed": sorted(branches.removed),
                },
            )

    # =========================================================================
    # Views & Statistics
    # =========================================================================

    async def mark_viewed(
        self,
        announcement_id: int,
        scope: TenantScope,
        employee_id: int,
    ) -> bool:
        """
        Mark an announcement as viewed by an employee.

        Returns:
            True if this call recorded the view, False if it already existed

        Raises:
            AnnouncementNotFoundError: If the announcement does not exist
            EmployeeNotFoundError: If the employee does not exist in the tenant
        """
        await self.get_announcement(announcement_id, scope)

        employee = await self.user_dao.get_by_id_and_org(employee_id, scope.org_id)
        if not employee:
            raise EmployeeNotFoundError(employee_id=employee_id)

        return await self.view_tracker.mark_viewed(announcement_id, employee_id)

    async def get_announcement_detail(
        self,
        announcement_id: int,
        scope: TenantScope,
        viewer: User,
    ) -> AnnouncementDetail:
        """
        Get an announcement for display.

        Employees opening an announcement are recorded as viewers; the
        returned figures already include that view.
        """
        announcement = await self.get_announcement(announcement_id, scope)

        if viewer.role == UserRole.EMPLOYEE:
            await self.view_tracker.mark_viewed(announcement.id, viewer.id)

        stats = await self.get_statistics(announcement_id, scope, announcement=announcement)

        return AnnouncementDetail(
            announcement=announcement,
            view_count=stats.view_count,
            total_employees=stats.total_employees,
            view_percentage=stats.view_percentage,
            is_viewed=await self.view_tracker.has_viewed(announcement.id, viewer.id),
        )

    async def get_statistics(
        self,
        announcement_id: int,
        scope: TenantScope,
        announcement: Optional[Announcement] = None,
    ) -> AnnouncementStatistics:
        """
        Compute view statistics over the announcement's audience.

        Raises:
            AnnouncementNotFoundError: If not found
        """
        if announcement is None:
            announcement = await self.get_announcement(announcement_id, scope)

        audience = await self.audience_resolver.resolve(announcement, scope)
        return await self.statistics.aggregate(announcement, audience)

    # =========================================================================
    # Notifications
    # =========================================================================

    async def dispatch_notifications(
        self,
        announcement: Announcement,
        scope: TenantScope,
    ) -> DispatchReport:
        """
        Resolve the audience and e-mail every member.

        Returns:
            DispatchReport
        """
        audience = await self.audience_resolver.resolve(announcement, scope)
        return await self.dispatcher.dispatch(
            announcement,
            audience,
            self.renderer,
            self.email_service,
        )

    async def dispatch_announcement(
        self,
        announcement_id: int,
        scope: TenantScope,
    ) -> DispatchReport:
        """Re-send notifications for an existing announcement."""
        announcement = await self.get_announcement(announcement_id, scope)
        return await self.dispatch_notifications(announcement, scope)

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_departments_for_branches(
        self,
        branch_ids: Iterable[int],
        scope: TenantScope,
    ) -> List[Department]:
        """Departments of the given branches, within the tenant."""
        return await self.department_dao.get_for_branches(branch_ids, scope.org_id)

    async def get_dashboard(
        self,
        scope: TenantScope,
        today: Optional[date] = None,
    ) -> AnnouncementDashboard:
        """
        Collect the announcement board of the tenant.

        WHAT: The prioritized full list, featured and high priority lists,
        the next five upcoming announcements and the filter options.

        Args:
            scope: Tenant scope
            today: Reference date for "upcoming" (defaults to today)
        """
        today = today or date.today()
        org_id = scope.org_id

        return AnnouncementDashboard(
            all_announcements=await self.announcement_dao.get_prioritized(org_id),
            featured=await self.announcement_dao.get_featured(org_id),
            high_priority=await self.announcement_dao.get_high_priority(org_id),
            upcoming=await self.announcement_dao.get_upcoming(org_id, today),
            categories=await self.announcement_dao.get_categories(org_id),
            departments=await self.department_dao.get_for_org(org_id),
            branches=await self.branch_dao.get_for_org(org_id),
        )
