"""
Announcements API Routes.

WHAT: REST API endpoints for announcement operations.

WHY: Announcements enable:
1. Company-wide or department/branch scoped notices
2. E-mail notification of the targeted employees
3. "Seen by" tracking and reach statistics

HOW: Uses FastAPI with dependency injection for auth/db.
All routes require authentication and run inside the caller's TenantScope.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_db, get_current_user, get_tenant_scope, require_admin
from app.core.exceptions import ValidationError
from app.models.announcement import Announcement
from app.models.user import User
from app.services.announcement_service import AnnouncementService
from app.services.audience import TenantScope
from app.services.dispatcher import DispatchReport
from app.schemas.announcement import (
    AnnouncementStatus,
    AnnouncementPriority,
    SortField,
    AnnouncementCreateRequest,
    AnnouncementUpdateRequest,
    AnnouncementResponse,
    AnnouncementDashboardResponse,
    AnnouncementListResponse,
    AnnouncementDetailResponse,
    AnnouncementStatisticsResponse,
    AnnouncementWriteResponse,
    DepartmentOptionResponse,
    DispatchReportResponse,
    MarkViewedResponse,
    TargetBreakdownResponse,
)


router = APIRouter(prefix="/announcements", tags=["announcements"])


def _write_response(
    announcement: Announcement,
    report: Optional[DispatchReport],
) -> AnnouncementWriteResponse:
    return AnnouncementWriteResponse(
        announcement=AnnouncementResponse.model_validate(announcement),
        dispatch=DispatchReportResponse.model_validate(report) if report else None,
    )


def _parse_ids(raw: str) -> List[int]:
    """Parse a comma separated id list such as "1,2,3"."""
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError(
            message="branch_ids must be a comma separated list of integers",
            branch_ids=raw,
        )


# ============================================================================
# Lookups
# ============================================================================


@router.get("/departments", response_model=List[DepartmentOptionResponse])
async def get_departments_for_branches(
    branch_ids: str = Query(..., description="Comma separated branch IDs"),
    scope: TenantScope = Depends(get_tenant_scope),
    session: AsyncSession = Depends(get_db),
):
    """
    Departments of the selected branches.

    WHY: Narrows the department picker on the announcement form.
    """
    service = AnnouncementService(session)

    departments = await service.get_departments_for_branches(_parse_ids(branch_ids), scope)

    return [
        DepartmentOptionResponse(value=department.id, label=department.name)
        for department in departments
    ]


@router.get("/dashboard", response_model=AnnouncementDashboardResponse)
async def get_announcement_dashboard(
    scope: TenantScope = Depends(get_tenant_scope),
    session: AsyncSession = Depends(get_db),
):
    """
    Announcement board of the organization.

    WHAT: Prioritized, featured, high priority and upcoming announcements
    with the category, department and branch filter options.
    """
    service = AnnouncementService(session)

    dashboard = await service.get_dashboard(scope)

    return AnnouncementDashboardResponse.model_validate(dashboard)


# ============================================================================
# Read Endpoints
# ============================================================================


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements(
    search: Optional[str] = Query(None, description="Search title, description and content"),
    category: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    status_filter: Optional[AnnouncementStatus] = Query(None, alias="status"),
    priority: Optional[AnnouncementPriority] = Query(None),
    featured: Optional[bool] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sort_by: SortField = Query(SortField.CREATED_AT),
    sort_direction: str = Query("desc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    scope: TenantScope = Depends(get_tenant_scope),
    session: AsyncSession = Depends(get_db),
):
    """
    List announcements of the organization.

    WHAT: Filtered, sorted, paginated listing.
    """
    service = AnnouncementService(session)

    items, total = await service.list_announcements(
        scope,
        search=search,
        category=category,
        department_id=department_id,
        branch_id=branch_id,
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        featured=featured,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by.value,
        sort_desc=sort_direction == "desc",
        skip=skip,
        limit=limit,
    )

    return AnnouncementListResponse(
        items=[AnnouncementResponse.model_validate(a) for a in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{announcement_id}", response_model=AnnouncementDetailResponse)
async def get_announcement(
    announcement_id: int,
    current_user: User = Depends(get_current_user),
    scope: TenantScope = Depends(get_tenant_scope),
    session: AsyncSession = Depends(get_db),
):
    """
    Get announcement details.

    WHAT: The announcement with its reach figures. Opening it as an
    employee records the view.
    """
    service = AnnouncementService(session)

    detail = await service.get_announcement_detail(announcement_id, scope, current_user)

    return AnnouncementDetailResponse(
        announcement=AnnouncementResponse.model_validate(detail.announcement),
        view_count=detail.view_count,
        total_employees=detail.total_employees,
        view_percentage=detail.view_percentage,
        is_viewed=detail.is_viewed,
    )


@router.post("/{announcement_id}/view", response_model=MarkViewedResponse)
async def mark_announcement_viewed(
    announcement_id: int,
    current_user: User = Depends(get_current_user),
    scope: TenantScope = Depends(get_tenant_scope),
    session: AsyncSession = Depends(get_db),
):
    """
    Mark announcement as viewed by the current employee.

    WHY: Idempotent; repeating the call is a successful no-op.
    """
    service = AnnouncementService(session)

    recorded = await service.mark_viewed(announcement_id, scope, current_user.id)

    return MarkViewedResponse(success=True, recorded=recorded)


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.post("", response_model=AnnouncementWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreateRequest,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """
    Create an announcement and notify its audience.

    WHAT: Validates, stores and e-mails the targeted employees.

    WHY: Send failures do not fail the request; they are in the dispatch report.
    """
    service = AnnouncementService(session)
    scope = TenantScope(org_id=current_user.org_id)

    announcement, report = await service.create_announcement(
        scope,
        created_by=current_user.id,
        title=data.title,
        category=data.category,
        content=data.content,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        attachments=data.attachments,
        is_featured=data.is_featured,
        is_high_priority=data.is_high_priority,
        is_company_wide=data.is_company_wide,
        department_ids=data.department_ids,
        branch_ids=data.branch_ids,
    )

    return _write_response(announcement, report)


@router.put("/{announcement_id}", response_model=AnnouncementWriteResponse)
async def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdateRequest,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """
    Update an announcement.

    WHAT: Applies the fields sent and re-notifies the audience unless
    send_notifications is false.
    """
    service = AnnouncementService(session)
    scope = TenantScope(org_id=current_user.org_id)

    fields = data.model_dump(exclude_unset=True)
    fields.pop("send_notifications", None)
    department_ids = fields.pop("department_ids", None)
    branch_ids = fields.pop("branch_ids", None)

    announcement, report = await service.update_announcement(
        announcement_id,
        scope,
        department_ids=department_ids,
        branch_ids=branch_ids,
        send_notifications=data.send_notifications,
        **fields,
    )

    return _write_response(announcement, report)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(
    announcement_id: int,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """
    Delete an announcement.

    WHAT: Removes it together with its targeting and view records.
    """
    service = AnnouncementService(session)

    await service.delete_announcement(
        announcement_id, TenantScope(org_id=current_user.org_id)
    )


@router.get("/{announcement_id}/statistics", response_model=AnnouncementStatisticsResponse)
async def get_announcement_statistics(
    announcement_id: int,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """
    Get view statistics.

    WHAT: Reach within the audience, with the representative branch and
    department breakdowns for scoped announcements.
    """
    service = AnnouncementService(session)

    stats = await service.get_statistics(
        announcement_id, TenantScope(org_id=current_user.org_id)
    )

    return AnnouncementStatisticsResponse(
        announcement_id=announcement_id,
        view_count=stats.view_count,
        total_employees=stats.total_employees,
        view_percentage=stats.view_percentage,
        department_stats=[TargetBreakdownResponse.model_validate(s) for s in stats.department_stats],
        branch_stats=[TargetBreakdownResponse.model_validate(s) for s in stats.branch_stats],
    )


@router.post("/{announcement_id}/dispatch", response_model=DispatchReportResponse)
async def dispatch_announcement(
    announcement_id: int,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """
    Re-send the announcement e-mail to its audience.

    WHAT: Returns the per-recipient dispatch report.
    """
    service = AnnouncementService(session)

    report = await service.dispatch_announcement(
        announcement_id, TenantScope(org_id=current_user.org_id)
    )

    return DispatchReportResponse.model_validate(report)
