"""
Announcement Pydantic Schemas.

WHAT: Request/Response models for announcement API endpoints.

WHY: Pydantic schemas provide:
1. Request validation
2. Response serialization
3. OpenAPI documentation

HOW: Defines schemas for:
- Announcements (create, update, list, detail)
- View tracking and statistics
- Dispatch reports
"""

from datetime import date, datetime
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, model_validator

from app.models.announcement import AnnouncementStatus
from app.services.dispatcher import RecipientOutcome


class AnnouncementPriority(str, Enum):
    """Priority filter values."""

    HIGH = "high"
    NORMAL = "normal"


class SortField(str, Enum):
    """Sortable listing columns."""

    TITLE = "title"
    CATEGORY = "category"
    START_DATE = "start_date"
    END_DATE = "end_date"
    CREATED_AT = "created_at"


# ============================================================================
# Request Schemas
# ============================================================================


class AnnouncementCreateRequest(BaseModel):
    """
    Request schema for creating an announcement.

    WHAT: Fields needed to create announcement.

    WHY: Validates announcement creation data. Cross-field rules (date
    order, targeting, tenant ownership) are enforced by the service.
    """

    title: str = Field(..., min_length=1, max_length=255, description="Title")
    category: str = Field(..., min_length=1, max_length=255, description="Category")
    description: Optional[str] = Field(None, description="Short summary")
    content: str = Field(..., min_length=1, description="Body (HTML or plain text)")

    start_date: date = Field(..., description="First active day")
    end_date: Optional[date] = Field(None, description="Last active day")

    attachments: Optional[str] = Field(None, max_length=500, description="Media reference")

    is_featured: bool = Field(default=False, description="Featured")
    is_high_priority: bool = Field(default=False, description="High priority")
    is_company_wide: bool = Field(default=True, description="Target every employee")

    department_ids: List[int] = Field(default_factory=list, description="Target departments")
    branch_ids: List[int] = Field(default_factory=list, description="Target branches")


class AnnouncementUpdateRequest(BaseModel):
    """
    Request schema for updating an announcement.

    WHAT: Fields that can be updated.

    WHY: Allows partial updates; only fields sent are changed.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    attachments: Optional[str] = Field(None, max_length=500)

    is_featured: Optional[bool] = None
    is_high_priority: Optional[bool] = None
    is_company_wide: Optional[bool] = None

    department_ids: Optional[List[int]] = None
    branch_ids: Optional[List[int]] = None

    send_notifications: bool = Field(default=True, description="E-mail the audience again")

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "AnnouncementUpdateRequest":
        """
        Reject an explicit null for a column that must keep a value.

        WHY: Leaving a field out keeps it, but null would clear a NOT NULL
        column. Optional columns (description, end_date, attachments) may
        still be cleared with null.
        """
        for name in (
            "title",
            "category",
            "content",
            "start_date",
            "is_featured",
            "is_high_priority",
            "is_company_wide",
        ):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


# ============================================================================
# Response Schemas
# ============================================================================


class TargetResponse(BaseModel):
    """A department or branch reference."""

    id: int = Field(..., description="ID")
    name: str = Field(..., description="Name")

    class Config:
        from_attributes = True


class AnnouncementResponse(BaseModel):
    """
    Response schema for announcement.

    WHAT: Announcement details for display.
    """

    id: int = Field(..., description="Announcement ID")
    org_id: int = Field(..., description="Organization ID")

    title: str = Field(..., description="Title")
    category: str = Field(..., description="Category")
    description: Optional[str] = Field(None, description="Short summary")
    content: str = Field(..., description="Content")

    start_date: date = Field(..., description="First active day")
    end_date: Optional[date] = Field(None, description="Last active day")
    status: AnnouncementStatus = Field(..., description="Status")

    attachments: Optional[str] = Field(None, description="Media reference")

    is_featured: bool = Field(..., description="Featured")
    is_high_priority: bool = Field(..., description="High priority")
    is_company_wide: bool = Field(..., description="Targets every employee")

    departments: List[TargetResponse] = Field(default_factory=list, description="Target departments")
    branches: List[TargetResponse] = Field(default_factory=list, description="Target branches")

    created_by: int = Field(..., description="Creator user ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

    class Config:
        from_attributes = True


class AnnouncementListResponse(BaseModel):
    """
    Response schema for announcement list.

    WHAT: Paginated list of announcements.
    """

    items: List[AnnouncementResponse] = Field(..., description="Announcements")
    total: int = Field(..., description="Total count")
    skip: int = Field(..., description="Offset used")
    limit: int = Field(..., description="Limit used")


class AnnouncementDashboardResponse(BaseModel):
    """
    Response schema for the announcement board.

    WHAT: Prioritized, featured, high priority and upcoming lists plus the
    filter dropdown options.
    """

    all_announcements: List[AnnouncementResponse] = Field(..., description="High priority, featured, then newest")
    featured: List[AnnouncementResponse] = Field(..., description="Featured, newest first")
    high_priority: List[AnnouncementResponse] = Field(..., description="High priority, newest first")
    upcoming: List[AnnouncementResponse] = Field(..., description="Next five to start")
    categories: List[str] = Field(..., description="Categories in use")
    departments: List[TargetResponse] = Field(..., description="Departments for filtering")
    branches: List[TargetResponse] = Field(..., description="Branches for filtering")

    class Config:
        from_attributes = True


class AnnouncementDetailResponse(BaseModel):
    """
    Response schema for the announcement detail page.

    WHAT: Announcement plus reach figures over its audience.
    """

    announcement: AnnouncementResponse
    view_count: int = Field(..., description="Audience members that viewed it")
    total_employees: int = Field(..., description="Audience size")
    view_percentage: int = Field(..., description="Rounded view percentage")
    is_viewed: bool = Field(..., description="Viewed by current user")


class TargetBreakdownResponse(BaseModel):
    """Statistics for one branch or department."""

    id: int
    name: str
    total: int
    viewed: int
    percentage: int

    class Config:
        from_attributes = True


class AnnouncementStatisticsResponse(BaseModel):
    """
    Response schema for view statistics.

    WHAT: Reach of an announcement within its audience.
    """

    announcement_id: int = Field(..., description="Announcement ID")
    view_count: int = Field(..., description="Audience members that viewed it")
    total_employees: int = Field(..., description="Audience size")
    view_percentage: int = Field(..., description="Rounded view percentage")
    department_stats: List[TargetBreakdownResponse] = Field(default_factory=list)
    branch_stats: List[TargetBreakdownResponse] = Field(default_factory=list)


class MarkViewedResponse(BaseModel):
    """Response schema for mark-as-viewed."""

    success: bool = Field(default=True)
    recorded: bool = Field(..., description="True if this request created the view record")


class RecipientResultResponse(BaseModel):
    """Outcome for one recipient."""

    employee_id: int
    email: Optional[str] = None
    outcome: RecipientOutcome
    error: Optional[str] = None

    class Config:
        from_attributes = True


class DispatchReportResponse(BaseModel):
    """
    Response schema for a dispatch report.

    WHAT: What happened when the audience was notified.
    """

    announcement_id: int
    attempted: int
    sent: int
    failed: int
    skipped_invalid_email: int
    results: List[RecipientResultResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class AnnouncementWriteResponse(BaseModel):
    """Response schema for create/update: the announcement and its dispatch."""

    announcement: AnnouncementResponse
    dispatch: Optional[DispatchReportResponse] = None


class DepartmentOptionResponse(BaseModel):
    """Department option for the targeting picker."""

    value: int = Field(..., description="Department ID")
    label: str = Field(..., description="Department name")
