"""
Announcement models.

WHAT: SQLAlchemy models for tenant announcements, their department/branch
targeting and per-employee view tracking.

WHY: Announcements enable:
1. Company-wide notices to every active employee
2. Notices scoped to specific departments and/or branches
3. "Seen by" tracking, at most once per employee
4. Reach statistics against the targeted population

HOW: Uses SQLAlchemy 2.0 with:
- Two association tables for the many-to-many targeting sets
- A composite primary key on announcement_views that makes the
  (announcement, employee) pair unique at the storage layer
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Table,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.org_structure import Branch, Department


class AnnouncementStatus(str, Enum):
    """
    Announcement status, derived from the date window.

    WHY: The status is never stored; it is computed against "today" so an
    announcement moves from upcoming to active to expired on its own.
    """

    ACTIVE = "active"
    UPCOMING = "upcoming"
    EXPIRED = "expired"


announcement_departments = Table(
    "announcement_departments",
    Base.metadata,
    Column(
        "announcement_id",
        Integer,
        ForeignKey("announcements.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "department_id",
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

announcement_branches = Table(
    "announcement_branches",
    Base.metadata,
    Column(
        "announcement_id",
        Integer,
        ForeignKey("announcements.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "branch_id",
        Integer,
        ForeignKey("branches.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Announcement(Base):
    """
    Announcement model.

    WHAT: A notice published by a tenant administrator.

    Invariant: a company-wide announcement has no department or branch
    rows; a scoped one has at least one. The first half is enforced on
    write by AnnouncementService, the second at validation time.
    """

    __tablename__ = "announcements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )

    # Content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Date window
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Reference into the media library (storage is handled elsewhere)
    attachments: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Flags
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_high_priority: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_company_wide: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Creator
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, onupdate=func.now(), nullable=True
    )

    # Targeting sets
    # WHY: selectin keeps both sets loaded with the row, async sessions
    # cannot lazy-load them later.
    departments: Mapped[List["Department"]] = relationship(
        "Department",
        secondary=announcement_departments,
        lazy="selectin",
        order_by="Department.id",
    )
    branches: Mapped[List["Branch"]] = relationship(
        "Branch",
        secondary=announcement_branches,
        lazy="selectin",
        order_by="Branch.id",
    )

    __table_args__ = (
        Index("ix_announcements_org_id", "org_id"),
        Index("ix_announcements_start_date", "start_date"),
        Index("ix_announcements_created_by", "created_by"),
    )

    def __repr__(self) -> str:
        return f"<Announcement(id={self.id}, title='{self.title}')>"

    @property
    def department_ids(self) -> List[int]:
        """Ids of the targeted departments."""
        return [department.id for department in self.departments]

    @property
    def branch_ids(self) -> List[int]:
        """Ids of the targeted branches."""
        return [branch.id for branch in self.branches]

    def status_on(self, today: date) -> AnnouncementStatus:
        """Compute the status relative to ``today``."""
        if self.start_date > today:
            return AnnouncementStatus.UPCOMING
        if self.end_date is not None and self.end_date < today:
            return AnnouncementStatus.EXPIRED
        return AnnouncementStatus.ACTIVE

    @property
    def status(self) -> AnnouncementStatus:
        """Current status based on today's date."""
        return self.status_on(date.today())


class AnnouncementView(Base):
    """
    Announcement view record.

    WHAT: The fact that an employee has seen an announcement.

    WHY: The composite primary key is the idempotence contract: the
    database itself rejects a second row for the same pair, so concurrent
    page loads by the same employee can never double count.
    """

    __tablename__ = "announcement_views"

    announcement_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("announcements.id", ondelete="CASCADE"),
        primary_key=True,
    )
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_announcement_views_employee_id", "employee_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<AnnouncementView(announcement_id={self.announcement_id}, "
            f"employee_id={self.employee_id})>"
        )
