"""
User model.

WHY: Users are both the tenant administrators who publish announcements and
the employees who receive and view them. The announcement core only ever
reads the employee-facing columns (status, email, department, branch).
"""

import enum
from sqlalchemy import Column, Integer, String, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    WHY: Only administrators manage announcements; only employees are
    ever part of an announcement audience.
    """

    ADMIN = "ADMIN"  # Tenant administrator / HR manager
    EMPLOYEE = "EMPLOYEE"


class EmployeeStatus(str, enum.Enum):
    """Employment status; inactive employees never receive announcements."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User model representing administrators and employees of a tenant.
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    # WHY: nullable because HR imports employees before they have a mailbox
    email = Column(String(255), unique=True, index=True, nullable=True)

    role = Column(Enum(UserRole, name="userrole"), nullable=False, default=UserRole.EMPLOYEE)
    status = Column(String(20), nullable=False, default=EmployeeStatus.ACTIVE.value)

    # Multi-tenancy
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    # Placement used for announcement targeting
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)

    organization = relationship("Organization", back_populates="users")
    department = relationship("Department")
    branch = relationship("Branch")

    __table_args__ = (
        Index("ix_users_department_id", "department_id"),
        Index("ix_users_branch_id", "branch_id"),
    )

    @property
    def is_active(self) -> bool:
        """Check if the user is an active member of the organization."""
        return self.status == EmployeeStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
