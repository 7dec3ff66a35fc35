"""
Branch and department models.

WHY: Scoped announcements target employees by the branch they work at
and/or the department they belong to. Both are tenant-owned lookups.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Branch(Base, PrimaryKeyMixin, TimestampMixin):
    """A physical office/location of an organization (e.g. "Mumbai")."""

    __tablename__ = "branches"

    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    organization = relationship("Organization", back_populates="branches")
    departments = relationship("Department", back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name={self.name})>"


class Department(Base, PrimaryKeyMixin, TimestampMixin):
    """
    A department of an organization.

    WHY: branch_id is optional; some departments (e.g. HR) span every branch.
    """

    __tablename__ = "departments"

    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)
    name = Column(String(255), nullable=False)

    organization = relationship("Organization", back_populates="departments")
    branch = relationship("Branch", back_populates="departments")

    __table_args__ = (Index("ix_departments_branch_id", "branch_id"),)

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name})>"
