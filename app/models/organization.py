"""
Organization model.

WHY: Organizations are the tenants of the HR system. Every employee,
branch, department and announcement carries an org_id, and every query
in the announcement core is scoped to exactly one organization.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Organization(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Organization model representing a tenant (one company).
    """

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False, index=True)

    # WHY: is_active allows soft-deletion of organizations while
    # preserving historical announcements and view records
    is_active = Column(Boolean, nullable=False, default=True)

    users = relationship("User", back_populates="organization")
    branches = relationship("Branch", back_populates="organization")
    departments = relationship("Department", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
