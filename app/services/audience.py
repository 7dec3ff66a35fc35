"""
Audience resolution for announcements.

WHAT: Decides which employees an announcement reaches.

WHY: The same audience feeds e-mail dispatch and the statistics
denominator, so both must agree on who "everyone targeted" is.

HOW:
- Company-wide: every eligible employee of the tenant, association rows
  are ignored
- Scoped: employees in a targeted department OR at a targeted branch
- Scoped with no targets: nobody (never "everyone")

Eligibility: role EMPLOYEE, status active, non-empty syntactically valid
e-mail. The tenant is always passed explicitly as a TenantScope.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import OrganizationAccessDenied
from app.dao.user import UserDAO
from app.models.announcement import Announcement
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantScope:
    """The tenant an operation runs on behalf of."""

    org_id: int


@dataclass(frozen=True)
class Employee:
    """
    Immutable view of a user as an announcement recipient.

    Equality and hashing are by value, and ``id`` is unique per user, so a
    set of Employees is deduplicated by identity.
    """

    id: int
    name: str
    email: Optional[str]
    department_id: Optional[int] = None
    branch_id: Optional[int] = None

    @classmethod
    def from_user(cls, user: User) -> "Employee":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            department_id=user.department_id,
            branch_id=user.branch_id,
        )


def is_valid_email(email: Optional[str]) -> bool:
    """
    Check that an address is non-empty and syntactically valid.

    No DNS lookups are made.
    """
    if not email or not email.strip():
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class AudienceResolver:
    """
    Resolves the audience of an announcement.

    Example:
        resolver = AudienceResolver(session)
        audience = await resolver.resolve(announcement, TenantScope(org_id=1))
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_dao = UserDAO(session)

    async def resolve(
        self,
        announcement: Announcement,
        tenant_scope: TenantScope,
    ) -> FrozenSet[Employee]:
        """
        Resolve the employees targeted by an announcement.

        Args:
            announcement: Announcement with its departments/branches loaded
            tenant_scope: Tenant the caller acts for

        Returns:
            Unordered set of eligible employees

        Raises:
            OrganizationAccessDenied: If the announcement belongs to another tenant
        """
        if announcement.org_id != tenant_scope.org_id:
            logger.warning(
                "Audience requested for announcement of another organization",
                extra={
                    "announcement_id": announcement.id,
                    "org_id": tenant_scope.org_id,
                },
            )
            raise OrganizationAccessDenied(announcement_id=announcement.id)

        if announcement.is_company_wide:
            users = await self.user_dao.get_eligible_employees(
                org_id=tenant_scope.org_id,
                company_wide=True,
            )
        else:
            department_ids = announcement.department_ids
            branch_ids = announcement.branch_ids

            if not department_ids and not branch_ids:
                logger.info(
                    "Scoped announcement has no departments or branches, audience is empty",
                    extra={"announcement_id": announcement.id},
                )
                return frozenset()

            users = await self.user_dao.get_eligible_employees(
                org_id=tenant_scope.org_id,
                department_ids=department_ids,
                branch_ids=branch_ids,
            )

        audience = frozenset(
            Employee.from_user(user) for user in users if is_valid_email(user.email)
        )

        logger.info(
            f"Resolved audience of {len(audience)} employees",
            extra={
                "announcement_id": announcement.id,
                "org_id": tenant_scope.org_id,
                "is_company_wide": announcement.is_company_wide,
                "department_ids": announcement.department_ids,
                "branch_ids": announcement.branch_ids,
                "audience_size": len(audience),
            },
        )

        return audience
