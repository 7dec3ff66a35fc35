"""
User Data Access Object.

WHY: UserDAO provides database operations for User model, including the
audience query used to decide who receives an announcement.
"""

from typing import Iterable, List, Optional
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.user import User, UserRole, EmployeeStatus


class UserDAO(BaseDAO[User]):
    """
    Data Access Object for User model.

    WHY: All employee lookups go through this DAO so that tenant scoping
    and the eligibility rules (active, has a mailbox) live in one place.
    """

    def __init__(self, session: AsyncSession):
        """Initialize UserDAO."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address (case-insensitive).

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_eligible_employees(
        self,
        org_id: int,
        department_ids: Optional[Iterable[int]] = None,
        branch_ids: Optional[Iterable[int]] = None,
        company_wide: bool = False,
    ) -> List[User]:
        """
        Get active employees of an organization that have an e-mail address.

        WHAT: The storage half of audience resolution.

        WHY: Department and branch membership are OR-ed: an employee in a
        targeted department or at a targeted branch is included. When
        neither set is given for a scoped query the result is empty rather
        than every employee.

        Args:
            org_id: Organization ID (tenant scope)
            department_ids: Targeted department IDs
            branch_ids: Targeted branch IDs
            company_wide: Ignore department/branch filters

        Returns:
            List of matching employees (distinct rows)
        """
        conditions = [
            User.org_id == org_id,
            User.role == UserRole.EMPLOYEE,
            User.status == EmployeeStatus.ACTIVE.value,
            User.email.isnot(None),
            User.email != "",
        ]

        if not company_wide:
            department_ids = list(department_ids or [])
            branch_ids = list(branch_ids or [])

            targeting = []
            if department_ids:
                targeting.append(User.department_id.in_(department_ids))
            if branch_ids:
                targeting.append(User.branch_id.in_(branch_ids))

            if not targeting:
                return []

            conditions.append(or_(*targeting))

        result = await self.session.execute(
            select(User).where(*conditions).order_by(User.id)
        )
        return list(result.scalars().all())
