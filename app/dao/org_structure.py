"""
Branch and Department Data Access Objects.

WHY: Announcement targeting must only reference branches and departments
owned by the publishing tenant; these DAOs answer that question.
"""

from typing import Iterable, List, Set
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.org_structure import Branch, Department


class BranchDAO(BaseDAO[Branch]):
    """Data Access Object for Branch."""

    def __init__(self, session: AsyncSession):
        """Initialize BranchDAO."""
        super().__init__(Branch, session)

    async def get_for_org(self, org_id: int) -> List[Branch]:
        """Branches of the organization ordered by name."""
        result = await self.session.execute(
            select(Branch).where(Branch.org_id == org_id).order_by(Branch.name)
        )
        return list(result.scalars().all())

    async def get_ids_in_org(self, ids: Iterable[int], org_id: int) -> Set[int]:
        """
        Filter branch IDs down to those owned by the organization.

        Args:
            ids: Candidate branch IDs
            org_id: Organization ID

        Returns:
            Subset of ``ids`` that exist in the organization
        """
        ids = set(ids)
        if not ids:
            return set()

        result = await self.session.execute(
            select(Branch.id).where(Branch.id.in_(ids), Branch.org_id == org_id)
        )
        return set(result.scalars().all())


class DepartmentDAO(BaseDAO[Department]):
    """Data Access Object for Department."""

    def __init__(self, session: AsyncSession):
        """Initialize DepartmentDAO."""
        super().__init__(Department, session)

    async def get_for_org(self, org_id: int) -> List[Department]:
        """Departments of the organization ordered by name."""
        result = await self.session.execute(
            select(Department)
            .where(Department.org_id == org_id)
            .order_by(Department.name)
        )
        return list(result.scalars().all())

    async def get_ids_in_org(self, ids: Iterable[int], org_id: int) -> Set[int]:
        """
        Filter department IDs down to those owned by the organization.

        Args:
            ids: Candidate department IDs
            org_id: Organization ID

        Returns:
            Subset of ``ids`` that exist in the organization
        """
        ids = set(ids)
        if not ids:
            return set()

        result = await self.session.execute(
            select(Department.id).where(
                Department.id.in_(ids), Department.org_id == org_id
            )
        )
        return set(result.scalars().all())

    async def get_for_branches(
        self,
        branch_ids: Iterable[int],
        org_id: int,
    ) -> List[Department]:
        """
        Get departments that belong to any of the given branches.

        WHY: The announcement form narrows the department picker to the
        branches already selected.

        Args:
            branch_ids: Branch IDs
            org_id: Organization ID

        Returns:
            Departments ordered by name
        """
        branch_ids = list(branch_ids)
        if not branch_ids:
            return []

        result = await self.session.execute(
            select(Department)
            .where(Department.branch_id.in_(branch_ids), Department.org_id == org_id)
            .order_by(Department.name)
        )
        return list(result.scalars().all())
