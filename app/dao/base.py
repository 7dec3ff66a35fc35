"""
Base Data Access Object (DAO) class.

WHY: Services never build queries themselves. Every table the announcement
core touches gets a DAO, and the tenant-scoped lookup lives here once.
"""

from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Generic DAO shared by users, branches, departments, announcements and views.

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Args:
            model: The SQLAlchemy model class
            session: Request-scoped async session (the DAO never commits)
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Insert a row and return it with server defaults loaded.

        Raises:
            IntegrityError: If a constraint is violated
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Fetch by primary key, without tenant check."""
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def count(self, **filters: Any) -> int:
        """
        Count rows whose columns equal the given values.

        WHY: View counts and pagination totals are computed in SQL rather
        than by loading rows.

        Args:
            **filters: Column name to value (unknown names are ignored)
        """
        query = select(func.count()).select_from(self.model)
        for name, value in filters.items():
            if hasattr(self.model, name):
                query = query.where(getattr(self.model, name) == value)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_by_id_and_org(self, id: int, org_id: int) -> Optional[ModelType]:
        """
        Fetch by primary key within one organization.

        WHY: A row of another tenant is reported as missing, never returned.

        Raises:
            AttributeError: If the model is not tenant-owned (no org_id)
        """
        if not hasattr(self.model, "org_id"):
            raise AttributeError(
                f"{self.model.__name__} is not a multi-tenant model (no org_id field)"
            )

        result = await self.session.execute(
            select(self.model).where(
                self.model.id == id,
                self.model.org_id == org_id,
            )
        )
        return result.scalar_one_or_none()
