"""
Tenant-scoped data access.
Every query built here filters by restaurant_id and every row created here
is stamped with it, so an id from another restaurant simply is not found.
"""
from typing import TypeVar, Generic, Type, Optional, List, Any, Dict
from uuid import UUID
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class TenantRepository(Generic[ModelType]):
    """CRUD for one model within one restaurant."""

    def __init__(self, model: Type[ModelType], db: AsyncSession, restaurant_id: UUID):
        self.model = model
        self.db = db
        self.restaurant_id = restaurant_id

    def query(self):
        """Base select filtered by restaurant_id."""
        return select(self.model).where(self.model.restaurant_id == self.restaurant_id)

    async def get(self, id: UUID, for_update: bool = False) -> Optional[ModelType]:
        """Single record by id within the restaurant; optionally row-locked."""
        query = self.query().where(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        *conditions,
        search: Optional[str] = None,
        search_fields: Optional[List[str]] = None,
        order_by=None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        query = self.query().where(*conditions)

        if search and search_fields:
            query = query.where(or_(*[
                getattr(self.model, field_name).ilike(f"%{search}%")
                for field_name in search_fields
            ]))

        if isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        elif order_by is not None:
            query = query.order_by(order_by)
        elif hasattr(self.model, "created_at"):
            query = query.order_by(self.model.created_at)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, *conditions) -> int:
        query = select(func.count()).select_from(self.query().where(*conditions).subquery())
        result = await self.db.execute(query)
        return result.scalar()

    async def create(self, data: Dict[str, Any]) -> ModelType:
        """Add a new record stamped with the restaurant id."""
        instance = self.model(**data, restaurant_id=self.restaurant_id)
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def delete(self, instance: ModelType) -> None:
        await self.db.delete(instance)
        await self.db.flush()
