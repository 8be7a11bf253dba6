"""
Base repository.

Generic async data access shared by the commission engine repositories.
"""

from typing import Any, Generic, Iterable, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository with the lookups every model needs.

    Example:
        class ProductRepository(BaseRepository[Product]):
            def __init__(self, session: AsyncSession):
                super().__init__(Product, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get entity by primary key, None if missing."""
        return await self.session.get(self.model, id)

    async def get_many(
        self, ids: Iterable[int], for_update: bool = False
    ) -> list[ModelType]:
        """
        Get entities by primary keys, ordered by id.

        Args:
            ids: Primary keys; unknown ids are simply absent from the result
            for_update: Lock the rows (SELECT ... FOR UPDATE)

        Returns:
            Found entities
        """
        id_list = list(ids)
        if not id_list:
            return []

        stmt = (
            select(self.model)
            .where(self.model.id.in_(id_list))
            .order_by(self.model.id)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by(self, **filters: Any) -> list[ModelType]:
        """Find entities by column equality filters, ordered by id."""
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, **filters: Any) -> int:
        """Count entities matching column filters."""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Check whether any entity matches the filters."""
        return await self.count(**filters) > 0

    async def create(self, **data: Any) -> ModelType:
        """Create, flush and return a new entity."""
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
