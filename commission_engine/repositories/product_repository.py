"""
Product repository.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.product import Product
from commission_engine.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Product lookups."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Product, session)

    async def find_without_template(self) -> list[Product]:
        """Products that have no default commission template yet."""
        result = await self.session.execute(
            select(Product)
            .where(Product.commission_template_id.is_(None))
            .order_by(Product.id)
        )
        return list(result.scalars().all())
