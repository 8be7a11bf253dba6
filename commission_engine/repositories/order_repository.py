"""
Order repository.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commission_engine.models.order import Order, OrderStatus
from commission_engine.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Read access to the storefront's orders."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Order, session)

    async def get_with_items(self, order_id: int) -> Optional[Order]:
        """Get an order with its buyer and line items loaded."""
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(
                selectinload(Order.items),
                selectinload(Order.buyer),
            )
        )
        return result.scalar_one_or_none()

    async def find_completed_without_commissions(self, limit: int) -> list[int]:
        """
        IDs of completed orders whose commissions were never generated.

        Used by the reconciliation job to catch orders whose completion hook
        failed or never fired. Orders that earned nothing are stamped as
        processed too, so they are not returned again.
        """
        result = await self.session.execute(
            select(Order.id)
            .where(
                Order.status == OrderStatus.COMPLETED,
                Order.commissions_processed_at.is_(None),
            )
            .order_by(Order.id)
            .limit(limit)
        )
        return [row[0] for row in result.all()]
