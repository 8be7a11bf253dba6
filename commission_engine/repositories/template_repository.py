"""
Commission template repositories.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commission_engine.models.commission_template import (
    CommissionTemplate,
    TemplateStatus,
    TimeBasedTemplate,
)
from commission_engine.repositories.base import BaseRepository


class CommissionTemplateRepository(BaseRepository[CommissionTemplate]):
    """Templates with their detail rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CommissionTemplate, session)

    async def get_with_details(self, template_id: int) -> Optional[CommissionTemplate]:
        """
        Get a template and its rules in one round trip.

        Args:
            template_id: Template ID

        Returns:
            Template with details loaded (ordered by id), or None
        """
        result = await self.session.execute(
            select(CommissionTemplate)
            .where(CommissionTemplate.id == template_id)
            .options(selectinload(CommissionTemplate.details))
        )
        return result.scalar_one_or_none()

    async def get_by_code(self, template_code: str) -> Optional[CommissionTemplate]:
        result = await self.session.execute(
            select(CommissionTemplate)
            .where(CommissionTemplate.template_code == template_code)
            .options(selectinload(CommissionTemplate.details))
        )
        return result.scalar_one_or_none()

    async def list_with_details(self) -> list[CommissionTemplate]:
        result = await self.session.execute(
            select(CommissionTemplate)
            .options(selectinload(CommissionTemplate.details))
            .order_by(CommissionTemplate.id)
        )
        return list(result.scalars().all())


class TimeBasedTemplateRepository(BaseRepository[TimeBasedTemplate]):
    """Date-bounded product overrides."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(TimeBasedTemplate, session)

    async def find_active_for_product(
        self, product_id: int, on_date: date
    ) -> list[TimeBasedTemplate]:
        """
        Active overrides covering a date, best candidate first.

        Ordering is priority DESC, then created_at DESC, then id DESC, so equal
        priorities resolve to the most recently created override no matter
        how the database returns rows.

        Args:
            product_id: Product ID
            on_date: Order transaction date (both bounds inclusive)

        Returns:
            Candidate overrides with their templates and details loaded
        """
        result = await self.session.execute(
            select(TimeBasedTemplate)
            .where(
                TimeBasedTemplate.product_id == product_id,
                TimeBasedTemplate.status == TemplateStatus.ACTIVE,
                TimeBasedTemplate.start_date <= on_date,
                TimeBasedTemplate.end_date >= on_date,
            )
            .options(
                selectinload(TimeBasedTemplate.commission_template)
                .selectinload(CommissionTemplate.details)
            )
            .order_by(
                TimeBasedTemplate.priority.desc(),
                TimeBasedTemplate.created_at.desc(),
                TimeBasedTemplate.id.desc(),
            )
        )
        return list(result.scalars().all())
