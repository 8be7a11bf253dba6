"""
Commission ledger repository.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission import (
    BeneficiaryType,
    CommissionCalculation,
    CommissionStatus,
)
from commission_engine.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[CommissionCalculation]):
    """Ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CommissionCalculation, session)

    async def find_by_order(self, order_id: int) -> list[CommissionCalculation]:
        return await self.find_by(order_id=order_id)

    def _beneficiary_query(
        self,
        columns,
        beneficiary_id: int,
        beneficiary_type: BeneficiaryType,
        start_date: Optional[datetime],
        end_date: Optional[datetime],
        status: Optional[CommissionStatus],
    ):
        stmt = select(*columns).where(
            CommissionCalculation.beneficiary_id == beneficiary_id,
            CommissionCalculation.beneficiary_type == beneficiary_type,
        )
        stmt = self._created_between(stmt, start_date, end_date)
        if status:
            stmt = stmt.where(CommissionCalculation.status == status)
        return stmt

    async def list_for_beneficiary(
        self,
        beneficiary_id: int,
        beneficiary_type: BeneficiaryType = BeneficiaryType.USER,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        status: Optional[CommissionStatus] = None,
    ) -> list[CommissionCalculation]:
        """Ledger rows of one beneficiary, newest first."""
        stmt = self._beneficiary_query(
            [CommissionCalculation],
            beneficiary_id,
            beneficiary_type,
            start_date,
            end_date,
            status,
        ).order_by(
            CommissionCalculation.created_at.desc(),
            CommissionCalculation.id.desc(),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_by_status(
        self,
        beneficiary_id: int,
        beneficiary_type: BeneficiaryType = BeneficiaryType.USER,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        status: Optional[CommissionStatus] = None,
    ) -> dict[CommissionStatus, Decimal]:
        """
        Total commission_amount per status in a single GROUP BY query.

        Returns:
            Dict with every status as key (missing statuses map to 0)
        """
        stmt = self._beneficiary_query(
            [
                CommissionCalculation.status,
                func.coalesce(
                    func.sum(CommissionCalculation.commission_amount),
                    Decimal("0"),
                ).label("total"),
            ],
            beneficiary_id,
            beneficiary_type,
            start_date,
            end_date,
            status,
        ).group_by(CommissionCalculation.status)

        result = await self.session.execute(stmt)

        totals = {s: Decimal("0") for s in CommissionStatus}
        for row in result.all():
            totals[CommissionStatus(row.status)] = Decimal(str(row.total))
        return totals

    def _created_between(self, stmt, start_date: Optional[datetime], end_date: Optional[datetime]):
        if start_date:
            stmt = stmt.where(CommissionCalculation.created_at >= start_date)
        if end_date:
            stmt = stmt.where(CommissionCalculation.created_at <= end_date)
        return stmt

    async def platform_totals(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[dict[CommissionStatus, Decimal], int]:
        """
        Ledger-wide totals per status and row count, users and companies alike.

        Returns:
            (totals by status with every status present, number of rows)
        """
        stmt = self._created_between(
            select(
                CommissionCalculation.status,
                func.coalesce(
                    func.sum(CommissionCalculation.commission_amount),
                    Decimal("0"),
                ).label("total"),
                func.count(CommissionCalculation.id).label("rows"),
            ),
            start_date,
            end_date,
        ).group_by(CommissionCalculation.status)

        result = await self.session.execute(stmt)

        totals = {s: Decimal("0") for s in CommissionStatus}
        count = 0
        for row in result.all():
            totals[CommissionStatus(row.status)] = Decimal(str(row.total))
            count += row.rows
        return totals, count

    async def top_earners(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 10,
    ) -> list[tuple[int, Decimal, int]]:
        """
        User beneficiaries with the highest summed commission_amount.

        Returns:
            [(user_id, total, rows)] ordered by total desc, then user_id
        """
        total = func.sum(CommissionCalculation.commission_amount).label("total")
        stmt = (
            self._created_between(
                select(
                    CommissionCalculation.beneficiary_id,
                    total,
                    func.count(CommissionCalculation.id).label("rows"),
                ).where(CommissionCalculation.beneficiary_type == BeneficiaryType.USER),
                start_date,
                end_date,
            )
            .group_by(CommissionCalculation.beneficiary_id)
            .order_by(total.desc(), CommissionCalculation.beneficiary_id)
            .limit(limit)
        )

        result = await self.session.execute(stmt)
        return [
            (row.beneficiary_id, Decimal(str(row.total)), row.rows)
            for row in result.all()
        ]
