"""
Commission ledger.

Persists drafts, moves rows through pending -> approved -> paid and answers
summary queries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission import (
    BeneficiaryType,
    CommissionCalculation,
    CommissionStatus,
)
from commission_engine.models.order import Order
from commission_engine.repositories.commission_repository import CommissionRepository
from commission_engine.services.commission.calculator import CommissionDraft
from commission_engine.services.commission.config import quantize_money
from commission_engine.utils.exceptions import (
    CommissionNotFoundError,
    CommissionPersistenceError,
    InvalidCommissionTransition,
)

logger = logging.getLogger(__name__)


@dataclass
class CommissionSummary:
    """Totals per status plus the matching rows."""

    total_pending: Decimal = Decimal("0")
    total_approved: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    commissions: list[CommissionCalculation] = field(default_factory=list)


@dataclass(frozen=True)
class TopEarner:
    user_id: int
    total_earned: Decimal
    commission_count: int


@dataclass
class PlatformCommissionSummary:
    """Ledger-wide totals over an optional creation window."""

    total_pending: Decimal = Decimal("0")
    total_approved: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    commission_count: int = 0
    top_earners: list[TopEarner] = field(default_factory=list)


class CommissionLedger:
    """Write side and summary queries of the commission ledger."""

    def __init__(self, session: AsyncSession, commission_repo: CommissionRepository) -> None:
        self.session = session
        self.commission_repo = commission_repo

    async def persist(
        self, order: Order, drafts: list[CommissionDraft]
    ) -> tuple[list[CommissionCalculation], bool]:
        """
        Write an order's drafts in one transaction and commit.

        Amounts are rounded to cents here and nowhere earlier. The order is
        stamped as processed in the same transaction, so an order that earned
        nothing is not picked up again by reconciliation.

        Args:
            order: Order the drafts belong to
            drafts: Output of CommissionCalculator

        Returns:
            (rows, created). created is False when a concurrent run already
            wrote this order's rows; those rows are returned instead.

        Raises:
            CommissionPersistenceError: write failed, nothing was committed
        """
        order_id = order.id
        rows = [
            CommissionCalculation(
                order_id=draft.order_id,
                order_item_id=draft.order_item_id,
                beneficiary_id=draft.beneficiary_id,
                beneficiary_type=draft.beneficiary_type,
                commission_level=draft.commission_level,
                commission_type=draft.commission_type,
                commission_rate=draft.commission_rate,
                commission_amount=quantize_money(draft.commission_amount),
                status=draft.status,
                applied_template_id=draft.applied_template_id,
            )
            for draft in drafts
        ]

        try:
            self.session.add_all(rows)
            order.commissions_processed_at = datetime.now(timezone.utc)
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            existing = await self.commission_repo.find_by_order(order_id)
            if existing:
                logger.info(
                    f"Order {order_id}: commissions already written by another run, "
                    f"keeping {len(existing)} existing rows"
                )
                return existing, False
            logger.error(f"Order {order_id}: integrity error writing commissions: {e}")
            raise CommissionPersistenceError(order_id, "integrity error", original=e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Order {order_id}: failed to write commissions: {e}")
            raise CommissionPersistenceError(order_id, str(e), original=e) from e

        logger.info(f"Order {order_id}: persisted {len(rows)} commission rows")
        return rows, True

    async def get_order_commissions(self, order_id: int) -> list[CommissionCalculation]:
        return await self.commission_repo.find_by_order(order_id)

    async def get_user_commission_summary(
        self,
        user_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        status: Optional[CommissionStatus] = None,
    ) -> CommissionSummary:
        """
        Commission totals of a user, grouped by status.

        Args:
            user_id: Beneficiary user ID
            start_date: Only rows created at or after this moment
            end_date: Only rows created at or before this moment
            status: Only rows in this status

        Returns:
            CommissionSummary with the matching rows, newest first
        """
        filters = dict(start_date=start_date, end_date=end_date, status=status)
        totals = await self.commission_repo.sum_by_status(
            user_id, BeneficiaryType.USER, **filters
        )
        commissions = await self.commission_repo.list_for_beneficiary(
            user_id, BeneficiaryType.USER, **filters
        )

        return CommissionSummary(
            total_pending=totals[CommissionStatus.PENDING],
            total_approved=totals[CommissionStatus.APPROVED],
            total_paid=totals[CommissionStatus.PAID],
            commissions=commissions,
        )

    async def get_commission(self, commission_id: int) -> CommissionCalculation:
        """
        One ledger row.

        Raises:
            CommissionNotFoundError: no row with this id
        """
        row = await self.commission_repo.get_by_id(commission_id)
        if row is None:
            raise CommissionNotFoundError([commission_id])
        return row

    async def get_platform_summary(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        top: int = 10,
    ) -> PlatformCommissionSummary:
        """
        Totals over the whole ledger plus the best-earning users.

        Args:
            start_date: Only rows created at or after this moment
            end_date: Only rows created at or before this moment
            top: How many earners to return

        Returns:
            PlatformCommissionSummary, earners ordered by total desc
        """
        totals, count = await self.commission_repo.platform_totals(start_date, end_date)
        earners = await self.commission_repo.top_earners(start_date, end_date, limit=top)

        return PlatformCommissionSummary(
            total_pending=totals[CommissionStatus.PENDING],
            total_approved=totals[CommissionStatus.APPROVED],
            total_paid=totals[CommissionStatus.PAID],
            commission_count=count,
            top_earners=[
                TopEarner(user_id=user_id, total_earned=total, commission_count=rows)
                for user_id, total, rows in earners
            ],
        )

    async def _load_batch(self, commission_ids: Iterable[int]) -> list[CommissionCalculation]:
        ids = set(commission_ids)
        rows = await self.commission_repo.get_many(ids, for_update=True)
        missing = ids - {row.id for row in rows}
        if missing:
            raise CommissionNotFoundError(missing)
        return rows

    async def approve_commissions(
        self, commission_ids: Iterable[int], approved_by_id: Optional[int] = None
    ) -> list[CommissionCalculation]:
        """
        Batch transition pending -> approved.

        Already approved rows are left as they are. A paid row or an unknown
        id rejects the whole batch before anything changes. The caller
        commits.

        Returns:
            All rows of the batch, ordered by id
        """
        rows = await self._load_batch(commission_ids)

        offending = {
            row.id: row.status.value
            for row in rows
            if row.status == CommissionStatus.PAID
        }
        if offending:
            raise InvalidCommissionTransition(CommissionStatus.APPROVED.value, offending)

        now = datetime.now(timezone.utc)
        changed = 0
        for row in rows:
            if row.status == CommissionStatus.PENDING:
                row.status = CommissionStatus.APPROVED
                row.approved_at = now
                row.approved_by_id = approved_by_id
                changed += 1

        await self.session.flush()

        logger.info(
            f"User {approved_by_id} approved {changed} commissions "
            f"({len(rows) - changed} already approved)"
        )
        return rows

    async def mark_commissions_as_paid(
        self, commission_ids: Iterable[int], paid_by_id: Optional[int] = None
    ) -> list[CommissionCalculation]:
        """
        Batch transition approved -> paid, stamping paid_at.

        Already paid rows keep their original paid_at. A pending row (which
        would skip approval) or an unknown id rejects the whole batch. The
        caller commits.

        Returns:
            All rows of the batch, ordered by id
        """
        rows = await self._load_batch(commission_ids)

        offending = {
            row.id: row.status.value
            for row in rows
            if row.status == CommissionStatus.PENDING
        }
        if offending:
            raise InvalidCommissionTransition(CommissionStatus.PAID.value, offending)

        now = datetime.now(timezone.utc)
        changed = 0
        for row in rows:
            if row.status == CommissionStatus.APPROVED:
                row.status = CommissionStatus.PAID
                row.paid_at = now
                row.paid_by_id = paid_by_id
                changed += 1

        await self.session.flush()

        logger.info(
            f"User {paid_by_id} marked {changed} commissions as paid "
            f"({len(rows) - changed} already paid)"
        )
        return rows
