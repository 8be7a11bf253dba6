"""
Commission generation pipeline.

Order -> template resolution -> upline trace -> calculation -> ledger,
run at most once per order.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission import CommissionCalculation
from commission_engine.models.order import OrderStatus
from commission_engine.repositories import (
    CommissionRepository,
    CommissionTemplateRepository,
    OrderRepository,
    ProductRepository,
    TimeBasedTemplateRepository,
    UserRepository,
)
from commission_engine.services.commission.beneficiary_tracer import BeneficiaryTracer
from commission_engine.services.commission.calculator import CommissionCalculator
from commission_engine.services.commission.config import MAX_UPLINE_DEPTH
from commission_engine.services.commission.ledger import CommissionLedger
from commission_engine.services.commission.template_resolver import TemplateResolver
from commission_engine.utils.exceptions import CommissionError, OrderNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of generate_for_order."""

    order_id: int
    created: bool
    commissions: list[CommissionCalculation] = field(default_factory=list)


class CommissionService:
    """Wires the engine stages together for one database session."""

    def __init__(
        self,
        order_repo: OrderRepository,
        commission_repo: CommissionRepository,
        calculator: CommissionCalculator,
        ledger: CommissionLedger,
    ) -> None:
        self.order_repo = order_repo
        self.commission_repo = commission_repo
        self.calculator = calculator
        self.ledger = ledger

    @classmethod
    def from_session(
        cls, session: AsyncSession, max_upline_depth: int = MAX_UPLINE_DEPTH
    ) -> "CommissionService":
        """Build a service with SQLAlchemy-backed repositories."""
        commission_repo = CommissionRepository(session)
        resolver = TemplateResolver(
            ProductRepository(session),
            CommissionTemplateRepository(session),
            TimeBasedTemplateRepository(session),
        )
        tracer = BeneficiaryTracer(UserRepository(session), max_depth=max_upline_depth)
        return cls(
            order_repo=OrderRepository(session),
            commission_repo=commission_repo,
            calculator=CommissionCalculator(resolver, tracer),
            ledger=CommissionLedger(session, commission_repo),
        )

    async def generate_for_order(self, order_id: int) -> GenerationResult:
        """
        Calculate and persist the commissions of a completed order.

        Safe to call repeatedly: once an order has been processed, later
        calls return the existing rows with created=False.

        Raises:
            OrderNotFoundError: unknown order
            CommissionError: order is not completed
            CommissionPersistenceError: write failed, nothing committed
        """
        order = await self.order_repo.get_with_items(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        existing = await self.commission_repo.find_by_order(order_id)
        if existing or order.commissions_processed_at is not None:
            logger.info(
                f"Order {order_id}: commissions already generated "
                f"({len(existing)} rows), nothing to do"
            )
            return GenerationResult(order_id=order_id, created=False, commissions=existing)

        if order.status != OrderStatus.COMPLETED:
            raise CommissionError(
                f"Order {order_id} is '{order.status.value}', commissions are only "
                f"generated for completed orders"
            )

        drafts = await self.calculator.calculate_order_commissions(order)
        rows, created = await self.ledger.persist(order, drafts)

        return GenerationResult(order_id=order_id, created=created, commissions=rows)


async def generate_commissions_safely(
    session: AsyncSession, order_id: int
) -> Optional[GenerationResult]:
    """
    Generate commissions without ever raising.

    For order-completion hooks and background jobs: a failure here must not
    undo or block the order itself, so it is logged for reconciliation.

    Returns:
        GenerationResult, or None if generation failed
    """
    try:
        return await CommissionService.from_session(session).generate_for_order(order_id)
    except CommissionError as e:
        logger.error(f"Commission generation failed for order {order_id}: {e}")
    except Exception:
        logger.exception(f"Unexpected error generating commissions for order {order_id}")
    return None
