"""
Commission ledger model.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base
from commission_engine.models.commission_template import CommissionType

if TYPE_CHECKING:
    from commission_engine.models.commission_template import CommissionTemplate
    from commission_engine.models.order import Order


class CommissionStatus(str, Enum):
    """Ledger lifecycle: pending -> approved -> paid, no skipping, no going back."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class BeneficiaryType(str, Enum):
    """Who receives the commission."""
    USER = "user"
    COMPANY = "company"  # beneficiary_id is a partner_companies.id


class CommissionCalculation(Base):
    """
    One commission owed to one beneficiary for one order line and rule.

    Rows are created by the calculator, changed only by approve/pay and
    never deleted. The unique constraint makes generation at-most-once per
    order even when two workers race on the same order.
    """

    __tablename__ = "commission_calculations"
    __table_args__ = (
        UniqueConstraint(
            "order_id",
            "order_item_id",
            "beneficiary_type",
            "beneficiary_id",
            "commission_level",
            name="uq_commission_calculations_slot",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id"),
        nullable=False,
        index=True,
    )
    order_item_id: Mapped[int] = mapped_column(
        ForeignKey("order_items.id"),
        nullable=False,
    )
    beneficiary_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="users.id or partner_companies.id depending on beneficiary_type",
    )
    beneficiary_type: Mapped[BeneficiaryType] = mapped_column(
        SQLAlchemyEnum(
            BeneficiaryType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=BeneficiaryType.USER,
    )
    commission_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="0 = buyer, n = n-th upline",
    )
    commission_type: Mapped[CommissionType] = mapped_column(
        SQLAlchemyEnum(
            CommissionType,
            name="commissiontype",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Percent or fixed amount copied from the applied rule",
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True,
    )
    applied_template_id: Mapped[int] = mapped_column(
        ForeignKey("commission_templates.id"),
        nullable=False,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    approved_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    paid_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Relationships
    order: Mapped["Order"] = relationship("Order")
    applied_template: Mapped["CommissionTemplate"] = relationship("CommissionTemplate")

    def __repr__(self) -> str:
        return (
            f"<CommissionCalculation(id={self.id}, order_id={self.order_id}, "
            f"beneficiary={self.beneficiary_type.value}:{self.beneficiary_id}, "
            f"amount={self.commission_amount}, status={self.status})>"
        )
