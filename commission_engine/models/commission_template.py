"""
Commission template models.

A template is a named ruleset; each detail row pays one chain level a
percentage of the line total or a fixed amount. Products carry a default
template, and time-based templates override it for a date window.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.product import Product


class TemplateStatus(str, Enum):
    """Whether a template (or override) may be applied."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class CommissionType(str, Enum):
    """How a rule's commission_value is applied."""
    PERCENTAGE = "percentage"  # commission_value % of the line total
    FIXED = "fixed"            # flat amount per line, ignores quantity


class RuleCustomerType(str, Enum):
    """Customer segment a rule applies to."""
    REGULAR = "regular"
    VIP = "vip"
    WHOLESALE = "wholesale"
    ALL = "all"


class CommissionTemplate(Base, TimestampMixin):
    """Named commission ruleset."""

    __tablename__ = "commission_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    template_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique code e.g. STANDARD-001",
    )
    template_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TemplateStatus] = mapped_column(
        SQLAlchemyEnum(
            TemplateStatus,
            name="templatestatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=TemplateStatus.ACTIVE,
    )

    details: Mapped[List["CommissionTemplateDetail"]] = relationship(
        "CommissionTemplateDetail",
        back_populates="template",
        order_by="CommissionTemplateDetail.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<CommissionTemplate(id={self.id}, code='{self.template_code}')>"


class CommissionTemplateDetail(Base):
    """One rule row of a template."""

    __tablename__ = "commission_template_details"
    __table_args__ = (
        CheckConstraint("level_number >= 0", name="level_number_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    template_id: Mapped[int] = mapped_column(
        ForeignKey("commission_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="direct, upline_<n> or partner_company",
    )
    level_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="0 = direct seller, n = n-th upline",
    )
    customer_type: Mapped[RuleCustomerType] = mapped_column(
        SQLAlchemyEnum(
            RuleCustomerType,
            name="rulecustomertype",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=RuleCustomerType.ALL,
    )
    commission_type: Mapped[CommissionType] = mapped_column(
        SQLAlchemyEnum(
            CommissionType,
            name="commissiontype",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    commission_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    template: Mapped["CommissionTemplate"] = relationship(
        "CommissionTemplate",
        back_populates="details",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionTemplateDetail(id={self.id}, level_type='{self.level_type}', "
            f"{self.commission_type.value}={self.commission_value})>"
        )


class TimeBasedTemplate(Base):
    """
    Date-bounded template override for a single product.

    When several overrides cover the same day, the highest priority wins and
    equal priorities go to the most recently created one.
    """

    __tablename__ = "time_based_templates"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="date_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    commission_template_id: Mapped[int] = mapped_column(
        ForeignKey("commission_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[TemplateStatus] = mapped_column(
        SQLAlchemyEnum(
            TemplateStatus,
            name="templatestatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=TemplateStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    product: Mapped["Product"] = relationship("Product")
    commission_template: Mapped["CommissionTemplate"] = relationship("CommissionTemplate")

    def __repr__(self) -> str:
        return (
            f"<TimeBasedTemplate(id={self.id}, product_id={self.product_id}, "
            f"{self.start_date}..{self.end_date}, priority={self.priority})>"
        )
