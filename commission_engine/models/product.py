"""
Product model (catalog entry with its default commission template).
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.commission_template import CommissionTemplate


class Product(Base, TimestampMixin):
    """
    Sellable product.

    Only the fields the commission engine reads are mapped here; the
    storefront owns the rest of the catalog.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )
    commission_template_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_templates.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Default template when no time-based override applies",
    )

    commission_template: Mapped[Optional["CommissionTemplate"]] = relationship(
        "CommissionTemplate",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}')>"
