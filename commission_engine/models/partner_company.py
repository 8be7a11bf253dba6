"""
Partner company model.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.user import User


class PartnerCompany(Base, TimestampMixin):
    """
    Clinic, pharmacy or distributor that members can be attached to.

    A template rule with level_type "partner_company" pays the company of
    the nearest member in the buyer's chain.
    """

    __tablename__ = "partner_companies"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    members: Mapped[List["User"]] = relationship(
        "User",
        back_populates="partner_company",
    )

    def __repr__(self) -> str:
        return f"<PartnerCompany(id={self.id}, name='{self.name}')>"
