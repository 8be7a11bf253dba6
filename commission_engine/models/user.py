"""
User model: platform members, their upline referrer and partner company.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.audit import AuditLog
    from commission_engine.models.partner_company import PartnerCompany


class UserRole(str, Enum):
    """User roles for access control."""
    ADMIN = "admin"
    MEMBER = "member"


class CustomerType(str, Enum):
    """Pricing segment of a buyer; commission rules can target one of these."""
    REGULAR = "regular"
    VIP = "vip"
    WHOLESALE = "wholesale"


class User(Base, TimestampMixin):
    """
    Platform account.

    - admin: manages templates and approves/pays commissions
    - member: buys products and earns commissions from their downline

    upline_id points at the member who referred this one. The graph is
    acyclic by business rule only; nothing in the schema enforces it.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=UserRole.MEMBER,
    )
    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    customer_type: Mapped[CustomerType] = mapped_column(
        SQLAlchemyEnum(
            CustomerType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=CustomerType.REGULAR,
        server_default=CustomerType.REGULAR.value,
    )
    upline_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Referrer one level up the MLM chain",
    )
    partner_company_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("partner_companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    upline: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side="User.id",
        back_populates="downline",
    )
    downline: Mapped[List["User"]] = relationship(
        "User",
        back_populates="upline",
    )
    partner_company: Mapped[Optional["PartnerCompany"]] = relationship(
        "PartnerCompany",
        back_populates="members",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"
