"""
AuditLog model for admin actions on templates and the commission ledger.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base

if TYPE_CHECKING:
    from commission_engine.models.user import User


class AuditAction(str, Enum):
    """Types of auditable actions."""
    LOGIN = "login"
    LOGOUT = "logout"
    CALCULATE_COMMISSIONS = "calculate_commissions"
    APPROVE_COMMISSIONS = "approve_commissions"
    PAY_COMMISSIONS = "pay_commissions"
    CREATE_TEMPLATE = "create_template"
    CREATE_TIME_BASED_TEMPLATE = "create_time_based_template"


class AuditLog(Base):
    """
    Who did what to the ledger.

    Every status transition of commission rows is recorded here, because
    the rows themselves only keep the latest approver and payer.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="order, commission, template, time_based_template",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="audit_logs",
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, user_id={self.user_id}, action={self.action})>"
