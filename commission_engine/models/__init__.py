"""
Database models for the commission engine.

All models are exported here for convenient imports:
    from commission_engine.models import User, Order, CommissionCalculation, etc.
"""

from commission_engine.models.audit import AuditAction, AuditLog
from commission_engine.models.base import Base, TimestampMixin
from commission_engine.models.commission import (
    BeneficiaryType,
    CommissionCalculation,
    CommissionStatus,
)
from commission_engine.models.commission_template import (
    CommissionTemplate,
    CommissionTemplateDetail,
    CommissionType,
    RuleCustomerType,
    TemplateStatus,
    TimeBasedTemplate,
)
from commission_engine.models.order import Order, OrderItem, OrderStatus
from commission_engine.models.partner_company import PartnerCompany
from commission_engine.models.product import Product
from commission_engine.models.user import CustomerType, User, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    "CustomerType",
    "PartnerCompany",
    # Catalog
    "Product",
    # Templates
    "CommissionTemplate",
    "CommissionTemplateDetail",
    "TimeBasedTemplate",
    "TemplateStatus",
    "CommissionType",
    "RuleCustomerType",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatus",
    # Ledger
    "CommissionCalculation",
    "CommissionStatus",
    "BeneficiaryType",
    # Audit
    "AuditLog",
    "AuditAction",
]
