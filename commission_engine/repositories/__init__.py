"""
Repositories.

Data access layer the commission engine is wired with; services receive
these instead of reaching for a global session.
"""

from commission_engine.repositories.base import BaseRepository
from commission_engine.repositories.commission_repository import CommissionRepository
from commission_engine.repositories.order_repository import OrderRepository
from commission_engine.repositories.product_repository import ProductRepository
from commission_engine.repositories.template_repository import (
    CommissionTemplateRepository,
    TimeBasedTemplateRepository,
)
from commission_engine.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CommissionRepository",
    "CommissionTemplateRepository",
    "OrderRepository",
    "ProductRepository",
    "TimeBasedTemplateRepository",
    "UserRepository",
]
