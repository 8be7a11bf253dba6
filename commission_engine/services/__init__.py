"""Business logic services."""

from commission_engine.services.commission import (
    CommissionService,
    generate_commissions_safely,
)

__all__ = [
    "CommissionService",
    "generate_commissions_safely",
]
