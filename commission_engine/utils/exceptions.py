"""
Commission engine exceptions.

Resolution gaps and broken upline references are handled where they occur
(logged, line item skipped / trace truncated) and never raised. Everything
below reaches the caller.
"""

from typing import Iterable, Optional


class CommissionError(Exception):
    """Base class for commission engine failures."""
    pass


class OrderNotFoundError(CommissionError):
    """Raised when commissions are requested for an unknown order."""

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class CommissionNotFoundError(CommissionError):
    """Raised when a batch transition references unknown ledger rows."""

    def __init__(self, commission_ids: Iterable[int]) -> None:
        self.commission_ids = sorted(commission_ids)
        super().__init__(f"Commissions not found: {self.commission_ids}")


class InvalidCommissionTransition(CommissionError):
    """Raised when a batch would move rows backwards or skip a status."""

    def __init__(self, target_status: str, offending: dict[int, str]) -> None:
        self.target_status = target_status
        self.offending = offending
        details = ", ".join(f"{cid}={status}" for cid, status in sorted(offending.items()))
        super().__init__(f"Cannot move commissions to '{target_status}': {details}")


class CommissionPersistenceError(CommissionError):
    """
    Raised when writing an order's commissions fails.

    Writes are transactional per order, so committed is always False when
    this is raised by the ledger: the caller can retry the whole order.
    """

    def __init__(
        self,
        order_id: int,
        reason: str,
        committed: bool = False,
        original: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"Failed to persist commissions for order {order_id}: {reason}")
        self.order_id = order_id
        self.committed = committed
        self.original = original
