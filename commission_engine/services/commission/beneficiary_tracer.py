"""
Upline chain tracing.

Walks buyer -> upline -> upline's upline ... and tags every member with the
level they are paid at.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from commission_engine.models.user import User
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.services.commission.config import MAX_UPLINE_DEPTH
from commission_engine.services.commission.levels import LevelKind, RuleLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Beneficiary:
    """A member of the buyer's chain. Derived per order, never persisted."""

    user_id: int
    level: int
    partner_company_id: Optional[int] = None

    @property
    def type(self) -> str:
        return "direct" if self.level == 0 else f"upline_{self.level}"

    def matches(self, rule_level: RuleLevel) -> bool:
        if rule_level.kind == LevelKind.DIRECT:
            return self.level == 0
        if rule_level.kind == LevelKind.UPLINE:
            return self.level == rule_level.depth
        return False


class BeneficiaryTracer:
    """
    Traces the upline chain of a buyer.

    The walk is an explicit loop bounded by max_depth hops, so a cyclic or
    corrupted referral graph still terminates.
    """

    def __init__(
        self, user_repo: UserRepository, max_depth: int = MAX_UPLINE_DEPTH
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.user_repo = user_repo
        self.max_depth = max_depth

    async def trace_beneficiaries(self, buyer: User) -> list[Beneficiary]:
        """
        Build the beneficiary list for a buyer.

        Args:
            buyer: Purchasing user

        Returns:
            Beneficiaries ordered by level; level 0 (the buyer) always first,
            at most max_depth + 1 entries
        """
        beneficiaries = [
            Beneficiary(
                user_id=buyer.id,
                level=0,
                partner_company_id=buyer.partner_company_id,
            )
        ]

        current = buyer
        level = 0
        while current.upline_id is not None and level < self.max_depth:
            upline = await self.user_repo.get_by_id(current.upline_id)
            if upline is None:
                logger.warning(
                    f"User {current.id} references missing upline {current.upline_id}, "
                    f"truncating trace for buyer {buyer.id} at level {level}"
                )
                break

            level += 1
            beneficiaries.append(
                Beneficiary(
                    user_id=upline.id,
                    level=level,
                    partner_company_id=upline.partner_company_id,
                )
            )
            current = upline

        if level == self.max_depth and current.upline_id is not None:
            logger.debug(
                f"Upline trace for buyer {buyer.id} stopped at max depth {self.max_depth}"
            )

        return beneficiaries
