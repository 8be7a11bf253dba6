"""
Rule level decoding.

Template detail rows store their level as a string ("direct", "upline_3",
"partner_company"). The resolver decodes it once into a RuleLevel so the
calculator matches beneficiaries on typed values.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_UPLINE_PATTERN = re.compile(r"^upline_([1-9][0-9]*)$")


class LevelKind(str, Enum):
    DIRECT = "direct"
    UPLINE = "upline"
    PARTNER_COMPANY = "partner_company"


@dataclass(frozen=True)
class RuleLevel:
    """
    Who a rule pays.

    depth is 0 for the buyer, n for the n-th upline and 0 for the partner
    company (which is not part of the upline numbering).
    """

    kind: LevelKind
    depth: int = 0

    @classmethod
    def direct(cls) -> "RuleLevel":
        return cls(LevelKind.DIRECT, 0)

    @classmethod
    def upline(cls, depth: int) -> "RuleLevel":
        if depth < 1:
            raise ValueError(f"Upline depth must be >= 1, got {depth}")
        return cls(LevelKind.UPLINE, depth)

    @classmethod
    def partner_company(cls) -> "RuleLevel":
        return cls(LevelKind.PARTNER_COMPANY, 0)

    @classmethod
    def parse(cls, level_type: str) -> Optional["RuleLevel"]:
        """
        Decode a stored level_type.

        Returns:
            RuleLevel, or None if the value is not a known level
        """
        value = (level_type or "").strip().lower()
        if value == LevelKind.DIRECT.value:
            return cls.direct()
        if value == LevelKind.PARTNER_COMPANY.value:
            return cls.partner_company()

        match = _UPLINE_PATTERN.match(value)
        if match:
            return cls.upline(int(match.group(1)))
        return None

    @property
    def label(self) -> str:
        """Stored/display form, inverse of parse()."""
        if self.kind == LevelKind.UPLINE:
            return f"upline_{self.depth}"
        return self.kind.value

    @property
    def is_company(self) -> bool:
        return self.kind == LevelKind.PARTNER_COMPANY
