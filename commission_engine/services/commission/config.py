"""
Commission engine configuration.

Contains constants shared by the tracer, calculator and ledger.
"""

from decimal import ROUND_HALF_UP, Decimal

# Safety valve for the upline walk: a corrupted or cyclic referral graph
# must not loop forever. Level 0 is the buyer, so a trace holds at most
# MAX_UPLINE_DEPTH + 1 beneficiaries.
MAX_UPLINE_DEPTH = 5

# Money is kept unrounded through the calculation and quantized once,
# when a draft is written to the ledger.
MONEY_QUANTUM = Decimal("0.01")
MONEY_ROUNDING = ROUND_HALF_UP

PERCENT_BASE = Decimal("100")


def quantize_money(amount: Decimal) -> Decimal:
    """Round an amount to cents using the ledger rounding policy."""
    return amount.quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)
