"""
Commission services package.

Contains the multi-level commission engine:
- config: Engine constants (MAX_UPLINE_DEPTH, money rounding)
- levels: Typed rule levels decoded from template rows
- template_resolver: Picks the template of a product on a date
- beneficiary_tracer: Walks the buyer's upline chain
- calculator: Turns line items and rules into commission drafts
- ledger: Persists drafts, status transitions, summaries
- service: The per-order pipeline
"""

from commission_engine.services.commission.beneficiary_tracer import (
    Beneficiary,
    BeneficiaryTracer,
)
from commission_engine.services.commission.calculator import (
    CommissionCalculator,
    CommissionDraft,
    calculate_commission_amount,
)
from commission_engine.services.commission.config import MAX_UPLINE_DEPTH
from commission_engine.services.commission.ledger import (
    CommissionLedger,
    CommissionSummary,
    PlatformCommissionSummary,
    TopEarner,
)
from commission_engine.services.commission.levels import LevelKind, RuleLevel
from commission_engine.services.commission.service import (
    CommissionService,
    GenerationResult,
    generate_commissions_safely,
)
from commission_engine.services.commission.template_resolver import (
    ResolvedRule,
    ResolvedTemplate,
    TemplateResolver,
)

__all__ = [
    # Configuration
    "MAX_UPLINE_DEPTH",
    # Levels
    "LevelKind",
    "RuleLevel",
    # Stages
    "TemplateResolver",
    "ResolvedTemplate",
    "ResolvedRule",
    "BeneficiaryTracer",
    "Beneficiary",
    "CommissionCalculator",
    "CommissionDraft",
    "calculate_commission_amount",
    "CommissionLedger",
    "CommissionSummary",
    "PlatformCommissionSummary",
    "TopEarner",
    # Pipeline
    "CommissionService",
    "GenerationResult",
    "generate_commissions_safely",
]
