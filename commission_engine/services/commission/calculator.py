"""
Commission calculation.

Crosses an order's line items with their resolved template rules and the
buyer's traced beneficiaries, producing unsaved commission drafts.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from commission_engine.models.commission import BeneficiaryType, CommissionStatus
from commission_engine.models.commission_template import CommissionType, RuleCustomerType
from commission_engine.models.order import Order, OrderItem
from commission_engine.services.commission.beneficiary_tracer import (
    Beneficiary,
    BeneficiaryTracer,
)
from commission_engine.services.commission.config import PERCENT_BASE
from commission_engine.services.commission.levels import RuleLevel
from commission_engine.services.commission.template_resolver import (
    ResolvedRule,
    ResolvedTemplate,
    TemplateResolver,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommissionDraft:
    """A computed, not yet persisted, ledger row."""

    order_id: int
    order_item_id: int
    beneficiary_id: int
    beneficiary_type: BeneficiaryType
    commission_level: int
    commission_type: CommissionType
    commission_rate: Decimal
    commission_amount: Decimal  # unrounded, quantized by the ledger
    applied_template_id: int
    status: CommissionStatus = CommissionStatus.PENDING


def calculate_commission_amount(
    item_total: Decimal, commission_type: CommissionType, commission_value: Decimal
) -> Decimal:
    """
    Commission for one rule on one line.

    Percentage rules pay commission_value % of the line total; fixed rules
    pay commission_value as-is, whatever the quantity.
    """
    if commission_type == CommissionType.PERCENTAGE:
        return item_total * commission_value / PERCENT_BASE
    return commission_value


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def select_applicable_rules(
    rules: Iterable[ResolvedRule], customer_type: str
) -> list[ResolvedRule]:
    """
    Pick at most one rule per level for a buyer's customer type.

    Rules for another customer type are dropped. For each level a rule for
    the buyer's own type beats an "all" rule; among equally specific rules
    the first one (lowest detail id) wins. Winners keep template order.
    """
    chosen: dict[RuleLevel, tuple[int, ResolvedRule]] = {}
    for rule in rules:
        rule_customer = _enum_value(rule.customer_type)
        if rule_customer == customer_type:
            specificity = 1
        elif rule_customer == RuleCustomerType.ALL.value:
            specificity = 0
        else:
            continue

        current = chosen.get(rule.level)
        if current is None or specificity > current[0]:
            if current is not None:
                logger.debug(
                    f"Rule {rule.detail_id} overrides rule {current[1].detail_id} "
                    f"for {rule.level.label} ({customer_type} beats all)"
                )
            chosen[rule.level] = (specificity, rule)
        elif specificity == current[0]:
            logger.warning(
                f"Duplicate rule {rule.detail_id} for {rule.level.label}/{rule_customer} "
                f"ignored, rule {current[1].detail_id} applies"
            )

    return sorted((rule for _, rule in chosen.values()), key=lambda r: r.detail_id)


def check_rule_totals(
    drafts: list[CommissionDraft], item_total: Decimal, template_code: str
) -> None:
    """
    Warn about drafts that pay out more than looks sane for a line.

    Only drafts that found a beneficiary count. Nothing is dropped: fixed
    rules pay their value whatever the line total.
    """
    total_percentage = sum(
        (d.commission_rate for d in drafts if d.commission_type == CommissionType.PERCENTAGE),
        Decimal("0"),
    )
    if total_percentage > PERCENT_BASE:
        logger.warning(
            f"Template {template_code}: total commission percentage exceeds 100% "
            f"({total_percentage}%)"
        )

    total_fixed = sum(
        (d.commission_amount for d in drafts if d.commission_type == CommissionType.FIXED),
        Decimal("0"),
    )
    if total_fixed > item_total:
        logger.warning(
            f"Template {template_code}: total fixed commissions ({total_fixed}) "
            f"exceed item total ({item_total})"
        )


def find_company_beneficiary(beneficiaries: list[Beneficiary]) -> Optional[int]:
    """Partner company of the nearest chain member that belongs to one."""
    for beneficiary in beneficiaries:
        if beneficiary.partner_company_id is not None:
            return beneficiary.partner_company_id
    return None


def build_item_drafts(
    order_id: int,
    item: OrderItem,
    template: ResolvedTemplate,
    beneficiaries: list[Beneficiary],
    customer_type: str,
) -> list[CommissionDraft]:
    """
    Drafts for one line item.

    Rules with no beneficiary at their depth (short chain, no partner
    company) are skipped silently.
    """
    item_total = item.line_total
    rules = select_applicable_rules(template.rules, customer_type)

    drafts = []
    for rule in rules:
        if rule.level.is_company:
            beneficiary_id = find_company_beneficiary(beneficiaries)
            beneficiary_type = BeneficiaryType.COMPANY
            commission_level = rule.level_number
        else:
            beneficiary = next((b for b in beneficiaries if b.matches(rule.level)), None)
            beneficiary_id = beneficiary.user_id if beneficiary else None
            beneficiary_type = BeneficiaryType.USER
            commission_level = rule.level.depth

        if beneficiary_id is None:
            continue

        drafts.append(
            CommissionDraft(
                order_id=order_id,
                order_item_id=item.id,
                beneficiary_id=beneficiary_id,
                beneficiary_type=beneficiary_type,
                commission_level=commission_level,
                commission_type=rule.commission_type,
                commission_rate=rule.commission_value,
                commission_amount=calculate_commission_amount(
                    item_total, rule.commission_type, rule.commission_value
                ),
                applied_template_id=template.template_id,
            )
        )

    check_rule_totals(drafts, item_total, template.template_code)
    return drafts


class CommissionCalculator:
    """
    Computes the commission drafts of an order.

    Pure with respect to the ledger: nothing is written, so the same order,
    templates and upline graph always give the same drafts in the same order.
    """

    def __init__(self, resolver: TemplateResolver, tracer: BeneficiaryTracer) -> None:
        self.resolver = resolver
        self.tracer = tracer

    async def calculate_order_commissions(self, order: Order) -> list[CommissionDraft]:
        """
        Calculate drafts for every line item of an order.

        Args:
            order: Order with buyer and items loaded

        Returns:
            Drafts ordered by line item id, then template rule order
        """
        buyer = order.buyer
        customer_type = _enum_value(buyer.customer_type) or RuleCustomerType.REGULAR.value

        templates: dict[int, Optional[ResolvedTemplate]] = {}
        beneficiaries: Optional[list[Beneficiary]] = None
        drafts: list[CommissionDraft] = []

        for item in sorted(order.items, key=lambda i: i.id):
            if item.product_id not in templates:
                templates[item.product_id] = await self.resolver.resolve_template(
                    item.product_id, order.placed_at
                )
            template = templates[item.product_id]

            if template is None:
                logger.info(
                    f"Order {order.id}: no commission template for product "
                    f"{item.product_id}, skipping item {item.id}"
                )
                continue

            # One walk per order, shared by all line items
            if beneficiaries is None:
                beneficiaries = await self.tracer.trace_beneficiaries(buyer)

            drafts.extend(
                build_item_drafts(order.id, item, template, beneficiaries, customer_type)
            )

        return drafts
