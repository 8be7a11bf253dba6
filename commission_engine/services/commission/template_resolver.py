"""
Commission template resolution.

Picks the template that applies to a product on a given day: an active
time-based override first, the product's default template second.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from commission_engine.config import settings
from commission_engine.models.commission_template import (
    CommissionTemplate,
    CommissionType,
    RuleCustomerType,
    TemplateStatus,
)
from commission_engine.repositories.product_repository import ProductRepository
from commission_engine.repositories.template_repository import (
    CommissionTemplateRepository,
    TimeBasedTemplateRepository,
)
from commission_engine.services.commission.levels import RuleLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRule:
    """A template detail row with its level already decoded."""

    detail_id: int
    level: RuleLevel
    level_number: int
    customer_type: RuleCustomerType
    commission_type: CommissionType
    commission_value: Decimal


@dataclass(frozen=True)
class ResolvedTemplate:
    """Template chosen for a product/date, rules in detail id order."""

    template_id: int
    template_code: str
    rules: tuple[ResolvedRule, ...]
    override_id: Optional[int] = None

    @property
    def is_override(self) -> bool:
        return self.override_id is not None


def decode_template(
    template: CommissionTemplate, override_id: Optional[int] = None
) -> ResolvedTemplate:
    """
    Turn a loaded template into its resolved form.

    Detail rows whose level_type cannot be decoded are dropped with a
    warning instead of failing the whole template.
    """
    rules = []
    for detail in sorted(template.details, key=lambda d: d.id):
        level = RuleLevel.parse(detail.level_type)
        if level is None:
            logger.warning(
                f"Template {template.template_code}: ignoring detail {detail.id} "
                f"with unknown level_type '{detail.level_type}'"
            )
            continue

        rules.append(
            ResolvedRule(
                detail_id=detail.id,
                level=level,
                level_number=detail.level_number,
                customer_type=RuleCustomerType(detail.customer_type),
                commission_type=CommissionType(detail.commission_type),
                commission_value=Decimal(detail.commission_value),
            )
        )

    return ResolvedTemplate(
        template_id=template.id,
        template_code=template.template_code,
        rules=tuple(rules),
        override_id=override_id,
    )


def load_timezone(name: str) -> tzinfo:
    """Timezone for an IANA name; "UTC" needs no tz database."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def business_date(moment: datetime, tz: tzinfo) -> date:
    """
    Calendar day of a moment in the business timezone.

    Naive datetimes are taken as UTC, which is how order timestamps are
    stored.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


class TemplateResolver:
    """Resolves the commission template of a product on a date. Read-only."""

    def __init__(
        self,
        product_repo: ProductRepository,
        template_repo: CommissionTemplateRepository,
        time_based_repo: TimeBasedTemplateRepository,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.product_repo = product_repo
        self.template_repo = template_repo
        self.time_based_repo = time_based_repo
        self.tz = tz or load_timezone(settings.commission_timezone)

    async def resolve_template(
        self, product_id: int, on_date: date
    ) -> Optional[ResolvedTemplate]:
        """
        Resolve the template for a product.

        Args:
            product_id: Product ID
            on_date: Order transaction date. A datetime is converted to its
                calendar day in the business timezone.

        Returns:
            ResolvedTemplate, or None when neither an active override nor an
            active default template exists (the product earns nothing)
        """
        if isinstance(on_date, datetime):
            on_date = business_date(on_date, self.tz)

        overrides = await self.time_based_repo.find_active_for_product(product_id, on_date)
        for override in overrides:
            template = override.commission_template
            if template is None or template.status != TemplateStatus.ACTIVE:
                logger.debug(
                    f"Override {override.id} for product {product_id} points at an "
                    f"inactive template, trying next candidate"
                )
                continue
            return decode_template(template, override_id=override.id)

        product = await self.product_repo.get_by_id(product_id)
        if product is None or product.commission_template_id is None:
            return None

        template = await self.template_repo.get_with_details(product.commission_template_id)
        if template is None or template.status != TemplateStatus.ACTIVE:
            return None

        return decode_template(template)
