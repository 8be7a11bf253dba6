"""
Seed the standard commission templates.

Usage:
    python scripts/seed_commission_templates.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_commission_templates.py

This script creates (skipping any template code that already exists):
- STANDARD-001: buyer commission per customer type, five upline levels
- PREMIUM-001: higher rates, four levels, all customer types
and assigns STANDARD-001 to every product that has no default template.
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from commission_engine.db import engine, get_db_context
from commission_engine.models import (
    CommissionTemplate,
    CommissionTemplateDetail,
    CommissionType,
    RuleCustomerType,
    TemplateStatus,
)
from commission_engine.repositories import CommissionTemplateRepository, ProductRepository

PCT = CommissionType.PERCENTAGE
FIXED = CommissionType.FIXED

# (level_type, level_number, customer_type, commission_type, value)
TEMPLATES = {
    "STANDARD-001": {
        "template_name": "Standard Commission",
        "description": "Default multi-level commission for regular products",
        "details": [
            ("direct", 0, RuleCustomerType.REGULAR, PCT, "30"),
            ("direct", 0, RuleCustomerType.VIP, PCT, "35"),
            ("direct", 0, RuleCustomerType.WHOLESALE, PCT, "25"),
            ("upline_1", 1, RuleCustomerType.ALL, PCT, "10"),
            ("upline_2", 2, RuleCustomerType.ALL, PCT, "5"),
            ("upline_3", 3, RuleCustomerType.ALL, PCT, "3"),
            ("upline_4", 4, RuleCustomerType.ALL, FIXED, "50"),
            ("upline_5", 5, RuleCustomerType.ALL, FIXED, "25"),
        ],
    },
    "PREMIUM-001": {
        "template_name": "Premium Commission",
        "description": "Higher rates for premium products",
        "details": [
            ("direct", 0, RuleCustomerType.ALL, PCT, "40"),
            ("upline_1", 1, RuleCustomerType.ALL, PCT, "15"),
            ("upline_2", 2, RuleCustomerType.ALL, PCT, "8"),
            ("upline_3", 3, RuleCustomerType.ALL, PCT, "5"),
        ],
    },
}

DEFAULT_TEMPLATE_CODE = "STANDARD-001"


async def seed_templates(db) -> dict[str, CommissionTemplate]:
    """Create missing templates, return all seeded templates by code."""
    template_repo = CommissionTemplateRepository(db)
    seeded = {}

    for code, definition in TEMPLATES.items():
        template = await template_repo.get_by_code(code)
        if template:
            print(f"  = {code} already exists (id={template.id})")
            seeded[code] = template
            continue

        template = CommissionTemplate(
            template_code=code,
            template_name=definition["template_name"],
            description=definition["description"],
            status=TemplateStatus.ACTIVE,
            details=[
                CommissionTemplateDetail(
                    level_type=level_type,
                    level_number=level_number,
                    customer_type=customer_type,
                    commission_type=commission_type,
                    commission_value=Decimal(value),
                )
                for level_type, level_number, customer_type, commission_type, value in definition["details"]
            ],
        )
        db.add(template)
        await db.flush()
        print(f"  + {code} created with {len(definition['details'])} rules (id={template.id})")
        seeded[code] = template

    return seeded


async def assign_default_template(db, template: CommissionTemplate) -> int:
    """Point every product without a template at the default one."""
    products = await ProductRepository(db).find_without_template()
    for product in products:
        product.commission_template_id = template.id
    await db.flush()
    return len(products)


async def seed_all(assign_default: bool = True):
    print("Seeding commission templates...")

    async with get_db_context() as db:
        seeded = await seed_templates(db)

        if assign_default:
            assigned = await assign_default_template(db, seeded[DEFAULT_TEMPLATE_CODE])
            print(f"  {DEFAULT_TEMPLATE_CODE} assigned to {assigned} products")

    await engine.dispose()
    print("Done.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed commission templates")
    parser.add_argument(
        "--no-assign",
        action="store_true",
        help="Do not assign the default template to products without one",
    )

    args = parser.parse_args()

    asyncio.run(seed_all(assign_default=not args.no_assign))
