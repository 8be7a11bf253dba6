"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commission_engine.models import (
    Base,
    CommissionTemplate,
    CommissionTemplateDetail,
    CommissionType,
    CustomerType,
    Order,
    OrderItem,
    OrderStatus,
    PartnerCompany,
    Product,
    RuleCustomerType,
    TemplateStatus,
    TimeBasedTemplate,
    User,
    UserRole,
)

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ORDER_TIME = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


# ── Factories ─────────────────────────────────────────────


@pytest_asyncio.fixture
async def make_user(db_session):
    counter = {"n": 0}

    async def _make(
        upline=None,
        customer_type=CustomerType.REGULAR,
        partner_company=None,
        role=UserRole.MEMBER,
        username=None,
    ) -> User:
        counter["n"] += 1
        user = User(
            username=username or f"member{counter['n']}",
            password_hash="x",
            role=role,
            display_name=f"Member {counter['n']}",
            customer_type=customer_type,
            upline_id=upline.id if upline else None,
            partner_company_id=partner_company.id if partner_company else None,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest_asyncio.fixture
async def make_chain(make_user):
    """make_chain(n) -> [buyer, upline_1, ..., upline_n-1]; buyer first."""

    async def _make(length: int, **buyer_kwargs) -> list[User]:
        top = None
        members = []
        for _ in range(length - 1):
            top = await make_user(upline=top)
            members.append(top)
        buyer = await make_user(upline=top, **buyer_kwargs)
        return [buyer] + list(reversed(members))

    return _make


@pytest_asyncio.fixture
async def make_company(db_session):
    async def _make(name: str = "Acme Partners") -> PartnerCompany:
        company = PartnerCompany(name=name)
        db_session.add(company)
        await db_session.flush()
        return company

    return _make


@pytest_asyncio.fixture
async def make_template(db_session):
    """
    make_template(code, [(level_type, value), ...]).

    A rule is (level_type, value) for an "all" percentage rule, or
    (level_type, value, commission_type, customer_type).
    """

    async def _make(
        code: str,
        rules: list[tuple],
        status: TemplateStatus = TemplateStatus.ACTIVE,
    ) -> CommissionTemplate:
        details = []
        for rule in rules:
            level_type, value = rule[0], rule[1]
            commission_type = rule[2] if len(rule) > 2 else CommissionType.PERCENTAGE
            customer_type = rule[3] if len(rule) > 3 else RuleCustomerType.ALL
            level_number = int(level_type.split("_")[1]) if level_type.startswith("upline_") else 0
            details.append(
                CommissionTemplateDetail(
                    level_type=level_type,
                    level_number=level_number,
                    customer_type=customer_type,
                    commission_type=commission_type,
                    commission_value=Decimal(str(value)),
                )
            )

        template = CommissionTemplate(
            template_code=code,
            template_name=code.title(),
            status=status,
            details=details,
        )
        db_session.add(template)
        await db_session.flush()
        return template

    return _make


@pytest_asyncio.fixture
async def make_product(db_session):
    async def _make(template=None, name: str = "Widget", price="1000.00") -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            commission_template_id=template.id if template else None,
        )
        db_session.add(product)
        await db_session.flush()
        return product

    return _make


@pytest_asyncio.fixture
async def make_override(db_session):
    async def _make(
        product,
        template,
        start: date,
        end: date,
        priority: int = 0,
        status: TemplateStatus = TemplateStatus.ACTIVE,
        created_at=None,
    ) -> TimeBasedTemplate:
        override = TimeBasedTemplate(
            product_id=product.id,
            commission_template_id=template.id,
            start_date=start,
            end_date=end,
            priority=priority,
            status=status,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db_session.add(override)
        await db_session.flush()
        return override

    return _make


@pytest_asyncio.fixture
async def make_order(db_session):
    """make_order(buyer, [(product, unit_price, quantity), ...])."""

    async def _make(
        buyer,
        lines: list[tuple],
        status: OrderStatus = OrderStatus.COMPLETED,
        placed_at: datetime = ORDER_TIME,
    ) -> Order:
        order = Order(
            buyer_id=buyer.id,
            status=status,
            placed_at=placed_at,
            items=[
                OrderItem(
                    product_id=product.id,
                    unit_price=Decimal(str(unit_price)),
                    quantity=quantity,
                )
                for product, unit_price, quantity in lines
            ],
        )
        db_session.add(order)
        await db_session.flush()
        return order

    return _make
