"""
Tests for the commission ledger.

Covers:
- Rounding at persistence
- User summaries by status and date
- Guarded approve / mark-paid batch transitions
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from commission_engine.models import BeneficiaryType, CommissionStatus, CommissionType
from commission_engine.repositories import CommissionRepository
from commission_engine.services.commission import CommissionDraft, CommissionLedger
from commission_engine.utils.exceptions import (
    CommissionNotFoundError,
    InvalidCommissionTransition,
)


@pytest.fixture
def ledger(db_session):
    return CommissionLedger(db_session, CommissionRepository(db_session))


@pytest_asyncio.fixture
async def setup_order(make_chain, make_template, make_product, make_order):
    chain = await make_chain(2)
    template = await make_template("STANDARD", [("direct", 30)])
    product = await make_product(template=template)
    order = await make_order(chain[0], [(product, "100.00", 1), (product, "33.33", 1)])
    return chain, template, order


def _draft(order, item, beneficiary, level, amount, template):
    return CommissionDraft(
        order_id=order.id,
        order_item_id=item.id,
        beneficiary_id=beneficiary.id,
        beneficiary_type=BeneficiaryType.USER,
        commission_level=level,
        commission_type=CommissionType.PERCENTAGE,
        commission_rate=Decimal("10"),
        commission_amount=Decimal(amount),
        applied_template_id=template.id,
    )


async def _persist_rows(ledger, chain, template, order):
    first, second = order.items
    drafts = [
        _draft(order, first, chain[0], 0, "30", template),
        _draft(order, first, chain[1], 1, "10", template),
        _draft(order, second, chain[0], 0, "3.333", template),
    ]
    rows, created = await ledger.persist(order, drafts)
    assert created
    return rows


# ── persist ──────────────────────────────────────────────


class TestPersist:
    @pytest.mark.asyncio
    async def test_amounts_rounded_half_up(self, ledger, setup_order):
        chain, template, order = setup_order
        first = order.items[0]
        drafts = [
            _draft(order, first, chain[0], 0, "3.335", template),
            _draft(order, first, chain[1], 1, "3.334", template),
        ]

        rows, created = await ledger.persist(order, drafts)

        assert created
        assert [r.commission_amount for r in rows] == [Decimal("3.34"), Decimal("3.33")]
        assert all(r.status == CommissionStatus.PENDING for r in rows)

    @pytest.mark.asyncio
    async def test_order_stamped_even_without_rows(self, ledger, setup_order):
        _, _, order = setup_order

        rows, created = await ledger.persist(order, [])

        assert rows == []
        assert created
        assert order.commissions_processed_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_slot_returns_existing_rows(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        row_ids = sorted(r.id for r in rows)
        first_item_id = order.items[0].id

        # The failed write rolls back and expires everything loaded so far
        again, created = await ledger.persist(
            order, [_draft(order, order.items[0], chain[0], 0, "30", template)]
        )

        assert not created
        assert sorted(r.id for r in again) == row_ids
        assert first_item_id in {r.order_item_id for r in again}


# ── get_user_commission_summary ──────────────────────────


class TestSummary:
    @pytest.mark.asyncio
    async def test_totals_by_status(self, ledger, db_session, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        buyer_rows = [r for r in rows if r.beneficiary_id == chain[0].id]
        await ledger.approve_commissions([buyer_rows[0].id], approved_by_id=chain[1].id)
        await db_session.commit()

        summary = await ledger.get_user_commission_summary(chain[0].id)

        assert summary.total_approved == Decimal("30.00")
        assert summary.total_pending == Decimal("3.33")
        assert summary.total_paid == Decimal("0")
        assert len(summary.commissions) == 2

    @pytest.mark.asyncio
    async def test_status_filter(self, ledger, setup_order):
        chain, template, order = setup_order
        await _persist_rows(ledger, chain, template, order)

        summary = await ledger.get_user_commission_summary(
            chain[0].id, status=CommissionStatus.PAID
        )

        assert summary.commissions == []
        assert summary.total_pending == Decimal("0")

    @pytest.mark.asyncio
    async def test_date_range_filter(self, ledger, setup_order):
        chain, template, order = setup_order
        await _persist_rows(ledger, chain, template, order)
        now = datetime.now(timezone.utc)

        inside = await ledger.get_user_commission_summary(
            chain[1].id, start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=1)
        )
        before = await ledger.get_user_commission_summary(
            chain[1].id, end_date=now - timedelta(days=1)
        )

        assert inside.total_pending == Decimal("10.00")
        assert before.total_pending == Decimal("0")
        assert before.commissions == []

    @pytest.mark.asyncio
    async def test_user_without_commissions(self, ledger):
        summary = await ledger.get_user_commission_summary(12345)
        assert summary.total_pending == summary.total_approved == summary.total_paid == Decimal("0")


# ── get_platform_summary / get_commission ────────────────


class TestPlatformSummary:
    @pytest.mark.asyncio
    async def test_totals_and_top_earners(self, ledger, db_session, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        await ledger.approve_commissions([rows[1].id])
        await ledger.mark_commissions_as_paid([rows[1].id])
        await db_session.commit()

        summary = await ledger.get_platform_summary()

        assert summary.commission_count == 3
        assert summary.total_pending == Decimal("33.33")
        assert summary.total_approved == Decimal("0")
        assert summary.total_paid == Decimal("10.00")
        assert [(e.user_id, e.total_earned, e.commission_count) for e in summary.top_earners] == [
            (chain[0].id, Decimal("33.33"), 2),
            (chain[1].id, Decimal("10.00"), 1),
        ]

    @pytest.mark.asyncio
    async def test_top_limits_earners(self, ledger, setup_order):
        chain, template, order = setup_order
        await _persist_rows(ledger, chain, template, order)

        summary = await ledger.get_platform_summary(top=1)

        assert [e.user_id for e in summary.top_earners] == [chain[0].id]
        assert summary.commission_count == 3

    @pytest.mark.asyncio
    async def test_window_without_rows(self, ledger, setup_order):
        chain, template, order = setup_order
        await _persist_rows(ledger, chain, template, order)

        summary = await ledger.get_platform_summary(
            end_date=datetime.now(timezone.utc) - timedelta(days=1)
        )

        assert summary.commission_count == 0
        assert summary.total_pending == Decimal("0")
        assert summary.top_earners == []

    @pytest.mark.asyncio
    async def test_get_commission(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)

        row = await ledger.get_commission(rows[1].id)

        assert row.beneficiary_id == chain[1].id
        assert row.commission_amount == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_get_unknown_commission(self, ledger):
        with pytest.raises(CommissionNotFoundError):
            await ledger.get_commission(424242)


# ── approve / mark paid ──────────────────────────────────


class TestTransitions:
    @pytest.mark.asyncio
    async def test_approve_then_pay(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        ids = [r.id for r in rows]

        approved = await ledger.approve_commissions(ids, approved_by_id=99)
        assert all(r.status == CommissionStatus.APPROVED for r in approved)
        assert all(r.approved_at is not None and r.approved_by_id == 99 for r in approved)

        paid = await ledger.mark_commissions_as_paid(ids, paid_by_id=98)
        assert all(r.status == CommissionStatus.PAID for r in paid)
        assert all(r.paid_at is not None and r.paid_by_id == 98 for r in paid)

    @pytest.mark.asyncio
    async def test_reapprove_is_noop(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        first = await ledger.approve_commissions([rows[0].id], approved_by_id=1)
        approved_at = first[0].approved_at

        again = await ledger.approve_commissions([rows[0].id], approved_by_id=2)

        assert again[0].approved_at == approved_at
        assert again[0].approved_by_id == 1

    @pytest.mark.asyncio
    async def test_repay_keeps_paid_at(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        await ledger.approve_commissions([rows[0].id])
        paid = await ledger.mark_commissions_as_paid([rows[0].id])
        paid_at = paid[0].paid_at

        again = await ledger.mark_commissions_as_paid([rows[0].id])

        assert again[0].paid_at == paid_at

    @pytest.mark.asyncio
    async def test_pay_pending_rejected(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        await ledger.approve_commissions([rows[0].id])

        with pytest.raises(InvalidCommissionTransition) as exc_info:
            await ledger.mark_commissions_as_paid([rows[0].id, rows[1].id])

        assert exc_info.value.offending == {rows[1].id: "pending"}
        # Nothing in the batch moved
        assert rows[0].status == CommissionStatus.APPROVED

    @pytest.mark.asyncio
    async def test_approve_paid_rejected(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)
        await ledger.approve_commissions([rows[0].id])
        await ledger.mark_commissions_as_paid([rows[0].id])

        with pytest.raises(InvalidCommissionTransition):
            await ledger.approve_commissions([rows[0].id, rows[1].id])

        assert rows[0].status == CommissionStatus.PAID
        assert rows[1].status == CommissionStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_id_rejects_batch(self, ledger, setup_order):
        chain, template, order = setup_order
        rows = await _persist_rows(ledger, chain, template, order)

        with pytest.raises(CommissionNotFoundError) as exc_info:
            await ledger.approve_commissions([rows[0].id, 999999])

        assert exc_info.value.commission_ids == [999999]
        assert rows[0].status == CommissionStatus.PENDING
