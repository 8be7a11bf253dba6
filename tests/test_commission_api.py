"""
Tests for the admin and panel commission endpoints.

The app runs against the in-memory test database; authentication is
replaced by a fixed current user unless a test logs in for real.
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from commission_engine.auth.dependencies import get_current_user
from commission_engine.db import get_db
from commission_engine.main import app
from commission_engine.models import AuditAction, AuditLog, User, UserRole
from commission_engine.utils.password import hash_password


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(role=UserRole.ADMIN, username="root")


@pytest.fixture
def auth_state(admin):
    """Mutable holder for the user the app sees as logged in."""
    return {"user": admin}


@pytest_asyncio.fixture
async def client(db_session, auth_state):

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    async def override_current_user():
        return auth_state["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def completed_order(make_chain, make_template, make_product, make_order):
    chain = await make_chain(3)
    template = await make_template(
        "STANDARD", [("direct", 30), ("upline_1", 10), ("upline_2", 5)]
    )
    product = await make_product(template=template)
    order = await make_order(chain[0], [(product, "1000.00", 1)])
    return [u.id for u in chain], order.id


# ── Calculation ──────────────────────────────────────────


class TestCalculateEndpoint:
    @pytest.mark.asyncio
    async def test_calculate_then_repeat(self, client, completed_order):
        chain_ids, order_id = completed_order

        first = await client.post(f"/admin/commissions/calculate/{order_id}")
        second = await client.post(f"/admin/commissions/calculate/{order_id}")

        assert first.status_code == 200
        body = first.json()
        assert body["meta"] == {"count": 3, "created": True}
        amounts = {row["beneficiary_id"]: Decimal(row["commission_amount"]) for row in body["data"]}
        assert amounts == dict(zip(chain_ids, [Decimal("300"), Decimal("100"), Decimal("50")]))

        assert second.status_code == 200
        assert second.json()["meta"] == {"count": 3, "created": False}

    @pytest.mark.asyncio
    async def test_calculate_is_audited(self, client, db_session, completed_order):
        _, order_id = completed_order

        await client.post(f"/admin/commissions/calculate/{order_id}")

        logs = (await db_session.execute(select(AuditLog))).scalars().all()
        assert [(log.action, log.target_id) for log in logs] == [
            (AuditAction.CALCULATE_COMMISSIONS, order_id)
        ]

    @pytest.mark.asyncio
    async def test_unknown_order_404(self, client):
        response = await client.post("/admin/commissions/calculate/999")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_order_commissions(self, client, completed_order):
        _, order_id = completed_order
        await client.post(f"/admin/commissions/calculate/{order_id}")

        response = await client.get(f"/admin/commissions/order/{order_id}")

        assert response.status_code == 200
        assert response.json()["meta"]["count"] == 3

    @pytest.mark.asyncio
    async def test_members_cannot_calculate(self, client, auth_state, make_user, completed_order):
        _, order_id = completed_order
        auth_state["user"] = await make_user()

        response = await client.post(f"/admin/commissions/calculate/{order_id}")

        assert response.status_code == 403


# ── Approval and payment ─────────────────────────────────


class TestTransitionEndpoints:
    @pytest.mark.asyncio
    async def test_approve_and_pay(self, client, completed_order):
        _, order_id = completed_order
        calc = await client.post(f"/admin/commissions/calculate/{order_id}")
        ids = [row["id"] for row in calc.json()["data"]]

        approved = await client.post("/admin/commissions/approve", json={"commission_ids": ids})
        paid = await client.post("/admin/commissions/mark-paid", json={"commission_ids": ids})

        assert approved.status_code == 200
        assert {row["status"] for row in approved.json()["data"]} == {"approved"}
        assert paid.status_code == 200
        assert {row["status"] for row in paid.json()["data"]} == {"paid"}
        assert all(row["paid_at"] for row in paid.json()["data"])

    @pytest.mark.asyncio
    async def test_pay_pending_is_400(self, client, completed_order):
        _, order_id = completed_order
        calc = await client.post(f"/admin/commissions/calculate/{order_id}")
        ids = [row["id"] for row in calc.json()["data"]]

        response = await client.post("/admin/commissions/mark-paid", json={"commission_ids": ids})

        assert response.status_code == 400
        assert response.json()["detail"]["target_status"] == "paid"

    @pytest.mark.asyncio
    async def test_unknown_commission_is_404(self, client):
        response = await client.post("/admin/commissions/approve", json={"commission_ids": [777]})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_batch_is_422(self, client):
        response = await client.post("/admin/commissions/approve", json={"commission_ids": []})
        assert response.status_code == 422


# ── Summaries ────────────────────────────────────────────


class TestSummaryEndpoints:
    @pytest.mark.asyncio
    async def test_admin_user_summary(self, client, completed_order):
        chain_ids, order_id = completed_order
        await client.post(f"/admin/commissions/calculate/{order_id}")

        response = await client.get(f"/admin/commissions/user/{chain_ids[1]}/summary")

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total_pending"]) == Decimal("100")
        assert Decimal(body["total_paid"]) == Decimal("0")
        assert len(body["commissions"]) == 1

    @pytest.mark.asyncio
    async def test_summary_status_filter(self, client, completed_order):
        chain_ids, order_id = completed_order
        await client.post(f"/admin/commissions/calculate/{order_id}")

        response = await client.get(
            f"/admin/commissions/user/{chain_ids[1]}/summary", params={"status": "paid"}
        )

        assert response.json()["commissions"] == []

    @pytest.mark.asyncio
    async def test_inverted_range_is_400(self, client):
        response = await client.get(
            "/admin/commissions/user/1/summary",
            params={"start_date": "2026-05-01T00:00:00", "end_date": "2026-04-01T00:00:00"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_platform_summary(self, client, completed_order):
        chain_ids, order_id = completed_order
        await client.post(f"/admin/commissions/calculate/{order_id}")

        response = await client.get("/admin/commissions/summary", params={"top": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["commission_count"] == 3
        assert Decimal(body["total_pending"]) == Decimal("450")
        assert [e["user_id"] for e in body["top_earners"]] == chain_ids[:2]
        assert body["top_earners"][0]["display_name"]

    @pytest.mark.asyncio
    async def test_platform_summary_inverted_range_is_400(self, client):
        response = await client.get(
            "/admin/commissions/summary",
            params={"start_date": "2026-05-01T00:00:00", "end_date": "2026-04-01T00:00:00"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_single_commission(self, client, completed_order):
        chain_ids, order_id = completed_order
        calc = await client.post(f"/admin/commissions/calculate/{order_id}")
        row = calc.json()["data"][1]

        response = await client.get(f"/admin/commissions/{row['id']}")
        missing = await client.get("/admin/commissions/999999")

        assert response.status_code == 200
        assert response.json()["beneficiary_id"] == row["beneficiary_id"]
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_panel_summary_after_real_login(
        self, client, db_session, completed_order
    ):
        chain_ids, order_id = completed_order
        await client.post(f"/admin/commissions/calculate/{order_id}")
        buyer = await db_session.get(User, chain_ids[0])
        buyer.password_hash = hash_password("s3cret")
        buyer_username = buyer.username
        await db_session.commit()
        app.dependency_overrides.pop(get_current_user)

        login = await client.post(
            "/api/auth/login", json={"username": buyer_username, "password": "s3cret"}
        )
        token = login.cookies.get("access_token")
        response = await client.get(
            "/panel/commissions/summary", headers={"Cookie": f"access_token={token}"}
        )

        assert login.status_code == 200
        assert token
        assert response.status_code == 200
        assert response.json()["user_id"] == chain_ids[0]
        assert Decimal(response.json()["total_pending"]) == Decimal("300")

    @pytest.mark.asyncio
    async def test_panel_requires_login(self, client):
        app.dependency_overrides.pop(get_current_user)

        response = await client.get("/panel/commissions/summary")

        assert response.status_code == 401


# ── Templates ────────────────────────────────────────────


class TestTemplateEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_resolve(self, client, make_product):
        product_id = (await make_product()).id
        created = await client.post(
            "/admin/templates",
            json={
                "template_code": "PROMO-001",
                "template_name": "Spring promo",
                "details": [
                    {"level_type": "direct", "commission_type": "percentage", "commission_value": "40"},
                    {"level_type": "upline_1", "commission_type": "fixed", "commission_value": "20"},
                ],
            },
        )
        assert created.status_code == 201
        template = created.json()
        assert [d["level_number"] for d in template["details"]] == [0, 1]

        override = await client.post(
            "/admin/templates/time-based",
            json={
                "product_id": product_id,
                "commission_template_id": template["id"],
                "start_date": "2026-03-01",
                "end_date": "2026-03-31",
                "priority": 5,
            },
        )
        assert override.status_code == 201

        inside = await client.get(
            "/admin/templates/resolve", params={"product_id": product_id, "on_date": "2026-03-10"}
        )
        outside = await client.get(
            "/admin/templates/resolve", params={"product_id": product_id, "on_date": "2026-04-10"}
        )

        assert inside.json()["template_code"] == "PROMO-001"
        assert inside.json()["override_id"] == override.json()["id"]
        assert [r["level_type"] for r in inside.json()["rules"]] == ["direct", "upline_1"]
        assert outside.json()["template_id"] is None

    @pytest.mark.asyncio
    async def test_duplicate_code_is_409(self, client, make_template):
        await make_template("STANDARD", [("direct", 30)])

        response = await client.post(
            "/admin/templates",
            json={"template_code": "STANDARD", "template_name": "Again", "details": []},
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_level_type_is_422(self, client):
        response = await client.post(
            "/admin/templates",
            json={
                "template_code": "BAD",
                "template_name": "Bad",
                "details": [
                    {"level_type": "upline_0", "commission_type": "percentage", "commission_value": "5"}
                ],
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_inverted_override_window_is_422(self, client, make_template, make_product):
        template_id = (await make_template("STANDARD", [("direct", 30)])).id
        product_id = (await make_product()).id

        response = await client.post(
            "/admin/templates/time-based",
            json={
                "product_id": product_id,
                "commission_template_id": template_id,
                "start_date": str(date(2026, 4, 1)),
                "end_date": str(date(2026, 3, 1)),
            },
        )

        assert response.status_code == 422
