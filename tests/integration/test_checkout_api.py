"""
Integration tests for POST /v1/installments/checkout and order reads.

These tests verify:
1. A valid checkout opens a pending plan with the expected schedule
2. Every rejection path maps to its error code and HTTP status
3. Checkout side effects (cart cleanup, outbox notifications)
4. Orders are visible to their buyer and seller only
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from installment_gateway.infrastructure.database import CartItemModel, NotificationModel

from tests.integration.conftest import (
    CUSTOMER_ID,
    FIRST_PAYMENT_CENTS,
    OTHER_CUSTOMER_ID,
    PRICE_CENTS,
    SELLER_ID,
    TRANCHE_CENTS,
    as_user,
    open_plan,
    seed_cart_item,
    seed_product,
)


# =============================================================================
# Successful Checkout
# =============================================================================

class TestCheckoutSuccess:
    """Tests for a checkout that opens a plan."""

    @pytest.mark.asyncio
    async def test_checkout_returns_201_with_pending_order(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "pending_installment"
        assert data["payment_type"] == "installment"
        assert data["customer_id"] == CUSTOMER_ID
        assert data["seller_id"] == SELLER_ID
        assert data["total_cents"] == PRICE_CENTS
        assert data["version"] == 1

    @pytest.mark.asyncio
    async def test_checkout_builds_down_payment_and_monthly_tranches(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        """
        50,000 with 5,000 down over 60 days:
        the down payment plus two tranches of 22,500 at day 30 and day 60.
        """
        data = await open_plan(client, checkout_request)
        schedule = data["installment_plan"]["schedule"]

        assert len(schedule) == 3

        down_payment = schedule[0]
        assert down_payment["index"] == 0
        assert down_payment["is_down_payment"] is True
        assert down_payment["status"] == "proof_uploaded"
        assert down_payment["amount_cents"] == FIRST_PAYMENT_CENTS
        assert down_payment["transaction_proof"]["transaction_code"] == "0612345678"

        assert [t["amount_cents"] for t in schedule[1:]] == [TRANCHE_CENTS, TRANCHE_CENTS]
        assert [t["status"] for t in schedule[1:]] == ["pending", "pending"]
        assert schedule[1]["due_date"].startswith("2026-03-31")
        assert schedule[2]["due_date"].startswith("2026-04-30")

        assert sum(t["amount_cents"] for t in schedule) == PRICE_CENTS

    @pytest.mark.asyncio
    async def test_checkout_scores_customer_without_history(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        """A customer with no orders lands on the neutral score."""
        data = await open_plan(client, checkout_request)
        plan = data["installment_plan"]

        assert plan["eligibility_score"] == 55
        assert plan["risk_level"] == "medium"
        assert plan["late_penalty_rate"] == 5.0
        assert plan["first_payment_min_cents"] == FIRST_PAYMENT_CENTS

    @pytest.mark.asyncio
    async def test_checkout_has_nothing_paid_until_seller_validates(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        data = await open_plan(client, checkout_request)

        assert data["paid_cents"] == 0
        assert data["remaining_cents"] == PRICE_CENTS
        assert data["installment_progress"] == {
            "total_cents": PRICE_CENTS,
            "paid_cents": 0,
            "remaining_cents": PRICE_CENTS,
            "progress": 0,
        }

    @pytest.mark.asyncio
    async def test_checkout_removes_product_from_cart(
        self,
        client: AsyncClient,
        test_session,
        product_id: str,
        checkout_request: dict,
    ):
        await seed_cart_item(test_session, CUSTOMER_ID, product_id)

        await open_plan(client, checkout_request)

        remaining = await test_session.scalar(
            select(func.count(CartItemModel.id)).where(
                CartItemModel.user_id == CUSTOMER_ID
            )
        )
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_checkout_enqueues_seller_and_buyer_notifications(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        data = await open_plan(client, checkout_request)

        result = await test_session.execute(
            select(NotificationModel.recipient_id, NotificationModel.type)
        )
        rows = set(result.all())

        assert (SELLER_ID, "installment_sale_confirmation_required") in rows
        assert (CUSTOMER_ID, "order_created") in rows

        payloads = (
            await test_session.execute(select(NotificationModel.payload))
        ).scalars().all()
        assert all(p["order_id"] == data["order_id"] for p in payloads)

    @pytest.mark.asyncio
    async def test_checkout_with_required_guarantor(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        product_id = await seed_product(test_session, installment_require_guarantor=True)
        checkout_request["product_id"] = product_id
        checkout_request["guarantor"] = {
            "full_name": "Awa Mbemba",
            "phone": "+242060000000",
            "relation": "sister",
            "address": "12 rue Moe Poaty",
        }

        data = await open_plan(client, checkout_request)

        assert data["installment_plan"]["guarantor_required"] is True


# =============================================================================
# Rejected Checkout
# =============================================================================

class TestCheckoutRejections:
    """Tests for checkouts refused before any side effect."""

    @pytest.mark.asyncio
    async def test_missing_identity_returns_401(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        response = await client.post("/v1/installments/checkout", json=checkout_request)

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_restricted_customer_returns_403(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user("customer_banned"),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "CUSTOMER_RESTRICTED"

    @pytest.mark.asyncio
    async def test_users_service_failure_returns_503(
        self,
        client_with_failing_users_service: AsyncClient,
        checkout_request: dict,
    ):
        response = await client_with_failing_users_service.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 503

        data = response.json()
        assert data["error"] == "RESTRICTION_SERVICE_ERROR"
        assert "request_id" in data

    @pytest.mark.asyncio
    async def test_first_payment_below_minimum_returns_400(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        checkout_request["first_payment_cents"] = FIRST_PAYMENT_CENTS - 1

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INSTALLMENT_REQUEST"

    @pytest.mark.asyncio
    async def test_first_payment_above_total_returns_400(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        checkout_request["first_payment_cents"] = PRICE_CENTS + 1

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INSTALLMENT_REQUEST"

    @pytest.mark.asyncio
    async def test_short_transaction_code_returns_400(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        checkout_request["transaction_code"] = "061234567"

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400
        assert "10 digits" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_unknown_product_returns_404(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        checkout_request["product_id"] = "6f1c1f0e-8f44-4a8e-9d59-1f7b0c9a0b11"

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "PRODUCT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unapproved_product_returns_404(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        checkout_request["product_id"] = await seed_product(test_session, status="pending")

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_disabled_installments_return_400(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        checkout_request["product_id"] = await seed_product(
            test_session,
            installment_enabled=False,
        )

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INSTALLMENT_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_checkout_outside_window_returns_400(
        self,
        client: AsyncClient,
        clock,
        checkout_request: dict,
    ):
        clock.advance(days=5)

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INSTALLMENT_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_missing_guarantor_lists_missing_fields(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        checkout_request["product_id"] = await seed_product(
            test_session,
            installment_require_guarantor=True,
        )
        checkout_request["guarantor"] = {"full_name": "Awa Mbemba"}

        response = await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user(CUSTOMER_ID),
        )

        assert response.status_code == 400

        data = response.json()
        assert data["error"] == "GUARANTOR_REQUIRED"
        assert data["details"]["missing_fields"] == ["phone", "relation", "address"]

    @pytest.mark.asyncio
    async def test_rejected_checkout_writes_nothing(
        self,
        client: AsyncClient,
        test_session,
        checkout_request: dict,
    ):
        await client.post(
            "/v1/installments/checkout",
            json=checkout_request,
            headers=as_user("customer_banned"),
        )

        count = await test_session.scalar(select(func.count(NotificationModel.id)))
        assert count == 0


# =============================================================================
# GET /v1/installments/orders/{order_id}
# =============================================================================

class TestOrderRetrieval:
    """Tests for reading an installment order."""

    @pytest.mark.asyncio
    async def test_buyer_and_seller_can_read_order(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        order = await open_plan(client, checkout_request)
        url = f"/v1/installments/orders/{order['order_id']}"

        buyer_view = await client.get(url, headers=as_user(CUSTOMER_ID))
        seller_view = await client.get(url, headers=as_user(SELLER_ID))

        assert buyer_view.status_code == 200
        assert seller_view.status_code == 200
        assert buyer_view.json()["installment_plan"] == order["installment_plan"]
        assert seller_view.json()["order_id"] == order["order_id"]

    @pytest.mark.asyncio
    async def test_other_customer_gets_404(
        self,
        client: AsyncClient,
        checkout_request: dict,
    ):
        order = await open_plan(client, checkout_request)

        response = await client.get(
            f"/v1/installments/orders/{order['order_id']}",
            headers=as_user(OTHER_CUSTOMER_ID),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "ORDER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_order_items_keep_catalog_snapshot(
        self,
        client: AsyncClient,
        product_id: str,
        checkout_request: dict,
    ):
        order = await open_plan(client, checkout_request)

        assert order["items"] == [
            {
                "product_id": product_id,
                "quantity": 1,
                "title": "Samsung Galaxy A15",
                "price_cents": PRICE_CENTS,
                "shop_id": SELLER_ID,
                "shop_name": "Kin Shop",
                "image": "https://cdn.example.com/a15.jpg",
                "slug": "samsung-galaxy-a15",
            }
        ]
