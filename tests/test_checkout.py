"""
Tests for app/services/checkout_service.py through the HTTP API.

Covers:
- the end-to-end scenario (2 x $20, SAVE10, flat $5 shipping, no tax -> $41.00)
- coupon compensation when the payment provider fails
- business-rule failures (empty or expired cart, exhausted coupon, unsupported gateway)
- a committed order survives a notification broker outage
- pricing variants (taxes, free-shipping coupon) and the side-effect free quote
- webhook reconciliation, owner mark-paid and refund on the created order
"""

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from app.data.models.cart import CartModel
from app.data.models.coupon import CouponModel
from app.data.models.order import OrderModel
from app.data.models.payment import PaymentTransactionModel
from app.data.models.shipping_method import ShippingMethodModel
from app.data.models.tax_rule import TaxRuleModel

from conftest import TENANT, BUYER, HEADERS, STRIPE_CONFIG, enable_gateway, make_coupon

OWNER_HEADERS = {"X-Tenant-Id": str(TENANT), "X-User-Id": "1"}


@pytest.fixture
def store(db, registry):
    """Tenant with CASH and STRIPE enabled, SAVE10 coupon and a $5 flat shipping method."""
    enable_gateway(db, registry, "CASH", {"instructions": "Pay the courier"})
    enable_gateway(db, registry, "STRIPE", STRIPE_CONFIG)
    make_coupon(db, code="SAVE10", discount_type="PERCENT", value="10")
    db.add(ShippingMethodModel(tenant_id=TENANT, name="Courier", method_type="FLAT_RATE", flat_rate=Decimal("5.00")))
    db.commit()
    return db


@pytest.fixture
def stripe_ok(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="pi_1", client_secret="pi_1_secret_x", status="requires_payment_method")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    return calls


@pytest.fixture
def stripe_down(monkeypatch):
    def boom(**kwargs):
        raise stripe.APIConnectionError("timed out")

    monkeypatch.setattr(stripe.PaymentIntent, "create", boom)


def fill_cart(client, item_id=1, quantity=2):
    resp = client.post("/api/cart/items", json={"itemId": item_id, "quantity": quantity}, headers=HEADERS)
    assert resp.status_code == 200


def checkout(client, payment_method="CASH", **extra):
    body = {"paymentMethod": payment_method, "currencyId": 1}
    body.update(extra)
    return client.post("/api/cart/checkout", json=body, headers=HEADERS)


def coupon_uses(db, code="SAVE10"):
    db.expire_all()
    return db.query(CouponModel).filter_by(tenant_id=TENANT, code=code).one().used_count


def active_cart(db):
    db.expire_all()
    return db.query(CartModel).filter_by(tenant_id=TENANT, buyer_id=BUYER, status="ACTIVE").one_or_none()


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestCheckout:
    def test_end_to_end(self, client, store, notifier):
        fill_cart(client)
        resp = checkout(client, couponCode="save10")
        assert resp.status_code == 201
        body = resp.json()

        pricing = body["pricing"]
        assert Decimal(pricing["itemsSubtotal"]) == Decimal("40.00")
        assert Decimal(pricing["couponDiscount"]) == Decimal("4.00")
        assert Decimal(pricing["shippingTotal"]) == Decimal("5.00")
        assert Decimal(pricing["itemTaxTotal"]) == Decimal("0.00")
        assert Decimal(pricing["grandTotal"]) == Decimal("41.00")
        assert body["orderId"] > 0
        assert body["paymentStatus"] == "OFFLINE_PENDING"
        assert body["publicConfig"] == {"instructions": "Pay the courier"}

        store.expire_all()
        cart = store.query(CartModel).filter_by(tenant_id=TENANT, buyer_id=BUYER).one()
        assert cart.status == "CONVERTED"
        assert coupon_uses(store) == 1

        order = store.get(OrderModel, body["orderId"])
        assert order.total == Decimal("41.00")
        assert order.coupon_code == "SAVE10"
        assert [(i.item_id, i.quantity, i.unit_price) for i in order.items] == [(1, 2, Decimal("20.00"))]

        assert [n["order_id"] for n in notifier.sent] == [body["orderId"]]

    def test_new_cart_after_checkout(self, client, store):
        fill_cart(client)
        checkout(client)
        body = client.get("/api/cart", headers=HEADERS).json()
        assert body["status"] == "ACTIVE"
        assert body["items"] == []

    def test_stripe_checkout(self, client, store, stripe_ok):
        fill_cart(client)
        body = checkout(client, "stripe").json()

        assert body["paymentProviderCode"] == "STRIPE"
        assert body["providerPaymentId"] == "pi_1"
        assert body["clientSecret"] == "pi_1_secret_x"
        assert body["paymentStatus"] == "CREATED"
        assert body["publicConfig"] == {"publishableKey": "pk_test_public"}
        assert "sk_test_secret" not in str(body)
        assert stripe_ok[0]["amount"] == 4500
        assert stripe_ok[0]["idempotency_key"] == f"order-{body['orderCode']}"

    def test_taxes_and_shipping_tax(self, client, store):
        store.add(TaxRuleModel(tenant_id=TENANT, name="VAT", rate_percent=Decimal("5")))
        store.add(TaxRuleModel(tenant_id=TENANT, name="Ship VAT", rate_percent=Decimal("10"), applies_to_shipping=True))
        store.commit()
        fill_cart(client)

        pricing = checkout(client, couponCode="SAVE10").json()["pricing"]
        assert Decimal(pricing["itemTaxTotal"]) == Decimal("1.80")
        assert Decimal(pricing["shippingTaxTotal"]) == Decimal("0.50")
        assert Decimal(pricing["grandTotal"]) == Decimal("43.30")

    def test_free_shipping_coupon(self, client, store):
        make_coupon(store, code="FREESHIP", discount_type="FREE_SHIPPING", value="1")
        fill_cart(client)
        pricing = checkout(client, couponCode="FREESHIP").json()["pricing"]
        assert pricing["freeShipping"] is True
        assert Decimal(pricing["shippingTotal"]) == Decimal("0.00")
        assert Decimal(pricing["grandTotal"]) == Decimal("40.00")

    def test_quote_has_no_side_effects(self, client, store):
        fill_cart(client)
        resp = client.post("/api/cart/quote", json={"couponCode": "SAVE10"}, headers=HEADERS)
        assert resp.status_code == 200
        assert Decimal(resp.json()["grandTotal"]) == Decimal("41.00")
        assert coupon_uses(store) == 0
        assert active_cart(store) is not None
        assert store.query(OrderModel).count() == 0

    def test_shipping_quote_lists_methods(self, client, store):
        fill_cart(client)
        resp = client.post("/api/shipping/quote", json={}, headers=HEADERS)
        assert [(m["methodName"], Decimal(m["price"])) for m in resp.json()] == [("Courier", Decimal("5.00"))]


# ---------------------------------------------------------------------------
# Failures and compensation
# ---------------------------------------------------------------------------


class TestCheckoutFailures:
    def test_provider_failure_releases_coupon(self, client, store, stripe_down, notifier):
        fill_cart(client)
        before = coupon_uses(store)

        resp = checkout(client, "STRIPE", couponCode="SAVE10")
        assert resp.status_code == 503
        assert resp.json()["code"] == "PROVIDER_UNAVAILABLE"

        assert coupon_uses(store) == before
        assert active_cart(store) is not None
        assert store.query(OrderModel).count() == 0
        assert store.query(PaymentTransactionModel).count() == 0
        assert notifier.sent == []

    def test_broker_outage_does_not_hide_committed_order(self, client, store, notifier, monkeypatch):
        def broker_down(*args, **kwargs):
            raise ConnectionError("broker down")

        monkeypatch.setattr(notifier, "order_created", broker_down)
        fill_cart(client)

        resp = checkout(client, couponCode="SAVE10")
        assert resp.status_code == 201
        order_id = resp.json()["orderId"]
        assert store.query(OrderModel).filter_by(id=order_id).count() == 1
        assert active_cart(store) is None
        assert coupon_uses(store) == 1

    def test_empty_cart(self, client, store):
        resp = checkout(client)
        assert resp.status_code == 422
        assert resp.json()["code"] == "EMPTY_CART"

    def test_expired_cart_cannot_be_checked_out(self, client, store):
        fill_cart(client)
        cart_id = active_cart(store).id
        store.query(CartModel).filter_by(id=cart_id).update(
            {"expires_at": datetime.now(timezone.utc) - timedelta(hours=1)}
        )
        store.commit()

        resp = checkout(client, couponCode="SAVE10")
        assert resp.status_code == 422
        assert resp.json()["code"] == "CART_EXPIRED"
        assert store.query(OrderModel).count() == 0
        assert coupon_uses(store) == 0
        store.expire_all()
        assert store.get(CartModel, cart_id).status == "EXPIRED"

    def test_exhausted_coupon(self, client, store):
        make_coupon(store, code="LAST", discount_type="FIXED", value="5", global_usage_limit=1, used_count=1)
        fill_cart(client)

        resp = checkout(client, couponCode="LAST")
        assert resp.status_code == 422
        assert resp.json()["code"] == "COUPON_EXHAUSTED"
        assert coupon_uses(store, "LAST") == 1
        assert len(active_cart(store).items) == 1

    def test_unknown_coupon(self, client, store):
        fill_cart(client)
        resp = checkout(client, couponCode="NOPE")
        assert resp.json()["code"] == "COUPON_NOT_FOUND"

    def test_unsupported_gateway(self, client, store):
        fill_cart(client)
        resp = checkout(client, "PAYPAL", couponCode="SAVE10")
        assert resp.status_code == 400
        assert resp.json()["code"] == "UNSUPPORTED_GATEWAY"
        assert coupon_uses(store) == 0

    def test_gateway_not_configured(self, client, db, registry):
        make_coupon(db)
        fill_cart(client)
        resp = checkout(client, "STRIPE", couponCode="SAVE10")
        assert resp.status_code == 400
        assert resp.json()["code"] == "PAYMENT_METHOD_NOT_CONFIGURED"
        assert coupon_uses(db) == 0

    def test_unknown_currency(self, client, store):
        fill_cart(client)
        resp = checkout(client, currencyId=9)
        assert resp.json()["code"] == "CURRENCY_NOT_FOUND"
        assert active_cart(store) is not None

    def test_cart_busy(self, client, store, locks):
        fill_cart(client)
        locks.acquire_cart_lock(TENANT, BUYER, "someone-else")
        resp = checkout(client)
        assert resp.status_code == 409
        assert resp.json()["code"] == "CART_BUSY"


# ---------------------------------------------------------------------------
# After checkout: reconciliation and owner actions
# ---------------------------------------------------------------------------


class TestPaymentLifecycle:
    def test_webhook_is_idempotent(self, client, store, stripe_ok):
        fill_cart(client)
        order_id = checkout(client, "STRIPE").json()["orderId"]

        event = {"providerPaymentId": "pi_1", "status": "succeeded"}
        first = client.post("/api/payments/stripe/events", json=event).json()
        second = client.post("/api/payments/stripe/events", json=event).json()
        assert (first["applied"], first["status"]) == (True, "PAID")
        assert (second["applied"], second["status"]) == (False, "PAID")

        order = client.get(f"/api/orders/{order_id}", headers=HEADERS).json()
        assert order["payment"]["paymentState"] == "PAID"
        assert order["payment"]["fullyPaid"] is True
        assert [t["status"] for t in order["transactions"]] == ["PAID"]

    def test_webhook_cannot_move_paid_backwards(self, client, store, stripe_ok):
        fill_cart(client)
        checkout(client, "STRIPE")
        client.post("/api/payments/STRIPE/events", json={"providerPaymentId": "pi_1", "status": "succeeded"})

        resp = client.post("/api/payments/STRIPE/events", json={"providerPaymentId": "pi_1", "status": "processing"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "ILLEGAL_TRANSITION"

    def test_webhook_for_unknown_payment(self, client, store):
        resp = client.post("/api/payments/STRIPE/events", json={"providerPaymentId": "pi_x", "status": "succeeded"})
        assert resp.status_code == 404

    def test_cash_mark_paid(self, client, store):
        fill_cart(client)
        order_id = checkout(client).json()["orderId"]

        order = client.get(f"/api/orders/{order_id}", headers=HEADERS).json()
        assert order["payment"]["paymentState"] == "UNPAID"

        resp = client.post(f"/api/owner/orders/{order_id}/mark-paid", headers=OWNER_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["paymentState"] == "PAID"
        assert Decimal(resp.json()["paidAmount"]) == Decimal("45.00")

    def test_mark_paid_on_card_order_is_rejected(self, client, store, stripe_ok):
        fill_cart(client)
        order_id = checkout(client, "STRIPE").json()["orderId"]
        client.post("/api/payments/STRIPE/events", json={"providerPaymentId": "pi_1", "status": "succeeded"})

        resp = client.post(f"/api/owner/orders/{order_id}/mark-paid", headers=OWNER_HEADERS)
        assert resp.status_code == 409
        assert resp.json()["code"] == "ILLEGAL_TRANSITION"

    def test_refund(self, client, store, stripe_ok):
        fill_cart(client)
        tx_id = checkout(client, "STRIPE").json()["paymentTransactionId"]
        client.post("/api/payments/STRIPE/events", json={"providerPaymentId": "pi_1", "status": "succeeded"})

        resp = client.post(f"/api/owner/payments/{tx_id}/refund", headers=OWNER_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["status"] == "REFUNDED"

    def test_order_of_another_buyer_is_hidden(self, client, store):
        fill_cart(client)
        order_id = checkout(client).json()["orderId"]
        resp = client.get(f"/api/orders/{order_id}", headers={"X-Tenant-Id": str(TENANT), "X-User-Id": "999"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "ORDER_NOT_FOUND"
