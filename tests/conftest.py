"""
Shared fixtures for the checkout service tests.

Each test gets its own file-backed SQLite database (file-backed so that
threads in the concurrency tests share it). External collaborators are
replaced with in-memory fakes: the catalog, the Redis cart lock and the
Celery notifier. The Stripe SDK is monkeypatched per test.
"""

import os
import threading
import uuid
from datetime import datetime, timezone, timedelta
from decimal import Decimal

# must be set before app.utils.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import app.data.models  # noqa: F401
from app.api import create_app
from app.api.deps import get_catalog_client, get_lock_service, get_notifier
from app.data.database import Base, get_db
from app.data.models.cart import CartModel
from app.data.models.coupon import CouponModel
from app.data.models.order import OrderModel
from app.domain.errors import ValidationFailed
from app.gateways.registry import build_registry, get_registry
from app.services.payment_config_service import PaymentConfigService

TENANT = 1
BUYER = 7
HEADERS = {"X-Tenant-Id": str(TENANT), "X-User-Id": str(BUYER)}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeCatalog:
    def __init__(self):
        self.items = {
            1: {"id": 1, "tenant_id": TENANT, "name": "Mug", "price": "20.00", "weight_kg": "0.5", "currency_id": 1, "available": True},
            2: {"id": 2, "tenant_id": TENANT, "name": "Poster", "price": "12.50", "weight_kg": "0.2", "currency_id": 1, "available": True},
            3: {"id": 3, "tenant_id": TENANT, "name": "Sold out", "price": "5.00", "currency_id": 1, "available": False},
            4: {"id": 4, "tenant_id": 99, "name": "Foreign", "price": "5.00", "currency_id": 1, "available": True},
        }
        self.currencies = {1: {"id": 1, "code": "usd", "symbol": "$"}}

    def fetch_item(self, item_id):
        if item_id not in self.items:
            raise ValidationFailed(f"Item {item_id} not found", code="ITEM_NOT_FOUND")
        return dict(self.items[item_id])

    def fetch_currency(self, currency_id):
        if currency_id not in self.currencies:
            raise ValidationFailed(f"Currency {currency_id} not found", code="CURRENCY_NOT_FOUND")
        return dict(self.currencies[currency_id])


class InMemoryLockService:
    def __init__(self):
        self._mutex = threading.Lock()
        self.held = {}

    @staticmethod
    def new_token():
        return uuid.uuid4().hex

    def acquire_cart_lock(self, tenant_id, buyer_id, token, ttl=30):
        with self._mutex:
            key = (tenant_id, buyer_id)
            if key in self.held:
                return False
            self.held[key] = token
            return True

    def release_cart_lock(self, tenant_id, buyer_id, token):
        with self._mutex:
            key = (tenant_id, buyer_id)
            if self.held.get(key) == token:
                del self.held[key]
                return True
            return False


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def order_created(self, tenant_id, buyer_id, order_id, order_code, total):
        self.sent.append(
            {"tenant_id": tenant_id, "buyer_id": buyer_id, "order_id": order_id, "order_code": order_code, "total": total}
        )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'checkout.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def locks():
    return InMemoryLockService()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def client(session_factory, catalog, locks, notifier, registry):
    app = create_app()

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_lock_service] = lambda: locks
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


def make_coupon(db, code="SAVE10", discount_type="PERCENT", value="10", tenant_id=TENANT, **kwargs):
    coupon = CouponModel(
        tenant_id=tenant_id,
        code=code,
        discount_type=discount_type,
        value=Decimal(value),
        used_count=kwargs.pop("used_count", 0),
        active=kwargs.pop("active", True),
        **kwargs,
    )
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return coupon


def make_order(db, total="41.00", tenant_id=TENANT, buyer_id=BUYER):
    cart = CartModel(
        tenant_id=tenant_id,
        buyer_id=buyer_id,
        status="CONVERTED",
        version=2,
        total=Decimal(total),
        expires_at=datetime.now(timezone.utc) + timedelta(days=1),
    )
    db.add(cart)
    db.flush()
    order = OrderModel(
        order_code=uuid.uuid4().hex,
        tenant_id=tenant_id,
        buyer_id=buyer_id,
        cart_id=cart.id,
        payment_method_code="STRIPE",
        items_subtotal=Decimal(total),
        total=Decimal(total),
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def enable_gateway(db, registry, code, values, tenant_id=TENANT, enabled=True):
    return PaymentConfigService(db, registry).save(tenant_id, code, values, enabled)


STRIPE_CONFIG = {
    "secretKey": "sk_test_secret",
    "publishableKey": "pk_test_public",
    "webhookSecret": "whsec_secret",
}
