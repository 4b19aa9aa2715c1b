# app/api/deps.py
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.errors import ValidationFailed
from app.gateways.registry import PaymentGatewayRegistry, get_registry
from app.services.cart_service import CartService
from app.services.catalog_client import CatalogClient
from app.services.checkout_service import CheckoutService
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService


#uwierzytelnianie jest na zewnatrz, tu tylko naglowki od gatewaya
def get_tenant_id(x_tenant_id: int | None = Header(None)) -> int:
    if x_tenant_id is None or x_tenant_id <= 0:
        raise ValidationFailed("X-Tenant-Id header is required")
    return x_tenant_id


def get_user_id(x_user_id: int | None = Header(None)) -> int:
    if x_user_id is None or x_user_id <= 0:
        raise ValidationFailed("X-User-Id header is required")
    return x_user_id


def get_catalog_client() -> CatalogClient:
    return CatalogClient()


def get_lock_service() -> LockService:
    return LockService()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: CatalogClient = Depends(get_catalog_client),
    locks: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, catalog_client=catalog, lock_service=locks)


def get_checkout_service(
    db: Session = Depends(get_db),
    registry: PaymentGatewayRegistry = Depends(get_registry),
    catalog: CatalogClient = Depends(get_catalog_client),
    locks: LockService = Depends(get_lock_service),
    notifier: NotificationService = Depends(get_notifier),
) -> CheckoutService:
    return CheckoutService(
        db=db,
        registry=registry,
        catalog_client=catalog,
        lock_service=locks,
        notifier=notifier,
    )
