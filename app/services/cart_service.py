# app/services/cart_service.py
from contextlib import contextmanager
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.enums import CartStatus
from app.domain.errors import ValidationFailed, NotFound, BusinessRuleViolation, ConcurrencyConflict
from app.domain.money import money, ZERO
from app.repos.cart_repo import CartRepo
from app.services.catalog_client import CatalogClient
from app.services.lock_service import LockService
from app.utils.settings import CART_TTL_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)


def _aware(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def cart_to_dict(cart: CartModel, items: list[CartItemModel]) -> Dict[str, Any]:
    return {
        "cart_id": cart.id,
        "tenant_id": cart.tenant_id,
        "buyer_id": cart.buyer_id,
        "status": cart.status,
        "items": [
            {
                "cart_item_id": i.id,
                "item_id": i.item_id,
                "item_name": i.item_name,
                "quantity": i.quantity,
                "unit_price": money(i.unit_price),
                "line_total": money(i.unit_price * i.quantity),
            }
            for i in items
        ],
        "total": money(sum((i.unit_price * i.quantity for i in items), ZERO)),
        "currency_id": cart.currency_id,
        "expires_at": cart.expires_at,
    }


class CartService:
    """
    Koszyk kupujacego (jeden ACTIVE na tenant+buyer).

    commands (add, update, remove, clear) ida pod lockiem redisowym per
    kupujacy i podbijaja wersje koszyka warunkowym UPDATE-em;
    query (get) tylko odczyt, ewentualnie tworzy pusty koszyk.
    """

    def __init__(
        self,
        db: Session,
        catalog_client: CatalogClient,
        lock_service: LockService,
    ):
        self.repo = CartRepo(db)
        self.catalog_client = catalog_client
        self.lock_service = lock_service

    @contextmanager
    def _locked(self, tenant_id: int, buyer_id: int):
        token = self.lock_service.new_token()
        if not self.lock_service.acquire_cart_lock(tenant_id, buyer_id, token):
            raise ConcurrencyConflict("Cart is being modified by another request", code="CART_BUSY")
        try:
            yield
        finally:
            self.lock_service.release_cart_lock(tenant_id, buyer_id, token)

    def _ensure_cart(self, tenant_id: int, buyer_id: int) -> CartModel:
        now = datetime.now(timezone.utc)
        cart = self.repo.get_active_cart(tenant_id, buyer_id)

        if cart is not None and _aware(cart.expires_at) <= now:
            #task expire jeszcze nie zdazyl, wygaszamy tutaj
            logger.info(f"Cart {cart.id} expired, starting a new one for buyer {buyer_id}")
            self.repo.update_cart_version(
                cart.id, cart.version, {"status": CartStatus.EXPIRED.value, "version": cart.version + 1}
            )
            self.repo.commit()
            cart = None

        if cart is not None:
            return cart

        try:
            created = self.repo.create_cart(
                CartModel(
                    tenant_id=tenant_id,
                    buyer_id=buyer_id,
                    status=CartStatus.ACTIVE.value,
                    version=1,
                    total=ZERO,
                    expires_at=now + timedelta(seconds=CART_TTL_SECONDS),
                )
            )
        except IntegrityError:
            #rownolegly request utworzyl koszyk pierwszy (unikalny indeks na ACTIVE)
            self.repo.rollback()
            existing = self.repo.get_active_cart(tenant_id, buyer_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Created cart {created.id} for buyer {buyer_id} (tenant {tenant_id})")
        return created

    def _bump(self, cart: CartModel, extra: Dict[str, Any] | None = None) -> None:
        items = self.repo.get_cart_items(cart.id)
        new_data = {
            "version": cart.version + 1,
            #kazda akcja przedluza zycie koszyka
            "expires_at": datetime.now(timezone.utc) + timedelta(seconds=CART_TTL_SECONDS),
            "total": money(sum((i.unit_price * i.quantity for i in items), ZERO)),
        }
        if not items:
            new_data["currency_id"] = None
        if extra:
            new_data.update(extra)

        rowcount = self.repo.update_cart_version(cart.id, cart.version, new_data)
        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict("Cart was modified by another operation")

        self.repo.commit()
        logger.info(f"Cart {cart.id} saved, new version {new_data['version']}")

    def _view(self, cart_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart(cart_id)
        self.repo.db.refresh(cart)
        return cart_to_dict(cart, self.repo.get_cart_items(cart_id))

    #query
    def get_cart(self, tenant_id: int, buyer_id: int) -> Dict[str, Any]:
        cart = self._ensure_cart(tenant_id, buyer_id)
        return cart_to_dict(cart, self.repo.get_cart_items(cart.id))

    #commands
    def add_item(self, tenant_id: int, buyer_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity <= 0:
            raise ValidationFailed("Quantity must be greater than 0", code="INVALID_QUANTITY")

        #HTTP poza lockiem
        data = self.catalog_client.fetch_item(item_id)

        item_tenant = data.get("tenant_id")
        if item_tenant is not None and int(item_tenant) != tenant_id:
            raise ValidationFailed(f"Item {item_id} not found", code="ITEM_NOT_FOUND")
        if not data.get("available", True):
            raise BusinessRuleViolation(f"Item {item_id} is not available", code="ITEM_UNAVAILABLE")

        price = money(data["price"])
        weight = data.get("weight_kg")
        currency_id = data.get("currency_id")

        with self._locked(tenant_id, buyer_id):
            cart = self._ensure_cart(tenant_id, buyer_id)

            if cart.currency_id is not None and currency_id is not None and cart.currency_id != currency_id:
                raise BusinessRuleViolation("Cart already holds items in another currency", code="CURRENCY_MISMATCH")

            existing = self.repo.get_cart_item_by_item(cart.id, item_id)
            if existing:
                #cena zostaje z momentu pierwszego dodania
                logger.info(
                    f"Item {item_id} already in cart {cart.id}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                self.repo.add_cart_item(existing)
            else:
                logger.info(f"Adding item {item_id} x{quantity} to cart {cart.id} at {price}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        item_id=item_id,
                        item_name=data.get("name"),
                        quantity=quantity,
                        unit_price=price,
                        weight_kg=Decimal(str(weight)) if weight is not None else None,
                        currency_id=currency_id,
                    )
                )

            extra = {"currency_id": currency_id} if cart.currency_id is None and currency_id is not None else None
            self._bump(cart, extra)
            return self._view(cart.id)

    def update_item(self, tenant_id: int, buyer_id: int, cart_item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            return self.remove_item(tenant_id, buyer_id, cart_item_id)

        with self._locked(tenant_id, buyer_id):
            cart = self._ensure_cart(tenant_id, buyer_id)
            item = self.repo.get_cart_item(cart.id, cart_item_id)
            if item is None:
                raise NotFound("Cart item not found", code="CART_ITEM_NOT_FOUND")

            logger.info(f"Cart {cart.id}: item {item.item_id} quantity {item.quantity} -> {quantity}")
            item.quantity = quantity
            self.repo.add_cart_item(item)

            self._bump(cart)
            return self._view(cart.id)

    def remove_item(self, tenant_id: int, buyer_id: int, cart_item_id: int) -> Dict[str, Any]:
        with self._locked(tenant_id, buyer_id):
            cart = self._ensure_cart(tenant_id, buyer_id)
            if self.repo.delete_cart_item(cart.id, cart_item_id) == 0:
                self.repo.rollback()
                raise NotFound("Cart item not found", code="CART_ITEM_NOT_FOUND")

            logger.info(f"Removed cart item {cart_item_id} from cart {cart.id}")
            self._bump(cart)
            return self._view(cart.id)

    def clear(self, tenant_id: int, buyer_id: int) -> Dict[str, Any]:
        with self._locked(tenant_id, buyer_id):
            cart = self._ensure_cart(tenant_id, buyer_id)
            removed = self.repo.delete_all_items(cart.id)
            logger.info(f"Cleared cart {cart.id} ({removed} items)")
            self._bump(cart)
            return self._view(cart.id)
