# app/services/checkout_service.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from app.data.models.coupon import CouponModel
from app.data.models.order import OrderModel, OrderItemModel
from app.domain.enums import CartStatus, DiscountType, PaymentStatus, INITIAL_PAYMENT_STATUSES
from app.domain.errors import BusinessRuleViolation, ConcurrencyConflict
from app.domain.money import money, ZERO
from app.domain.schemas import CartLine, ShippingAddress
from app.gateways.base import CreatePaymentCommand
from app.gateways.registry import PaymentGatewayRegistry
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.services.cart_service import _aware
from app.services.catalog_client import CatalogClient
from app.services.coupon_service import CouponService, normalize_code
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.payment_config_service import PaymentConfigService
from app.services.payment_ledger import PaymentLedger
from app.services.shipping_service import ShippingService
from app.services.tax_service import TaxService
from app.utils.settings import DEFAULT_CURRENCY_CODE
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Orchestrator checkoutu.

    Kolejnosc: koszyk -> suma -> kupon (validate + atomowy consume) ->
    dostawa -> podatki -> total -> provider -> zapis zamowienia, transakcji
    i konwersja koszyka jednym commitem.

    Wywolanie providera jest poza transakcja bazy, wiec jej rollback nie
    cofnie zuzycia kuponu. Kazdy blad po udanym consume() konczy sie
    release() - to jedyne miejsce z kompensacja.
    """

    def __init__(
        self,
        db: Session,
        registry: PaymentGatewayRegistry,
        catalog_client: CatalogClient,
        lock_service: LockService,
        notifier: NotificationService,
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.coupons = CouponService(db)
        self.tax = TaxService(db)
        self.shipping = ShippingService(db)
        self.payment_configs = PaymentConfigService(db, registry)
        self.ledger = PaymentLedger(db)
        self.registry = registry
        self.catalog_client = catalog_client
        self.lock_service = lock_service
        self.notifier = notifier

    # =====================================================
    # wycena (wspolna dla quote i checkout)
    # =====================================================
    @staticmethod
    def cart_lines(items) -> List[CartLine]:
        #ceny ze snapshotu koszyka, nie z katalogu
        return [
            CartLine(
                item_id=i.item_id,
                item_name=i.item_name,
                quantity=i.quantity,
                unit_price=money(i.unit_price),
                weight_kg=i.weight_kg,
                currency_id=i.currency_id,
            )
            for i in items
        ]

    def _load_lines(self, tenant_id: int, buyer_id: int):
        cart = self.carts.get_active_cart(tenant_id, buyer_id)
        if cart is not None and _aware(cart.expires_at) <= datetime.now(timezone.utc):
            #ten sam warunek co w CartService, snapshot cen jest juz przeterminowany
            logger.info(f"Cart {cart.id} expired before checkout for buyer {buyer_id}")
            self.carts.update_cart_version(
                cart.id, cart.version, {"status": CartStatus.EXPIRED.value, "version": cart.version + 1}
            )
            self.carts.commit()
            raise BusinessRuleViolation("Cart has expired", code="CART_EXPIRED")
        items = self.carts.get_cart_items(cart.id) if cart else []
        if not items:
            raise BusinessRuleViolation("Cart is empty", code="EMPTY_CART")
        return cart, self.cart_lines(items)

    def _price(
        self,
        tenant_id: int,
        lines: List[CartLine],
        coupon: CouponModel | None,
        address: ShippingAddress | None,
        shipping_method_id: int | None,
    ) -> Dict[str, Any]:
        subtotal = money(sum((line.line_total for line in lines), ZERO))
        discount = CouponService.compute_discount(coupon, subtotal)

        quote = self.shipping.quote(tenant_id, address, lines, shipping_method_id)
        free_shipping = coupon is not None and coupon.discount_type == DiscountType.FREE_SHIPPING.value
        shipping_total = ZERO if free_shipping else money(quote.price)

        item_tax = self.tax.item_tax(tenant_id, address, lines, discount)
        shipping_tax = self.tax.shipping_tax(tenant_id, address, shipping_total)

        grand_total = money(subtotal - discount + shipping_total + item_tax + shipping_tax)
        if grand_total < 0:
            raise BusinessRuleViolation("Order total cannot be negative", code="INVALID_TOTAL")

        return {
            "lines": [
                {
                    "item_id": line.item_id,
                    "item_name": line.item_name,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "line_total": money(line.line_total),
                }
                for line in lines
            ],
            "items_subtotal": subtotal,
            "coupon_code": coupon.code if coupon else None,
            "coupon_discount": discount,
            "free_shipping": free_shipping,
            "shipping_method_id": quote.method_id,
            "shipping_method_name": quote.method_name,
            "shipping_total": shipping_total,
            "item_tax_total": item_tax,
            "shipping_tax_total": shipping_tax,
            "grand_total": grand_total,
        }

    def quote(
        self,
        tenant_id: int,
        buyer_id: int,
        coupon_code: str | None = None,
        shipping_address: ShippingAddress | None = None,
        shipping_method_id: int | None = None,
    ) -> Dict[str, Any]:
        """Podglad kwot bez efektow ubocznych (kupon nie jest zuzywany)."""
        _, lines = self._load_lines(tenant_id, buyer_id)
        subtotal = money(sum((line.line_total for line in lines), ZERO))
        coupon = self.coupons.validate(tenant_id, coupon_code, subtotal) if coupon_code else None
        return self._price(tenant_id, lines, coupon, shipping_address, shipping_method_id)

    # =====================================================
    # checkout
    # =====================================================
    def checkout(
        self,
        tenant_id: int,
        buyer_id: int,
        payment_method: str,
        currency_id: int,
        coupon_code: str | None = None,
        shipping_address: ShippingAddress | None = None,
        shipping_method_id: int | None = None,
        destination_account_id: str | None = None,
    ) -> Dict[str, Any]:
        token = self.lock_service.new_token()
        if not self.lock_service.acquire_cart_lock(tenant_id, buyer_id, token):
            raise ConcurrencyConflict("Cart is being modified by another request", code="CART_BUSY")
        try:
            return self._checkout(
                tenant_id,
                buyer_id,
                payment_method,
                currency_id,
                coupon_code,
                shipping_address,
                shipping_method_id,
                destination_account_id,
            )
        finally:
            self.lock_service.release_cart_lock(tenant_id, buyer_id, token)

    def _checkout(
        self,
        tenant_id: int,
        buyer_id: int,
        payment_method: str,
        currency_id: int,
        coupon_code: str | None,
        address: ShippingAddress | None,
        shipping_method_id: int | None,
        destination_account_id: str | None,
    ) -> Dict[str, Any]:
        cart, lines = self._load_lines(tenant_id, buyer_id)
        cart_id, cart_version = cart.id, cart.version

        #walidacja bez mutacji - przed zuzyciem kuponu
        gateway = self.registry.require(payment_method)
        config = self.payment_configs.require_enabled(tenant_id, gateway.code())

        currency = self.catalog_client.fetch_currency(currency_id)
        currency_code = (currency.get("code") or DEFAULT_CURRENCY_CODE).lower()

        subtotal = money(sum((line.line_total for line in lines), ZERO))

        coupon = None
        if coupon_code:
            coupon_code = normalize_code(coupon_code)
            coupon = self.coupons.validate(tenant_id, coupon_code, subtotal)
            if not self.coupons.consume(tenant_id, coupon_code):
                raise BusinessRuleViolation(f"Coupon {coupon_code} has no uses left", code="COUPON_EXHAUSTED")

        try:
            pricing = self._price(tenant_id, lines, coupon, address, shipping_method_id)
            total: Decimal = pricing["grand_total"]

            order_code = uuid.uuid4().hex
            logger.info(
                f"Checkout cart {cart_id}: creating {gateway.code()} payment {total} {currency_code} "
                f"for order {order_code}"
            )
            #poza transakcja bazy, timeout/blad providera -> kompensacja nizej
            result = gateway.create_payment(
                CreatePaymentCommand(
                    tenant_id=tenant_id,
                    order_reference=order_code,
                    amount=total,
                    currency=currency_code,
                    destination_account_id=destination_account_id,
                    metadata={"buyerId": str(buyer_id), "cartId": str(cart_id)},
                ),
                config,
            )

            order = OrderModel(
                order_code=order_code,
                tenant_id=tenant_id,
                buyer_id=buyer_id,
                cart_id=cart_id,
                status="PENDING",
                currency_id=currency_id,
                payment_method_code=gateway.code(),
                items_subtotal=pricing["items_subtotal"],
                coupon_code=pricing["coupon_code"],
                discount_total=pricing["coupon_discount"],
                shipping_method_id=pricing["shipping_method_id"],
                shipping_method_name=pricing["shipping_method_name"],
                shipping_total=pricing["shipping_total"],
                item_tax_total=pricing["item_tax_total"],
                shipping_tax_total=pricing["shipping_tax_total"],
                total=total,
                shipping_country_id=address.country_id if address else None,
                shipping_region_id=address.region_id if address else None,
                shipping_city=address.city if address else None,
                shipping_postal_code=address.postal_code if address else None,
                shipping_address=address.address_line if address else None,
                shipping_full_name=address.full_name if address else None,
                shipping_phone=address.phone if address else None,
                items=[
                    OrderItemModel(
                        item_id=line.item_id,
                        item_name=line.item_name,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        line_total=money(line.line_total),
                        currency_id=line.currency_id,
                    )
                    for line in lines
                ],
            )
            self.orders.add_order(order)

            tx_id = self.ledger.record_attempt(
                order_id=order.id,
                provider_code=gateway.code(),
                amount=total,
                currency=currency_code,
                status=result.status,
                provider_payment_id=result.provider_payment_id,
            )

            rowcount = self.carts.update_cart_version(
                cart_id,
                cart_version,
                {"status": CartStatus.CONVERTED.value, "version": cart_version + 1},
            )
            if rowcount == 0:
                raise ConcurrencyConflict("Cart was modified during checkout")

            self.db.commit()
            order_id = order.id
        except Exception:
            self.db.rollback()
            if coupon is not None:
                logger.warning(f"Checkout of cart {cart_id} failed after coupon {coupon_code} was consumed, releasing")
                self.coupons.release(tenant_id, coupon_code)
            raise

        logger.info(f"Order {order_id} ({order_code}) created from cart {cart_id}, total {total}")
        try:
            self.notifier.order_created(tenant_id, buyer_id, order_id, order_code, total)
        except Exception:
            #zamowienie juz zapisane, klient musi dostac orderId i clientSecret
            logger.exception(f"Order {order_id} committed but the ORDER_CREATED event could not be queued")

        stored_status = result.status if result.status in INITIAL_PAYMENT_STATUSES else PaymentStatus.CREATED
        return {
            "order_id": order_id,
            "order_code": order_code,
            "pricing": pricing,
            "payment_transaction_id": tx_id,
            "payment_provider_code": gateway.code(),
            "provider_payment_id": result.provider_payment_id,
            "payment_status": stored_status,
            "client_secret": result.client_secret,
            "redirect_url": result.redirect_url,
            "public_config": gateway.public_checkout_config(config),
        }
