# app/services/shipping_service.py
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.orm import Session

from app.data.models.shipping_method import ShippingMethodModel
from app.domain.enums import ShippingMethodType
from app.domain.money import money, ZERO
from app.domain.schemas import CartLine, ShippingAddress, ShippingQuote, ShippingMethodIn
from app.repos.rule_repo import ShippingMethodRepo
from app.services.tax_service import rule_matches_address
from app.utils.logging import get_logger

logger = get_logger(__name__)

NO_SHIPPING = "No shipping"


def _items_subtotal(lines: List[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def _total_weight(lines: List[CartLine]) -> Decimal:
    return sum(((line.weight_kg or Decimal("0")) * line.quantity for line in lines), Decimal("0"))


def compute_price(method, items_subtotal: Decimal, total_weight: Decimal) -> Decimal:
    flat = method.flat_rate or ZERO
    per_kg = method.price_per_kg or ZERO
    threshold = method.free_shipping_threshold

    try:
        method_type = ShippingMethodType(method.method_type)
    except ValueError:
        method_type = ShippingMethodType.FLAT_RATE

    if method_type in (ShippingMethodType.FREE, ShippingMethodType.LOCAL_PICKUP):
        return ZERO
    if method_type in (ShippingMethodType.FLAT_RATE, ShippingMethodType.PRICE_BASED):
        return money(flat)
    if method_type in (ShippingMethodType.WEIGHT_BASED, ShippingMethodType.PRICE_PER_KG):
        return money(per_kg * total_weight)

    #FREE_OVER_THRESHOLD
    if threshold is not None and items_subtotal >= threshold:
        return ZERO
    if flat > 0:
        return money(flat)
    return money(per_kg * total_weight)


class ShippingService:
    """Wycena dostawy z metod tenanta pasujacych do adresu."""

    def __init__(self, db: Session):
        self.repo = ShippingMethodRepo(db)

    def available_methods(
        self,
        tenant_id: int,
        address: ShippingAddress | None,
        lines: Iterable[CartLine],
    ) -> list[ShippingQuote]:
        lines = list(lines)
        subtotal = _items_subtotal(lines)
        weight = _total_weight(lines)

        #metody nie pasujace do adresu w ogole nie sa kandydatami
        return [
            ShippingQuote(method_id=m.id, method_name=m.name, price=compute_price(m, subtotal, weight))
            for m in self.repo.enabled_for_tenant(tenant_id)
            if rule_matches_address(m, address)
        ]

    def quote(
        self,
        tenant_id: int,
        address: ShippingAddress | None,
        lines: Iterable[CartLine],
        method_id: int | None = None,
    ) -> ShippingQuote:
        candidates = self.available_methods(tenant_id, address, lines)
        if not candidates:
            return ShippingQuote(method_id=None, method_name=NO_SHIPPING, price=ZERO)

        if method_id is not None:
            for q in candidates:
                if q.method_id == method_id:
                    return q
            logger.warning(f"Shipping method {method_id} not available for tenant {tenant_id}, using cheapest")

        #najtanszy, przy remisie nizsze id
        return min(candidates, key=lambda q: (q.price, q.method_id))

    def create_method(self, tenant_id: int, payload: ShippingMethodIn) -> ShippingMethodModel:
        data = payload.model_dump()
        data["method_type"] = payload.method_type.value
        method = self.repo.create(ShippingMethodModel(tenant_id=tenant_id, **data))
        logger.info(f"Shipping method {method.id} ({method.method_type}) created for tenant {tenant_id}")
        return method

    def list_methods(self, tenant_id: int) -> list[ShippingMethodModel]:
        return self.repo.list_by_tenant(tenant_id)
