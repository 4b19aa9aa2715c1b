# app/services/tax_service.py
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from app.data.models.tax_rule import TaxRuleModel
from app.domain.errors import ValidationFailed
from app.domain.money import money, ZERO
from app.domain.schemas import CartLine, ShippingAddress, TaxRuleIn
from app.repos.rule_repo import TaxRuleRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


def rule_matches_address(rule, address: ShippingAddress | None) -> bool:
    """Regula bez kraju/regionu pasuje wszedzie; z ustawionym filtrem tylko do zgodnego adresu."""
    country_id = address.country_id if address else None
    region_id = address.region_id if address else None

    if rule.country_id is not None and rule.country_id != country_id:
        return False
    if rule.region_id is not None and rule.region_id != region_id:
        return False
    return True


class TaxService:
    """
    Podatki: wszystkie pasujace reguly SUMUJA sie (5% + 3% = 8%),
    a nie wygrywa pierwsza/najlepsza.
    """

    def __init__(self, db: Session):
        self.repo = TaxRuleRepo(db)

    def _effective_rate(self, tenant_id: int, address: ShippingAddress | None, for_shipping: bool) -> Decimal:
        rules = [
            r
            for r in self.repo.enabled_for_tenant(tenant_id)
            if bool(r.applies_to_shipping) == for_shipping and rule_matches_address(r, address)
        ]
        return sum((r.rate_percent for r in rules), Decimal("0"))

    def item_tax(
        self,
        tenant_id: int,
        address: ShippingAddress | None,
        lines: Iterable[CartLine],
        discount: Decimal = ZERO,
    ) -> Decimal:
        base = sum((line.line_total for line in lines), ZERO) - (discount or ZERO)
        if base <= 0:
            return ZERO

        rate = self._effective_rate(tenant_id, address, for_shipping=False)
        if rate <= 0:
            return ZERO
        return money(base * rate / Decimal(100))

    def shipping_tax(self, tenant_id: int, address: ShippingAddress | None, shipping_amount: Decimal) -> Decimal:
        if shipping_amount is None or shipping_amount <= 0:
            return ZERO

        rate = self._effective_rate(tenant_id, address, for_shipping=True)
        if rate <= 0:
            return ZERO
        return money(shipping_amount * rate / Decimal(100))

    def create_rule(self, tenant_id: int, payload: TaxRuleIn) -> TaxRuleModel:
        if payload.rate_percent <= 0:
            raise ValidationFailed("rate must be > 0")

        rule = self.repo.create(TaxRuleModel(tenant_id=tenant_id, **payload.model_dump()))
        logger.info(f"Tax rule {rule.id} ({rule.rate_percent}%) created for tenant {tenant_id}")
        return rule

    def list_rules(self, tenant_id: int) -> list[TaxRuleModel]:
        return self.repo.list_by_tenant(tenant_id)
