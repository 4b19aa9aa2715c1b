# app/gateways/registry.py
from typing import Dict, Iterable, List, Optional

from app.domain.errors import DuplicateGatewayError, UnsupportedGateway, ValidationFailed
from app.gateways.base import PaymentGateway
from app.gateways.cash_gateway import CashGateway
from app.gateways.stripe_gateway import StripeGateway
from app.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentGatewayRegistry:
    """Mapa kod providera (UPPER) -> adapter, budowana raz przy starcie."""

    def __init__(self, gateways: Iterable[PaymentGateway]):
        self._gateways: Dict[str, PaymentGateway] = {}
        for g in gateways:
            key = g.code().strip().upper()
            if key in self._gateways:
                #niejednoznacznosc nigdy nie jest rozwiazywana po cichu
                raise DuplicateGatewayError(
                    f"Duplicate payment gateway code {key}: "
                    f"{type(self._gateways[key]).__name__} and {type(g).__name__}"
                )
            self._gateways[key] = g
        logger.info(f"Payment gateways registered: {sorted(self._gateways)}")

    def require(self, code: str | None) -> PaymentGateway:
        if code is None or not code.strip():
            raise ValidationFailed("paymentMethod is required")
        g = self._gateways.get(code.strip().upper())
        if g is None:
            raise UnsupportedGateway(f"Unsupported gateway: {code}")
        return g

    def find(self, code: str | None) -> Optional[PaymentGateway]:
        if code is None:
            return None
        return self._gateways.get(code.strip().upper())

    def all(self) -> List[PaymentGateway]:
        return list(self._gateways.values())


def default_gateways() -> List[PaymentGateway]:
    return [StripeGateway(), CashGateway()]


_registry: PaymentGatewayRegistry | None = None


def build_registry(gateways: Iterable[PaymentGateway] | None = None) -> PaymentGatewayRegistry:
    return PaymentGatewayRegistry(default_gateways() if gateways is None else gateways)


def get_registry() -> PaymentGatewayRegistry:
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry
