# app/gateways/base.py
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.domain.enums import PaymentStatus
from app.domain.errors import ValidationFailed


class ConfigField(BaseModel):
    """Pole konfiguracji widoczne w panelu wlasciciela."""

    key: str
    label: str
    type: str = "text"
    required: bool = False
    #secret - nigdy nie trafia do klienta
    secret: bool = False
    #public - trafia do publicCheckoutConfig
    public: bool = False
    default: Any = None
    options: Optional[List[str]] = None


class ConfigSchema(BaseModel):
    title: str
    fields: List[ConfigField]


class GatewayConfig:
    """Sparsowany config_json tenanta dla jednego providera."""

    def __init__(self, values: Dict[str, Any] | None = None):
        self.values = dict(values or {})

    def get_str(self, key: str) -> str | None:
        v = self.values.get(key)
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    def get_decimal(self, key: str, default: Decimal | None = None) -> Decimal | None:
        v = self.values.get(key)
        if v is None or v == "":
            return default
        try:
            return Decimal(str(v))
        except ArithmeticError:
            return default


class CreatePaymentCommand(BaseModel):
    tenant_id: int
    order_reference: str
    amount: Decimal
    currency: str
    destination_account_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class CreatePaymentResult(BaseModel):
    provider_payment_id: str
    status: PaymentStatus
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None


class PaymentGateway(ABC):
    """
    Kontrakt adaptera providera platnosci.

    Nowy provider = nowa klasa + wpis w registry.default_gateways(); orchestrator
    checkoutu sie nie zmienia.
    """

    @abstractmethod
    def code(self) -> str: ...

    @abstractmethod
    def display_name(self) -> str: ...

    @abstractmethod
    def config_schema(self) -> ConfigSchema: ...

    @abstractmethod
    def create_payment(self, command: CreatePaymentCommand, config: GatewayConfig) -> CreatePaymentResult: ...

    def public_checkout_config(self, config: GatewayConfig) -> Dict[str, Any]:
        #tylko pola oznaczone public i nigdy secret
        out = {}
        for f in self.config_schema().fields:
            if f.public and not f.secret:
                v = config.get_str(f.key)
                if v is not None:
                    out[f.key] = v
        return out

    def translate_status(self, provider_status: str) -> PaymentStatus:
        """Mapowanie statusu providera na wewnetrzny; domyslnie przyjmuje statusy wewnetrzne."""
        try:
            return PaymentStatus((provider_status or "").strip().upper())
        except ValueError:
            raise ValidationFailed(f"Unknown payment status {provider_status!r} for {self.code()}")
