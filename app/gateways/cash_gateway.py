# app/gateways/cash_gateway.py
from app.domain.enums import PaymentStatus
from app.gateways.base import (
    ConfigField,
    ConfigSchema,
    CreatePaymentCommand,
    CreatePaymentResult,
    GatewayConfig,
    PaymentGateway,
)


class CashGateway(PaymentGateway):
    """Platnosc gotowka/przy odbiorze - bez zewnetrznego providera."""

    def code(self) -> str:
        return "CASH"

    def display_name(self) -> str:
        return "Cash on delivery"

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            title="Cash Settings",
            fields=[
                ConfigField(key="instructions", label="Instructions", type="textarea", public=True),
            ],
        )

    def create_payment(self, command: CreatePaymentCommand, config: GatewayConfig) -> CreatePaymentResult:
        #wewnetrzna referencja, oplacenie potwierdza wlasciciel (mark-paid)
        return CreatePaymentResult(
            provider_payment_id=f"CASH_{command.order_reference}",
            status=PaymentStatus.OFFLINE_PENDING,
        )
