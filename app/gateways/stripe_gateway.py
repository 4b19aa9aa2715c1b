# app/gateways/stripe_gateway.py
from decimal import Decimal

import stripe

from app.domain.enums import PaymentStatus
from app.domain.errors import GatewayConfigurationError, ProviderRejected, ProviderUnavailable
from app.domain.money import to_minor_units
from app.gateways.base import (
    ConfigField,
    ConfigSchema,
    CreatePaymentCommand,
    CreatePaymentResult,
    GatewayConfig,
    PaymentGateway,
)
from app.utils.settings import PAYMENT_PROVIDER_TIMEOUT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PLATFORM_FEE_PCT = Decimal("10")

# statusy PaymentIntent -> statusy wewnetrzne
_STATUS_MAP = {
    "requires_payment_method": PaymentStatus.CREATED,
    "requires_confirmation": PaymentStatus.CREATED,
    "processing": PaymentStatus.CREATED,
    "requires_capture": PaymentStatus.CREATED,
    "requires_action": PaymentStatus.REQUIRES_ACTION,
    "succeeded": PaymentStatus.PAID,
    "canceled": PaymentStatus.FAILED,
    "payment_failed": PaymentStatus.FAILED,
    "refunded": PaymentStatus.REFUNDED,
}


class StripeGateway(PaymentGateway):
    """
    Karta przez Stripe PaymentIntents.

    Klucz API jest per tenant (z PaymentMethodConfig), wiec nie ustawiamy
    globalnego stripe.api_key - przekazujemy api_key w kazdym wywolaniu.
    """

    def __init__(self, timeout: float = PAYMENT_PROVIDER_TIMEOUT_SECONDS):
        self.timeout = timeout
        #ograniczony czas na siec, timeout = blad providera
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = 0

    def code(self) -> str:
        return "STRIPE"

    def display_name(self) -> str:
        return "Stripe"

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            title="Stripe Settings",
            fields=[
                ConfigField(key="secretKey", label="Secret Key", type="password", required=True, secret=True),
                ConfigField(key="publishableKey", label="Publishable Key", required=True, public=True),
                ConfigField(key="webhookSecret", label="Webhook Secret", type="password", required=True, secret=True),
                ConfigField(key="platformFeePct", label="Platform Fee %", type="number", default=10),
            ],
        )

    def create_payment(self, command: CreatePaymentCommand, config: GatewayConfig) -> CreatePaymentResult:
        secret_key = config.get_str("secretKey")
        if not secret_key:
            raise GatewayConfigurationError("Stripe secretKey not configured for this tenant")

        cents = to_minor_units(command.amount)
        currency = (command.currency or "usd").lower()

        metadata = {
            "orderReference": command.order_reference,
            "tenantId": str(command.tenant_id),
        }
        metadata.update(command.metadata)

        params = {
            "amount": cents,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
        }

        #Stripe Connect: prowizja platformy + przelew na konto sprzedawcy
        if command.destination_account_id:
            fee_pct = config.get_decimal("platformFeePct", DEFAULT_PLATFORM_FEE_PCT)
            params["application_fee_amount"] = to_minor_units(command.amount * fee_pct / Decimal(100))
            params["transfer_data"] = {"destination": command.destination_account_id}

        try:
            intent = stripe.PaymentIntent.create(
                api_key=secret_key,
                idempotency_key=f"order-{command.order_reference}",
                **params,
            )
        except stripe.AuthenticationError as e:
            logger.warning(f"Stripe rejected credentials for tenant {command.tenant_id}: {e.user_message or e}")
            raise GatewayConfigurationError("Stripe credentials are invalid for this tenant")
        except stripe.APIConnectionError as e:
            logger.warning(f"Stripe unreachable for order {command.order_reference}: {e}")
            raise ProviderUnavailable("Payment provider is unreachable, please retry")
        except (stripe.CardError, stripe.InvalidRequestError) as e:
            logger.warning(f"Stripe rejected payment for order {command.order_reference}: {e.user_message or e}")
            raise ProviderRejected(e.user_message or "Payment provider rejected the request")
        except stripe.StripeError as e:
            logger.warning(f"Stripe createPayment failed for order {command.order_reference}: {e}")
            raise ProviderUnavailable("Payment provider failed, please retry", code="PROVIDER_ERROR")

        logger.info(f"Stripe PaymentIntent {intent.id} created for order {command.order_reference}")

        return CreatePaymentResult(
            provider_payment_id=intent.id,
            client_secret=intent.client_secret,
            status=self.translate_status(intent.status),
        )

    def translate_status(self, provider_status: str) -> PaymentStatus:
        key = (provider_status or "").strip()
        if key.lower() in _STATUS_MAP:
            return _STATUS_MAP[key.lower()]
        return super().translate_status(key)
