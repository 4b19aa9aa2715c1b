# app/domain/errors.py
"""
Wyjatki domenowe checkoutu.

Kazdy blad widoczny dla klienta ma staly kod (np. COUPON_EXHAUSTED)
i czytelny komunikat; status HTTP jest przypisany do klasy.
"""


class CheckoutError(Exception):
    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationFailed(CheckoutError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFound(CheckoutError):
    status_code = 404
    default_code = "NOT_FOUND"


class BusinessRuleViolation(CheckoutError):
    status_code = 422
    default_code = "BUSINESS_RULE"


class ConcurrencyConflict(CheckoutError):
    status_code = 409
    default_code = "CONCURRENT_UPDATE"


class UnsupportedGateway(CheckoutError):
    status_code = 400
    default_code = "UNSUPPORTED_GATEWAY"


class GatewayConfigurationError(CheckoutError):
    """Problem z konfiguracja tenanta (brak/niepoprawny sekret), nie wina kupujacego."""

    status_code = 400
    default_code = "GATEWAY_MISCONFIGURED"


class ProviderUnavailable(CheckoutError):
    """Blad komunikacji z providerem (siec/timeout) - mozna ponowic."""

    status_code = 503
    default_code = "PROVIDER_UNAVAILABLE"


class ProviderRejected(CheckoutError):
    """Provider odrzucil zadanie (karta, kwota) - ponowienie nic nie da."""

    status_code = 422
    default_code = "PROVIDER_ERROR"


class IllegalPaymentTransition(CheckoutError):
    status_code = 409
    default_code = "ILLEGAL_TRANSITION"


class DuplicateGatewayError(RuntimeError):
    """Dwa adaptery z tym samym kodem - blad konfiguracji przy starcie."""
