# app/services/payment_config_service.py
import json
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.payment import PaymentMethodConfigModel, PaymentMethodModel
from app.domain.errors import GatewayConfigurationError, ValidationFailed
from app.gateways.base import GatewayConfig, PaymentGateway
from app.gateways.registry import PaymentGatewayRegistry
from app.repos.payment_repo import PaymentConfigRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentConfigService:
    def __init__(self, db: Session, registry: PaymentGatewayRegistry):
        self.repo = PaymentConfigRepo(db)
        self.registry = registry

    @staticmethod
    def parse(config_json: str | None) -> GatewayConfig:
        if not config_json or not config_json.strip():
            return GatewayConfig({})
        try:
            values = json.loads(config_json)
        except ValueError:
            raise GatewayConfigurationError("Stored payment configuration is not valid JSON")
        if not isinstance(values, dict):
            raise GatewayConfigurationError("Stored payment configuration must be an object")
        return GatewayConfig(values)

    def require_enabled(self, tenant_id: int, code: str) -> GatewayConfig:
        code = code.strip().upper()
        cfg = self.repo.get_config(tenant_id, code)
        if cfg is None:
            raise GatewayConfigurationError(
                f"Payment method {code} is not configured for this tenant",
                code="PAYMENT_METHOD_NOT_CONFIGURED",
            )
        if not cfg.enabled:
            raise GatewayConfigurationError(
                f"Payment method {code} is disabled for this tenant",
                code="PAYMENT_METHOD_DISABLED",
            )
        return self.parse(cfg.config_json)

    def save(self, tenant_id: int, code: str, values: Dict[str, Any], enabled: bool) -> PaymentMethodConfigModel:
        gateway = self.registry.require(code)
        code = gateway.code()

        missing = [f.key for f in gateway.config_schema().fields if f.required and values.get(f.key) in (None, "")]
        if enabled and missing:
            raise ValidationFailed(f"Missing required fields for {code}: {', '.join(missing)}")

        method = self.repo.get_method(code)
        if method is None:
            method = self.repo.add_method(PaymentMethodModel(code=code, display_name=gateway.display_name()))

        cfg = self.repo.get_config(tenant_id, code)
        if cfg is None:
            cfg = PaymentMethodConfigModel(tenant_id=tenant_id, payment_method_id=method.id)

        cfg.config_json = json.dumps(values)
        cfg.enabled = enabled
        saved = self.repo.save(cfg)

        #bez wartosci - moga byc sekrety
        logger.info(f"Payment config {code} saved for tenant {tenant_id} (enabled={enabled})")
        return saved

    def public_methods(self, tenant_id: int) -> list[dict]:
        out = []
        for cfg in self.repo.enabled_configs(tenant_id):
            gateway: PaymentGateway | None = self.registry.find(cfg.payment_method.code)
            if gateway is None:
                logger.warning(f"Tenant {tenant_id} has config for unknown gateway {cfg.payment_method.code}")
                continue
            out.append(
                {
                    "code": gateway.code(),
                    "display_name": gateway.display_name(),
                    "public_config": gateway.public_checkout_config(self.parse(cfg.config_json)),
                }
            )
        return out
