# app/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_tenant_id, get_user_id
from app.data.database import get_db
from app.domain.schemas import (
    GatewayInfoOut,
    PaymentMethodConfigIn,
    PaymentTransactionOut,
    ProviderEventIn,
    PublicPaymentMethodOut,
    ReconcileOut,
)
from app.gateways.registry import PaymentGatewayRegistry, get_registry
from app.services.payment_config_service import PaymentConfigService
from app.services.payment_ledger import PaymentLedger

router = APIRouter(prefix="/api", tags=["payments"])


@router.get("/payment-methods", response_model=list[PublicPaymentMethodOut])
def public_methods(
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    registry: PaymentGatewayRegistry = Depends(get_registry),
):
    return PaymentConfigService(db, registry).public_methods(tenant_id)


@router.get("/owner/payment-gateways", response_model=list[GatewayInfoOut])
def gateway_schemas(
    tenant_id: int = Depends(get_tenant_id),
    registry: PaymentGatewayRegistry = Depends(get_registry),
):
    return [
        {"code": g.code(), "display_name": g.display_name(), "config_schema": g.config_schema().model_dump()}
        for g in registry.all()
    ]


@router.put("/owner/payment-methods/{code}", response_model=PublicPaymentMethodOut)
def save_config(
    code: str,
    payload: PaymentMethodConfigIn,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    registry: PaymentGatewayRegistry = Depends(get_registry),
):
    svc = PaymentConfigService(db, registry)
    saved = svc.save(tenant_id, code, payload.values, payload.enabled)
    gateway = registry.require(code)
    return {
        "code": gateway.code(),
        "display_name": gateway.display_name(),
        #nigdy nie odsylamy sekretow
        "public_config": gateway.public_checkout_config(svc.parse(saved.config_json)),
    }


@router.post("/payments/{provider_code}/events", response_model=ReconcileOut)
def provider_event(
    provider_code: str,
    payload: ProviderEventIn,
    db: Session = Depends(get_db),
    registry: PaymentGatewayRegistry = Depends(get_registry),
):
    """
    Wejscie dla handlera webhookow (weryfikacja podpisu jest po jego stronie).
    Status providera tlumaczy adapter; powtorzony event zwraca applied=false.
    """
    gateway = registry.require(provider_code)
    new_status = gateway.translate_status(payload.status)

    ledger = PaymentLedger(db)
    applied = ledger.reconcile(gateway.code(), payload.provider_payment_id, new_status)
    tx = ledger.find(gateway.code(), payload.provider_payment_id)
    return {"applied": applied, "transaction_id": tx.id, "status": tx.status}


@router.post("/owner/payments/{transaction_id}/refund", response_model=PaymentTransactionOut)
def refund(
    transaction_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    ledger = PaymentLedger(db)
    ledger.mark_refunded(tenant_id, transaction_id, actor_id=user_id)
    return ledger.repo.get(transaction_id)
