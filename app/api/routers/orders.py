# app/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_tenant_id, get_user_id
from app.data.database import get_db
from app.domain.schemas import OrderOut, PaymentSummaryOut
from app.services.order_service import OrderService
from app.services.payment_ledger import PaymentLedger

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Zamowienie kupujacego ze stanem platnosci."""
    return OrderService(db).get_order(tenant_id, order_id, buyer_id=user_id)


@router.post("/owner/orders/{order_id}/mark-paid", response_model=PaymentSummaryOut)
def mark_paid(
    order_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Potwierdzenie platnosci gotowka przez wlasciciela (OFFLINE_PENDING -> PAID)."""
    ledger = PaymentLedger(db)
    ledger.mark_paid_manually(tenant_id, order_id, actor_id=user_id)
    order = OrderService(db).get_order(tenant_id, order_id)
    return order["payment"]
