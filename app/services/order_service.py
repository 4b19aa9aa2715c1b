# app/services/order_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from app.domain.errors import NotFound
from app.repos.order_repo import OrderRepo
from app.services.payment_ledger import PaymentLedger


class OrderService:
    """Odczyt zamowienia razem ze stanem platnosci z ksiegi transakcji."""

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)
        self.ledger = PaymentLedger(db)

    def get_order(self, tenant_id: int, order_id: int, buyer_id: int | None = None) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        #cudze zamowienie = nie istnieje
        if order is None or order.tenant_id != tenant_id or (buyer_id is not None and order.buyer_id != buyer_id):
            raise NotFound("Order not found", code="ORDER_NOT_FOUND")

        return {
            "id": order.id,
            "order_code": order.order_code,
            "tenant_id": order.tenant_id,
            "buyer_id": order.buyer_id,
            "status": order.status,
            "payment_method_code": order.payment_method_code,
            "items_subtotal": order.items_subtotal,
            "coupon_code": order.coupon_code,
            "discount_total": order.discount_total,
            "shipping_total": order.shipping_total,
            "item_tax_total": order.item_tax_total,
            "shipping_tax_total": order.shipping_tax_total,
            "total": order.total,
            "created_at": order.created_at,
            "items": self.repo.get_order_items(order.id),
            "payment": self.ledger.summary(order.id, order.total),
            "transactions": self.ledger.transactions(order.id),
        }
