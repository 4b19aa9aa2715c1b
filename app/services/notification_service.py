# app/services/notification_service.py
from decimal import Decimal

from app.celery_worker import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Zdarzenie "zamowienie utworzone" dla downstreamu (realizacja, powiadomienia).
    Idzie przez Celery, checkout nie czeka na odbiorcow.
    """

    @staticmethod
    def order_created(tenant_id: int, buyer_id: int, order_id: int, order_code: str, total: Decimal):
        send_order_created_task.delay(tenant_id, buyer_id, order_id, order_code, str(total))


@celery_app.task(name="app.services.notification_service.send_order_created_task")
def send_order_created_task(tenant_id: int, buyer_id: int, order_id: int, order_code: str, total: str):
    #tu bylby email/push; na razie log dla order management
    logger.info(f"[ORDER_CREATED] tenant {tenant_id} buyer {buyer_id}: order {order_id} ({order_code}) total {total}")
    return {"order_id": order_id, "order_code": order_code, "status": "sent"}
