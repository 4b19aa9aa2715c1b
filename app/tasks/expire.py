# app/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy import update

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.data.models.cart import CartModel
from app.domain.enums import CartStatus
from app.utils.logging import get_logger

logger = get_logger(__name__)


def expire_carts(db, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    res = db.execute(
        update(CartModel)
        .where(
            CartModel.status == CartStatus.ACTIVE.value,
            CartModel.expires_at < now,
        )
        .values(status=CartStatus.EXPIRED.value, version=CartModel.version + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return res.rowcount


@celery_app.task(name="app.tasks.expire.expire_carts_task")
def expire_carts_task():
    logger.info("Expire carts task started")

    db = SessionLocal()
    try:
        expired = expire_carts(db)
        logger.info(f"Expired {expired} carts")
        return expired
    finally:
        db.close()
