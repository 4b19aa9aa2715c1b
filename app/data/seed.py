# app/data/seed.py
from sqlalchemy.orm import Session

from app.data.database import SessionLocal
from app.data.models.payment import PaymentMethodModel
from app.gateways.registry import get_registry
from app.utils.logging import get_logger

logger = get_logger(__name__)


def seed_payment_methods(db: Session) -> int:
    """Katalog metod platnosci = adaptery z rejestru. Nie nadpisuje istniejacych."""
    known = {m.code for m in db.query(PaymentMethodModel).all()}
    added = 0
    for gateway in get_registry().all():
        if gateway.code() in known:
            continue
        db.add(PaymentMethodModel(code=gateway.code(), display_name=gateway.display_name()))
        added += 1
    db.commit()
    return added


def seed():
    db = SessionLocal()
    try:
        added = seed_payment_methods(db)
        if added:
            logger.info(f"Seeded {added} payment methods")
    finally:
        db.close()
