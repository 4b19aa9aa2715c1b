# app/services/coupon_service.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.coupon import CouponModel
from app.domain.enums import DiscountType
from app.domain.errors import ValidationFailed, NotFound, BusinessRuleViolation
from app.domain.money import money, ZERO
from app.domain.schemas import CouponIn
from app.repos.coupon_repo import CouponRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


def normalize_code(code: str | None) -> str:
    if code is None or not code.strip():
        raise ValidationFailed("Coupon code is required")
    return code.strip().upper()


def _aware(dt: datetime | None) -> datetime | None:
    #sqlite zwraca naive datetime, traktujemy jako UTC
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class CouponService:
    """
    Ksiega kuponow.

    validate() sprawdza tylko warunki "statyczne" (istnieje, aktywny, okres
    waznosci, minimalna kwota). Limitu uzyc NIE sprawdza - to robi consume()
    jednym warunkowym UPDATE-em, inaczej dwa rownolegle checkouty moglyby
    oba przejsc walidacje dla ostatniego uzycia.
    """

    def __init__(self, db: Session):
        self.repo = CouponRepo(db)

    # =====================================================
    # ledger
    # =====================================================
    def validate(self, tenant_id: int, code: str, items_subtotal: Decimal, now: datetime | None = None) -> CouponModel:
        code = normalize_code(code)
        coupon = self.repo.get_by_code(tenant_id, code)

        if coupon is None:
            raise BusinessRuleViolation(f"Coupon {code} not found", code="COUPON_NOT_FOUND")

        if not coupon.active:
            raise BusinessRuleViolation(f"Coupon {code} is not active", code="COUPON_INACTIVE")

        now = now or datetime.now(timezone.utc)
        valid_from = _aware(coupon.valid_from)
        valid_to = _aware(coupon.valid_to)
        if (valid_from is not None and now < valid_from) or (valid_to is not None and now > valid_to):
            raise BusinessRuleViolation(f"Coupon {code} is expired or not yet valid", code="COUPON_EXPIRED")

        if coupon.min_order_amount is not None and items_subtotal < coupon.min_order_amount:
            raise BusinessRuleViolation(
                f"Coupon {code} requires a minimum order of {money(coupon.min_order_amount)}",
                code="COUPON_BELOW_MINIMUM",
            )

        return coupon

    def consume(self, tenant_id: int, code: str) -> bool:
        code = normalize_code(code)
        accepted = self.repo.try_increment_usage(tenant_id, code)
        if accepted:
            logger.info(f"Coupon {code} consumed for tenant {tenant_id}")
        else:
            logger.warning(f"Coupon {code} exhausted or deactivated for tenant {tenant_id}")
        return accepted

    def release(self, tenant_id: int, code: str) -> None:
        code = normalize_code(code)
        released = self.repo.decrement_usage(tenant_id, code)
        logger.warning(f"Coupon {code} released for tenant {tenant_id} (decremented={released})")

    @staticmethod
    def compute_discount(coupon: CouponModel | None, items_subtotal: Decimal) -> Decimal:
        if coupon is None or items_subtotal is None or items_subtotal <= 0:
            return ZERO

        value = coupon.value or ZERO
        discount_type = DiscountType(coupon.discount_type)

        if discount_type == DiscountType.PERCENT:
            discount = items_subtotal * value / Decimal(100)
            if coupon.max_discount_amount is not None:
                discount = min(discount, coupon.max_discount_amount)
        elif discount_type == DiscountType.FIXED:
            discount = min(value, items_subtotal)
        else:
            #FREE_SHIPPING - dostawe zeruje orchestrator
            discount = ZERO

        discount = max(min(discount, items_subtotal), ZERO)
        return money(discount)

    # =====================================================
    # panel wlasciciela
    # =====================================================
    def create(self, tenant_id: int, payload: CouponIn) -> CouponModel:
        if payload.valid_from and payload.valid_to and payload.valid_from > payload.valid_to:
            raise ValidationFailed("validFrom must be before validTo")

        coupon = CouponModel(
            tenant_id=tenant_id,
            code=normalize_code(payload.code),
            description=payload.description,
            discount_type=payload.discount_type.value,
            value=payload.value,
            used_count=0,
            global_usage_limit=payload.global_usage_limit,
            min_order_amount=payload.min_order_amount,
            max_discount_amount=payload.max_discount_amount,
            valid_from=payload.valid_from,
            valid_to=payload.valid_to,
            active=payload.active,
        )
        try:
            created = self.repo.create(coupon)
        except IntegrityError:
            self.repo.db.rollback()
            raise ValidationFailed(f"Coupon {coupon.code} already exists", code="DUPLICATE_COUPON")

        logger.info(f"Coupon {created.code} created for tenant {tenant_id}")
        return created

    def list_coupons(self, tenant_id: int) -> list[CouponModel]:
        return self.repo.list_by_tenant(tenant_id)

    def set_active(self, tenant_id: int, coupon_id: int, active: bool) -> CouponModel:
        coupon = self.repo.get(tenant_id, coupon_id)
        if coupon is None:
            raise NotFound("Coupon not found", code="COUPON_NOT_FOUND")
        coupon.active = active
        self.repo.db.commit()
        self.repo.db.refresh(coupon)
        return coupon
