# app/repos/coupon_repo.py
from sqlalchemy import select, update, or_
from sqlalchemy.orm import Session

from app.data.models.coupon import CouponModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, tenant_id: int, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(
                CouponModel.tenant_id == tenant_id,
                CouponModel.code == code,
            )
        ).scalar_one_or_none()

    def get(self, tenant_id: int, coupon_id: int) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(
                CouponModel.tenant_id == tenant_id,
                CouponModel.id == coupon_id,
            )
        ).scalar_one_or_none()

    def list_by_tenant(self, tenant_id: int) -> list[CouponModel]:
        return list(
            self.db.execute(
                select(CouponModel).where(CouponModel.tenant_id == tenant_id).order_by(CouponModel.id)
            ).scalars()
        )

    def create(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def try_increment_usage(self, tenant_id: int, code: str) -> bool:
        """
        Jeden atomowy UPDATE: used_count + 1 tylko jesli kupon aktywny
        i limit nie osiagniety. Nie ma osobnego SELECT-a przed (brak check-then-act).
        """
        res = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.tenant_id == tenant_id,
                CouponModel.code == code,
                CouponModel.active.is_(True),
                or_(
                    CouponModel.global_usage_limit.is_(None),
                    CouponModel.used_count < CouponModel.global_usage_limit,
                ),
            )
            .values(used_count=CouponModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return res.rowcount == 1

    def decrement_usage(self, tenant_id: int, code: str) -> bool:
        res = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.tenant_id == tenant_id,
                CouponModel.code == code,
                CouponModel.used_count > 0,
            )
            .values(used_count=CouponModel.used_count - 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return res.rowcount == 1
