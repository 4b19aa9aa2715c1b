from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, UniqueConstraint

from app.data.database import Base


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    code = Column(String(64), nullable=False)
    description = Column(String(255), nullable=True)

    discount_type = Column(String(20), nullable=False)
    value = Column(Numeric(12, 2), nullable=False)

    used_count = Column(Integer, nullable=False, default=0)
    global_usage_limit = Column(Integer, nullable=True)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_to = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("tenant_id", "code", name="u_coupon_tenant_code"),)
