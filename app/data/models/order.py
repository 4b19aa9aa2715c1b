from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from app.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_code = Column(String(40), nullable=False, unique=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    buyer_id = Column(Integer, nullable=False, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)

    status = Column(String, nullable=False, default="PENDING")
    currency_id = Column(Integer, nullable=True)
    payment_method_code = Column(String(50), nullable=False)

    items_subtotal = Column(Numeric(12, 2), nullable=False)
    coupon_code = Column(String(64), nullable=True)
    discount_total = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_method_id = Column(Integer, nullable=True)
    shipping_method_name = Column(String(120), nullable=True)
    shipping_total = Column(Numeric(12, 2), nullable=False, default=0)
    item_tax_total = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_tax_total = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)

    shipping_country_id = Column(Integer, nullable=True)
    shipping_region_id = Column(Integer, nullable=True)
    shipping_city = Column(String(120), nullable=True)
    shipping_postal_code = Column(String(20), nullable=True)
    shipping_address = Column(String(255), nullable=True)
    shipping_full_name = Column(String(120), nullable=True)
    shipping_phone = Column(String(40), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship("OrderItemModel", back_populates="order", cascade="all, delete-orphan")


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    currency_id = Column(Integer, nullable=True)

    order = relationship("OrderModel", back_populates="items")
