from sqlalchemy import Column, Integer, String, Numeric, Boolean

from app.data.database import Base


class ShippingMethodModel(Base):
    __tablename__ = "shipping_methods"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    name = Column(String(120), nullable=False)
    method_type = Column(String(30), nullable=False, default="FLAT_RATE")

    flat_rate = Column(Numeric(12, 2), nullable=False, default=0)
    price_per_kg = Column(Numeric(12, 2), nullable=False, default=0)
    free_shipping_threshold = Column(Numeric(12, 2), nullable=True)

    country_id = Column(Integer, nullable=True)
    region_id = Column(Integer, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
