from sqlalchemy import Column, Integer, String, Numeric, Boolean

from app.data.database import Base


class TaxRuleModel(Base):
    __tablename__ = "tax_rules"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    name = Column(String(120), nullable=False)

    rate_percent = Column(Numeric(7, 4), nullable=False)
    applies_to_shipping = Column(Boolean, nullable=False, default=False)

    country_id = Column(Integer, nullable=True)
    region_id = Column(Integer, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
