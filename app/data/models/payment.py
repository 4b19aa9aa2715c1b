from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class PaymentMethodModel(Base):
    """Katalog znanych providerow (STRIPE, CASH, ...)."""

    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(120), nullable=False)


class PaymentMethodConfigModel(Base):
    """Konfiguracja providera per tenant (sekrety, klucze publiczne, prowizje)."""

    __tablename__ = "payment_method_configs"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)

    config_json = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    payment_method = relationship("PaymentMethodModel")

    __table_args__ = (UniqueConstraint("tenant_id", "payment_method_id", name="u_tenant_payment_method"),)


class PaymentTransactionModel(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    provider_code = Column(String(50), nullable=False)
    provider_payment_id = Column(String(200), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    status = Column(String(30), nullable=False)

    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint("provider_code", "provider_payment_id", name="u_provider_payment"),
    )
