# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional, Any, Dict
from decimal import Decimal
from datetime import datetime

from app.domain.enums import DiscountType, ShippingMethodType, PaymentStatus


class ApiModel(BaseModel):
    """Baza dla schematow API: snake_case w kodzie, camelCase w JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =====================================================
# wartosci domenowe (linie koszyka, adres, wycena dostawy)
# =====================================================
class CartLine(ApiModel):
    item_id: int
    item_name: Optional[str] = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal
    weight_kg: Optional[Decimal] = None
    currency_id: Optional[int] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ShippingAddress(ApiModel):
    country_id: Optional[int] = None
    region_id: Optional[int] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    address_line: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None


class ShippingQuote(ApiModel):
    method_id: Optional[int] = None
    method_name: str
    price: Decimal


# =====================================================
# koszyk
# =====================================================
class ItemIn(ApiModel):
    """Schema dla dodawania produktu do koszyka."""

    item_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")


class UpdateItemIn(ApiModel):
    #quantity <= 0 usuwa pozycje
    quantity: int


class CartItemOut(ApiModel):
    cart_item_id: int
    item_id: int
    item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(ApiModel):
    cart_id: int
    tenant_id: int
    buyer_id: int
    status: str
    items: List[CartItemOut]
    total: Decimal
    currency_id: Optional[int] = None
    expires_at: Optional[datetime] = None


# =====================================================
# checkout
# =====================================================
class CheckoutIn(ApiModel):
    payment_method: str = Field(..., min_length=1)
    currency_id: int = Field(..., gt=0)
    coupon_code: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    shipping_method_id: Optional[int] = None
    destination_account_id: Optional[str] = None


class QuoteIn(ApiModel):
    currency_id: Optional[int] = None
    coupon_code: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    shipping_method_id: Optional[int] = None


class CheckoutLineOut(ApiModel):
    item_id: int
    item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PricingSummary(ApiModel):
    lines: List[CheckoutLineOut]
    items_subtotal: Decimal
    coupon_code: Optional[str] = None
    coupon_discount: Decimal
    free_shipping: bool = False
    shipping_method_id: Optional[int] = None
    shipping_method_name: Optional[str] = None
    shipping_total: Decimal
    item_tax_total: Decimal
    shipping_tax_total: Decimal
    grand_total: Decimal


class CheckoutOut(ApiModel):
    order_id: int
    order_code: str
    pricing: PricingSummary
    payment_transaction_id: int
    payment_provider_code: str
    provider_payment_id: Optional[str] = None
    payment_status: PaymentStatus
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None
    public_config: Dict[str, Any] = {}


# =====================================================
# zamowienia i platnosci
# =====================================================
class OrderItemOut(ApiModel):
    item_id: int
    item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PaymentSummaryOut(ApiModel):
    order_id: int
    order_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    fully_paid: bool
    payment_state: str


class PaymentTransactionOut(ApiModel):
    id: int
    order_id: int
    provider_code: str
    provider_payment_id: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime


class OrderOut(ApiModel):
    id: int
    order_code: str
    tenant_id: int
    buyer_id: int
    status: str
    payment_method_code: str
    items_subtotal: Decimal
    coupon_code: Optional[str] = None
    discount_total: Decimal
    shipping_total: Decimal
    item_tax_total: Decimal
    shipping_tax_total: Decimal
    total: Decimal
    created_at: datetime
    items: List[OrderItemOut] = []
    payment: Optional[PaymentSummaryOut] = None
    transactions: List[PaymentTransactionOut] = []


class ProviderEventIn(ApiModel):
    provider_payment_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)


class ReconcileOut(ApiModel):
    applied: bool
    transaction_id: int
    status: PaymentStatus


# =====================================================
# panel wlasciciela (kupony, podatki, dostawa, metody platnosci)
# =====================================================
class CouponIn(ApiModel):
    code: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal = Field(..., gt=0)
    global_usage_limit: Optional[int] = Field(None, ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    active: bool = True


class CouponOut(ApiModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    used_count: int
    global_usage_limit: Optional[int] = None
    min_order_amount: Optional[Decimal] = None
    max_discount_amount: Optional[Decimal] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    active: bool


class CouponActiveIn(ApiModel):
    active: bool


class TaxRuleIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    rate_percent: Decimal = Field(..., gt=0)
    applies_to_shipping: bool = False
    country_id: Optional[int] = None
    region_id: Optional[int] = None
    enabled: bool = True


class TaxRuleOut(TaxRuleIn):
    id: int


class ShippingMethodIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    method_type: ShippingMethodType = ShippingMethodType.FLAT_RATE
    flat_rate: Decimal = Field(Decimal("0"), ge=0)
    price_per_kg: Decimal = Field(Decimal("0"), ge=0)
    free_shipping_threshold: Optional[Decimal] = Field(None, ge=0)
    country_id: Optional[int] = None
    region_id: Optional[int] = None
    enabled: bool = True


class ShippingMethodOut(ShippingMethodIn):
    id: int


class ShippingQuoteIn(ApiModel):
    shipping_address: Optional[ShippingAddress] = None


class PaymentMethodConfigIn(ApiModel):
    values: Dict[str, Any] = {}
    enabled: bool = True


class GatewayInfoOut(ApiModel):
    code: str
    display_name: str
    config_schema: Dict[str, Any]


class PublicPaymentMethodOut(ApiModel):
    code: str
    display_name: str
    public_config: Dict[str, Any]
