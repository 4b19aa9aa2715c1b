# app/domain/enums.py
from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CONVERTED = "CONVERTED"
    ABANDONED = "ABANDONED"
    EXPIRED = "EXPIRED"


class DiscountType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"
    FREE_SHIPPING = "FREE_SHIPPING"


class ShippingMethodType(str, Enum):
    FLAT_RATE = "FLAT_RATE"
    FREE = "FREE"
    WEIGHT_BASED = "WEIGHT_BASED"
    PRICE_BASED = "PRICE_BASED"
    PRICE_PER_KG = "PRICE_PER_KG"
    LOCAL_PICKUP = "LOCAL_PICKUP"
    FREE_OVER_THRESHOLD = "FREE_OVER_THRESHOLD"


class PaymentStatus(str, Enum):
    CREATED = "CREATED"
    REQUIRES_ACTION = "REQUIRES_ACTION"
    PAID = "PAID"
    FAILED = "FAILED"
    OFFLINE_PENDING = "OFFLINE_PENDING"
    REFUNDED = "REFUNDED"


class OrderPaymentState(str, Enum):
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


# legal transitions reachable from provider callbacks
PROVIDER_TRANSITIONS = {
    PaymentStatus.CREATED: {PaymentStatus.REQUIRES_ACTION, PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.REQUIRES_ACTION: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.OFFLINE_PENDING: set(),
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

# OFFLINE_PENDING -> PAID only through an owner action
MANUAL_TRANSITIONS = {
    PaymentStatus.OFFLINE_PENDING: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
}

INITIAL_PAYMENT_STATUSES = {
    PaymentStatus.CREATED,
    PaymentStatus.REQUIRES_ACTION,
    PaymentStatus.OFFLINE_PENDING,
}
