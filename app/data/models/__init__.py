#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.coupon import CouponModel
from app.data.models.tax_rule import TaxRuleModel
from app.data.models.shipping_method import ShippingMethodModel
from app.data.models.order import OrderModel, OrderItemModel
from app.data.models.payment import (
    PaymentMethodModel,
    PaymentMethodConfigModel,
    PaymentTransactionModel,
)

__all__ = [
    "CartModel",
    "CartItemModel",
    "CouponModel",
    "TaxRuleModel",
    "ShippingMethodModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentMethodModel",
    "PaymentMethodConfigModel",
    "PaymentTransactionModel",
]
