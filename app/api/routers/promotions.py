# app/api/routers/promotions.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_tenant_id, get_user_id
from app.data.database import get_db
from app.domain.schemas import (
    CouponIn,
    CouponOut,
    CouponActiveIn,
    TaxRuleIn,
    TaxRuleOut,
    ShippingMethodIn,
    ShippingMethodOut,
    ShippingQuoteIn,
    ShippingQuote,
)
from app.repos.cart_repo import CartRepo
from app.services.coupon_service import CouponService
from app.services.checkout_service import CheckoutService
from app.services.shipping_service import ShippingService
from app.services.tax_service import TaxService

router = APIRouter(prefix="/api", tags=["promotions"])


#kupony
@router.post("/owner/coupons", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponIn, tenant_id: int = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return CouponService(db).create(tenant_id, payload)


@router.get("/owner/coupons", response_model=list[CouponOut])
def list_coupons(tenant_id: int = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return CouponService(db).list_coupons(tenant_id)


@router.patch("/owner/coupons/{coupon_id}", response_model=CouponOut)
def set_coupon_active(
    coupon_id: int,
    payload: CouponActiveIn,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return CouponService(db).set_active(tenant_id, coupon_id, payload.active)


#podatki
@router.post("/owner/tax-rules", response_model=TaxRuleOut, status_code=201)
def create_tax_rule(payload: TaxRuleIn, tenant_id: int = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return TaxService(db).create_rule(tenant_id, payload)


@router.get("/owner/tax-rules", response_model=list[TaxRuleOut])
def list_tax_rules(tenant_id: int = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return TaxService(db).list_rules(tenant_id)


#dostawa
@router.post("/owner/shipping-methods", response_model=ShippingMethodOut, status_code=201)
def create_shipping_method(
    payload: ShippingMethodIn,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return ShippingService(db).create_method(tenant_id, payload)


@router.get("/owner/shipping-methods", response_model=list[ShippingMethodOut])
def list_shipping_methods(tenant_id: int = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return ShippingService(db).list_methods(tenant_id)


@router.post("/shipping/quote", response_model=list[ShippingQuote])
def shipping_quote(
    payload: ShippingQuoteIn,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Dostepne metody dostawy z cenami dla aktualnego koszyka."""
    carts = CartRepo(db)
    cart = carts.get_active_cart(tenant_id, user_id)
    lines = CheckoutService.cart_lines(carts.get_cart_items(cart.id)) if cart else []
    return ShippingService(db).available_methods(tenant_id, payload.shipping_address, lines)
