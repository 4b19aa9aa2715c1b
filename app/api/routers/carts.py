# app/api/routers/carts.py
from fastapi import APIRouter, Depends

from app.api.deps import get_tenant_id, get_user_id, get_cart_service, get_checkout_service
from app.domain.schemas import (
    ItemIn,
    UpdateItemIn,
    CartOut,
    CheckoutIn,
    CheckoutOut,
    QuoteIn,
    PricingSummary,
)
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(tenant_id, user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(tenant_id, user_id, payload.item_id, payload.quantity)


@router.put("/items/{cart_item_id}", response_model=CartOut)
def update_item(
    cart_item_id: int,
    payload: UpdateItemIn,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CartService = Depends(get_cart_service),
):
    """quantity <= 0 usuwa pozycje."""
    return svc.update_item(tenant_id, user_id, cart_item_id, payload.quantity)


@router.delete("/items/{cart_item_id}", response_model=CartOut)
def remove_item(
    cart_item_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(tenant_id, user_id, cart_item_id)


@router.delete("/items", response_model=CartOut)
def clear_cart(
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear(tenant_id, user_id)


@router.post("/quote", response_model=PricingSummary)
def quote(
    payload: QuoteIn,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CheckoutService = Depends(get_checkout_service),
):
    return svc.quote(
        tenant_id,
        user_id,
        coupon_code=payload.coupon_code,
        shipping_address=payload.shipping_address,
        shipping_method_id=payload.shipping_method_id,
    )


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    tenant_id: int = Depends(get_tenant_id),
    user_id: int = Depends(get_user_id),
    svc: CheckoutService = Depends(get_checkout_service),
):
    return svc.checkout(
        tenant_id,
        user_id,
        payment_method=payload.payment_method,
        currency_id=payload.currency_id,
        coupon_code=payload.coupon_code,
        shipping_address=payload.shipping_address,
        shipping_method_id=payload.shipping_method_id,
        destination_account_id=payload.destination_account_id,
    )
