"""Order API routes"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from ..core.exceptions import CheckoutValidationError
from ..core.session import read_auth_cookie
from ..models.cart import Cart, CartItem
from ..models.checkout import OrderConfirmation, OrderTotals, PaymentMethod, ShippingAddress
from ..services.checkout import (
    build_order_payload,
    calculate_totals,
    order_confirmation,
    resolve_coupon,
    validate_address,
)
from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])

ORDER_HISTORY_PAGE_SIZE = 20


class CreateOrderRequest(BaseModel):
    """One-shot order placement without the checkout wizard"""
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    items: list[CartItem] = Field(default_factory=list)
    coupon_code: Optional[str] = None


class CreateOrderResponse(BaseModel):
    success: bool = True
    order: OrderConfirmation
    totals: OrderTotals


@router.get("")
async def list_orders(
    request: Request,
    client: WooCommerceClient = Depends(get_woocommerce_client),
) -> list[dict[str, Any]]:
    """Order history of the logged-in shopper, newest first"""
    shopper = read_auth_cookie(request)
    if shopper is None or not shopper.id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    return await client.get_orders({
        "customer": shopper.id,
        "per_page": ORDER_HISTORY_PAGE_SIZE,
        "orderby": "date",
        "order": "desc",
    })


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    request: Request,
    email: Optional[str] = Query(None, description="Billing email for guest lookups"),
    client: WooCommerceClient = Depends(get_woocommerce_client),
) -> dict[str, Any]:
    """
    Get a single order.

    Visible to the customer who owns it, or to a guest who supplies the
    billing email. Anything else looks like a missing order.
    """
    order = await client.get_order(order_id)

    shopper = read_auth_cookie(request)
    owner_id = order.get("customer_id")
    if shopper is not None and owner_id and str(owner_id) == str(shopper.id):
        return order

    billing_email = (order.get("billing") or {}).get("email") or ""
    if email and billing_email and email.strip().lower() == billing_email.lower():
        return order

    raise HTTPException(status_code=404, detail="Order not found")


@router.post("", response_model=CreateOrderResponse)
async def create_order(
    order_request: CreateOrderRequest,
    request: Request,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Validate the address and items, then create the order at the backend"""
    if not order_request.items:
        raise CheckoutValidationError("Cart is empty", field="cart")
    validate_address(order_request.shipping_address)

    cart = Cart(items=order_request.items)
    coupon = None
    if order_request.coupon_code:
        coupon = resolve_coupon(order_request.coupon_code, cart.discounted_subtotal)
    totals = calculate_totals(cart, coupon)

    shopper = read_auth_cookie(request)
    payload = build_order_payload(
        cart,
        order_request.shipping_address,
        order_request.payment_method,
        totals,
        coupon=coupon,
        customer_id=shopper.id if shopper else None,
    )

    order = order_confirmation(await client.create_order(payload))
    logger.info(f"Order {order.order_number} created: ₹{totals.total}")
    return CreateOrderResponse(order=order, totals=totals)
