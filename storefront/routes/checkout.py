"""Checkout API routes

Each route drives the session's CheckoutWizard. Input errors come back as
success=false with the offending field; steps that are not reachable from
the current one return 409.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request

from ..core.exceptions import CheckoutValidationError, WooCommerceError
from ..core.session import (
    ShopperSession,
    get_shopper_session,
    peek_shopper_session,
    read_auth_cookie,
)
from ..models.checkout import (
    CheckoutResponse,
    CouponRequest,
    PlaceOrderRequest,
    ShippingAddress,
)
from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


def checkout_response(
    session: ShopperSession,
    success: bool = True,
    error_message: Optional[str] = None,
    field: Optional[str] = None,
) -> CheckoutResponse:
    return CheckoutResponse(
        success=success,
        checkout=session.checkout.snapshot(session.session_id, session.cart),
        error_message=error_message,
        field=field,
    )


@router.get("", response_model=CheckoutResponse)
async def get_checkout(session: ShopperSession = Depends(peek_shopper_session)):
    """Current step, address, coupon and totals"""
    return checkout_response(session)


@router.post("/address", response_model=CheckoutResponse)
async def submit_address(
    address: ShippingAddress,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Validate the shipping address and continue to payment"""
    try:
        session.checkout.submit_address(address)
    except CheckoutValidationError as e:
        return checkout_response(session, success=False, error_message=e.message, field=e.field)
    return checkout_response(session)


@router.post("/edit-address", response_model=CheckoutResponse)
async def edit_address(session: ShopperSession = Depends(get_shopper_session)):
    """Go back from payment to the address step"""
    session.checkout.edit_address()
    return checkout_response(session)


@router.post("/coupon", response_model=CheckoutResponse)
async def apply_coupon(
    request: CouponRequest,
    session: ShopperSession = Depends(get_shopper_session),
):
    try:
        session.checkout.apply_coupon(request.code, session.cart)
    except CheckoutValidationError as e:
        return checkout_response(session, success=False, error_message=e.message, field=e.field)
    return checkout_response(session)


@router.delete("/coupon", response_model=CheckoutResponse)
async def remove_coupon(session: ShopperSession = Depends(get_shopper_session)):
    session.checkout.remove_coupon()
    return checkout_response(session)


@router.post("/place-order", response_model=CheckoutResponse)
async def place_order(
    http_request: Request,
    request: PlaceOrderRequest,
    session: ShopperSession = Depends(get_shopper_session),
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """
    Create the order at the commerce backend.

    Logged-in shoppers get the order attached to their customer account.
    On success the ordered lines leave the cart and the wizard moves to
    confirmation. A second call while the first is in flight gets 409.
    """
    shopper = read_auth_cookie(http_request)
    try:
        await session.checkout.place_order(
            session.cart,
            client.create_order,
            payment_method=request.payment_method,
            customer_id=shopper.id if shopper else None,
        )
    except (CheckoutValidationError, WooCommerceError) as e:
        return checkout_response(
            session,
            success=False,
            error_message=e.message,
            field=getattr(e, "field", None),
        )

    return checkout_response(session)


@router.post("/reset", response_model=CheckoutResponse)
async def reset_checkout(session: ShopperSession = Depends(get_shopper_session)):
    """Discard checkout progress and start again at the address step"""
    session.reset_checkout()
    return checkout_response(session)
