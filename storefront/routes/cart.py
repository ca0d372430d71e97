"""Cart API routes

The cart lives in the shopper session named by the X-Session-Id header.
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends

from ..core.session import ShopperSession, get_shopper_session, peek_shopper_session
from ..models.cart import (
    AddToCartRequest,
    CartItem,
    CartResponse,
    UpdateCartItemRequest,
    make_item_key,
)
from ..models.checkout import CheckoutStep
from ..models.product import Product
from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def cart_response(session: ShopperSession, message: Optional[str] = None) -> CartResponse:
    return CartResponse(session_id=session.session_id, cart=session.cart, message=message)


def _start_new_checkout_if_done(session: ShopperSession) -> None:
    if session.checkout.step == CheckoutStep.CONFIRMATION:
        session.reset_checkout()


def _resolve_size(product: Product, size: Optional[str]) -> Optional[str]:
    """Validated size label, or None for products without sizes"""
    if not product.sizes:
        return None
    if not size:
        raise HTTPException(status_code=400, detail="Please select a size")
    for option in product.sizes:
        if option.upper() == size.strip().upper():
            return option
    raise HTTPException(
        status_code=400,
        detail=f"Size {size} is not available. Available: {', '.join(product.sizes)}",
    )


@router.get("", response_model=CartResponse)
async def get_cart(session: ShopperSession = Depends(peek_shopper_session)):
    """Get the session cart"""
    return cart_response(session)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    session: ShopperSession = Depends(get_shopper_session),
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """
    Add an item to the cart.

    Re-adding the same product and size replaces the quantity.
    """
    product = Product.from_backend(await client.get_product(request.product_id))

    if not product.in_stock:
        raise HTTPException(status_code=400, detail=f"{product.name} is out of stock")

    if product.stock_quantity is not None and product.stock_quantity < request.quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock. Available: {product.stock_quantity}",
        )

    size = _resolve_size(product, request.size)
    item = CartItem(
        id=make_item_key(product.id, size),
        name=product.name,
        price=product.effective_price,
        original_price=product.regular_price or product.effective_price,
        image=product.images[0] if product.images else None,
        size=size,
        quantity=request.quantity,
    )

    _start_new_checkout_if_done(session)
    session.cart.add_or_replace(item)
    return cart_response(session, message=f"Added {request.quantity}x {product.name} to cart")


@router.put("/items/{item_key}", response_model=CartResponse)
async def update_cart_item(
    item_key: str,
    request: UpdateCartItemRequest,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Update item quantity; a quantity below 1 removes the item"""
    _start_new_checkout_if_done(session)
    session.cart.set_quantity(item_key, request.quantity)
    return cart_response(session, message="Cart updated")


@router.delete("/items/{item_key}", response_model=CartResponse)
async def remove_from_cart(
    item_key: str,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Remove an item from the cart"""
    _start_new_checkout_if_done(session)
    session.cart.remove(item_key)
    return cart_response(session, message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(session: ShopperSession = Depends(get_shopper_session)):
    """Clear all items from cart"""
    session.cart.clear()
    return cart_response(session, message="Cart cleared")
