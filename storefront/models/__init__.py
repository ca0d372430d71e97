# Storefront Models

from .product import Product, ProductAttribute, Category, CategoryRef, ProductListResponse
from .catalog import FilterState, FilterOptions, PriceRange, SortOption, PRICE_RANGES, FILTER_OPTIONS
from .cart import Cart, CartItem, AddToCartRequest, UpdateCartItemRequest, CartResponse, make_item_key
from .checkout import (
    AppliedCoupon,
    CheckoutAction,
    CheckoutResponse,
    CheckoutState,
    CheckoutStep,
    CouponRequest,
    OrderConfirmation,
    OrderTotals,
    PaymentMethod,
    PlaceOrderRequest,
    ShippingAddress,
)
from .auth import LoginRequest, SignupRequest, ShopperUser, AuthResponse

__all__ = [
    "Product",
    "ProductAttribute",
    "Category",
    "CategoryRef",
    "ProductListResponse",
    "FilterState",
    "FilterOptions",
    "PriceRange",
    "SortOption",
    "PRICE_RANGES",
    "FILTER_OPTIONS",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartResponse",
    "make_item_key",
    "AppliedCoupon",
    "CheckoutAction",
    "CheckoutResponse",
    "CheckoutState",
    "CheckoutStep",
    "CouponRequest",
    "OrderConfirmation",
    "OrderTotals",
    "PaymentMethod",
    "PlaceOrderRequest",
    "ShippingAddress",
    "LoginRequest",
    "SignupRequest",
    "ShopperUser",
    "AuthResponse",
]
