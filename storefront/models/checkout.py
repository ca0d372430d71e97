"""Checkout models for the storefront"""

from pydantic import BaseModel
from typing import Any, Optional
from enum import Enum


class CheckoutStep(str, Enum):
    ADDRESS = "address"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


class CheckoutAction(str, Enum):
    SUBMIT_ADDRESS = "submit_address"
    EDIT_ADDRESS = "edit_address"
    PLACE_ORDER = "place_order"


class PaymentMethod(str, Enum):
    COD = "cod"
    UPI = "upi"
    CARD = "card"
    NET_BANKING = "netbanking"

    @property
    def display_title(self) -> str:
        return {
            PaymentMethod.COD: "Cash on Delivery",
            PaymentMethod.UPI: "UPI Payment",
            PaymentMethod.CARD: "Credit/Debit Card",
        }.get(self, "Net Banking")


class ShippingAddress(BaseModel):
    """Shipping address entered on the address step"""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    apartment: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    save_address: bool = False


class AppliedCoupon(BaseModel):
    code: str
    discount: float


class CouponRequest(BaseModel):
    code: str


class PlaceOrderRequest(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.COD


class OrderTotals(BaseModel):
    """Price breakdown shown next to every checkout step"""
    item_count: int
    subtotal: float
    original_subtotal: float
    product_discount: float
    coupon_discount: float
    shipping: float
    total: float
    free_shipping_remaining: float


class OrderConfirmation(BaseModel):
    """Order as reported back by the commerce backend"""
    id: Any
    order_number: str
    status: Optional[str] = None
    total: Optional[str] = None
    currency: str = "INR"
    date_created: Optional[str] = None
    payment_method: Optional[str] = None


class CheckoutState(BaseModel):
    """Snapshot of a session's checkout wizard"""
    session_id: str
    step: CheckoutStep
    address: Optional[ShippingAddress] = None
    payment_method: PaymentMethod
    coupon: Optional[AppliedCoupon] = None
    totals: OrderTotals
    order: Optional[OrderConfirmation] = None


class CheckoutResponse(BaseModel):
    """Response from a checkout step"""
    success: bool
    checkout: CheckoutState
    error_message: Optional[str] = None
    field: Optional[str] = None
