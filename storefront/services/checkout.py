"""
Checkout wizard.

A three-step linear flow, Address -> Payment -> Confirmation, with a single
backward edge (Payment -> Address, "edit address"). Step changes go through
TRANSITIONS; anything not listed there raises InvalidTransitionError and
leaves the wizard untouched.
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..core.exceptions import CheckoutValidationError, InvalidTransitionError, StorefrontError
from ..models.cart import Cart
from ..models.checkout import (
    AppliedCoupon,
    CheckoutAction,
    CheckoutState,
    CheckoutStep,
    OrderConfirmation,
    OrderTotals,
    PaymentMethod,
    ShippingAddress,
)

logger = logging.getLogger(__name__)

TRANSITIONS: dict[tuple[CheckoutStep, CheckoutAction], CheckoutStep] = {
    (CheckoutStep.ADDRESS, CheckoutAction.SUBMIT_ADDRESS): CheckoutStep.PAYMENT,
    (CheckoutStep.PAYMENT, CheckoutAction.EDIT_ADDRESS): CheckoutStep.ADDRESS,
    (CheckoutStep.PAYMENT, CheckoutAction.PLACE_ORDER): CheckoutStep.CONFIRMATION,
}

REQUIRED_ADDRESS_FIELDS = [
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "pincode",
]

PHONE_RE = re.compile(r"^\d{10}$")
PINCODE_RE = re.compile(r"^\d{6}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

FREE_SHIPPING_THRESHOLD = 999
SHIPPING_FEE = 99
COUNTRY = "IN"


@dataclass(frozen=True)
class CouponRule:
    code: str
    minimum_subtotal: float
    discount: float


COUPONS = {
    rule.code: rule
    for rule in [
        CouponRule("SALE100", minimum_subtotal=2499, discount=100),
        CouponRule("SALE200", minimum_subtotal=2899, discount=200),
    ]
}

OrderSubmitter = Callable[[dict], Awaitable[dict]]


def validate_address(address: ShippingAddress) -> None:
    """Raise CheckoutValidationError for the first invalid field"""
    for field in REQUIRED_ADDRESS_FIELDS:
        if not str(getattr(address, field)).strip():
            raise CheckoutValidationError(
                f"Please fill in {field.replace('_', ' ')}", field=field
            )
    if not PHONE_RE.match(address.phone):
        raise CheckoutValidationError("Please enter a valid 10-digit phone number", field="phone")
    if not PINCODE_RE.match(address.pincode):
        raise CheckoutValidationError("Please enter a valid 6-digit pincode", field="pincode")
    if not EMAIL_RE.match(address.email):
        raise CheckoutValidationError("Please enter a valid email address", field="email")


def shipping_cost(subtotal: float) -> float:
    return 0 if subtotal >= FREE_SHIPPING_THRESHOLD else SHIPPING_FEE


def resolve_coupon(code: str, subtotal: float) -> AppliedCoupon:
    rule = COUPONS.get(code.strip().upper())
    if rule is None or subtotal < rule.minimum_subtotal:
        raise CheckoutValidationError(
            "Invalid coupon code or minimum order value not met", field="coupon"
        )
    return AppliedCoupon(code=rule.code, discount=rule.discount)


def coupon_discount(coupon: Optional[AppliedCoupon], subtotal: float) -> float:
    """Discount of an applied coupon that still qualifies for subtotal"""
    if coupon is None:
        return 0
    rule = COUPONS.get(coupon.code)
    if rule is None or subtotal < rule.minimum_subtotal:
        return 0
    return coupon.discount


def calculate_totals(cart: Cart, coupon: Optional[AppliedCoupon] = None) -> OrderTotals:
    subtotal = cart.discounted_subtotal
    shipping = shipping_cost(subtotal) if cart.items else 0
    discount = coupon_discount(coupon, subtotal)
    return OrderTotals(
        item_count=cart.item_count,
        subtotal=subtotal,
        original_subtotal=cart.original_subtotal,
        product_discount=cart.original_subtotal - subtotal,
        coupon_discount=discount,
        shipping=shipping,
        total=subtotal + shipping - discount,
        free_shipping_remaining=max(0, FREE_SHIPPING_THRESHOLD - subtotal),
    )


def format_amount(value: float) -> str:
    """Backend money string: "99" for whole amounts, "99.50" otherwise"""
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def parse_product_id(item_key: str) -> int:
    """
    Product id from a line item key.

    Accepts "123", "123-M" and "product-123".
    """
    match = re.match(r"^(\d+)", str(item_key).replace("product-", "", 1))
    product_id = int(match.group(1)) if match else 0
    if product_id <= 0:
        raise StorefrontError(f"Invalid product ID in cart item: {item_key}", status_code=400)
    return product_id


def build_order_payload(
    cart: Cart,
    address: ShippingAddress,
    payment_method: PaymentMethod,
    totals: OrderTotals,
    coupon: Optional[AppliedCoupon] = None,
    customer_id: Optional[Any] = None,
) -> dict[str, Any]:
    """WooCommerce order payload for the cart and address"""
    line_items = []
    for item in cart.items:
        line_item: dict[str, Any] = {
            "product_id": parse_product_id(item.id),
            "quantity": item.quantity,
        }
        if item.size:
            line_item["meta_data"] = [{"key": "Size", "value": item.size}]
        line_items.append(line_item)

    shipping_address = {
        "first_name": address.first_name,
        "last_name": address.last_name,
        "address_1": address.address,
        "address_2": address.apartment or "",
        "city": address.city,
        "state": address.state,
        "postcode": address.pincode,
        "country": COUNTRY,
    }

    payload: dict[str, Any] = {
        "payment_method": payment_method.value,
        "payment_method_title": payment_method.display_title,
        "set_paid": False,
        "billing": {**shipping_address, "email": address.email, "phone": address.phone},
        "shipping": shipping_address,
        "line_items": line_items,
        "shipping_lines": [],
    }

    if totals.shipping > 0:
        payload["shipping_lines"] = [{
            "method_id": "flat_rate",
            "method_title": "Flat Rate",
            "total": format_amount(totals.shipping),
        }]

    if customer_id:
        payload["customer_id"] = customer_id

    if coupon and totals.coupon_discount > 0:
        payload["coupon_lines"] = [{
            "code": coupon.code,
            "discount": format_amount(totals.coupon_discount),
        }]

    return payload


def order_confirmation(order: dict) -> OrderConfirmation:
    return OrderConfirmation(
        id=order.get("id"),
        order_number=str(order.get("number") or order.get("id")),
        status=order.get("status"),
        total=None if order.get("total") is None else str(order.get("total")),
        currency=order.get("currency") or "INR",
        date_created=order.get("date_created"),
        payment_method=order.get("payment_method"),
    )


class CheckoutWizard:
    """Per-session checkout state machine"""

    def __init__(self):
        self.step = CheckoutStep.ADDRESS
        self.address: Optional[ShippingAddress] = None
        self.payment_method = PaymentMethod.COD
        self.coupon: Optional[AppliedCoupon] = None
        self.order: Optional[OrderConfirmation] = None
        self.final_totals: Optional[OrderTotals] = None
        self.last_error: Optional[str] = None
        self.placing = False

    def can(self, action: CheckoutAction) -> bool:
        return not self.placing and (self.step, action) in TRANSITIONS

    def _require(self, action: CheckoutAction) -> CheckoutStep:
        if self.placing:
            raise InvalidTransitionError(
                "Order is already being placed",
                details={"step": self.step.value, "action": action.value},
            )
        target = TRANSITIONS.get((self.step, action))
        if target is None:
            raise InvalidTransitionError(
                f"Cannot {action.value.replace('_', ' ')} from the {self.step.value} step",
                details={"step": self.step.value, "action": action.value},
            )
        return target

    def submit_address(self, address: ShippingAddress) -> None:
        target = self._require(CheckoutAction.SUBMIT_ADDRESS)
        validate_address(address)
        self.address = address
        self.last_error = None
        self.step = target

    def edit_address(self) -> None:
        self.step = self._require(CheckoutAction.EDIT_ADDRESS)

    def apply_coupon(self, code: str, cart: Cart) -> AppliedCoupon:
        if self.step == CheckoutStep.CONFIRMATION:
            raise InvalidTransitionError("Order already placed")
        self.coupon = resolve_coupon(code, cart.discounted_subtotal)
        return self.coupon

    def remove_coupon(self) -> None:
        self.coupon = None

    def totals(self, cart: Cart) -> OrderTotals:
        if self.final_totals is not None:
            return self.final_totals
        return calculate_totals(cart, self.coupon)

    async def place_order(
        self,
        cart: Cart,
        submit: OrderSubmitter,
        payment_method: PaymentMethod = PaymentMethod.COD,
        customer_id: Optional[Any] = None,
    ) -> OrderConfirmation:
        """
        Submit the order and advance to confirmation.

        Any failure (empty cart, backend error) leaves the wizard on the
        payment step with last_error set, and is re-raised. While the
        submit is in flight every other step change is rejected. On
        success the submitted lines are removed from the cart.
        """
        target = self._require(CheckoutAction.PLACE_ORDER)
        if not cart.items:
            self.last_error = "Cart is empty"
            raise CheckoutValidationError(self.last_error, field="cart")

        self.payment_method = payment_method
        totals = calculate_totals(cart, self.coupon)
        payload = build_order_payload(
            cart,
            self.address,
            payment_method,
            totals,
            coupon=self.coupon,
            customer_id=customer_id,
        )
        ordered = [item.model_copy() for item in cart.items]

        self.placing = True
        try:
            order = await submit(payload)
        except StorefrontError as e:
            self.last_error = e.message
            logger.warning(f"Order placement failed: {e.message}")
            raise
        finally:
            self.placing = False

        cart.remove_ordered(ordered)
        self.order = order_confirmation(order)
        self.final_totals = totals
        self.last_error = None
        self.step = target
        logger.info(f"Order {self.order.order_number} placed: ₹{totals.total}")
        return self.order

    def snapshot(self, session_id: str, cart: Cart) -> CheckoutState:
        return CheckoutState(
            session_id=session_id,
            step=self.step,
            address=self.address,
            payment_method=self.payment_method,
            coupon=self.coupon,
            totals=self.totals(cart),
            order=self.order,
        )
