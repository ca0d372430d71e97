"""Cart models for the storefront

The cart belongs to exactly one shopper session. Line items are unique by
composite key and totals are derived from the items on every read.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field


def make_item_key(product_id: Any, size: Optional[str] = None) -> str:
    """Composite line item key: "101" or "101-M" for a sized variant"""
    return f"{product_id}-{size}" if size else str(product_id)


def _normalize_quantity(quantity: Any) -> int:
    try:
        return int(quantity)
    except (TypeError, ValueError, OverflowError):
        return 0


class CartItem(BaseModel):
    """Item in a shopping cart"""
    id: str
    name: str
    price: float
    original_price: float
    image: Optional[str] = None
    size: Optional[str] = None
    quantity: int = Field(ge=1)

    @computed_field
    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Cart(BaseModel):
    """Shopping cart"""
    items: list[CartItem] = Field(default_factory=list)

    def get_item(self, key: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == key), None)

    def add_or_replace(self, item: CartItem) -> CartItem:
        """
        Add a line item, or overwrite the quantity of the existing one.

        Quantities are replaced, never summed. New keys go to the end.
        """
        existing = self.get_item(item.id)
        if existing:
            existing.quantity = item.quantity
            return existing
        self.items.append(item)
        return item

    def remove(self, key: str) -> None:
        """Remove a line item; unknown keys are ignored"""
        self.items = [item for item in self.items if item.id != key]

    def set_quantity(self, key: str, quantity: Any) -> None:
        """Update quantity in place; anything below 1 removes the item"""
        quantity = _normalize_quantity(quantity)
        if quantity < 1:
            self.remove(key)
            return
        item = self.get_item(key)
        if item:
            item.quantity = quantity

    def clear(self) -> None:
        self.items = []

    def remove_ordered(self, ordered: list[CartItem]) -> None:
        """
        Drop the lines that went into an order.

        Lines added or re-quantified since the order was built stay.
        """
        placed = {(item.id, item.quantity) for item in ordered}
        self.items = [item for item in self.items if (item.id, item.quantity) not in placed]

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @computed_field
    @property
    def discounted_subtotal(self) -> float:
        return sum((item.price * item.quantity for item in self.items), 0.0)

    @computed_field
    @property
    def original_subtotal(self) -> float:
        return sum((item.original_price * item.quantity for item in self.items), 0.0)


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_id: int
    size: Optional[str] = None
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity (below 1 removes the item)"""
    quantity: float


class CartResponse(BaseModel):
    """Cart API response"""
    session_id: str
    cart: Cart
    message: Optional[str] = None
