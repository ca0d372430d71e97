"""
Unit Tests: Cart aggregation

Tests for models/cart.py covering:
- add_or_replace() - quantities replace, never sum
- set_quantity() / remove() / clear()
- Derived totals (item_count, discounted and original subtotals)
"""

import pytest
from pydantic import ValidationError

from storefront.models.cart import Cart, CartItem, make_item_key


def item(key: str = "101-M", price: float = 500, original_price: float = 700, quantity: int = 2, **fields) -> CartItem:
    return CartItem(
        id=key,
        name=fields.pop("name", "Cotton Kurti"),
        price=price,
        original_price=original_price,
        quantity=quantity,
        size=fields.pop("size", "M"),
        **fields,
    )


class TestItemKey:

    def test_sized_key(self):
        assert make_item_key(101, "M") == "101-M"

    def test_unsized_key(self):
        assert make_item_key(101) == "101"
        assert make_item_key(101, "") == "101"


class TestAddOrReplace:
    """Adding items to the cart"""

    def test_first_add_sets_totals(self):
        cart = Cart()
        cart.add_or_replace(item(quantity=2))

        assert cart.item_count == 2
        assert cart.discounted_subtotal == 1000
        assert cart.original_subtotal == 1400

    def test_same_key_replaces_quantity(self):
        cart = Cart()
        cart.add_or_replace(item(quantity=2))
        cart.add_or_replace(item(quantity=5))

        assert len(cart.items) == 1
        assert cart.item_count == 5

    def test_same_add_twice_is_idempotent(self):
        cart = Cart()
        cart.add_or_replace(item(quantity=3))
        snapshot = cart.model_dump()
        cart.add_or_replace(item(quantity=3))
        assert cart.model_dump() == snapshot

    def test_replace_keeps_position(self):
        cart = Cart()
        cart.add_or_replace(item("101-M"))
        cart.add_or_replace(item("202-L", size="L"))
        cart.add_or_replace(item("101-M", quantity=4))

        assert [i.id for i in cart.items] == ["101-M", "202-L"]

    def test_new_keys_appended(self):
        cart = Cart()
        cart.add_or_replace(item("101-M"))
        cart.add_or_replace(item("101-L", size="L"))
        assert [i.id for i in cart.items] == ["101-M", "101-L"]

    def test_zero_quantity_item_rejected(self):
        with pytest.raises(ValidationError):
            item(quantity=0)


class TestQuantityChanges:
    """set_quantity(), remove() and clear()"""

    @pytest.fixture
    def cart(self):
        cart = Cart()
        cart.add_or_replace(item("101-M", quantity=2))
        cart.add_or_replace(item("202-L", price=300, original_price=300, quantity=1, size="L"))
        return cart

    def test_set_quantity(self, cart):
        cart.set_quantity("202-L", 3)
        assert cart.get_item("202-L").quantity == 3
        assert cart.item_count == 5

    def test_set_quantity_zero_removes(self, cart):
        cart.set_quantity("101-M", 0)
        assert cart.get_item("101-M") is None
        assert cart.item_count == 1

    def test_set_quantity_negative_removes(self, cart):
        cart.set_quantity("101-M", -3)
        assert cart.get_item("101-M") is None

    def test_fractional_quantity_truncates(self, cart):
        cart.set_quantity("202-L", 2.7)
        assert cart.get_item("202-L").quantity == 2

    def test_fraction_below_one_removes(self, cart):
        cart.set_quantity("202-L", 0.5)
        assert cart.get_item("202-L") is None

    def test_set_quantity_unknown_key_is_noop(self, cart):
        before = cart.model_dump()
        cart.set_quantity("999", 4)
        assert cart.model_dump() == before

    def test_remove(self, cart):
        cart.remove("101-M")
        assert [i.id for i in cart.items] == ["202-L"]

    def test_remove_unknown_key_is_noop(self, cart):
        cart.remove("999")
        assert len(cart.items) == 2

    def test_clear(self, cart):
        cart.clear()
        assert cart.items == []
        assert cart.item_count == 0
        assert cart.discounted_subtotal == 0

    def test_remove_ordered_keeps_later_changes(self, cart):
        ordered = [line.model_copy() for line in cart.items]
        cart.set_quantity("202-L", 4)
        cart.add_or_replace(item("303", quantity=1))

        cart.remove_ordered(ordered)

        assert [(i.id, i.quantity) for i in cart.items] == [("202-L", 4), ("303", 1)]


class TestTotals:

    def test_empty_cart(self):
        cart = Cart()
        assert cart.item_count == 0
        assert cart.discounted_subtotal == 0.0
        assert cart.original_subtotal == 0.0

    def test_discounted_never_exceeds_original(self):
        cart = Cart()
        cart.add_or_replace(item("1", price=500, original_price=700, quantity=2))
        cart.add_or_replace(item("2", price=300, original_price=300, quantity=3))
        assert cart.discounted_subtotal == 1900
        assert cart.original_subtotal == 2300
        assert cart.discounted_subtotal <= cart.original_subtotal

    def test_line_total(self):
        assert item(price=450, quantity=3).line_total == 1350
