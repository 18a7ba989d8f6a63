from decimal import Decimal

import pytest
from helpers import menu_item
from hypothesis import given
from hypothesis import strategies as st

from kitchenpass.domain.cart import Cart
from kitchenpass.domain.errors import (
    InvalidAmount,
    InvalidQuantity,
    ItemUnavailable,
    NotFound,
    UnknownModifier,
)


def test_same_item_and_modifiers_merge():
    cart = Cart()
    pad_thai = menu_item(modifiers=[{"name": "extra egg", "price": "10"}])
    first = cart.add_item(pad_thai, 1, ["extra egg"])
    second = cart.add_item(pad_thai, 2, ["extra egg"])
    assert first is second
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 3


def test_different_modifiers_make_new_line():
    cart = Cart()
    pad_thai = menu_item(modifiers=[{"name": "extra egg", "price": "10"}])
    cart.add_item(pad_thai)
    cart.add_item(pad_thai, 1, ["extra egg"])
    assert len(cart.lines) == 2


def test_modifier_order_does_not_matter():
    cart = Cart()
    tea = menu_item(
        "thai-tea",
        "45",
        "tea",
        modifiers=[{"name": "less sugar", "price": "0"}, {"name": "extra shot", "price": "15"}],
    )
    cart.add_item(tea, 1, ["less sugar", "extra shot"])
    cart.add_item(tea, 1, ["extra shot", "less sugar"])
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2


def test_unit_price_includes_modifier_deltas():
    cart = Cart()
    pad_thai = menu_item(modifiers=[{"name": "extra egg", "price": "10"}])
    line = cart.add_item(pad_thai, 2, ["extra egg"])
    assert line.unit_price == Decimal("90")
    assert cart.total() == Decimal("180")


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
def test_invalid_quantity_rejected(quantity):
    cart = Cart()
    with pytest.raises(InvalidQuantity):
        cart.add_item(menu_item(), quantity)
    assert cart.is_empty


def test_set_quantity_zero_removes_line():
    cart = Cart()
    line = cart.add_item(menu_item())
    assert cart.set_quantity(line.line_id, 0) is None
    assert cart.is_empty
    assert cart.total() == 0


def test_set_quantity_updates_total():
    cart = Cart()
    line = cart.add_item(menu_item(price="80"))
    cart.set_quantity(line.line_id, 4)
    assert cart.total() == Decimal("320")


def test_set_quantity_unknown_line():
    with pytest.raises(NotFound):
        Cart().set_quantity("missing", 2)


def test_remove_is_idempotent():
    cart = Cart()
    line = cart.add_item(menu_item())
    cart.remove_item(line.line_id)
    cart.remove_item(line.line_id)
    assert cart.is_empty


def test_unavailable_and_deleted_items_rejected():
    cart = Cart()
    with pytest.raises(ItemUnavailable):
        cart.add_item(menu_item(available=False))
    with pytest.raises(ItemUnavailable):
        cart.add_item(menu_item(deleted_at="2024-01-01"))


def test_unknown_modifier_rejected():
    with pytest.raises(UnknownModifier):
        Cart().add_item(menu_item(), 1, ["extra cheese"])


def test_clear_empties_cart():
    cart = Cart()
    cart.add_item(menu_item())
    cart.add_item(menu_item("thai-tea", "45", "tea"))
    cart.clear()
    assert cart.is_empty


prices = st.decimals(min_value=0, max_value=1000, places=2)


@given(
    st.lists(
        st.tuples(st.sampled_from(["a", "b", "c", "d"]), prices, st.integers(1, 20)),
        max_size=15,
    )
)
def test_total_is_sum_of_line_subtotals(adds):
    cart = Cart()
    catalog = {}
    for item_id, price, quantity in adds:
        item = catalog.setdefault(item_id, menu_item(item_id, str(price)))
        cart.add_item(item, quantity)
    expected = sum(
        (Decimal(str(line.unit_price)) * line.quantity for line in cart.lines), Decimal("0")
    )
    assert cart.total() == expected
    assert len(cart.lines) == len({item_id for item_id, _, _ in adds})
    assert sum(line.quantity for line in cart.lines) == sum(q for _, _, q in adds)


def test_lines_with_different_notes_stay_separate():
    cart = Cart()
    pad_thai = menu_item()
    plain = cart.add_item(pad_thai)
    spicy = cart.add_item(pad_thai, 1, note="extra spicy")
    again = cart.add_item(pad_thai, 2, note="extra spicy")
    assert plain is not spicy
    assert again is spicy
    assert [(line.note, line.quantity) for line in cart.lines] == [(None, 1), ("extra spicy", 3)]


def test_modifier_discount_below_zero_rejected():
    cart = Cart()
    water = menu_item("water", "0", "tea", modifiers=[{"name": "disc", "price": "-50"}])
    with pytest.raises(InvalidAmount):
        cart.add_item(water, 1, ["disc"])
    assert cart.is_empty
    pad_thai = menu_item("pad-thai", "80", modifiers=[{"name": "no egg", "price": "-10"}])
    cart.add_item(pad_thai, 1, ["no egg"])
    assert cart.total() == Decimal("70")
