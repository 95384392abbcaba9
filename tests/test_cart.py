from concurrent.futures import ThreadPoolExecutor

import pytest

from bistro.orders.cart import CARTS, Cart, drop_cart, get_cart, new_cart


@pytest.fixture
def cart():
    return Cart(id="test")


class TestCartLines:
    def test_adding_same_product_twice_bumps_quantity(self, cart):
        cart.add_line(1, "Shakshuka", 14.5, "Breakfast")
        cart.add_line(1, "Shakshuka", 14.5, "Breakfast")
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2
        assert cart.total_items == 2

    def test_new_product_appends_with_quantity_one(self, cart):
        cart.add_line(1, "Shakshuka", 14.5)
        cart.add_line(2, "Lemonade", 4.0)
        assert [(ln.id, ln.quantity) for ln in cart.lines] == [(1, 1), (2, 1)]

    def test_quantity_zero_or_negative_prunes_line(self, cart):
        cart.add_line(1, "Shakshuka", 14.5)
        cart.add_line(2, "Lemonade", 4.0)
        cart.update_quantity(1, 0)
        cart.update_quantity(2, -3)
        assert cart.lines == []

    def test_update_quantity(self, cart):
        cart.add_line(1, "Shakshuka", 14.5)
        cart.update_quantity(1, 4)
        assert cart.lines[0].quantity == 4
        assert cart.totals.subtotal == pytest.approx(58.0)

    def test_remove_line(self, cart):
        cart.add_line(1, "Shakshuka", 14.5)
        cart.add_line(2, "Lemonade", 4.0)
        cart.remove_line(1)
        assert [ln.id for ln in cart.lines] == [2]


class TestCartAdjustments:
    def test_clear_resets_everything(self, cart):
        cart.add_line(1, "Shakshuka", 14.5)
        cart.set_tip("amount", 7)
        cart.set_manual_discount(3)
        cart.set_coupon_discount(2, "spring")
        cart.set_note("no onions")

        cart.clear()

        assert cart.lines == []
        assert (cart.tip.kind, cart.tip.value) == ("percentage", 0)
        assert cart.discounts.manual_discount == 0
        assert cart.discounts.coupon_discount == 0
        assert cart.discounts.coupon_code is None
        assert cart.note == ""

    def test_negative_amounts_are_clamped(self, cart):
        cart.set_tip("percentage", -10)
        cart.set_manual_discount(-5)
        cart.set_coupon_discount(-1)
        assert cart.tip.value == 0
        assert cart.discounts.manual_discount == 0
        assert cart.discounts.coupon_discount == 0

    def test_non_finite_amounts_are_clamped(self, cart):
        cart.add_line(1, "Burger", 10.0)
        cart.set_manual_discount(float("nan"))
        cart.set_tip("amount", float("inf"))
        assert cart.discounts.manual_discount == 0.0
        assert cart.tip.value == 0.0
        assert cart.totals.total == pytest.approx(11.8)

    def test_unknown_tip_kind_raises(self, cart):
        with pytest.raises(ValueError):
            cart.set_tip("bribe", 5)

    def test_coupon_code_is_normalized(self, cart):
        cart.set_coupon_discount(5, " spring10 ")
        assert cart.discounts.coupon_code == "SPRING10"

    def test_totals_are_derived_on_read(self, cart):
        cart.add_line(1, "Burger", 10.0)
        before = cart.totals.total
        cart.add_line(1, "Burger", 10.0)
        assert cart.totals.total == pytest.approx(before * 2)

    def test_to_dict(self, cart):
        cart.add_line(1, "Burger", 10.0, "Lunch")
        cart.add_line(1, "Burger", 10.0, "Lunch")
        cart.set_tip("percentage", 15)
        out = cart.to_dict()
        assert out["items"][0]["line_total"] == 20.0
        assert out["total_items"] == 2
        assert out["totals"]["total"] == 27.14


class TestCartRegistry:
    def test_new_get_drop(self):
        cart = new_cart()
        assert get_cart(cart.id) is cart
        assert cart.id in CARTS
        assert drop_cart(cart.id) is True
        assert get_cart(cart.id) is None
        assert drop_cart(cart.id) is False

    def test_unregistered_cart_is_not_tracked(self):
        before = len(CARTS)
        cart = new_cart(register=False)
        assert get_cart(cart.id) is None
        assert len(CARTS) == before


class TestConcurrentUpdates:
    def test_parallel_adds_keep_every_unit(self, cart):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: cart.add_line(1, "Burger", 10.0), range(400)))
        assert cart.lines[0].quantity == 400
        assert len(cart.lines) == 1
