"""Tests for the in-memory cart store."""

import pytest

from takeaway.services.cart import CartStore, modifier_delta_pence


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def carts(clock):
    return CartStore(ttl_seconds=60, maxsize=3, timer=clock)


class TestCartStore:
    """Tests for CartStore."""

    def test_create_and_get(self, carts):
        cart = carts.create()
        assert carts.get(cart.id) is cart
        assert cart.items == []
        assert cart.subtotal_pence == 0
        assert len(carts) == 1

    def test_ids_are_unique(self, carts):
        assert carts.create().id != carts.create().id

    def test_unknown_cart(self, carts):
        assert carts.get("nope") is None
        assert carts.add_item("nope", "spring-rolls", "Spring Rolls", 450) is None

    def test_add_item_with_modifiers(self, carts):
        cart = carts.create()
        carts.add_item(
            cart.id, "chicken-chow-mein", "Chicken Chow Mein", 780, qty=2,
            modifiers=[{"name": "Large", "price_delta_pence": 150}, {"name": "No onion"}],
        )
        carts.add_item(cart.id, "chips", "Chips", 280)

        line = cart.items[0]
        assert line.unit_price_pence == 930
        assert line.line_total_pence == 1860
        assert cart.subtotal_pence == 2140
        assert cart.to_dict()["items"][1] == {
            "item_id": "chips",
            "name": "Chips",
            "qty": 1,
            "unit_price_pence": 280,
            "line_total_pence": 280,
            "modifiers": [],
        }

    def test_rejects_non_positive_qty(self, carts):
        cart = carts.create()
        with pytest.raises(ValueError):
            carts.add_item(cart.id, "chips", "Chips", 280, qty=0)
        assert cart.items == []

    def test_rejects_negative_unit_price(self, carts):
        cart = carts.create()
        with pytest.raises(ValueError):
            carts.add_item(
                cart.id, "chips", "Chips", 280,
                modifiers=[{"name": "Discount", "price_delta_pence": -100000}],
            )
        assert cart.items == []
        assert cart.subtotal_pence == 0

    def test_expires_after_ttl(self, carts, clock):
        cart = carts.create()
        clock.now = 61
        assert carts.get(cart.id) is None

    def test_update_refreshes_ttl(self, carts, clock):
        cart = carts.create()
        clock.now = 50
        carts.add_item(cart.id, "chips", "Chips", 280)
        clock.now = 100
        assert carts.get(cart.id) is cart

    def test_bounded(self, carts):
        ids = [carts.create().id for _ in range(5)]
        assert len(carts) == 3
        assert carts.get(ids[-1]) is not None

    def test_discard(self, carts):
        cart = carts.create()
        carts.discard(cart.id)
        carts.discard(cart.id)
        assert carts.get(cart.id) is None


class TestModifierDelta:
    """Tests for modifier_delta_pence."""

    def test_sums_deltas(self):
        assert modifier_delta_pence([]) == 0
        assert modifier_delta_pence([{"price_delta_pence": 50}, {"price_delta_pence": -20}]) == 30
        assert modifier_delta_pence([{"name": "Extra sauce", "price_delta_pence": None}]) == 0
