"""
Tests for cart models and snapshot codec
"""

import json
from decimal import Decimal

import pytest

from marketplace.cart import Cart, LineItem
from marketplace.cart.snapshot import decode_cart, decode_item, encode_cart, encode_item
from marketplace.errors import SnapshotDecodeError


def make_item(product_id: str, quantity: int = 1, price=10) -> LineItem:
    return LineItem(
        id=product_id,
        title=f"Product {product_id}",
        image_url=f"https://img/{product_id}.png",
        price=price,
        quantity=quantity,
    )


class TestLineItem:
    """Tests for LineItem dataclass."""

    def test_price_normalized_to_decimal(self):
        item = make_item("a", price=19.9)

        assert item.price == Decimal("19.9")

    def test_total_price(self):
        item = make_item("a", quantity=3, price=19.9)

        assert item.total_price == Decimal("59.70")

    def test_to_dict_has_exact_fields(self):
        data = make_item("a", quantity=2).to_dict()

        assert data == {
            "id": "a",
            "title": "Product a",
            "image_url": "https://img/a.png",
            "price": 10,
            "quantity": 2,
        }

    def test_with_quantity_returns_new_item(self):
        item = make_item("a")
        updated = item.with_quantity(5)

        assert item.quantity == 1
        assert updated.quantity == 5
        assert updated.title == item.title


class TestCart:
    """Tests for Cart updates."""

    def test_empty_cart(self):
        cart = Cart()

        assert cart.is_empty
        assert cart.total_items == 0
        assert cart.subtotal == 0

    def test_add_new_product(self, sample_product):
        cart = Cart().add(sample_product)

        assert len(cart) == 1
        item = cart.find("a")
        assert item.quantity == 1
        assert item.title == sample_product["title"]
        assert item.image_url == sample_product["image_url"]
        assert item.price == 10

    def test_add_existing_keeps_stored_fields(self, sample_product):
        cart = Cart().add(sample_product)
        changed = {**sample_product, "title": "New title", "image_url": "x", "price": 99}

        cart = cart.add(changed)

        assert len(cart) == 1
        item = cart.find("a")
        assert item.quantity == 2
        assert item.title == sample_product["title"]
        assert item.image_url == sample_product["image_url"]
        assert item.price == 10

    def test_add_keeps_position(self, sample_product, other_product):
        cart = Cart().add(sample_product).add(other_product).add(sample_product)

        assert [item.id for item in cart] == ["a", "b"]

    def test_increment_only_touches_target(self):
        cart = Cart((make_item("a"), make_item("b", quantity=3)))

        updated = cart.increment("a")

        assert updated.find("a").quantity == 2
        assert updated.find("b") == cart.find("b")

    def test_decrement_above_zero(self):
        cart = Cart((make_item("a", quantity=3),))

        assert cart.decrement("a").find("a").quantity == 2

    def test_decrement_to_zero_removes_item(self):
        cart = Cart((make_item("a"), make_item("b", quantity=2), make_item("c")))

        updated = cart.decrement("b").decrement("b")

        assert len(updated) == 2
        assert "b" not in updated
        assert [item.id for item in updated] == ["a", "c"]
        assert updated.find("a") == cart.find("a")

    def test_unknown_id_returns_same_cart(self):
        cart = Cart((make_item("a"),))

        assert cart.increment("zzz") is cart
        assert cart.decrement("zzz") is cart

    def test_updates_do_not_modify_original(self, sample_product):
        original = Cart().add(sample_product)
        original.increment("a")
        original.decrement("a")

        assert original.find("a").quantity == 1

    def test_totals(self):
        cart = Cart((make_item("a", quantity=2, price=10), make_item("b", price=5.5)))

        assert cart.total_items == 3
        assert cart.subtotal == Decimal("25.50")


class TestSnapshot:
    """Tests for the stored snapshot format."""

    @pytest.mark.parametrize("count", [0, 1, 4])
    def test_cart_survives_encoding(self, count):
        cart = Cart(tuple(make_item(str(i), quantity=i + 1, price=i * 2.25) for i in range(count)))

        assert decode_cart(encode_cart(cart)) == cart

    def test_encoded_numbers_are_json_numbers(self):
        raw = encode_cart(Cart((make_item("a", quantity=2, price=10.5),)))

        assert json.loads(raw) == [
            {"id": "a", "title": "Product a", "image_url": "https://img/a.png", "price": 10.5, "quantity": 2}
        ]

    @pytest.mark.parametrize("raw", [None, "", b""])
    def test_absent_snapshot_is_empty(self, raw):
        assert decode_cart(raw) == Cart()

    @pytest.mark.parametrize("raw", ["not json", "{}", '"text"', "42"])
    def test_non_array_snapshot_raises(self, raw):
        with pytest.raises(SnapshotDecodeError):
            decode_cart(raw)

    @pytest.mark.parametrize(
        "bad_record",
        [
            {"id": "b"},
            {"id": "b", "title": "T", "image_url": "u", "price": -1, "quantity": 1},
            {"id": "b", "title": "T", "image_url": "u", "price": 1, "quantity": 0},
            {"id": "", "title": "T", "image_url": "u", "price": 1, "quantity": 1},
            "not an object",
        ],
    )
    def test_invalid_record_dropped_others_kept(self, bad_record):
        good = {"id": "a", "title": "T", "image_url": "u", "price": 1, "quantity": 2}
        other = {"id": "c", "title": "C", "image_url": "u", "price": 3, "quantity": 1}

        cart = decode_cart(json.dumps([good, bad_record, other]))

        assert [item.id for item in cart] == ["a", "c"]
        assert cart.find("a").quantity == 2

    def test_duplicate_ids_keep_first(self):
        first = {"id": "a", "title": "First", "image_url": "u", "price": 1, "quantity": 1}
        second = {**first, "title": "Second", "quantity": 4}

        cart = decode_cart(json.dumps([first, second]))

        assert len(cart) == 1
        assert cart.find("a").title == "First"

    def test_single_item_encoding(self):
        item = make_item("a", quantity=3)

        assert decode_item(encode_item(item)) == item

    def test_bad_item_raises(self):
        with pytest.raises(SnapshotDecodeError):
            decode_item('{"id": "a"}')
