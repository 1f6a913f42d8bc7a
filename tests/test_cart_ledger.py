"""Tests for the cart ledger."""

import random

import pytest

from magnetcart.models.cart import PackageDetails, PackageLineItem, SimpleLineItem
from magnetcart.services.cart_ledger import CartLedger


def _simple(item_id: str = "magnet", price: float = 5.00) -> SimpleLineItem:
    return SimpleLineItem(id=item_id, name=item_id.title(), price=price)


def _package(item_id: str = "package-6-abc") -> PackageLineItem:
    urls = [f"https://cdn.test/{i}.jpg" for i in range(6)]
    return PackageLineItem(
        id=item_id,
        name="Custom Magnets Package (6 Custom Magnets)",
        price=17.00,
        images=list(urls),
        details=PackageDetails("6", "6 Custom Magnets", image_urls=urls),
    )


def _assert_totals_consistent(ledger: CartLedger) -> None:
    assert ledger.total_quantity == sum(item.quantity for item in ledger.items)
    assert ledger.total_amount == round(sum(i.price * i.quantity for i in ledger.items), 2)
    for item in ledger.items:
        assert item.total_price == round(item.price * item.quantity, 2)


class TestAddItem:
    def test_same_id_increments(self) -> None:
        """Adding a £5 item twice gives one line at quantity 2."""
        ledger = CartLedger()

        ledger.add_item(_simple())
        ledger.add_item(_simple())

        assert len(ledger) == 1
        assert ledger.items[0].quantity == 2
        assert ledger.items[0].total_price == 10.00
        assert ledger.total_amount == 10.00

    def test_new_item_added_with_quantity_one(self) -> None:
        ledger = CartLedger()
        item = _simple()
        item.quantity = 5

        entry = ledger.add_item(item)

        assert entry.quantity == 1
        assert item.quantity == 5

    def test_package_added(self) -> None:
        ledger = CartLedger()

        ledger.add_item(_package())

        assert ledger.total_amount == 17.00
        assert ledger.total_quantity == 1

    def test_readding_package_is_noop(self) -> None:
        """A package is one unit; adding the same package again changes nothing."""
        ledger = CartLedger()
        first = ledger.add_item(_package())

        again = ledger.add_item(_package())

        assert again is first
        assert len(ledger) == 1
        assert ledger.items[0].quantity == 1
        assert ledger.total_quantity == 1
        assert ledger.total_amount == 17.00
        _assert_totals_consistent(ledger)


class TestUpdateQuantity:
    def test_recomputes_total(self) -> None:
        """Quantity 3 at £2.83 totals exactly 8.49."""
        ledger = CartLedger()
        ledger.add_item(_simple("six-pack-unit", 2.83))

        assert ledger.update_quantity(0, 3) is True

        assert ledger.total_amount == 8.49
        assert ledger.items[0].total_price == 8.49

    @pytest.mark.parametrize("position,quantity", [(5, 2), (-1, 2), (0, 0), (0, -4)])
    def test_ignored_updates(self, position: int, quantity: int) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple())

        assert ledger.update_quantity(position, quantity) is False

        assert ledger.items[0].quantity == 1
        assert ledger.total_amount == 5.00

    def test_package_quantity_fixed(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_package())

        assert ledger.update_quantity(0, 3) is False
        assert ledger.total_amount == 17.00


class TestRemoveAndClear:
    def test_remove_item(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple("a"))
        ledger.add_item(_simple("b", 2.50))

        removed = ledger.remove_item(0)

        assert removed is not None and removed.id == "a"
        assert [item.id for item in ledger.items] == ["b"]
        assert ledger.total_amount == 2.50

    def test_remove_stale_position(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple())

        assert ledger.remove_item(1) is None
        assert ledger.remove_item(-1) is None
        assert len(ledger) == 1

    def test_clear_is_idempotent(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple())

        ledger.clear_cart()
        ledger.clear_cart()

        assert ledger.is_empty()
        assert ledger.total_quantity == 0
        assert ledger.total_amount == 0.0


class TestInvariants:
    def test_totals_hold_over_random_sequences(self) -> None:
        """Totals equal the re-summed items after any sequence of operations."""
        rng = random.Random(1234)
        prices = [0.1, 0.2, 2.83, 2.55, 2.33, 5.00, 17.00]
        ledger = CartLedger()

        for _ in range(500):
            op = rng.choice(["add", "add", "update", "remove", "package"])
            if op == "add":
                ledger.add_item(_simple(f"item-{rng.randrange(6)}", rng.choice(prices)))
            elif op == "package":
                ledger.add_item(_package(f"package-{rng.randrange(3)}"))
            elif op == "update":
                ledger.update_quantity(rng.randrange(-1, len(ledger) + 1), rng.randrange(-1, 9))
            else:
                ledger.remove_item(rng.randrange(-1, len(ledger) + 1))
            _assert_totals_consistent(ledger)

    def test_items_view_is_read_only(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple())

        assert isinstance(ledger.items, tuple)


class TestSnapshot:
    def test_snapshot_shape(self) -> None:
        ledger = CartLedger()
        ledger.add_item(_simple())
        ledger.add_item(_package())

        snapshot = ledger.snapshot()

        assert snapshot["totalQuantity"] == 2
        assert snapshot["totalAmount"] == 22.00
        assert [record["id"] for record in snapshot["items"]] == ["magnet", "package-6-abc"]
