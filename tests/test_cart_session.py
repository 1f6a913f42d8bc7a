"""Tests for the cart session lifecycle."""

from typing import Any

import pytest

from magnetcart.models.cart import PackageDetails, PackageLineItem, SimpleLineItem
from magnetcart.services.cart_persistence import MemoryCartStore, MemoryThumbnailCache
from magnetcart.services.cart_session import CartSession


class BrokenStore:
    """Store whose reads and writes always fail."""

    def __init__(self) -> None:
        self.writes = 0

    async def read(self, key: str) -> dict[str, Any] | None:
        raise ConnectionError("store offline")

    async def write(self, key: str, payload: dict[str, Any]) -> None:
        self.writes += 1
        raise ConnectionError("store offline")

    async def delete(self, key: str) -> None:
        raise ConnectionError("store offline")


def _magnet(price: float = 5.0) -> SimpleLineItem:
    return SimpleLineItem(id="magnet", name="Magnet", price=price)


def _package() -> PackageLineItem:
    urls = [f"https://cdn.test/{i}.jpg" for i in range(6)]
    return PackageLineItem(
        id="package-6-abc",
        name="Custom Magnets Package (6 Custom Magnets)",
        price=17.0,
        images=list(urls),
        details=PackageDetails("6", "6 Custom Magnets", image_urls=urls),
    )


class TestLifecycle:
    def test_ledger_requires_init(self) -> None:
        session = CartSession("k", MemoryCartStore())

        with pytest.raises(RuntimeError):
            _ = session.ledger
        assert session.is_open is False

    async def test_context_manager(self) -> None:
        store = MemoryCartStore()

        async with CartSession("k", store) as cart:
            await cart.add_item(_magnet())
            assert cart.is_open

        assert cart.is_open is False
        payload = await store.read("k")
        assert payload is not None
        assert payload["totalAmount"] == 5.0

    async def test_state_survives_sessions(self) -> None:
        """A new session for the same key sees the previous session's cart."""
        store = MemoryCartStore()
        thumbnails = MemoryThumbnailCache()

        async with CartSession("k", store, thumbnails) as cart:
            await cart.add_item(_magnet())
            await cart.add_item(_magnet())

        async with CartSession("k", store, thumbnails) as cart:
            assert cart.ledger.total_quantity == 2
            assert cart.ledger.total_amount == 10.0

    async def test_readded_package_matches_after_reload(self) -> None:
        """Totals for a package added twice are the same live and after reload."""
        store = MemoryCartStore()

        async with CartSession("k", store) as cart:
            await cart.add_item(_package())
            await cart.add_item(_package())
            live = (cart.ledger.total_quantity, cart.ledger.total_amount)

        async with CartSession("k", store) as cart:
            reloaded = (cart.ledger.total_quantity, cart.ledger.total_amount)
            assert cart.ledger.items[0].quantity == 1

        assert live == (1, 17.0)
        assert reloaded == live

    async def test_sessions_are_isolated_by_key(self) -> None:
        store = MemoryCartStore()

        async with CartSession("a", store) as cart_a:
            await cart_a.add_item(_magnet())

        async with CartSession("b", store) as cart_b:
            assert cart_b.ledger.is_empty()


class TestMutations:
    async def test_each_mutation_persists(self) -> None:
        store = MemoryCartStore()
        cart = CartSession("k", store)
        await cart.init()

        await cart.add_item(_magnet(2.83))
        await cart.update_quantity(0, 3)
        assert (await store.read("k"))["totalAmount"] == 8.49

        await cart.remove_item(0)
        assert (await store.read("k"))["items"] == []

    async def test_noop_mutations_report_false(self) -> None:
        cart = CartSession("k", MemoryCartStore())
        await cart.init()

        assert await cart.update_quantity(3, 2) is False
        assert await cart.remove_item(3) is None

    async def test_clear_cart(self) -> None:
        store = MemoryCartStore()
        cart = CartSession("k", store)
        await cart.init()
        await cart.add_item(_magnet())

        await cart.clear_cart()

        assert cart.ledger.is_empty()
        assert (await store.read("k"))["totalQuantity"] == 0


class TestStoreFailures:
    async def test_read_failure_starts_empty(self) -> None:
        cart = CartSession("k", BrokenStore())

        ledger = await cart.init()

        assert ledger.is_empty()

    async def test_write_failure_keeps_cart(self) -> None:
        """A failing store does not break the in-memory cart."""
        store = BrokenStore()
        cart = CartSession("k", store)
        await cart.init()

        await cart.add_item(_magnet())

        assert store.writes == 1
        assert cart.ledger.total_amount == 5.0
