"""
Cart session: one ledger bound to one customer session.

Replaces a process-wide cart singleton. A session is created explicitly,
initialized from the durable store once, mutated, and torn down:

    async with CartSession(key, store, thumbnails) as cart:
        await cart.add_item(item)

Every mutation writes the stripped snapshot back to the store. A failed
write is logged and swallowed: the in-memory cart stays authoritative for
the session and losing a persisted snapshot must not break the cart.
"""

import logging
from types import TracebackType

from magnetcart.models.cart import LineItem
from magnetcart.services.cart_ledger import CartLedger
from magnetcart.services.cart_persistence import (
    CartStore,
    ThumbnailCache,
    dehydrate,
    rehydrate,
)

logger = logging.getLogger(__name__)


class CartSession:
    """Lifecycle wrapper around a CartLedger: init -> mutate* -> teardown."""

    def __init__(
        self,
        key: str,
        store: CartStore,
        thumbnails: ThumbnailCache | None = None,
    ):
        self.key = key
        self.store = store
        self.thumbnails = thumbnails
        self._ledger: CartLedger | None = None

    @property
    def ledger(self) -> CartLedger:
        """
        The live ledger.

        Raises:
            RuntimeError: If the session has not been initialized
        """
        if self._ledger is None:
            raise RuntimeError(f"Cart session {self.key} is not initialized")
        return self._ledger

    @property
    def is_open(self) -> bool:
        return self._ledger is not None

    async def init(self) -> CartLedger:
        """Load the cart from the durable store. Read errors start an empty cart."""
        if self._ledger is not None:
            return self._ledger

        try:
            payload = await self.store.read(self.key)
        except Exception:
            logger.exception("Failed to read cart %s, starting with an empty cart", self.key)
            payload = None

        self._ledger = rehydrate(payload, self.thumbnails)
        logger.debug("Opened cart %s with %d items", self.key, len(self._ledger))
        return self._ledger

    async def teardown(self) -> None:
        """Write the final state and release the ledger."""
        if self._ledger is None:
            return
        await self._persist()
        self._ledger = None

    async def __aenter__(self) -> "CartSession":
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.teardown()

    async def _persist(self) -> None:
        try:
            await self.store.write(self.key, dehydrate(self.ledger))
        except Exception:
            logger.exception("Failed to persist cart %s", self.key)

    async def add_item(self, item: LineItem) -> LineItem:
        entry = self.ledger.add_item(item)
        await self._persist()
        return entry

    async def remove_item(self, position: int) -> LineItem | None:
        removed = self.ledger.remove_item(position)
        if removed is not None:
            await self._persist()
        return removed

    async def update_quantity(self, position: int, quantity: int) -> bool:
        changed = self.ledger.update_quantity(position, quantity)
        if changed:
            await self._persist()
        return changed

    async def clear_cart(self) -> None:
        self.ledger.clear_cart()
        await self._persist()
