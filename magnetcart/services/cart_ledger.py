"""
Cart Ledger: the single writer of cart state.

Holds the ordered line items and the derived totals. Totals are always
recomputed from the items after a mutation rather than patched with
deltas, so many small edits can never drift away from the true sum.

INVARIANTS (after every call):
- total_quantity == sum(item.quantity)
- total_amount == round(sum(item.price * item.quantity), 2)
- every item's total_price == round(price * quantity, 2)

Positions are list indices as shown to the user. A stale position (the UI
may lag one render behind) is ignored, never an error.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from magnetcart.models.cart import CartLineItem, LineItem, line_item_to_record

logger = logging.getLogger(__name__)


class CartLedger:
    """An ordered collection of line items with always-consistent totals."""

    def __init__(self, items: Iterable[LineItem] | None = None):
        self._items: list[LineItem] = list(items) if items else []
        self._total_quantity = 0
        self._total_amount = 0.0
        self._recalculate()

    @property
    def items(self) -> tuple[LineItem, ...]:
        """Read-only view of the line items, in cart order."""
        return tuple(self._items)

    @property
    def total_quantity(self) -> int:
        return self._total_quantity

    @property
    def total_amount(self) -> float:
        return self._total_amount

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def _recalculate(self) -> None:
        self._total_quantity = sum(item.quantity for item in self._items)
        self._total_amount = round(sum(item.price * item.quantity for item in self._items), 2)

    def _in_range(self, position: int) -> bool:
        return 0 <= position < len(self._items)

    def add_item(self, item: LineItem) -> LineItem:
        """
        Add an item to the cart.

        If an item with the same id is already in the cart its quantity is
        incremented; otherwise the item is appended with quantity 1. A package
        is always one unit, so re-adding one leaves the cart unchanged.

        Returns:
            The cart entry that now holds the item
        """
        for existing in self._items:
            if existing.id == item.id:
                if existing.is_package:
                    logger.debug("Package %s is already in the cart", existing.id)
                    return existing
                existing.quantity += 1
                self._recalculate()
                logger.debug("Incremented %s to quantity %d", existing.id, existing.quantity)
                return existing

        entry = replace(item, quantity=1, images=list(item.images))
        self._items.append(entry)
        self._recalculate()
        logger.debug("Added %s to cart (%d items)", entry.id, len(self._items))
        return entry

    def remove_item(self, position: int) -> LineItem | None:
        """
        Remove the item at position.

        Returns the removed item, or None if position is out of range.
        """
        if not self._in_range(position):
            logger.debug("Ignoring remove of stale position %d", position)
            return None

        removed = self._items.pop(position)
        self._recalculate()
        return removed

    def update_quantity(self, position: int, quantity: int) -> bool:
        """
        Set the quantity of the item at position.

        Ignored when position is out of range, quantity is below 1, or the
        item is a package (a package is always one unit).

        Returns:
            True if the quantity was changed
        """
        if not self._in_range(position) or quantity < 1:
            return False

        item = self._items[position]
        if item.is_package:
            return False

        item.quantity = quantity
        self._recalculate()
        return True

    def clear_cart(self) -> None:
        """Remove every item. Calling it on an empty cart is a no-op."""
        self._items.clear()
        self._recalculate()

    def find(self, item_id: str) -> CartLineItem | None:
        """Find an item by id."""
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def snapshot(self) -> dict[str, Any]:
        """Wire-format view of the whole cart (thumbnails excluded)."""
        return {
            "items": [line_item_to_record(item) for item in self._items],
            "totalQuantity": self._total_quantity,
            "totalAmount": self._total_amount,
        }
