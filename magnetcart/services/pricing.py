"""
Server-authoritative order pricing.

Package lines are always priced from the catalog, whatever price the
client sent. Other lines are priced as price x quantity. Shipping is free
and prices include tax, so both are zero under the current store policy.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from magnetcart.models.cart import CartLineItem, PackageLineItem, line_item_from_record
from magnetcart.models.catalog import find_package

logger = logging.getLogger(__name__)

SHIPPING_COST = 0.0
TAX_RATE = 0.0


@dataclass(frozen=True)
class OrderTotals:
    """Computed totals for an order, in GBP."""

    subtotal: float
    shipping: float
    tax: float
    total: float

    def to_minor_units(self) -> int:
        """Total in pence, as payment processors expect."""
        return int(round(self.total * 100))


def line_total(item: CartLineItem) -> float:
    """Authoritative price of one line item."""
    if isinstance(item, PackageLineItem):
        package = find_package(item.details.package_id)
        if package is not None:
            return package.price
        logger.warning(
            "Package line %s has unknown package id %s, using its own price",
            item.id,
            item.details.package_id,
        )
    return item.total_price


def with_catalog_price(item: CartLineItem) -> CartLineItem:
    """Return item with a package line's price taken from the catalog."""
    if isinstance(item, PackageLineItem):
        package = find_package(item.details.package_id)
        if package is not None and package.price != item.price:
            logger.info(
                "Repricing package line %s from %.2f to catalog %.2f",
                item.id,
                item.price,
                package.price,
            )
            return replace(item, price=package.price)
    return item


def compute_totals(items: Iterable[CartLineItem | Mapping[str, Any]]) -> OrderTotals:
    """
    Compute order totals from line items or wire records.

    Records are parsed with the same fallbacks as the cart, so a malformed
    package record is priced as a simple item.
    """
    subtotal = 0.0
    for entry in items:
        item = entry if isinstance(entry, CartLineItem) else line_item_from_record(entry)
        subtotal += line_total(item)

    subtotal = round(subtotal, 2)
    shipping = SHIPPING_COST
    tax = round(subtotal * TAX_RATE, 2)
    total = round(subtotal + shipping + tax, 2)
    return OrderTotals(subtotal=subtotal, shipping=shipping, tax=tax, total=total)
