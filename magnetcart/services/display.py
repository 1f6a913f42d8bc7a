"""
Read-side grouping of cart items for display.

Splits the cart into package views and simple views, works out how full
each package is, and how much the customer saves against buying every
magnet at the single-magnet price. Pure: never mutates or raises on the
items it is given.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from magnetcart.models.cart import CartLineItem, PackageLineItem, line_item_from_record
from magnetcart.models.catalog import SINGLE_MAGNET_PRICE, find_package


@dataclass(frozen=True)
class PackageView:
    """Display data for one package line."""

    position: int
    id: str
    name: str
    price: float
    image_urls: list[str]
    size: str
    finish: str
    package_size: int
    completion: float


@dataclass(frozen=True)
class SimpleView:
    """Display data for one simple line."""

    position: int
    id: str
    name: str
    price: float
    quantity: int
    total_price: float
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CartDisplay:
    """Grouped cart with totals and savings."""

    packages: list[PackageView]
    simple_items: list[SimpleView]
    magnet_count: int
    baseline_amount: float
    total_amount: float
    savings: float

    @property
    def is_empty(self) -> bool:
        return not self.packages and not self.simple_items


def _package_view(position: int, item: PackageLineItem) -> PackageView:
    details = item.details
    image_urls = list(details.image_urls or item.images)

    package = find_package(details.package_id)
    if package is not None:
        package_size = package.max_files
    else:
        package_size = max(details.image_count, 1)

    return PackageView(
        position=position,
        id=item.id,
        name=item.name,
        price=item.price,
        image_urls=image_urls,
        size=details.size,
        finish=details.finish,
        package_size=package_size,
        completion=len(image_urls) / package_size,
    )


def group_for_display(items: Iterable[CartLineItem | Mapping[str, Any]]) -> CartDisplay:
    """
    Group cart items into package and simple views.

    Raw records are accepted too; they are parsed with the same fallbacks as
    the cart, so an entry with unreadable custom_data shows up as a simple
    item without images.
    """
    packages: list[PackageView] = []
    simple_items: list[SimpleView] = []
    magnet_count = 0
    total = 0.0

    for position, entry in enumerate(items):
        item = entry if isinstance(entry, CartLineItem) else line_item_from_record(entry)
        total += item.price * item.quantity

        if isinstance(item, PackageLineItem):
            view = _package_view(position, item)
            packages.append(view)
            magnet_count += view.package_size * item.quantity
        else:
            simple_items.append(
                SimpleView(
                    position=position,
                    id=item.id,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    total_price=item.total_price,
                    images=list(item.images),
                )
            )
            magnet_count += item.quantity

    total_amount = round(total, 2)
    baseline_amount = round(magnet_count * SINGLE_MAGNET_PRICE, 2)
    savings = round(max(baseline_amount - total_amount, 0.0), 2)

    return CartDisplay(
        packages=packages,
        simple_items=simple_items,
        magnet_count=magnet_count,
        baseline_amount=baseline_amount,
        total_amount=total_amount,
        savings=savings,
    )
