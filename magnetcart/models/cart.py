"""
Cart line items.

A line item is either a PackageLineItem (an assembled magnet package whose
photos are already uploaded) or a SimpleLineItem (any other product). The
variant is decided once, when the item is built, so display and pricing
code never has to parse `custom_data` again.

Records are the wire/persistence shape of a line item: plain dicts with a
JSON-string `custom_data`, as produced by the storefront. Building an item
from a record never raises on bad `custom_data`; the item degrades to a
simple item without images instead.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from magnetcart.models.catalog import DEFAULT_FINISH, DEFAULT_SIZE

logger = logging.getLogger(__name__)

PACKAGE_ITEM_TYPE = "custom_magnet_package"


class ItemKind(str, Enum):
    """Discriminant of the line item variants."""

    PACKAGE = "package"
    SIMPLE = "simple"


@dataclass
class PackageDetails:
    """Typed payload of a package line item (`custom_data` on the wire)."""

    package_id: str
    package_name: str
    size: str = DEFAULT_SIZE
    finish: str = DEFAULT_FINISH
    image_urls: list[str] = field(default_factory=list)

    @property
    def image_count(self) -> int:
        return len(self.image_urls)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": PACKAGE_ITEM_TYPE,
            "packageId": self.package_id,
            "packageName": self.package_name,
            "size": self.size,
            "finish": self.finish,
            "imageUrls": list(self.image_urls),
            "imageCount": self.image_count,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageDetails":
        """
        Build details from a decoded package payload.

        Raises:
            ValueError: If the payload is not a well-formed package payload
        """
        if data.get("type") != PACKAGE_ITEM_TYPE:
            raise ValueError(f"Not a package payload: type={data.get('type')!r}")

        package_id = data.get("packageId")
        if package_id is None or str(package_id) == "":
            raise ValueError("Package payload has no packageId")

        urls = data.get("imageUrls", [])
        if not isinstance(urls, list) or not all(isinstance(url, str) for url in urls):
            raise ValueError("Package payload imageUrls must be a list of strings")

        return cls(
            package_id=str(package_id),
            package_name=str(data.get("packageName") or ""),
            size=str(data.get("size") or DEFAULT_SIZE),
            finish=str(data.get("finish") or DEFAULT_FINISH),
            image_urls=list(urls),
        )

    @classmethod
    def from_json(cls, raw: str) -> "PackageDetails":
        """
        Build details from a `custom_data` JSON string.

        Raises:
            ValueError: If raw is not JSON or not a package payload
        """
        decoded = json.loads(raw)
        if not isinstance(decoded, Mapping):
            raise ValueError("custom_data is not an object")
        return cls.from_dict(decoded)


@dataclass(kw_only=True)
class CartLineItem:
    """
    Fields shared by every line item.

    `total_price` is always derived from price and quantity, never stored.
    `thumbnail` is a local preview only; it is never persisted, and
    `thumbnail_key` is how it is found again in the thumbnail cache.
    """

    kind: ClassVar[ItemKind]

    id: str
    name: str
    price: float
    quantity: int = 1
    images: list[str] = field(default_factory=list)
    thumbnail: bytes | None = field(default=None, repr=False)
    thumbnail_key: str | None = None

    @property
    def total_price(self) -> float:
        return round(self.price * self.quantity, 2)

    @property
    def is_package(self) -> bool:
        return self.kind == ItemKind.PACKAGE


@dataclass(kw_only=True)
class PackageLineItem(CartLineItem):
    """An assembled magnet package. The package itself is the unit, so quantity stays 1."""

    kind: ClassVar[ItemKind] = ItemKind.PACKAGE

    details: PackageDetails


@dataclass(kw_only=True)
class SimpleLineItem(CartLineItem):
    """Any non-package product. Quantity can be changed freely."""

    kind: ClassVar[ItemKind] = ItemKind.SIMPLE

    custom_data: str | None = None


LineItem = PackageLineItem | SimpleLineItem


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result == result else default  # NaN


def _as_quantity(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def _as_images(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [image for image in value if isinstance(image, str)]


def line_item_from_record(record: Mapping[str, Any]) -> LineItem:
    """
    Build a typed line item from a wire/persisted record.

    Package records become PackageLineItem. Records whose `custom_data`
    cannot be decoded into a known shape become SimpleLineItem with no
    images. Never raises on malformed `custom_data`.
    """
    item_id = str(record.get("id") or "")
    name = str(record.get("name") or "Product")
    price = _as_float(record.get("price"))
    quantity = _as_quantity(record.get("quantity"))
    images = _as_images(record.get("images"))
    thumbnail_key = record.get("thumbnailKey")
    if not isinstance(thumbnail_key, str):
        thumbnail_key = None

    raw_custom = record.get("custom_data")
    if raw_custom is None or raw_custom == "":
        return SimpleLineItem(
            id=item_id,
            name=name,
            price=price,
            quantity=quantity,
            images=images,
            thumbnail_key=thumbnail_key,
        )

    try:
        decoded = json.loads(raw_custom) if isinstance(raw_custom, str) else raw_custom
        if not isinstance(decoded, Mapping):
            raise ValueError("custom_data is not an object")
    except (TypeError, ValueError) as e:
        logger.debug("Unreadable custom_data on cart item %s: %s", item_id, e)
        return SimpleLineItem(id=item_id, name=name, price=price, quantity=quantity)

    if decoded.get("type") != PACKAGE_ITEM_TYPE:
        return SimpleLineItem(
            id=item_id,
            name=name,
            price=price,
            quantity=quantity,
            images=images,
            thumbnail_key=thumbnail_key,
            custom_data=raw_custom if isinstance(raw_custom, str) else json.dumps(raw_custom),
        )

    try:
        details = PackageDetails.from_dict(decoded)
    except ValueError as e:
        logger.debug("Malformed package payload on cart item %s: %s", item_id, e)
        return SimpleLineItem(id=item_id, name=name, price=price, quantity=quantity)

    return PackageLineItem(
        id=item_id,
        name=name,
        price=price,
        quantity=1,
        images=list(details.image_urls) if not images else images,
        thumbnail_key=thumbnail_key,
        details=details,
    )


def line_item_to_record(item: CartLineItem) -> dict[str, Any]:
    """Convert a line item to its wire/persisted record. Thumbnails are not included."""
    custom_data: str | None
    if isinstance(item, PackageLineItem):
        custom_data = item.details.to_json()
    elif isinstance(item, SimpleLineItem):
        custom_data = item.custom_data
    else:
        custom_data = None

    record: dict[str, Any] = {
        "id": item.id,
        "name": item.name,
        "price": item.price,
        "quantity": item.quantity,
        "totalPrice": item.total_price,
        "images": list(item.images),
        "custom_data": custom_data,
    }
    if item.thumbnail_key:
        record["thumbnailKey"] = item.thumbnail_key
    return record
