"""
Two-tier cart persistence.

- CartStore: durable key-value store for cart metadata (items, prices,
  uploaded image URLs). Never receives large binary or base64 payloads.
- ThumbnailCache: ephemeral local cache of preview thumbnails. Losing an
  entry is expected; restoring is best-effort.

`dehydrate` is applied before every write and `rehydrate` on every read.
Neither raises on bad data: a missing thumbnail or an unreadable snapshot
degrades to "no image" or an empty cart rather than an error.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Protocol

from magnetcart.config import PAYLOAD_STRIP_THRESHOLD, THUMBNAIL_CACHE_MAX_ENTRIES
from magnetcart.models.cart import PackageLineItem, line_item_from_record
from magnetcart.services.cart_ledger import CartLedger

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class CartStore(Protocol):
    """Durable key-value store for cart snapshots."""

    async def read(self, key: str) -> dict[str, Any] | None: ...

    async def write(self, key: str, payload: dict[str, Any]) -> None: ...

    async def delete(self, key: str) -> None: ...


class ThumbnailCache(Protocol):
    """Ephemeral cache of preview thumbnails."""

    def put(self, key: str, data: bytes) -> None: ...

    def try_restore(self, key: str) -> bytes | None: ...


class MemoryCartStore:
    """In-process cart store, for tests and single-process use."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    async def read(self, key: str) -> dict[str, Any] | None:
        payload = self._data.get(key)
        return dict(payload) if payload is not None else None

    async def write(self, key: str, payload: dict[str, Any]) -> None:
        self._data[key] = dict(payload)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class MemoryThumbnailCache:
    """
    Bounded thumbnail cache keeping only the most recent entries.

    Oldest entries are evicted first once max_entries is reached.
    """

    def __init__(self, max_entries: int = THUMBNAIL_CACHE_MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, bytes] = OrderedDict()

    def put(self, key: str, data: bytes) -> None:
        self._entries[key] = data
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted thumbnail %s", evicted)

    def try_restore(self, key: str) -> bytes | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)


def _is_embedded_payload(value: str, threshold: int) -> bool:
    return value.startswith("data:") or len(value) > threshold


def dehydrate(ledger: CartLedger, threshold: int = PAYLOAD_STRIP_THRESHOLD) -> dict[str, Any]:
    """
    Build the durable snapshot of a cart.

    Thumbnails are never written. Image entries that are embedded data
    (data URIs or anything longer than threshold) are dropped; uploaded
    URLs are kept.
    """
    snapshot = ledger.snapshot()
    stripped = 0
    for item, record in zip(ledger.items, snapshot["items"], strict=True):
        images = record.get("images", [])
        kept = [image for image in images if not _is_embedded_payload(image, threshold)]
        stripped += len(images) - len(kept)
        record["images"] = kept

        if isinstance(item, PackageLineItem):
            urls = item.details.image_urls
            kept_urls = [url for url in urls if not _is_embedded_payload(url, threshold)]
            if len(kept_urls) != len(urls):
                stripped += len(urls) - len(kept_urls)
                record["custom_data"] = replace(item.details, image_urls=kept_urls).to_json()

    if stripped:
        logger.info("Stripped %d embedded image payloads from cart snapshot", stripped)

    snapshot["version"] = SNAPSHOT_VERSION
    return snapshot


def rehydrate(
    payload: Mapping[str, Any] | None,
    thumbnails: ThumbnailCache | None = None,
) -> CartLedger:
    """
    Rebuild a cart from a durable snapshot.

    Thumbnails are restored from the cache when possible. A missing or
    malformed snapshot yields an empty cart.
    """
    if not payload:
        return CartLedger()

    records = payload.get("items")
    if not isinstance(records, list):
        logger.warning("Cart snapshot has no item list, starting with an empty cart")
        return CartLedger()

    items = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping unreadable cart entry of type %s", type(record).__name__)
            continue
        item = line_item_from_record(record)
        if item.thumbnail_key and thumbnails is not None:
            item.thumbnail = _try_restore(thumbnails, item.thumbnail_key)
        items.append(item)

    return CartLedger(items)


def _try_restore(thumbnails: ThumbnailCache, key: str) -> bytes | None:
    try:
        data = thumbnails.try_restore(key)
    except Exception as e:
        logger.debug("Thumbnail cache failed for %s: %s", key, e)
        return None
    if data is None:
        logger.debug("Thumbnail %s not in cache", key)
    return data
