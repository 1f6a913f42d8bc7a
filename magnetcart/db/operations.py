"""
Database CRUD operations.

Provides async functions for creating and reading orders and for storing
cart snapshots.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from magnetcart.models.cart import LineItem, PackageLineItem
from magnetcart.models.db import CartSnapshotDB, OrderDB, OrderItemDB
from magnetcart.services.pricing import OrderTotals, line_total

ORDER_STATUSES = frozenset({"pending", "processing", "shipped", "delivered", "cancelled"})

# --- Order Operations ---


def order_items_for(item: LineItem) -> list[OrderItemDB]:
    """
    Expand a cart line item into printable order items.

    A package becomes one order item per uploaded image, each priced at an
    equal share of the package price. Anything else is a single row.
    """
    if isinstance(item, PackageLineItem):
        details = item.details
        urls = details.image_urls or item.images
        if not urls:
            urls = [None]  # type: ignore[list-item]
        share = round(line_total(item) / len(urls), 2)
        name = details.package_name or item.name
        return [
            OrderItemDB(
                product_name=f"{name} - Image {index + 1}",
                quantity=1,
                size=details.size,
                price_per_unit=share,
                special_requirements=f"Package {details.package_id} - {details.finish} finish",
                image_url=url,
            )
            for index, url in enumerate(urls)
        ]

    return [
        OrderItemDB(
            product_name=item.name or "Custom Magnet",
            quantity=item.quantity,
            size="standard",
            price_per_unit=item.price,
            special_requirements="",
            image_url=item.images[0] if item.images else None,
        )
    ]


async def create_order(
    session: AsyncSession,
    items: Sequence[LineItem],
    totals: OrderTotals,
    *,
    user_id: str | None = None,
    guest_email: str | None = None,
    shipping_address_id: str | None = None,
    shipping_address: dict[str, Any] | None = None,
    status: str = "pending",
) -> OrderDB:
    """
    Create an order with its items.

    The order and all of its items are flushed together; the caller's
    session commit makes them durable.
    """
    order = OrderDB(
        user_id=user_id,
        guest_email=guest_email,
        status=status,
        shipping_address_id=shipping_address_id,
        shipping_address=shipping_address,
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping,
        tax=totals.tax,
        total=totals.total,
    )
    for item in items:
        order.items.extend(order_items_for(item))

    session.add(order)
    await session.flush()
    return order


async def get_order(session: AsyncSession, order_id: int) -> OrderDB | None:
    """Get an order with its items. Returns None if not found."""
    result = await session.execute(
        select(OrderDB).where(OrderDB.id == order_id).options(selectinload(OrderDB.items))
    )
    return result.scalar_one_or_none()


async def get_orders_for_user(
    session: AsyncSession, user_id: str, limit: int = 50
) -> list[OrderDB]:
    """Get a user's orders, newest first."""
    result = await session.execute(
        select(OrderDB)
        .where(OrderDB.user_id == user_id)
        .options(selectinload(OrderDB.items))
        .order_by(OrderDB.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def update_order_status(session: AsyncSession, order_id: int, status: str) -> OrderDB | None:
    """
    Set an order's status.

    Returns None if the order does not exist.

    Raises:
        ValueError: If status is not a known order status
    """
    if status not in ORDER_STATUSES:
        raise ValueError(f"Unknown order status: {status}")

    order = await get_order(session, order_id)
    if order is None:
        return None

    order.status = status
    await session.flush()
    return order


# --- Cart Snapshot Operations ---


async def get_cart_snapshot(session: AsyncSession, session_key: str) -> CartSnapshotDB | None:
    """Get the stored cart snapshot for a session key."""
    result = await session.execute(
        select(CartSnapshotDB).where(CartSnapshotDB.session_key == session_key)
    )
    return result.scalar_one_or_none()


async def save_cart_snapshot(
    session: AsyncSession, session_key: str, payload: dict[str, Any]
) -> CartSnapshotDB:
    """Insert or replace the cart snapshot for a session key."""
    existing = await get_cart_snapshot(session, session_key)
    if existing:
        existing.payload = payload
        await session.flush()
        return existing

    snapshot = CartSnapshotDB(session_key=session_key, payload=payload)
    session.add(snapshot)
    await session.flush()
    return snapshot


async def delete_cart_snapshot(session: AsyncSession, session_key: str) -> bool:
    """
    Delete the cart snapshot for a session key.

    Returns True if a snapshot was deleted.
    """
    result = await session.execute(
        delete(CartSnapshotDB).where(CartSnapshotDB.session_key == session_key)
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]
