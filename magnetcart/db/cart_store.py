"""SQL-backed durable cart store over the cart_snapshots table."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from magnetcart.db.operations import (
    delete_cart_snapshot,
    get_cart_snapshot,
    save_cart_snapshot,
)


class SqlCartStore:
    """
    CartStore backed by the request's database session.

    Writes are flushed, not committed; the session owner commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def read(self, key: str) -> dict[str, Any] | None:
        snapshot = await get_cart_snapshot(self.session, key)
        if snapshot is None:
            return None
        return dict(snapshot.payload or {})

    async def write(self, key: str, payload: dict[str, Any]) -> None:
        await save_cart_snapshot(self.session, key, payload)

    async def delete(self, key: str) -> None:
        await delete_cart_snapshot(self.session, key)
