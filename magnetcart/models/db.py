"""
SQLAlchemy ORM models for persistent storage.

Orders and their items are written at checkout; cart snapshots are the
durable side of the cart persistence (large image payloads are stripped
before they get here).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class OrderDB(Base):
    """
    A placed order.

    Either user_id (authenticated checkout) or guest_email (guest checkout)
    identifies the customer. Totals are computed server-side.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    guest_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="pending")

    shipping_address_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    shipping_address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    shipping_cost: Mapped[float] = mapped_column(Float, default=0.0)
    tax: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float, default=0.0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    items: Mapped[list["OrderItemDB"]] = relationship(
        back_populates="order", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<OrderDB(id={self.id}, status={self.status}, total={self.total})>"


class OrderItemDB(Base):
    """
    One printable magnet (or product line) of an order.

    Packages are expanded into one row per image so each magnet can be
    printed from its own image_url.
    """

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True
    )
    product_name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    size: Mapped[str] = mapped_column(String(50), default="standard")
    price_per_unit: Mapped[float] = mapped_column(Float, default=0.0)
    special_requirements: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    order: Mapped["OrderDB"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<OrderItemDB(product={self.product_name}, qty={self.quantity})>"


class CartSnapshotDB(Base):
    """Durable cart state for one session key."""

    __tablename__ = "cart_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_key: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CartSnapshotDB(session_key={self.session_key})>"
