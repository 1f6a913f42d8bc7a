"""
Order API endpoints.

Orders are priced on the server from the submitted cart records; the
client's total is only compared against it. Each package is expanded into
one order item per image so every magnet can be printed on its own.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from magnetcart.db.database import get_session
from magnetcart.db.operations import (
    ORDER_STATUSES,
    create_order,
    get_order,
    get_orders_for_user,
    update_order_status,
)
from magnetcart.models.cart import line_item_from_record
from magnetcart.models.db import OrderDB
from magnetcart.services.checkout import OrderRequest
from magnetcart.services.pricing import compute_totals

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderItemResponse(BaseModel):
    product_name: str
    quantity: int
    size: str
    price_per_unit: float
    special_requirements: str
    image_url: str | None = None


class OrderResponse(BaseModel):
    """Response model for a placed order."""

    order_id: int
    status: str
    user_id: str | None = None
    guest_email: str | None = None
    subtotal: float
    shipping: float
    tax: float
    total: float
    created_at: datetime | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: str = Field(
        ...,
        description="One of: " + ", ".join(sorted(ORDER_STATUSES)),
    )


def _order_response(order: OrderDB) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        status=order.status,
        user_id=order.user_id,
        guest_email=order.guest_email,
        subtotal=order.subtotal,
        shipping=order.shipping_cost,
        tax=order.tax,
        total=order.total,
        created_at=order.created_at,
        items=[
            OrderItemResponse(
                product_name=item.product_name,
                quantity=item.quantity,
                size=item.size,
                price_per_unit=item.price_per_unit,
                special_requirements=item.special_requirements,
                image_url=item.image_url,
            )
            for item in order.items
        ],
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    request: OrderRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OrderResponse:
    """
    Create an order from cart records.

    Totals are recomputed here. An order whose total comes to zero or less
    is rejected with 400.
    """
    items = [line_item_from_record(record) for record in request.items]
    totals = compute_totals(items)

    if totals.total <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order total must be greater than zero",
        )

    if round(request.total, 2) != totals.total:
        logger.warning(
            "Client total %.2f differs from server total %.2f, using server total",
            request.total,
            totals.total,
        )

    order = await create_order(
        session,
        items,
        totals,
        user_id=request.user_id,
        guest_email=request.guest_contact.email if request.guest_contact else None,
        shipping_address_id=request.shipping_address_id,
        shipping_address=(
            request.shipping_address.model_dump() if request.shipping_address else None
        ),
    )
    await session.refresh(order, attribute_names=["created_at"])

    logger.info(
        "Created order %d with %d items, total %.2f", order.id, len(order.items), order.total
    )
    return _order_response(order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    user_id: Annotated[str, Query(min_length=1)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[OrderResponse]:
    """List a customer's orders, newest first."""
    orders = await get_orders_for_user(session, user_id)
    return [_order_response(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def read_order(
    order_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OrderResponse:
    """Get one order with its items."""
    order = await get_order(session, order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found",
        )
    return _order_response(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def change_order_status(
    order_id: int,
    request: StatusUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OrderResponse:
    """Move an order to a new status."""
    try:
        order = await update_order_status(session, order_id, request.status)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found",
        )
    return _order_response(order)
