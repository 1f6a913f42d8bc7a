"""
Cart API endpoints.

Each cart is addressed by a session key and stored as a snapshot in the
database. Positions in the item routes are list indices as displayed; a
stale position is ignored rather than rejected.
"""

from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from magnetcart.db.cart_store import SqlCartStore
from magnetcart.db.database import get_session
from magnetcart.models.cart import line_item_from_record, line_item_to_record
from magnetcart.services.cart_session import CartSession
from magnetcart.services.display import group_for_display
from magnetcart.services.pricing import with_catalog_price

router = APIRouter(prefix="/cart", tags=["cart"])


class CartItemRequest(BaseModel):
    """A product to add to the cart, in the storefront's record shape."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    images: list[str] = Field(default_factory=list)
    custom_data: str | None = Field(
        default=None,
        description="JSON-encoded product payload; packages use type 'custom_magnet_package'",
    )


class QuantityUpdateRequest(BaseModel):
    quantity: int


class CartResponse(BaseModel):
    """Response model for cart state."""

    key: str
    items: list[dict[str, Any]] = Field(default_factory=list)
    total_quantity: int = 0
    total_amount: float = 0.0
    changed: bool | None = Field(
        default=None,
        description="For mutations: whether the cart was actually changed",
    )


class PackageViewResponse(BaseModel):
    position: int
    id: str
    name: str
    price: float
    image_urls: list[str]
    size: str
    finish: str
    package_size: int
    completion: float


class SimpleViewResponse(BaseModel):
    position: int
    id: str
    name: str
    price: float
    quantity: int
    total_price: float
    images: list[str]


class CartDisplayResponse(BaseModel):
    """Cart grouped for display, with savings against single-magnet pricing."""

    key: str
    packages: list[PackageViewResponse]
    simple_items: list[SimpleViewResponse]
    magnet_count: int
    baseline_amount: float
    total_amount: float
    savings: float


async def get_cart(
    key: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CartSession:
    """Dependency that opens the cart for the key in the path."""
    cart = CartSession(key, SqlCartStore(session))
    await cart.init()
    return cart


def _cart_response(cart: CartSession, changed: bool | None = None) -> CartResponse:
    ledger = cart.ledger
    return CartResponse(
        key=cart.key,
        items=[line_item_to_record(item) for item in ledger.items],
        total_quantity=ledger.total_quantity,
        total_amount=ledger.total_amount,
        changed=changed,
    )


@router.get("/{key}", response_model=CartResponse)
async def read_cart(cart: Annotated[CartSession, Depends(get_cart)]) -> CartResponse:
    """Get the cart. An unknown key is an empty cart."""
    return _cart_response(cart)


@router.post("/{key}/items", response_model=CartResponse)
async def add_cart_item(
    request: CartItemRequest,
    cart: Annotated[CartSession, Depends(get_cart)],
) -> CartResponse:
    """
    Add a product to the cart.

    Adding an id already in the cart increments its quantity, except for
    packages, which are one unit each. Package prices come from the catalog.
    """
    item = with_catalog_price(line_item_from_record(request.model_dump()))
    before = cart.ledger.total_quantity
    await cart.add_item(item)
    return _cart_response(cart, changed=cart.ledger.total_quantity != before)


@router.patch("/{key}/items/{position}", response_model=CartResponse)
async def update_cart_item(
    position: int,
    request: QuantityUpdateRequest,
    cart: Annotated[CartSession, Depends(get_cart)],
) -> CartResponse:
    """
    Set the quantity of the item at position.

    Ignored for stale positions, quantities below 1 and packages.
    """
    changed = await cart.update_quantity(position, request.quantity)
    return _cart_response(cart, changed=changed)


@router.delete("/{key}/items/{position}", response_model=CartResponse)
async def remove_cart_item(
    position: int,
    cart: Annotated[CartSession, Depends(get_cart)],
) -> CartResponse:
    """Remove the item at position. A stale position is ignored."""
    removed = await cart.remove_item(position)
    return _cart_response(cart, changed=removed is not None)


@router.delete("/{key}", response_model=CartResponse)
async def clear_cart(cart: Annotated[CartSession, Depends(get_cart)]) -> CartResponse:
    """Empty the cart."""
    await cart.clear_cart()
    return _cart_response(cart, changed=True)


@router.get("/{key}/display", response_model=CartDisplayResponse)
async def display_cart(cart: Annotated[CartSession, Depends(get_cart)]) -> CartDisplayResponse:
    """Get the cart grouped into packages and other products."""
    display = group_for_display(cart.ledger.items)
    return CartDisplayResponse(
        key=cart.key,
        packages=[PackageViewResponse(**asdict(view)) for view in display.packages],
        simple_items=[SimpleViewResponse(**asdict(view)) for view in display.simple_items],
        magnet_count=display.magnet_count,
        baseline_amount=display.baseline_amount,
        total_amount=display.total_amount,
        savings=display.savings,
    )
