"""
Checkout handoff.

Turns the current cart into an order request, hands it to the order
collaborator and clears the cart only once the order is confirmed. If the
collaborator fails the cart is left exactly as it was so the customer can
retry.

Payment collection happens outside this module.
"""

import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field, model_validator

from magnetcart.models.cart import line_item_to_record
from magnetcart.models.failure import EmptyCartError, OrderSubmissionError
from magnetcart.services.cart_session import CartSession

logger = logging.getLogger(__name__)


class GuestContact(BaseModel):
    """Contact details for a customer checking out without an account."""

    email: str = Field(..., min_length=3, description="Order confirmation address")
    full_name: str | None = None
    phone: str | None = None


class ShippingAddress(BaseModel):
    """A delivery address entered at checkout."""

    full_name: str
    address_line1: str = Field(..., min_length=1)
    address_line2: str | None = None
    city: str | None = None
    postal_code: str = Field(..., min_length=1)
    country: str = "GB"
    phone: str | None = None


class OrderRequest(BaseModel):
    """
    What the order service needs to create an order.

    Exactly one of user_id / guest_contact identifies the customer and
    exactly one of shipping_address_id / shipping_address says where to
    deliver.
    """

    user_id: str | None = None
    guest_contact: GuestContact | None = None
    shipping_address_id: str | None = None
    shipping_address: ShippingAddress | None = None
    items: list[dict[str, Any]] = Field(..., min_length=1, description="Cart line item records")
    total: float = Field(..., description="Cart total as shown to the customer")

    @model_validator(mode="after")
    def _check_exactly_one(self) -> "OrderRequest":
        if (self.user_id is None) == (self.guest_contact is None):
            raise ValueError("Provide exactly one of user_id or guest_contact")
        if (self.shipping_address_id is None) == (self.shipping_address is None):
            raise ValueError("Provide exactly one of shipping_address_id or shipping_address")
        return self


class OrderConfirmation(BaseModel):
    """An order the order service has accepted."""

    order_id: str
    status: str


class OrderClient(Protocol):
    """Anything that can place an order."""

    async def create_order(self, request: OrderRequest) -> OrderConfirmation: ...


class HttpOrderClient:
    """Places orders through the storefront's `/orders` endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def create_order(self, request: OrderRequest) -> OrderConfirmation:
        """
        Submit an order.

        Raises:
            OrderSubmissionError: If the request fails or the response is unusable
        """
        url = f"{self.base_url}/orders"
        payload = request.model_dump(mode="json", exclude_none=True)

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
        except httpx.RequestError as exc:
            raise OrderSubmissionError(f"Network error: {exc}") from exc

        if not response.is_success:
            raise OrderSubmissionError(f"HTTP {response.status_code} - {response.text}")

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise OrderSubmissionError(f"Invalid JSON response: {response.text}") from exc

        order_id = body.get("order_id") if isinstance(body, dict) else None
        if order_id is None:
            raise OrderSubmissionError("No order id returned from server")

        return OrderConfirmation(order_id=str(order_id), status=str(body.get("status", "pending")))


async def place_order(
    cart: CartSession,
    client: OrderClient,
    *,
    user_id: str | None = None,
    guest_contact: GuestContact | None = None,
    shipping_address_id: str | None = None,
    shipping_address: ShippingAddress | None = None,
) -> OrderConfirmation:
    """
    Place an order for everything in the cart.

    The cart is read once. It is cleared only after the client confirms
    the order; any error from the client propagates with the cart intact.

    Raises:
        EmptyCartError: If the cart has no items
        pydantic.ValidationError: If the customer or address arguments are inconsistent
        OrderSubmissionError: If the order service rejects or cannot be reached
    """
    ledger = cart.ledger
    items = ledger.items
    total = ledger.total_amount
    if not items:
        raise EmptyCartError()

    request = OrderRequest(
        user_id=user_id,
        guest_contact=guest_contact,
        shipping_address_id=shipping_address_id,
        shipping_address=shipping_address,
        items=[line_item_to_record(item) for item in items],
        total=total,
    )

    confirmation = await client.create_order(request)
    logger.info(
        "Order %s placed for cart %s (%d items, total %.2f)",
        confirmation.order_id,
        cart.key,
        len(items),
        total,
    )

    await cart.clear_cart()
    return confirmation
