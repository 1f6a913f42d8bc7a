"""
Checkout quote endpoint.

Returns the server's totals for a list of cart records, so the amount
shown at payment is never the client's own arithmetic.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from magnetcart.services.pricing import compute_totals

router = APIRouter(prefix="/checkout", tags=["checkout"])


class QuoteRequest(BaseModel):
    items: list[dict[str, Any]] = Field(..., min_length=1, description="Cart line item records")


class QuoteResponse(BaseModel):
    """Server-computed order totals."""

    subtotal: float
    shipping: float
    tax: float
    total: float
    amount_minor: int = Field(..., description="Total in pence")


@router.post("/quote", response_model=QuoteResponse)
async def quote(request: QuoteRequest) -> QuoteResponse:
    """Price a cart. Packages are priced from the catalog, not from the request."""
    totals = compute_totals(request.items)
    return QuoteResponse(
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        tax=totals.tax,
        total=totals.total,
        amount_minor=totals.to_minor_units(),
    )
