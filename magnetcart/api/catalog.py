"""
Package catalog endpoints.

Read-only: the tiers are static and shipped with the code.
"""

from dataclasses import asdict

from fastapi import APIRouter
from pydantic import BaseModel, Field

from magnetcart.models.catalog import (
    CATALOG_VERSION,
    PACKAGES,
    SINGLE_MAGNET_PRICE,
    Package,
    get_package,
)

router = APIRouter(prefix="/packages", tags=["packages"])


class PackageResponse(BaseModel):
    """One package tier."""

    id: str
    name: str
    price: float
    price_per_unit: float
    max_files: int
    description: str
    tag: str
    savings_percent: int = Field(
        ...,
        description="Saving per magnet against the single-magnet price, rounded",
    )


class CatalogResponse(BaseModel):
    """All package tiers."""

    version: int
    single_magnet_price: float
    packages: list[PackageResponse]


def _to_response(package: Package) -> PackageResponse:
    saving = 1 - package.price_per_unit / SINGLE_MAGNET_PRICE
    return PackageResponse(**asdict(package), savings_percent=round(saving * 100))


@router.get("", response_model=CatalogResponse)
async def list_packages() -> CatalogResponse:
    """List every package tier, smallest first."""
    return CatalogResponse(
        version=CATALOG_VERSION,
        single_magnet_price=SINGLE_MAGNET_PRICE,
        packages=[_to_response(package) for package in PACKAGES],
    )


@router.get("/{package_id}", response_model=PackageResponse)
async def read_package(package_id: str) -> PackageResponse:
    """Get one package tier. Unknown ids are a 404."""
    return _to_response(get_package(package_id))
