"""
Magnet package catalog.

The five package tiers are static and versioned with the code. They are
never mutated at runtime; the package builder and the server-side pricing
both read them from here.
"""

from dataclasses import dataclass

from magnetcart.models.failure import PackageNotFoundError

CATALOG_VERSION = 2

# Flat price of a single magnet, the baseline for "you save" figures
SINGLE_MAGNET_PRICE = 5.00

DEFAULT_SIZE = "5x5"
DEFAULT_FINISH = "rigid"


@dataclass(frozen=True)
class Package:
    """
    A purchasable magnet package tier.

    Attributes:
        id: Catalog id, also the number of magnets as a string ("6")
        name: Display name
        price: Price of the whole package in GBP
        price_per_unit: Effective price per magnet, for display
        max_files: Number of photos the package holds
        description: Marketing blurb
        tag: Badge shown next to the tier
    """

    id: str
    name: str
    price: float
    price_per_unit: float
    max_files: int
    description: str
    tag: str


PACKAGES: tuple[Package, ...] = (
    Package(
        id="1",
        name="1 Custom Magnet",
        price=5.00,
        price_per_unit=5.00,
        max_files=1,
        description="Single magnet for testing or small gifts",
        tag="SINGLE",
    ),
    Package(
        id="6",
        name="6 Custom Magnets",
        price=17.00,
        price_per_unit=2.83,
        max_files=6,
        description="Perfect for small gifts or personal use",
        tag="BEST VALUE",
    ),
    Package(
        id="9",
        name="9 Custom Magnets",
        price=23.00,
        price_per_unit=2.55,
        max_files=9,
        description="Great for families and small collections",
        tag="POPULAR",
    ),
    Package(
        id="12",
        name="12 Custom Magnets",
        price=28.00,
        price_per_unit=2.33,
        max_files=12,
        description="Ideal for large families or multiple designs",
        tag="BEST SELLER",
    ),
    Package(
        id="16",
        name="16 Custom Magnets",
        price=36.00,
        price_per_unit=2.25,
        max_files=16,
        description="Best price per magnet for big collections",
        tag="BULK",
    ),
)

_PACKAGES_BY_ID: dict[str, Package] = {package.id: package for package in PACKAGES}


def get_package(package_id: str) -> Package:
    """
    Look up a package tier by id.

    Raises:
        PackageNotFoundError: If the id is not a catalog tier
    """
    package = _PACKAGES_BY_ID.get(str(package_id))
    if package is None:
        raise PackageNotFoundError(str(package_id))
    return package


def find_package(package_id: str | None) -> Package | None:
    """Look up a package tier, returning None for unknown ids."""
    if package_id is None:
        return None
    return _PACKAGES_BY_ID.get(str(package_id))
