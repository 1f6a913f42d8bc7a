"""
MagnetCart services.

Business logic for building magnet packages, keeping the cart and
handing it over to checkout.
"""

from magnetcart.services.blob_upload import (
    BlobUploader,
    HttpBlobUploader,
    LocalBlobStorage,
    UploadError,
    decode_base64_image,
)
from magnetcart.services.cart_ledger import CartLedger
from magnetcart.services.cart_persistence import (
    CartStore,
    MemoryCartStore,
    MemoryThumbnailCache,
    ThumbnailCache,
    dehydrate,
    rehydrate,
)
from magnetcart.services.cart_session import CartSession
from magnetcart.services.checkout import (
    GuestContact,
    HttpOrderClient,
    OrderClient,
    OrderConfirmation,
    OrderRequest,
    ShippingAddress,
    place_order,
)
from magnetcart.services.crop_queue import CropQueue
from magnetcart.services.display import CartDisplay, PackageView, SimpleView, group_for_display
from magnetcart.services.file_validation import fit_to_slots, validate_files
from magnetcart.services.images import crop_square, detect_format, make_thumbnail, recompress
from magnetcart.services.package_builder import (
    BuilderState,
    EnqueueResult,
    PackageBuilder,
    SubmitResult,
)
from magnetcart.services.pricing import (
    OrderTotals,
    compute_totals,
    line_total,
    with_catalog_price,
)

__all__ = [
    # Package builder
    "BuilderState",
    "CropQueue",
    "EnqueueResult",
    "PackageBuilder",
    "SubmitResult",
    "fit_to_slots",
    "validate_files",
    # Images and uploads
    "BlobUploader",
    "HttpBlobUploader",
    "LocalBlobStorage",
    "UploadError",
    "crop_square",
    "decode_base64_image",
    "detect_format",
    "make_thumbnail",
    "recompress",
    # Cart
    "CartLedger",
    "CartSession",
    "CartStore",
    "MemoryCartStore",
    "MemoryThumbnailCache",
    "ThumbnailCache",
    "dehydrate",
    "rehydrate",
    # Display and pricing
    "CartDisplay",
    "OrderTotals",
    "PackageView",
    "SimpleView",
    "compute_totals",
    "group_for_display",
    "line_total",
    "with_catalog_price",
    # Checkout
    "GuestContact",
    "HttpOrderClient",
    "OrderClient",
    "OrderConfirmation",
    "OrderRequest",
    "ShippingAddress",
    "place_order",
]
