from magnetcart.models.cart import (
    PACKAGE_ITEM_TYPE,
    CartLineItem,
    ItemKind,
    LineItem,
    PackageDetails,
    PackageLineItem,
    SimpleLineItem,
    line_item_from_record,
    line_item_to_record,
)
from magnetcart.models.catalog import (
    DEFAULT_FINISH,
    DEFAULT_SIZE,
    PACKAGES,
    SINGLE_MAGNET_PRICE,
    Package,
    find_package,
    get_package,
)
from magnetcart.models.failure import (
    ApiResponse,
    CropSessionActiveError,
    DiscardConfirmationRequired,
    EmptyCartError,
    FailureDetail,
    FailureKind,
    FileTooLargeError,
    InvalidImageError,
    KnownError,
    NoActiveCropSessionError,
    NoPackageSelectedError,
    OrderSubmissionError,
    OutcomeType,
    PackageFullError,
    PackageIncompleteError,
    PackageNotFoundError,
    UnsupportedTypeError,
    UploadFailedError,
)
from magnetcart.models.staged import RawFile, StagedImage

__all__ = [
    "ApiResponse",
    "CartLineItem",
    "CropSessionActiveError",
    "DEFAULT_FINISH",
    "DEFAULT_SIZE",
    "DiscardConfirmationRequired",
    "EmptyCartError",
    "FailureDetail",
    "FailureKind",
    "FileTooLargeError",
    "InvalidImageError",
    "ItemKind",
    "KnownError",
    "LineItem",
    "NoActiveCropSessionError",
    "NoPackageSelectedError",
    "OrderSubmissionError",
    "OutcomeType",
    "PACKAGES",
    "PACKAGE_ITEM_TYPE",
    "Package",
    "PackageDetails",
    "PackageFullError",
    "PackageIncompleteError",
    "PackageLineItem",
    "PackageNotFoundError",
    "RawFile",
    "SINGLE_MAGNET_PRICE",
    "SimpleLineItem",
    "StagedImage",
    "UnsupportedTypeError",
    "UploadFailedError",
    "find_package",
    "get_package",
    "line_item_from_record",
    "line_item_to_record",
]
