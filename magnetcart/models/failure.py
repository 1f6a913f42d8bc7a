"""
Failure classification and the HTTP error envelope.

Inside the core a failure is a KnownError carrying a FailureKind. At the
HTTP edge it becomes an ApiResponse whose outcome tells the client whether
it asked for something that needs confirmation (refusal), hit a limit it
can act on (known failure), or ran into a bug (unknown failure).

Builder validation errors are raised before any state changes, so the
customer can fix the input and try again.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """What went wrong, in terms the storefront can react to."""

    # Request shape
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"
    NOT_FOUND = "not_found"
    EMPTY_RESULT = "empty_result"

    # Building a package
    NO_PACKAGE_SELECTED = "no_package_selected"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    PACKAGE_FULL = "package_full"
    PACKAGE_INCOMPLETE = "package_incomplete"
    CONFIRMATION_REQUIRED = "confirmation_required"
    INVALID_STATE = "invalid_state"

    # Collaborators
    UPLOAD_FAILED = "upload_failed"
    ORDER_FAILED = "order_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"

    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    REFUSAL = "refusal"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


class FailureDetail(BaseModel):
    """The explanation shown to the customer."""

    kind: FailureKind
    message: str = Field(..., description="Plain-language explanation")
    detail: str | None = Field(default=None, description="Technical detail, for support")
    suggestion: str | None = Field(default=None, description="What the customer can do next")


class ApiResponse(BaseModel):
    """Error body returned by every endpoint that fails."""

    outcome: OutcomeType
    failure: FailureDetail

    @classmethod
    def unknown_failure(cls, detail: str | None = None) -> "ApiResponse":
        """Envelope for an exception nobody anticipated."""
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="Something went wrong on our side. Please try again.",
                detail=detail,
                suggestion="If this keeps happening, contact support.",
            ),
        )


class KnownError(Exception):
    """
    A failure the system can explain.

    status_code is the HTTP status used when the error escapes a request
    handler.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    @property
    def outcome(self) -> OutcomeType:
        if self.kind == FailureKind.CONFIRMATION_REQUIRED:
            return OutcomeType.REFUSAL
        return OutcomeType.KNOWN_FAILURE

    def to_response(self) -> ApiResponse:
        return ApiResponse(
            outcome=self.outcome,
            failure=FailureDetail(
                kind=self.kind,
                message=self.message,
                detail=self.detail,
                suggestion=self.suggestion,
            ),
        )


# =============================================================================
# PACKAGE BUILDER ERRORS
# =============================================================================


class PackageNotFoundError(KnownError):
    """Raised when a package id is not one of the catalog tiers."""

    def __init__(self, package_id: str):
        self.package_id = package_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Package '{package_id}' does not exist.",
            suggestion="Choose one of the available magnet packages.",
            status_code=404,
        )


class NoPackageSelectedError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.NO_PACKAGE_SELECTED,
            message="Please select a package first to start uploading images.",
        )


class FileTooLargeError(KnownError):
    def __init__(self, filename: str, size: int, limit: int):
        self.filename = filename
        self.size = size
        self.limit = limit
        super().__init__(
            kind=FailureKind.FILE_TOO_LARGE,
            message=f"File '{filename}' is too large. Maximum size is {limit // (1024 * 1024)}MB.",
            detail=f"{size} bytes > {limit} bytes",
        )


class UnsupportedTypeError(KnownError):
    def __init__(self, filename: str, content_type: str):
        self.filename = filename
        self.content_type = content_type
        super().__init__(
            kind=FailureKind.UNSUPPORTED_TYPE,
            message=f"File '{filename}' is not a supported image. Please upload JPEG, PNG or WEBP.",
            detail=f"content type: {content_type}",
        )


class PackageFullError(KnownError):
    def __init__(self, max_files: int):
        self.max_files = max_files
        super().__init__(
            kind=FailureKind.PACKAGE_FULL,
            message=f"This package already has all {max_files} images.",
            suggestion="Remove an image or proceed to checkout.",
        )


class PackageIncompleteError(KnownError):
    def __init__(self, staged: int, max_files: int):
        self.staged = staged
        self.max_files = max_files
        super().__init__(
            kind=FailureKind.PACKAGE_INCOMPLETE,
            message=f"{max_files - staged} more images needed to complete this package.",
            detail=f"{staged}/{max_files} images staged",
        )


class DiscardConfirmationRequired(KnownError):
    """Raised when an operation would discard photos the user has not agreed to lose."""

    def __init__(self, message: str, discarded: int):
        self.discarded = discarded
        super().__init__(
            kind=FailureKind.CONFIRMATION_REQUIRED,
            message=message,
            detail=f"{discarded} images would be discarded",
            suggestion="Confirm to continue.",
            status_code=409,
        )


class CropSessionActiveError(KnownError):
    def __init__(self, remaining: int):
        self.remaining = remaining
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message="Finish or cancel editing the current photos first.",
            detail=f"{remaining} photos still queued",
            status_code=409,
        )


class NoActiveCropSessionError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message="There is no photo being edited.",
            status_code=409,
        )


class InvalidImageError(KnownError):
    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message="The image could not be read.",
            detail=detail,
            suggestion="Try a different photo.",
        )


class UploadFailedError(KnownError):
    """Raised when one image of a package fails to upload. The whole batch is abandoned."""

    def __init__(self, index: int, detail: str | None = None):
        self.index = index
        super().__init__(
            kind=FailureKind.UPLOAD_FAILED,
            message=f"Image {index + 1} failed to upload.",
            detail=detail,
            suggestion="Your photos are still saved. Please try again.",
            status_code=502,
        )


# =============================================================================
# CHECKOUT ERRORS
# =============================================================================


class EmptyCartError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.EMPTY_RESULT,
            message="Your cart is empty.",
            suggestion="Add items to continue.",
        )


class OrderSubmissionError(KnownError):
    """Raised when the order collaborator fails. The cart is left intact."""

    def __init__(self, detail: str | None = None, status_code: int = 502):
        super().__init__(
            kind=FailureKind.ORDER_FAILED,
            message="We could not place your order. Please try again.",
            detail=detail,
            status_code=status_code,
        )
