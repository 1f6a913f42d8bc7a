"""
File validation primitives for photo uploads.

Checks run over the whole batch in a fixed order (size, then type) so a
batch is either accepted as a whole or rejected without side effects.
"""

import logging
from collections.abc import Sequence

from magnetcart.config import MAX_FILE_SIZE_BYTES
from magnetcart.models.failure import FileTooLargeError, PackageFullError, UnsupportedTypeError
from magnetcart.models.staged import RawFile

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})

# Browsers are inconsistent about jpeg content types
_CONTENT_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
}


def normalize_content_type(content_type: str) -> str:
    """Lowercase a content type, drop parameters and resolve aliases."""
    base = content_type.split(";", 1)[0].strip().lower()
    return _CONTENT_TYPE_ALIASES.get(base, base)


def validate_files(files: Sequence[RawFile], max_size: int = MAX_FILE_SIZE_BYTES) -> None:
    """
    Validate a batch of raw files.

    Raises:
        FileTooLargeError: For the first file larger than max_size
        UnsupportedTypeError: For the first file that is not JPEG, PNG or WEBP
    """
    for file in files:
        if file.size > max_size:
            raise FileTooLargeError(file.filename, file.size, max_size)

    for file in files:
        if normalize_content_type(file.content_type) not in ALLOWED_CONTENT_TYPES:
            raise UnsupportedTypeError(file.filename, file.content_type)


def fit_to_slots(
    files: Sequence[RawFile], remaining_slots: int, max_files: int
) -> tuple[list[RawFile], int]:
    """
    Truncate a batch to the slots left in a package.

    Returns:
        Tuple of (accepted files, number of files dropped)

    Raises:
        PackageFullError: If the package has no slots left
    """
    if remaining_slots <= 0:
        raise PackageFullError(max_files)

    accepted = list(files[:remaining_slots])
    dropped = len(files) - len(accepted)
    if dropped:
        logger.warning(
            "Only %d more images fit in this package, ignoring %d of %d files",
            remaining_slots,
            dropped,
            len(files),
        )
    return accepted, dropped
