"""
Package Builder: turns a package tier and a pile of photos into one cart item.

States:

    IDLE -> PACKAGE_SELECTED -> CROPPING_IMAGE <-> (until queue empty)
         -> BATCH_COMPLETE | PACKAGE_INCOMPLETE -> UPLOADING -> CART_ITEM_READY

Photos are validated as a batch, cropped strictly one at a time in the
order they were picked, held in memory as StagedImages, and only uploaded
when the customer adds the finished package to the cart.

INVARIANTS:
- A validation failure leaves the builder exactly as it was
- Staged images are only discarded by clear_staged(), a confirmed package
  switch, or a successful finalize_for_cart()
- Upload order == staged order == crop order == pick order

The builder never touches the cart. finalize_for_cart() returns the item;
the caller hands it to the cart ledger.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from magnetcart.config import UPLOAD_RECOMPRESS_THRESHOLD
from magnetcart.models.cart import PackageDetails, PackageLineItem
from magnetcart.models.catalog import DEFAULT_FINISH, DEFAULT_SIZE, Package, get_package
from magnetcart.models.failure import (
    CropSessionActiveError,
    DiscardConfirmationRequired,
    FailureKind,
    KnownError,
    NoActiveCropSessionError,
    NoPackageSelectedError,
    PackageIncompleteError,
    UploadFailedError,
)
from magnetcart.models.staged import RawFile, StagedImage
from magnetcart.services.blob_upload import BlobUploader, UploadError
from magnetcart.services.cart_persistence import ThumbnailCache
from magnetcart.services.crop_queue import CropQueue
from magnetcart.services.file_validation import fit_to_slots, validate_files
from magnetcart.services.images import make_thumbnail, recompress

logger = logging.getLogger(__name__)


class BuilderState(str, Enum):
    IDLE = "idle"
    PACKAGE_SELECTED = "package_selected"
    CROPPING_IMAGE = "cropping_image"
    BATCH_COMPLETE = "batch_complete"
    PACKAGE_INCOMPLETE = "package_incomplete"
    UPLOADING = "uploading"
    CART_ITEM_READY = "cart_item_ready"


@dataclass(frozen=True)
class EnqueueResult:
    """Outcome of enqueueing a batch: how many files were queued and how many ignored."""

    queued: int
    dropped: int

    @property
    def truncated(self) -> bool:
        return self.dropped > 0


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of submitting one cropped image."""

    staged: StagedImage
    batch_complete: bool
    next_file: RawFile | None


class PackageBuilder:
    """Assembles one magnet package at a time."""

    def __init__(self, thumbnail_cache: ThumbnailCache | None = None):
        self.thumbnail_cache = thumbnail_cache
        self._package: Package | None = None
        self._staged: list[StagedImage] = []
        self._queue = CropQueue()
        self._state = BuilderState.IDLE

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def package(self) -> Package | None:
        return self._package

    @property
    def staged(self) -> tuple[StagedImage, ...]:
        return tuple(self._staged)

    @property
    def queue(self) -> CropQueue:
        return self._queue

    @property
    def current_file(self) -> RawFile | None:
        """The photo in the open crop session, if any."""
        return self._queue.current

    @property
    def remaining_slots(self) -> int:
        if self._package is None:
            return 0
        return self._package.max_files - len(self._staged)

    @property
    def is_complete(self) -> bool:
        return self._package is not None and len(self._staged) >= self._package.max_files

    @property
    def progress(self) -> float:
        """Fraction of the package filled, capped at 1.0."""
        if self._package is None:
            return 0.0
        return min(len(self._staged) / self._package.max_files, 1.0)

    def _settled_state(self) -> BuilderState:
        """State once no crop session or upload is running."""
        if self._package is None:
            return BuilderState.IDLE
        if not self._staged:
            return BuilderState.PACKAGE_SELECTED
        if self.is_complete:
            return BuilderState.BATCH_COMPLETE
        return BuilderState.PACKAGE_INCOMPLETE

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def select_package(self, package_id: str, *, confirm_discard: bool = False) -> Package:
        """
        Make package_id the active tier.

        Switching tiers discards staged images and any queued files, so it
        requires confirm_discard=True when images are staged.

        Raises:
            PackageNotFoundError: If package_id is not a catalog tier
            DiscardConfirmationRequired: If images would be lost unconfirmed
        """
        package = get_package(package_id)
        if self._package is not None and self._package.id == package.id:
            return package

        if self._staged and not confirm_discard:
            raise DiscardConfirmationRequired(
                "Changing the package will remove your uploaded images.",
                discarded=len(self._staged),
            )

        if self._staged or self._queue.is_active:
            logger.info(
                "Switching package %s -> %s, discarding %d staged images",
                self._package.id if self._package else None,
                package.id,
                len(self._staged),
            )

        self._package = package
        self._staged = []
        self._queue.reset()
        self._state = BuilderState.PACKAGE_SELECTED
        return package

    def enqueue_files(self, files: Sequence[RawFile]) -> EnqueueResult:
        """
        Validate a batch of photos and open a crop session on the first one.

        Files beyond the package's remaining slots are ignored (with a
        warning), not rejected.

        Raises:
            KnownError: If files is empty
            NoPackageSelectedError: If no package is selected
            FileTooLargeError: If any file exceeds the size limit
            UnsupportedTypeError: If any file is not JPEG, PNG or WEBP
            PackageFullError: If the package has no slots left
            CropSessionActiveError: If a previous batch is still being cropped
        """
        if not files:
            raise KnownError(
                kind=FailureKind.INVALID_INPUT,
                message="No files were provided.",
            )
        if self._package is None:
            raise NoPackageSelectedError()
        if self._queue.is_active:
            raise CropSessionActiveError(self._queue.remaining)

        validate_files(files)
        accepted, dropped = fit_to_slots(files, self.remaining_slots, self._package.max_files)

        self._queue.load(accepted)
        self._state = BuilderState.CROPPING_IMAGE
        logger.info(
            "Queued %d photos for package %s (%d staged)",
            len(accepted),
            self._package.id,
            len(self._staged),
        )
        return EnqueueResult(queued=len(accepted), dropped=dropped)

    def submit_cropped_image(self, data: bytes) -> SubmitResult:
        """
        Stage the cropped version of the current photo and move to the next.

        Raises:
            NoActiveCropSessionError: If no photo is being edited
            InvalidImageError: If data is not a readable image
        """
        current = self._queue.current
        if current is None:
            raise NoActiveCropSessionError()

        staged = StagedImage(
            full_image=data,
            thumbnail=make_thumbnail(data),
            display_name=current.filename,
        )
        self._staged.append(staged)

        next_file = self._queue.advance()
        if next_file is not None:
            return SubmitResult(staged=staged, batch_complete=False, next_file=next_file)

        self._state = self._settled_state()
        logger.info(
            "Batch complete for package %s: %d/%d images",
            self._package.id if self._package else None,
            len(self._staged),
            self._package.max_files if self._package else 0,
        )
        return SubmitResult(staged=staged, batch_complete=True, next_file=None)

    def cancel_crop_session(self, *, confirm: bool = False) -> int:
        """
        Abandon the photos still waiting to be cropped.

        The whole remaining queue is discarded, not just the current photo.
        More than one remaining photo requires confirm=True.

        Returns:
            Number of photos discarded

        Raises:
            DiscardConfirmationRequired: If several photos would be lost unconfirmed
        """
        remaining = self._queue.remaining
        if remaining > 1 and not confirm:
            raise DiscardConfirmationRequired(
                f"You still have {remaining} images to edit. They will be discarded.",
                discarded=remaining,
            )

        self._queue.reset()
        self._state = self._settled_state()
        return remaining

    def remove_staged(self, index: int) -> StagedImage | None:
        """Remove one staged image. Out-of-range index is ignored."""
        if not 0 <= index < len(self._staged):
            return None
        removed = self._staged.pop(index)
        if not self._queue.is_active:
            self._state = self._settled_state()
        return removed

    def clear_staged(self) -> None:
        """Drop all staged images and any queued files. The package stays selected."""
        self._staged = []
        self._queue.reset()
        self._state = self._settled_state()

    async def finalize_for_cart(self, uploader: BlobUploader) -> PackageLineItem:
        """
        Upload the staged images and build the package line item.

        Images are uploaded one at a time in staged order. An image larger
        than the recompress threshold is recompressed before upload. If any
        upload fails the whole package is abandoned: the staged images are
        kept so the customer can retry, and no item is returned.

        Raises:
            NoPackageSelectedError: If no package is selected
            CropSessionActiveError: If photos are still being cropped
            PackageIncompleteError: If the package is not full
            UploadFailedError: If an image fails to upload
        """
        package = self._package
        if package is None:
            raise NoPackageSelectedError()
        if self._queue.is_active:
            raise CropSessionActiveError(self._queue.remaining)
        if not self.is_complete:
            raise PackageIncompleteError(len(self._staged), package.max_files)

        prior_state = self._state
        self._state = BuilderState.UPLOADING
        batch_id = uuid4().hex[:12]
        urls: list[str] = []

        try:
            for index, image in enumerate(self._staged):
                data = image.full_image
                if len(data) > UPLOAD_RECOMPRESS_THRESHOLD:
                    logger.info(
                        "Image %d is %d bytes, recompressing before upload", index, len(data)
                    )
                    data = recompress(data)

                try:
                    url = await uploader.upload(
                        data, f"package-{package.id}-{batch_id}-{index}.jpg"
                    )
                except UploadError as e:
                    raise UploadFailedError(index, str(e)) from e
                urls.append(url)
        except BaseException:
            self._state = prior_state
            if urls:
                logger.warning(
                    "Package upload aborted after %d images; uploaded images are orphaned: %s",
                    len(urls),
                    urls,
                )
            raise

        first = self._staged[0]
        thumbnail_key = f"package-{package.id}-{batch_id}"
        if self.thumbnail_cache is not None:
            self.thumbnail_cache.put(thumbnail_key, first.thumbnail)

        item = PackageLineItem(
            id=f"package-{package.id}-{batch_id}",
            name=f"Custom Magnets Package ({package.name})",
            price=package.price,
            quantity=1,
            images=list(urls),
            thumbnail=first.thumbnail,
            thumbnail_key=thumbnail_key,
            details=PackageDetails(
                package_id=package.id,
                package_name=package.name,
                size=DEFAULT_SIZE,
                finish=DEFAULT_FINISH,
                image_urls=list(urls),
            ),
        )

        self._staged = []
        self._state = BuilderState.CART_ITEM_READY
        logger.info("Package %s ready for cart with %d images", package.id, len(urls))
        return item
