"""
Image upload endpoint.

Accepts one image as a data URI (or bare base64), stores it, and returns
the public URL the cart and the order will reference.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from magnetcart.config import MAX_FILE_SIZE_BYTES, settings
from magnetcart.services.blob_upload import LocalBlobStorage, decode_base64_image
from magnetcart.services.images import detect_format

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp"}

# base64 of the largest accepted photo, plus room for a data URI prefix
MAX_ENCODED_LENGTH = 4 * -(-MAX_FILE_SIZE_BYTES // 3) + 64


class UploadRequest(BaseModel):
    """Request model for an image upload."""

    base64_data: str = Field(
        ...,
        max_length=MAX_ENCODED_LENGTH,
        description="Image as a data URI or bare base64 string",
        examples=["data:image/jpeg;base64,/9j/4AAQSkZJRg..."],
    )
    filename: str | None = None
    user_id: str | None = Field(
        default=None,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Owner of the upload; images are grouped per user when given",
    )


class UploadResponse(BaseModel):
    """Response model for an image upload."""

    url: str


def get_blob_storage() -> LocalBlobStorage:
    """Dependency that provides the configured blob storage."""
    return LocalBlobStorage(settings.upload_dir, settings.public_upload_base_url)


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    request: UploadRequest,
    storage: Annotated[LocalBlobStorage, Depends(get_blob_storage)],
) -> UploadResponse:
    """
    Store one image and return its public URL.

    Returns 400 when the data is missing, not base64, empty, larger than
    the photo size limit, or not a JPEG, PNG or WEBP image.
    """
    if not request.base64_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No image data provided",
        )

    try:
        data = decode_base64_image(request.base64_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    if len(data) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Image is larger than {MAX_FILE_SIZE_BYTES // (1024 * 1024)}MB",
        )

    image_format = detect_format(data)
    extension = _EXTENSIONS.get(image_format or "")
    if extension is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported image format. Please upload JPEG, PNG or WEBP.",
        )

    url = await run_in_threadpool(
        storage.save, data, extension=extension, folder=request.user_id
    )
    logger.info("Upload %s stored as %s", request.filename or "<unnamed>", url)
    return UploadResponse(url=url)
