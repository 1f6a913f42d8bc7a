"""
Blob upload for magnet photos.

Client side: HttpBlobUploader sends one image at a time to the upload
endpoint and returns its public URL.

Server side: LocalBlobStorage writes the decoded bytes under the upload
directory and builds the public URL the storefront serves them from.
"""

import base64
import binascii
import json
import logging
import re
from pathlib import Path
from typing import Protocol
from uuid import uuid4

import httpx

logger = logging.getLogger(__name__)

_FOLDER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class UploadError(Exception):
    """Raised when an image upload fails."""


class BlobUploader(Protocol):
    """Anything that can turn image bytes into a public URL."""

    async def upload(self, data: bytes, filename: str) -> str: ...


class HttpBlobUploader:
    """Uploads images to the storefront's `/upload` endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        user_id: str | None = None,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self._client = client

    async def upload(self, data: bytes, filename: str) -> str:
        """
        Upload image bytes.

        Returns:
            Public URL of the stored image

        Raises:
            UploadError: If upload fails (network, HTTP or response errors)
        """
        url = f"{self.base_url}/upload"
        payload = {
            "base64_data": "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii"),
            "filename": filename,
            "user_id": self.user_id,
        }

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
        except httpx.RequestError as exc:
            raise UploadError(f"Network error uploading {filename}: {exc}") from exc

        if not response.is_success:
            raise UploadError(
                f"Failed to upload {filename}: HTTP {response.status_code} - {response.text}"
            )

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise UploadError(f"Invalid JSON response: {response.text}") from exc

        public_url = body.get("url") if isinstance(body, dict) else None
        if not public_url:
            raise UploadError("No URL returned from server")

        logger.debug("Uploaded %s (%d bytes)", filename, len(data))
        return str(public_url)


def decode_base64_image(base64_data: str) -> bytes:
    """
    Decode a data URI or bare base64 string.

    Raises:
        ValueError: If the content is missing, not base64, or decodes to nothing
    """
    content = base64_data.split(",", 1)[1] if "," in base64_data else base64_data
    content = content.strip()
    if not content:
        raise ValueError("Invalid base64 content")

    try:
        decoded = base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Failed to process image data") from exc

    if not decoded:
        raise ValueError("Empty image data")
    return decoded


class LocalBlobStorage:
    """Stores uploaded images on local disk and serves them under a public base URL."""

    def __init__(self, root: Path | str, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def save(self, data: bytes, extension: str = "jpg", folder: str | None = None) -> str:
        """
        Write image bytes to a new, uniquely named file.

        Returns:
            Public URL of the stored file

        Raises:
            ValueError: If folder is not a plain directory name
        """
        if folder is not None and not _FOLDER_PATTERN.fullmatch(folder):
            raise ValueError(f"Invalid upload folder: {folder!r}")

        name = f"magnet_{uuid4().hex}.{extension.lower().lstrip('.')}"
        relative = f"{folder}/{name}" if folder else name

        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        logger.info("Stored upload %s (%d bytes)", relative, len(data))
        return f"{self.public_base_url}/{relative}"
