"""Tests for the image upload endpoint."""

import base64
import threading
from pathlib import Path

import pytest
from httpx import AsyncClient

from magnetcart.api.uploads import MAX_ENCODED_LENGTH, get_blob_storage
from magnetcart.config import MAX_FILE_SIZE_BYTES
from magnetcart.main import app
from magnetcart.services.blob_upload import LocalBlobStorage


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    app.dependency_overrides[get_blob_storage] = lambda: LocalBlobStorage(
        root, "https://cdn.test/media"
    )
    return root


class TestUpload:
    async def test_upload_data_uri(
        self, client: AsyncClient, storage_root: Path, jpeg_bytes: bytes
    ) -> None:
        """A JPEG data URI is stored and its public URL returned."""
        payload = {
            "base64_data": "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode(),
            "filename": "crop.jpg",
        }

        response = await client.post("/upload", json=payload)

        assert response.status_code == 200
        url = response.json()["url"]
        assert url.startswith("https://cdn.test/media/magnet_")
        assert url.endswith(".jpg")
        stored = storage_root / url.rsplit("/", 1)[1]
        assert stored.read_bytes() == jpeg_bytes

    async def test_png_keeps_extension(
        self, client: AsyncClient, storage_root: Path, png_bytes: bytes
    ) -> None:
        payload = {"base64_data": base64.b64encode(png_bytes).decode(), "user_id": "user-1"}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 200
        assert "/user-1/magnet_" in response.json()["url"]
        assert response.json()["url"].endswith(".png")

    @pytest.mark.parametrize(
        "base64_data",
        ["", "data:image/jpeg;base64,", "%%% not base64 %%%"],
    )
    async def test_bad_data(
        self, client: AsyncClient, storage_root: Path, base64_data: str
    ) -> None:
        response = await client.post("/upload", json={"base64_data": base64_data})

        assert response.status_code == 400

    async def test_not_an_image(self, client: AsyncClient, storage_root: Path) -> None:
        payload = {"base64_data": base64.b64encode(b"plain text, not pixels").decode()}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 400
        assert not storage_root.exists()

    async def test_rejects_unsafe_user_id(
        self, client: AsyncClient, storage_root: Path, jpeg_bytes: bytes
    ) -> None:
        payload = {"base64_data": base64.b64encode(jpeg_bytes).decode(), "user_id": "../x"}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 422

    async def test_oversized_image_rejected(
        self,
        client: AsyncClient,
        storage_root: Path,
        jpeg_bytes: bytes,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A decoded image over the photo size limit is not stored."""
        monkeypatch.setattr("magnetcart.api.uploads.MAX_FILE_SIZE_BYTES", len(jpeg_bytes) - 1)
        payload = {"base64_data": base64.b64encode(jpeg_bytes).decode()}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 400
        assert not storage_root.exists()

    async def test_oversized_body_rejected(self, client: AsyncClient, storage_root: Path) -> None:
        payload = {"base64_data": "A" * (MAX_ENCODED_LENGTH + 4)}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 422
        assert not storage_root.exists()

    def test_limit_fits_largest_photo(self) -> None:
        encoded = len(base64.b64encode(b"\x00" * MAX_FILE_SIZE_BYTES))

        assert encoded + len("data:image/jpeg;base64,") <= MAX_ENCODED_LENGTH

    async def test_file_written_off_event_loop(
        self, client: AsyncClient, tmp_path: Path, jpeg_bytes: bytes
    ) -> None:
        """Disk writes run in a worker thread, not on the request's event loop."""
        threads: list[int] = []

        class RecordingStorage(LocalBlobStorage):
            def save(self, data: bytes, extension: str = "jpg", folder: str | None = None) -> str:
                threads.append(threading.get_ident())
                return super().save(data, extension=extension, folder=folder)

        app.dependency_overrides[get_blob_storage] = lambda: RecordingStorage(
            tmp_path, "https://cdn.test/media"
        )
        payload = {"base64_data": base64.b64encode(jpeg_bytes).decode()}

        response = await client.post("/upload", json=payload)

        assert response.status_code == 200
        assert threads and threads[0] != threading.get_ident()
