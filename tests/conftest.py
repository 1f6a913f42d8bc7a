from collections.abc import Callable
from io import BytesIO

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from magnetcart.db.database import get_session
from magnetcart.main import app
from magnetcart.models.db import Base
from magnetcart.models.staged import RawFile
from magnetcart.services.blob_upload import UploadError


def _image_bytes(
    fmt: str = "JPEG",
    size: tuple[int, int] = (400, 300),
    color: str | tuple[int, ...] = "red",
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-color test image."""
    img = Image.new(mode, size, color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class FakeUploader:
    """BlobUploader that records uploads and can fail on a chosen call."""

    def __init__(self, fail_at: int | None = None):
        self.fail_at = fail_at
        self.calls: list[tuple[str, int]] = []

    async def upload(self, data: bytes, filename: str) -> str:
        index = len(self.calls)
        self.calls.append((filename, len(data)))
        if self.fail_at is not None and index == self.fail_at:
            raise UploadError(f"storage rejected {filename}")
        return f"https://cdn.test/{filename}"


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG", mode="RGBA", color=(0, 0, 255, 128))


@pytest.fixture
def make_raw_file(jpeg_bytes: bytes) -> Callable[..., RawFile]:
    """Factory for picked photos."""

    def _make(
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
        data: bytes | None = None,
    ) -> RawFile:
        return RawFile(filename=filename, content_type=content_type, data=data or jpeg_bytes)

    return _make


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return _image_bytes


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def failing_uploader() -> Callable[[int], FakeUploader]:
    """Factory for uploaders that fail on the given call index."""
    return lambda fail_at: FakeUploader(fail_at=fail_at)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
