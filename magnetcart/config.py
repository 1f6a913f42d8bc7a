from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "MagnetCart"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/magnetcart"

    # Where the upload endpoint writes image blobs and how they are served
    upload_dir: str = "uploads"
    public_upload_base_url: str = "http://localhost:8000/media"

    # Base URL the client-side collaborators (uploader, order client) talk to
    api_base_url: str = "http://localhost:8000"


settings = Settings()


# =============================================================================
# UPLOAD LIMITS
# =============================================================================

# Maximum accepted size of a raw photo before cropping
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024

# Cropped images above this size are recompressed before upload
UPLOAD_RECOMPRESS_THRESHOLD = 5 * 1024 * 1024


# =============================================================================
# CART PERSISTENCE LIMITS
# =============================================================================

# Embedded string payloads longer than this are never written to the cart store
PAYLOAD_STRIP_THRESHOLD = 1024

# Most recent thumbnails kept in the ephemeral thumbnail cache
THUMBNAIL_CACHE_MAX_ENTRIES = 25
