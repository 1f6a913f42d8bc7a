"""
Image processing for magnet photos (Pillow).

Cropped photos are normalized to a fixed white-backed square JPEG, the
same output the storefront's crop canvas produces. Thumbnails are small
JPEGs for previews; `recompress` is the aggressive pass used when a
cropped photo is too big to upload comfortably.
"""

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from magnetcart.models.failure import InvalidImageError

CROP_OUTPUT_SIZE = 800
CROP_JPEG_QUALITY = 95
THUMBNAIL_MAX_DIM = 200
THUMBNAIL_JPEG_QUALITY = 80
RECOMPRESS_JPEG_QUALITY = 70
RECOMPRESS_MAX_DIM = 1600

CropBox = tuple[int, int, int, int]


def _open(data: bytes) -> Image.Image:
    """Open image bytes, apply EXIF orientation and flatten onto white RGB."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InvalidImageError(f"{type(e).__name__}: {e}") from e

    img = ImageOps.exif_transpose(img)

    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, "white")
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _to_jpeg(img: Image.Image, quality: int) -> bytes:
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=quality, optimize=True, progressive=True)
    return buf.getvalue()


def _center_square(size: tuple[int, int]) -> CropBox:
    width, height = size
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    return (left, top, left + side, top + side)


def detect_format(data: bytes) -> str | None:
    """Return the Pillow format name of image bytes (e.g. "JPEG"), or None if unreadable."""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def crop_square(
    data: bytes,
    box: CropBox | None = None,
    rotation: float = 0,
    output_size: int = CROP_OUTPUT_SIZE,
) -> bytes:
    """
    Crop a photo to a fixed-size square JPEG.

    Args:
        data: Source image bytes
        box: (left, top, right, bottom) crop area in source pixels;
            defaults to the largest centered square
        rotation: Degrees to rotate the cropped area, counter-clockwise
        output_size: Side of the output square in pixels

    Raises:
        InvalidImageError: If the image cannot be decoded or the box is empty
    """
    img = _open(data)

    left, top, right, bottom = box if box is not None else _center_square(img.size)
    if right <= left or bottom <= top:
        raise InvalidImageError(f"Empty crop box: {box}")

    cropped = img.crop((left, top, right, bottom))
    if rotation:
        cropped = cropped.rotate(rotation, fillcolor="white")

    square = cropped.resize((output_size, output_size), Image.Resampling.LANCZOS)
    return _to_jpeg(square, CROP_JPEG_QUALITY)


def make_thumbnail(data: bytes, max_dim: int = THUMBNAIL_MAX_DIM) -> bytes:
    """Build a small JPEG preview that fits in max_dim x max_dim."""
    img = _open(data)
    img.thumbnail((max_dim, max_dim))
    return _to_jpeg(img, THUMBNAIL_JPEG_QUALITY)


def recompress(
    data: bytes,
    quality: int = RECOMPRESS_JPEG_QUALITY,
    max_dim: int = RECOMPRESS_MAX_DIM,
) -> bytes:
    """Aggressively shrink an image: downscale to max_dim and re-encode at lower quality."""
    img = _open(data)
    if max(img.size) > max_dim:
        img.thumbnail((max_dim, max_dim))
    return _to_jpeg(img, quality)
