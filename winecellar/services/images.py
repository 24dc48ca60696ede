"""Image derivation pipeline for wine photos.

Uploads go through: size guard -> decode -> orientation fix -> resize and
thumbnail -> PNG encode. Only the PNG results are stored; the uploaded
original is discarded. Every stage except storage is a pure function of its
input, so the CPU-bound work can run in a worker thread.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from winecellar.config.schema import ImageConfig
from winecellar.errors import InvalidInputError, PayloadTooLargeError

logger = logging.getLogger(__name__)

RESAMPLE = Image.Resampling.LANCZOS


@dataclass(frozen=True)
class CropRegion:
    """Rectangle in source pixels, as posted by the crop form."""

    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class DerivedImage:
    """PNG encodings produced from one source image."""

    image: bytes
    thumbnail: bytes


def _too_large(size: int, limit: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(
        f"Upload of {size} bytes exceeds maximum allowed size of {limit / (1024 * 1024):.1f} MB"
    )


def ensure_declared_size(content_length: str | None, limit: int) -> None:
    """Reject a request whose declared Content-Length is over ``limit``.

    Runs before the body is read. A missing or unparsable header is let
    through; ``ensure_payload_size`` still checks the bytes actually read.
    """
    if not content_length:
        return
    try:
        declared = int(content_length)
    except ValueError:
        logger.debug("Ignoring unparsable Content-Length: %r", content_length)
        return
    if declared > limit:
        raise _too_large(declared, limit)


def ensure_payload_size(data: bytes, limit: int) -> None:
    """Reject an upload whose actual size is over ``limit``."""
    if len(data) > limit:
        raise _too_large(len(data), limit)


def decode(raw: bytes) -> Image.Image:
    """Decode image bytes, detecting the format from the content.

    The result is RGB, or RGBA when the source has transparency.

    Raises:
        InvalidInputError: If the data is not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("Image decode failed: %s", e)
        raise InvalidInputError("Unrecognized or corrupt image") from e

    if image.mode in ("RGB", "RGBA"):
        return image
    if image.mode in ("LA", "PA") or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def normalize(
    image: Image.Image,
    device_hint: str | None,
    mode: str = "device",
    marker: str = "iPhone",
) -> Image.Image:
    """Correct the orientation of a decoded upload.

    In ``device`` mode the image is turned 90 degrees clockwise when the
    client's user agent contains ``marker``, and left alone otherwise. In
    ``exif`` mode the embedded orientation tag is applied instead.
    """
    if mode == "exif":
        return ImageOps.exif_transpose(image)
    if device_hint and marker and marker in device_hint:
        return image.transpose(Image.Transpose.ROTATE_270)
    return image


def resize_to_bound(image: Image.Image, max_w: int, max_h: int) -> Image.Image:
    """Scale down so the image fits in ``max_w`` x ``max_h``, keeping its aspect ratio.

    Images already inside the bound are returned as an unscaled copy.
    """
    if max_w <= 0 or max_h <= 0:
        raise ValueError("Resize bounds must be positive")
    width, height = image.size
    if width <= max_w and height <= max_h:
        return image.copy()
    scale = min(max_w / width, max_h / height)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(size, RESAMPLE)


def thumbnail(image: Image.Image, max_w: int, max_h: int) -> Image.Image:
    """Small preview; same contract as ``resize_to_bound`` with smaller bounds."""
    return resize_to_bound(image, max_w, max_h)


def crop(image: Image.Image, x: int, y: int, w: int, h: int) -> Image.Image:
    """Cut out the ``w`` x ``h`` rectangle at (``x``, ``y``).

    A rectangle running past the right or bottom edge is truncated to the
    image rather than rejected.

    Raises:
        InvalidInputError: If the size is not positive or the origin lies
            outside the image.
    """
    if w <= 0 or h <= 0:
        raise InvalidInputError("Crop size must be non-zero")
    width, height = image.size
    if x < 0 or y < 0 or x >= width or y >= height:
        raise InvalidInputError("Crop origin out of bounds")
    w = min(w, width - x)
    h = min(h, height - y)
    return image.crop((x, y, x + w, y + h))


def encode_png(image: Image.Image) -> bytes:
    """Serialize to PNG, the only format we store."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def derive_upload(raw: bytes, device_hint: str | None, options: ImageConfig) -> DerivedImage:
    """Turn uploaded bytes into the stored image and thumbnail.

    The size limit is checked before any decoding. The thumbnail is scaled
    from the oriented source, not from the already-resized image.

    Raises:
        PayloadTooLargeError: If ``raw`` is over the upload limit.
        InvalidInputError: If ``raw`` is not a readable image.
    """
    ensure_payload_size(raw, options.max_upload_bytes)
    source = normalize(
        decode(raw),
        device_hint,
        mode=options.orientation,
        marker=options.rotate_agent_marker,
    )
    full = resize_to_bound(source, options.max_width, options.max_height)
    small = thumbnail(source, options.thumbnail_width, options.thumbnail_height)
    logger.debug("Derived %s image and %s thumbnail from %s source", full.size, small.size, source.size)
    return DerivedImage(image=encode_png(full), thumbnail=encode_png(small))


def derive_crop(stored: bytes, region: CropRegion, options: ImageConfig) -> DerivedImage:
    """Crop a stored image and rebuild its thumbnail from the cropped result.

    Raises:
        InvalidInputError: If the region is invalid or the stored data is unreadable.
    """
    cropped = crop(decode(stored), region.x, region.y, region.w, region.h)
    small = thumbnail(cropped, options.thumbnail_width, options.thumbnail_height)
    return DerivedImage(image=encode_png(cropped), thumbnail=encode_png(small))


def image_size(data: bytes) -> tuple[int, int]:
    """Width and height of encoded image data, read from its header.

    Raises:
        InvalidInputError: If the data is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInputError("Unrecognized or corrupt image") from e
