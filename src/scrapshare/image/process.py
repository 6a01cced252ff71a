"""Shared-image decoding, metadata extraction, and upload normalisation.

Handles any container Pillow can open.  Metadata always comes from the
original bytes, before re-encoding discards it.
"""

from __future__ import annotations

import asyncio
import io
import struct

from PIL import ExifTags, Image, ImageOps, UnidentifiedImageError

from scrapshare.errors import ScrapshareDecodeError
from scrapshare.models import ImageMetadata, ProcessedImage
from scrapshare.observability import get_logger

log = get_logger("scrapshare.image")

JPEG_CONTENT_TYPE = "image/jpeg"

# Capture-date tags in preference order: (IFD, tag).  ``None`` is IFD0.
_DATE_TAGS: tuple[tuple[ExifTags.IFD | None, int], ...] = (
    (ExifTags.IFD.Exif, ExifTags.Base.DateTimeOriginal),
    (ExifTags.IFD.Exif, ExifTags.Base.DateTimeDigitized),
    (None, ExifTags.Base.DateTime),
)

_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    ValueError,
    SyntaxError,
    struct.error,
)

# Raised by Pillow while parsing a malformed EXIF block.
_EXIF_ERRORS = (SyntaxError, OSError, ValueError, KeyError, struct.error)


def decode_image(data: bytes) -> Image.Image:
    """Decode *data* into a fully loaded Pillow image.

    Raises
    ------
    ScrapshareDecodeError
        If the bytes are not an image Pillow recognises, or are truncated.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except _DECODE_ERRORS as exc:
        raise ScrapshareDecodeError(
            message=f"Could not decode image data: {exc}",
            context={"size_bytes": len(data)},
            cause=exc,
        ) from exc
    return image


def _clean(value: object) -> str | None:
    """Return a trimmed string for an EXIF value, or ``None`` if empty."""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    value = value.replace("\x00", "").strip()
    return value or None


def _lookup(exif: Image.Exif, ifd: ExifTags.IFD | None, tag: int) -> object:
    if ifd is None:
        return exif.get(tag)
    value = exif.get_ifd(ifd).get(tag)
    # Some writers put EXIF-IFD tags in IFD0.
    return value if value is not None else exif.get(tag)


def format_capture_date(raw: str) -> str:
    """Turn an EXIF ``YYYY:MM:DD HH:MM:SS`` timestamp into ``YYYY-MM-DD``."""
    return raw[:10].replace(":", "-")


def read_metadata(image: Image.Image) -> ImageMetadata:
    """Read capture date, camera model, and lens model from *image*.

    Metadata is optional: an EXIF block Pillow cannot parse yields an empty
    :class:`ImageMetadata` and a warning instead of an error.
    """
    try:
        exif = image.getexif()

        capture_date: str | None = None
        for ifd, tag in _DATE_TAGS:
            raw = _clean(_lookup(exif, ifd, tag))
            if raw:
                capture_date = format_capture_date(raw)
                break

        return ImageMetadata(
            capture_date=capture_date,
            camera_model=_clean(exif.get(ExifTags.Base.Model)),
            lens_model=_clean(_lookup(exif, ExifTags.IFD.Exif, ExifTags.Base.LensModel)),
        )
    except _EXIF_ERRORS as exc:
        log.warning(
            "Unreadable EXIF block, continuing without metadata",
            extra={
                "extra_fields": {
                    "op": "read_metadata",
                    "format": getattr(image, "format", None),
                    "error": repr(exc),
                }
            },
        )
        return ImageMetadata()


def extract_metadata(data: bytes) -> ImageMetadata:
    """Decode *data* and return its metadata.

    Pure: identical bytes always yield an identical :class:`ImageMetadata`.
    """
    return read_metadata(decode_image(data))


def reencode_jpeg(image: Image.Image, quality: int = 90) -> bytes:
    """Encode *image* as JPEG, applying its EXIF orientation first.

    A malformed EXIF block leaves the image unrotated.
    """
    try:
        image = ImageOps.exif_transpose(image)
    except _EXIF_ERRORS as exc:
        log.debug(
            "Orientation not applied",
            extra={"extra_fields": {"op": "reencode_jpeg", "error": repr(exc)}},
        )
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def process_image(data: bytes, jpeg_quality: int = 90) -> ProcessedImage:
    """Decode, read metadata from, and normalise a shared image.

    Re-encoding is best effort: if it fails the original bytes are forwarded
    unchanged, still labelled ``image/jpeg`` as the upload endpoint expects.

    Parameters
    ----------
    data:
        Raw attachment bytes.
    jpeg_quality:
        Quality for the re-encoded JPEG.

    Returns
    -------
    ProcessedImage

    Raises
    ------
    ScrapshareDecodeError
        If *data* is not a decodable image.
    """
    image = decode_image(data)
    metadata = read_metadata(image)

    try:
        encoded = reencode_jpeg(image, quality=jpeg_quality)
    except (OSError, ValueError, SyntaxError) as exc:
        log.warning(
            "JPEG re-encode failed, forwarding original bytes",
            extra={
                "extra_fields": {
                    "op": "process_image",
                    "format": image.format,
                    "mode": image.mode,
                    "error": str(exc),
                }
            },
        )
        return ProcessedImage(
            data=data,
            content_type=JPEG_CONTENT_TYPE,
            metadata=metadata,
            reencoded=False,
        )

    log.debug(
        "Image processed",
        extra={
            "extra_fields": {
                "op": "process_image",
                "format": image.format,
                "size_in": len(data),
                "size_out": len(encoded),
                "capture_date": metadata.capture_date,
            }
        },
    )
    return ProcessedImage(
        data=encoded,
        content_type=JPEG_CONTENT_TYPE,
        metadata=metadata,
        reencoded=True,
    )


async def async_process_image(data: bytes, jpeg_quality: int = 90) -> ProcessedImage:
    """Run :func:`process_image` in a worker thread."""
    return await asyncio.to_thread(process_image, data, jpeg_quality)
