"""Image handling for shared pictures.

Exports
-------
decode_image
    Decode raw bytes with Pillow.
extract_metadata / read_metadata
    Capture date, camera model, and lens model.
process_image / async_process_image
    Decode, read metadata, and re-encode to JPEG for upload.
"""

from .process import (
    JPEG_CONTENT_TYPE,
    async_process_image,
    decode_image,
    extract_metadata,
    format_capture_date,
    process_image,
    read_metadata,
    reencode_jpeg,
)

__all__ = [
    "JPEG_CONTENT_TYPE",
    "async_process_image",
    "decode_image",
    "extract_metadata",
    "format_capture_date",
    "process_image",
    "read_metadata",
    "reencode_jpeg",
]
