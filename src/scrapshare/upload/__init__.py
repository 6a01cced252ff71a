"""scrapshare.upload -- remote image hosting."""

from __future__ import annotations

from .gyazo import UPLOAD_FILENAME, AsyncGyazoUploader

__all__ = [
    "UPLOAD_FILENAME",
    "AsyncGyazoUploader",
]
