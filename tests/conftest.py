"""Shared test fixtures for the scrapshare test suite."""

from __future__ import annotations

import io
from typing import Any

import pytest
from PIL import ExifTags, Image

from scrapshare.config import MappingConfigProvider, ScrapshareConfig


class FakeHost:
    """Host context double recording every open and completion call."""

    def __init__(
        self,
        open_result: bool = True,
        open_exc: Exception | None = None,
        next_responder: Any | None = None,
    ) -> None:
        self.open_result = open_result
        self.open_exc = open_exc
        self.next_responder = next_responder
        self.opened: list[str] = []
        self.completions: list[Any] = []

    async def open(self, url: str) -> bool:
        self.opened.append(url)
        if self.open_exc is not None:
            raise self.open_exc
        return self.open_result

    def complete_request(self, items: Any = None) -> None:
        self.completions.append(items)


class FakeResponder:
    """Responder-chain link with optional async and legacy open APIs."""

    def __init__(
        self,
        next_responder: Any | None = None,
        async_result: bool | None = None,
        legacy: bool = False,
    ) -> None:
        self.next_responder = next_responder
        self.opened: list[str] = []
        if async_result is not None:
            async def open_url_async(url: str) -> bool:
                self.opened.append(url)
                return async_result

            self.open_url_async = open_url_async
        if legacy:
            def open_url(url: str) -> None:
                self.opened.append(url)

            self.open_url = open_url


def make_image_bytes(
    fmt: str = "JPEG",
    *,
    mode: str = "RGB",
    size: tuple[int, int] = (8, 8),
    original: str | None = None,
    digitized: str | None = None,
    datetime: str | None = None,
    model: str | None = None,
    lens: str | None = None,
) -> bytes:
    """Build a small image with the requested EXIF fields."""
    color: Any = (200, 30, 30) if mode == "RGB" else (200, 30, 30, 128) if mode == "RGBA" else 128
    image = Image.new(mode, size, color)

    exif = Image.Exif()
    if datetime is not None:
        exif[ExifTags.Base.DateTime] = datetime
    if model is not None:
        exif[ExifTags.Base.Model] = model
    exif_ifd: dict[int, Any] = {}
    if original is not None:
        exif_ifd[ExifTags.Base.DateTimeOriginal] = original
    if digitized is not None:
        exif_ifd[ExifTags.Base.DateTimeDigitized] = digitized
    if lens is not None:
        exif_ifd[ExifTags.Base.LensModel] = lens
    if exif_ifd:
        exif[ExifTags.IFD.Exif] = exif_ifd

    buf = io.BytesIO()
    if len(exif):
        image.save(buf, format=fmt, exif=exif)
    else:
        image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def config() -> ScrapshareConfig:
    """Default test configuration."""
    return ScrapshareConfig()


@pytest.fixture
def provider() -> MappingConfigProvider:
    """Shared store with a project and an upload token."""
    return MappingConfigProvider({"ProjectName": "my-notes", "GyazoToken": "gyazo-token-1234"})


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def image_factory():
    """Return :func:`make_image_bytes`."""
    return make_image_bytes


@pytest.fixture
def host_factory():
    return FakeHost


@pytest.fixture
def responder_factory():
    return FakeResponder
