"""Public data models for the scrapshare pipeline.

This module contains the share payload types, the tagged
:data:`ShareRequest` union, image metadata, upload results, the page
reference handed to the dispatcher, and the enums describing pipeline
stages and outcomes.  All types are plain dataclasses with no behaviour
beyond what is needed for structural equality and hashing (where frozen).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from scrapshare.errors import ScrapshareError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AttachmentKind(str, Enum):
    """Capabilities an attachment in the share payload can conform to.

    Declaration order is classification priority.
    """

    IMAGE = "image"
    """Raw image bytes."""

    URL = "url"
    """A single URL value."""

    TEXT = "text"
    """Plain text that may contain a URL."""


class CallbackOutcome(str, Enum):
    """How the deep link ended up being handled."""

    DELIVERED = "delivered"
    """The hosting context opened the deep link."""

    FALLBACK_DELIVERED = "fallback_delivered"
    """The hosting context failed; a fallback strategy opened the link."""

    UNDELIVERABLE = "undeliverable"
    """The share was dropped, either by an earlier stage or because every
    delivery strategy failed."""


class PipelineStage(str, Enum):
    """States of the per-invocation pipeline state machine."""

    IDLE = "idle"
    CLASSIFYING = "classifying"
    EXTRACTING = "extracting"
    UPLOADING = "uploading"
    BUILDING_REFERENCE = "building_reference"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Inbound payload
# ---------------------------------------------------------------------------

@runtime_checkable
class Attachment(Protocol):
    """A typed item inside a share payload."""

    def conforms_to(self, kind: AttachmentKind) -> bool:
        """Return ``True`` if the attachment can be loaded as *kind*."""
        ...

    async def load(self, kind: AttachmentKind) -> Any:
        """Load the attachment's value as *kind*."""
        ...


class StaticAttachment:
    """In-memory :class:`Attachment` holding one value per kind.

    Parameters
    ----------
    values:
        Mapping of kind to the value :meth:`load` returns for it.
    """

    def __init__(self, values: Mapping[AttachmentKind, Any]) -> None:
        self._values = dict(values)

    @classmethod
    def image(cls, data: bytes) -> StaticAttachment:
        return cls({AttachmentKind.IMAGE: data})

    @classmethod
    def url(cls, url: Any) -> StaticAttachment:
        return cls({AttachmentKind.URL: url})

    @classmethod
    def text(cls, text: str) -> StaticAttachment:
        return cls({AttachmentKind.TEXT: text})

    def conforms_to(self, kind: AttachmentKind) -> bool:
        return kind in self._values

    async def load(self, kind: AttachmentKind) -> Any:
        try:
            return self._values[kind]
        except KeyError:
            raise LookupError(f"attachment does not conform to {kind.value}") from None

    def __repr__(self) -> str:
        kinds = ", ".join(k.value for k in self._values)
        return f"StaticAttachment({kinds})"


@dataclass
class SharePayload:
    """Everything the share surface hands to the pipeline.

    Attributes
    ----------
    attachments:
        Typed attachments in the order the share surface supplied them.
    content_text:
        Display text supplied alongside the attachments (typically a page
        title).  Used as the title of a shared link.
    """

    attachments: list[Attachment] = field(default_factory=list)
    content_text: str | None = None


# ---------------------------------------------------------------------------
# Share requests (tagged union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LinkShare:
    """A URL attachment, with the payload's display text if any."""

    url: str
    title: str | None = None


@dataclass(frozen=True)
class TextShare:
    """A text attachment expected to hold a single URL."""

    raw_text: str


@dataclass(frozen=True)
class ImageShare:
    """An image attachment."""

    data: bytes = field(repr=False)


ShareRequest = Union[LinkShare, TextShare, ImageShare]


@dataclass(frozen=True)
class ExtractedContent:
    """Title and URL resolved from a link or text share."""

    title: str
    url: str


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageMetadata:
    """Metadata extracted from a shared image.

    Attributes
    ----------
    capture_date:
        ``YYYY-MM-DD`` date the picture was taken, or ``None``.
    camera_model:
        Camera model name, trimmed, or ``None``.
    lens_model:
        Lens model name, trimmed, or ``None``.
    """

    capture_date: str | None = None
    camera_model: str | None = None
    lens_model: str | None = None


@dataclass(frozen=True)
class ProcessedImage:
    """Image bytes ready for upload plus the metadata read from the original.

    Attributes
    ----------
    data:
        JPEG bytes, or the original bytes when re-encoding failed.
    content_type:
        MIME type sent with the upload.
    metadata:
        Metadata extracted from the original bytes.
    reencoded:
        ``False`` when *data* is the untouched original.
    """

    data: bytes = field(repr=False)
    content_type: str
    metadata: ImageMetadata
    reencoded: bool


# ---------------------------------------------------------------------------
# Upload results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadSuccess:
    """The image host accepted the upload."""

    hosted_url: str

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> str:
        return self.hosted_url


@dataclass(frozen=True)
class UploadFailure:
    """The upload did not produce a hosted URL."""

    error: ScrapshareError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.error.message

    def unwrap(self) -> str:
        raise self.error


UploadResult = Union[UploadSuccess, UploadFailure]


# ---------------------------------------------------------------------------
# Page reference and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageReference:
    """A target page identified by title, with a body snippet to seed it.

    Attributes
    ----------
    title:
        Raw (unencoded) page title.
    body:
        Raw (unencoded) body text.
    url:
        Fully encoded page URL built from *title* and *body*.
    """

    title: str
    body: str
    url: str


@dataclass
class ShareResult:
    """Outcome of one pipeline invocation.

    Attributes
    ----------
    outcome:
        Final :class:`CallbackOutcome`.
    failed_stage:
        Stage at which the pipeline short-circuited, if any.
    error:
        The terminal error, if any.
    page:
        The page reference that was dispatched, if one was built.
    deep_link:
        The deep link handed to the host, if one was built.
    """

    outcome: CallbackOutcome
    failed_stage: PipelineStage | None = None
    error: ScrapshareError | None = None
    page: PageReference | None = None
    deep_link: str | None = None
