"""Share payload classification.

Picks the single attachment the pipeline will process and loads it into one
of the :data:`~scrapshare.models.ShareRequest` variants.

Priority is image > URL > text across *all* attachments: a payload with a
link first and an image second is still an image share, and the link is
dropped.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from scrapshare.errors import (
    ScrapshareClassificationError,
    ScrapshareDecodeError,
    ScrapshareExtractionError,
)
from scrapshare.models import (
    Attachment,
    AttachmentKind,
    ImageShare,
    LinkShare,
    SharePayload,
    ShareRequest,
    TextShare,
)

_PRIORITY: tuple[AttachmentKind, ...] = (
    AttachmentKind.IMAGE,
    AttachmentKind.URL,
    AttachmentKind.TEXT,
)


@dataclass(frozen=True)
class Classification:
    """The attachment chosen for processing and the kind it is loaded as."""

    kind: AttachmentKind
    attachment: Attachment


def classify_payload(payload: SharePayload) -> Classification:
    """Choose the attachment to process.

    Parameters
    ----------
    payload:
        The inbound share payload.

    Returns
    -------
    Classification
        The first attachment conforming to the highest-priority kind.

    Raises
    ------
    ScrapshareClassificationError
        If no attachment conforms to any recognised kind.
    """
    for kind in _PRIORITY:
        for attachment in payload.attachments:
            if attachment.conforms_to(kind):
                return Classification(kind=kind, attachment=attachment)

    raise ScrapshareClassificationError(
        message="Share payload has no image, URL, or text attachment",
        context={"attachment_count": len(payload.attachments)},
    )


async def load_share_request(
    classification: Classification,
    payload: SharePayload,
) -> ShareRequest:
    """Load the classified attachment into a :data:`ShareRequest`.

    Raises
    ------
    ScrapshareDecodeError
        If an image attachment fails to load or does not yield bytes.
    ScrapshareExtractionError
        If a URL or text attachment fails to load or yields the wrong type.
    """
    kind = classification.kind
    try:
        value = await classification.attachment.load(kind)
    except Exception as exc:
        if kind is AttachmentKind.IMAGE:
            raise ScrapshareDecodeError(
                message=f"Failed to load image attachment: {exc}",
                cause=exc,
            ) from exc
        raise ScrapshareExtractionError(
            message=f"Failed to load {kind.value} attachment: {exc}",
            context={"kind": kind.value, "reason": "load_failed"},
            cause=exc,
        ) from exc

    if kind is AttachmentKind.IMAGE:
        if not isinstance(value, (bytes, bytearray)) or not value:
            raise ScrapshareDecodeError(
                message="Image attachment did not yield any bytes",
                context={"value_type": type(value).__name__},
            )
        return ImageShare(data=bytes(value))

    if kind is AttachmentKind.URL:
        if isinstance(value, httpx.URL):
            value = str(value)
        if not isinstance(value, str) or not value.strip():
            raise ScrapshareExtractionError(
                message="URL attachment did not yield a URL",
                context={"kind": kind.value, "reason": "empty_value"},
            )
        return LinkShare(url=value.strip(), title=payload.content_text)

    if not isinstance(value, str):
        raise ScrapshareExtractionError(
            message="Text attachment did not yield text",
            context={"kind": kind.value, "reason": "not_text"},
        )
    return TextShare(raw_text=value)
