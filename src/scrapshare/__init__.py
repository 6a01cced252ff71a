"""scrapshare: hand shared links, text, and images to a Scrapbox host app.

Public re-exports
-----------------

* **Pipeline:** :class:`SharePipeline`
* **Configuration:** :class:`ScrapshareConfig`, :class:`SharedConfig`, providers
* **Errors:** Every :class:`ScrapshareError` subclass and :class:`ErrorCode`
* **Models:** Payload, request, and result types

Usage::

    from scrapshare import (
        MappingConfigProvider,
        ScrapshareConfig,
        SharePayload,
        SharePipeline,
        StaticAttachment,
    )

    pipeline = SharePipeline(
        ScrapshareConfig(),
        MappingConfigProvider({"ProjectName": "my-notes"}),
        host,
    )
    result = await pipeline.run(
        SharePayload(
            attachments=[StaticAttachment.url("https://example.com/")],
            content_text="Example",
        )
    )
"""

from __future__ import annotations

# ── Callback ────────────────────────────────────────────────────────────
from scrapshare.callback import (
    CallbackDispatcher,
    CompletionScope,
    HostContextStrategy,
    ResponderChainStrategy,
    build_deep_link,
)

# ── Configuration ───────────────────────────────────────────────────────
from scrapshare.config import (
    JsonFileConfigProvider,
    MappingConfigProvider,
    ScrapshareConfig,
    SharedConfig,
)

# ── Errors ──────────────────────────────────────────────────────────────
from scrapshare.errors import (
    ErrorCode,
    ScrapshareCallbackBuildError,
    ScrapshareClassificationError,
    ScrapshareCredentialMissingError,
    ScrapshareDecodeError,
    ScrapshareDeliveryError,
    ScrapshareError,
    ScrapshareExtractionError,
    ScrapshareUploadError,
)

# ── Models ──────────────────────────────────────────────────────────────
from scrapshare.models import (
    AttachmentKind,
    CallbackOutcome,
    ExtractedContent,
    ImageMetadata,
    ImageShare,
    LinkShare,
    PageReference,
    PipelineStage,
    ProcessedImage,
    SharePayload,
    ShareResult,
    StaticAttachment,
    TextShare,
    UploadFailure,
    UploadSuccess,
)

# ── Pipeline ────────────────────────────────────────────────────────────
from scrapshare.pipeline import SharePipeline

__all__ = [
    # Pipeline
    "SharePipeline",
    # Callback
    "CallbackDispatcher",
    "CompletionScope",
    "HostContextStrategy",
    "ResponderChainStrategy",
    "build_deep_link",
    # Configuration
    "ScrapshareConfig",
    "SharedConfig",
    "MappingConfigProvider",
    "JsonFileConfigProvider",
    # Errors
    "ScrapshareError",
    "ErrorCode",
    "ScrapshareClassificationError",
    "ScrapshareExtractionError",
    "ScrapshareDecodeError",
    "ScrapshareCredentialMissingError",
    "ScrapshareUploadError",
    "ScrapshareCallbackBuildError",
    "ScrapshareDeliveryError",
    # Models
    "AttachmentKind",
    "CallbackOutcome",
    "ExtractedContent",
    "ImageMetadata",
    "ImageShare",
    "LinkShare",
    "PageReference",
    "PipelineStage",
    "ProcessedImage",
    "SharePayload",
    "ShareResult",
    "StaticAttachment",
    "TextShare",
    "UploadFailure",
    "UploadSuccess",
]
