"""Full error hierarchy for the scrapshare pipeline.

Every public error class inherits from ScrapshareError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

All errors are terminal for the current share invocation: the pipeline
catches them, logs a diagnostic record, and signals completion to the host.
None of them ever reaches the end user.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the pipeline can raise."""

    CLASSIFICATION_ERROR = "CLASSIFICATION_ERROR"
    EXTRACTION_ERROR = "EXTRACTION_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    CALLBACK_BUILD_ERROR = "CALLBACK_BUILD_ERROR"
    DELIVERY_ERROR = "DELIVERY_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ScrapshareError(Exception):
    """Base exception for all scrapshare errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ScrapshareClassificationError(ScrapshareError):
    """No attachment in the share payload matches a recognised kind.

    Context keys: ``attachment_count``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CLASSIFICATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ScrapshareExtractionError(ScrapshareError):
    """The shared content could not be turned into a title and URL.

    Context keys: ``kind``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EXTRACTION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ScrapshareDecodeError(ScrapshareError):
    """The shared image bytes are not a recognisable image.

    Context keys: ``size_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DECODE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class ScrapshareCredentialMissingError(ScrapshareError):
    """An upload was requested but no upload token is configured.

    Raised before any network activity.  Context keys: ``config_key``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CREDENTIAL_MISSING,
            message=message,
            context=context,
            cause=cause,
        )


class ScrapshareUploadError(ScrapshareError):
    """The image host request failed or returned an unusable response.

    Context keys: ``url``, ``status_code``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Callback errors
# ---------------------------------------------------------------------------

class ScrapshareCallbackBuildError(ScrapshareError):
    """The deep link back into the host application could not be built.

    Context keys: ``scheme``, ``target_url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CALLBACK_BUILD_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ScrapshareDeliveryError(ScrapshareError):
    """Every delivery strategy failed to open the deep link.

    The share is lost but the host lifecycle still completes normally.
    Context keys: ``deep_link``, ``strategies``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DELIVERY_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
