"""Gyazo image upload.

A single ``multipart/form-data`` POST carrying the access token and the
image bytes.  The JSON response's ``url`` field is the hosted image URL.

There are no retries: a network error, a non-2xx status, or a response
without a usable ``url`` produces an :class:`UploadFailure` immediately.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from scrapshare.config import UPLOAD_TOKEN_KEY, ScrapshareConfig
from scrapshare.errors import ScrapshareCredentialMissingError, ScrapshareUploadError
from scrapshare.models import UploadFailure, UploadResult, UploadSuccess
from scrapshare.observability import NoopMetricsHook, get_logger

log = get_logger("scrapshare.upload")

UPLOAD_FILENAME = "image.jpg"


def _dump_payload(
    url: str,
    fields: dict[str, Any],
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the upload request/response to stderr."""
    from scrapshare.utils.redact import redact

    dump: dict[str, Any] = {"method": "POST", "url": url, "fields": fields}
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, token), indent=2, default=str),
        file=sys.stderr,
    )


def _parse_hosted_url(response: httpx.Response, upload_url: str) -> str:
    """Return the hosted URL from a successful upload response."""
    try:
        body = response.json()
    except ValueError as exc:
        raise ScrapshareUploadError(
            message="Upload response is not valid JSON",
            context={"url": upload_url, "status_code": response.status_code, "reason": "invalid_json"},
            cause=exc,
        ) from exc

    hosted = body.get("url") if isinstance(body, dict) else None
    if not isinstance(hosted, str) or not hosted:
        raise ScrapshareUploadError(
            message="Upload response has no 'url' field",
            context={"url": upload_url, "status_code": response.status_code, "reason": "missing_url"},
        )
    return hosted


class AsyncGyazoUploader:
    """Uploads shared images to Gyazo.

    Parameters
    ----------
    config:
        Pipeline configuration (endpoint, timeout, proxy, metrics).
    client:
        Optional pre-built ``httpx.AsyncClient``.  When omitted the uploader
        creates and owns one.
    """

    def __init__(
        self,
        config: ScrapshareConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    async def upload(
        self,
        data: bytes,
        token: str | None,
        content_type: str = "image/jpeg",
    ) -> UploadResult:
        """Upload *data* and return the hosted URL.

        The token is checked before any network activity.

        Parameters
        ----------
        data:
            Image bytes.
        token:
            Gyazo access token.
        content_type:
            MIME type of *data*.

        Returns
        -------
        UploadResult
            :class:`UploadSuccess` with the hosted URL, or
            :class:`UploadFailure` carrying a
            :class:`ScrapshareCredentialMissingError` or
            :class:`ScrapshareUploadError`.
        """
        if not token:
            return UploadFailure(
                ScrapshareCredentialMissingError(
                    message="No upload token configured",
                    context={"config_key": UPLOAD_TOKEN_KEY},
                )
            )

        try:
            hosted = await self._post(data, token, content_type)
        except ScrapshareUploadError as exc:
            self._metrics.increment(
                "scrapshare.upload_failure_total",
                tags={"reason": str(exc.context.get("reason", "unknown"))},
            )
            return UploadFailure(exc)
        return UploadSuccess(hosted_url=hosted)

    async def _post(self, data: bytes, token: str, content_type: str) -> str:
        url = self._config.upload_url
        fields = {"access_token": token}

        t0 = time.monotonic()
        try:
            response = await self._client.post(
                url,
                data=fields,
                files={"imagedata": (UPLOAD_FILENAME, data, content_type)},
            )
        except httpx.HTTPError as exc:
            log.warning(
                "Upload network error",
                extra={"extra_fields": {"op": "upload", "url": url, "error": str(exc)}},
            )
            raise ScrapshareUploadError(
                message=f"Network error uploading image: {exc}",
                context={"url": url, "reason": "network_error"},
                cause=exc,
            ) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        self._metrics.timing(
            "scrapshare.upload_duration_ms",
            elapsed_ms,
            tags={"status": str(response.status_code)},
        )

        if self._config.debug_dump_payload:
            try:
                resp_body: Any = response.json()
            except ValueError:
                resp_body = response.text[:1000]
            _dump_payload(
                url,
                {**fields, "imagedata": data},
                response.status_code,
                resp_body,
                token=token,
            )

        if not 200 <= response.status_code < 300:
            raise ScrapshareUploadError(
                message=f"Upload rejected with status {response.status_code}: {response.text[:200]}",
                context={"url": url, "status_code": response.status_code, "reason": "http_status"},
            )

        hosted = _parse_hosted_url(response, url)
        log.info(
            "Image uploaded",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "size_bytes": len(data),
                    "duration_ms": round(elapsed_ms, 1),
                }
            },
        )
        return hosted

    async def close(self) -> None:
        """Close the HTTP client if this uploader created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncGyazoUploader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
