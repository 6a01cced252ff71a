"""Configuration for scrapshare.

Two layers of configuration exist:

* :class:`ScrapshareConfig` -- a dataclass with every tuneable knob of the
  pipeline (endpoints, deep-link scheme, JPEG quality, HTTP settings).
* :class:`SharedConfig` -- the two values the settings collaborator writes
  into the store shared with the host application (project name and upload
  token).  It is read through an injected :class:`ConfigProvider`, never
  written.

Two provider implementations are included:

* :class:`MappingConfigProvider` -- wraps any mapping (tests, embedding).
* :class:`JsonFileConfigProvider` -- reads a JSON object from a file that
  the host application and the share surface both have access to.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Shared store keys
# ---------------------------------------------------------------------------

PROJECT_NAME_KEY = "ProjectName"
"""Key under which the settings collaborator stores the Scrapbox project."""

UPLOAD_TOKEN_KEY = "GyazoToken"
"""Key under which the settings collaborator stores the Gyazo access token."""

DEFAULT_PROJECT_NAME = "YOUR_PROJECT"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

@runtime_checkable
class ConfigProvider(Protocol):
    """Read-only key/value capability over the shared configuration store."""

    def get(self, key: str) -> str | None:
        """Return the string stored under *key*, or ``None`` if absent."""
        ...


class MappingConfigProvider:
    """:class:`ConfigProvider` backed by an in-memory mapping.

    Non-string values are treated as absent.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        value = self._values.get(key)
        return value if isinstance(value, str) else None


class JsonFileConfigProvider:
    """:class:`ConfigProvider` backed by a JSON object stored in a file.

    The file is read on every :meth:`get` so that values written by the
    settings collaborator after construction are picked up.  A missing or
    unreadable file behaves like an empty store.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None


# ---------------------------------------------------------------------------
# Shared configuration snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SharedConfig:
    """Values read from the shared store for a single invocation.

    Attributes
    ----------
    project_name:
        Scrapbox project pages are created in.
    upload_token:
        Gyazo access token.  ``None`` or empty means uploads are disabled.
    """

    project_name: str
    upload_token: str | None = None

    @classmethod
    def from_provider(
        cls,
        provider: ConfigProvider,
        default_project_name: str = DEFAULT_PROJECT_NAME,
    ) -> SharedConfig:
        project = provider.get(PROJECT_NAME_KEY)
        if not project or not project.strip():
            project = default_project_name
        return cls(
            project_name=project.strip(),
            upload_token=provider.get(UPLOAD_TOKEN_KEY),
        )

    def __repr__(self) -> str:
        """Mask the upload token to prevent accidental credential leakage."""
        token = self.upload_token
        if token is None:
            masked = "None"
        else:
            masked = f"'...{token[-4:]}'" if len(token) >= 4 else "'****'"
        return f"SharedConfig(project_name={self.project_name!r}, upload_token={masked})"


# ---------------------------------------------------------------------------
# Pipeline configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class ScrapshareConfig:
    """Complete configuration for a share pipeline.

    Every parameter has a default matching the production endpoints, so
    ``ScrapshareConfig()`` is a working configuration.

    Parameters
    ----------
    scrapbox_base_url:
        Root of the target knowledge base.  Page URLs are
        ``<scrapbox_base_url>/<project>/<title>?body=<body>``.
    app_scheme:
        Custom URL scheme of the host application used for the deep link.
    upload_url:
        Image host upload endpoint.
    jpeg_quality:
        Quality used when re-encoding shared images to JPEG (1-95).
    timeout_seconds:
        HTTP timeout for the upload request.  ``None`` disables the timeout
        entirely, so a stalled upload stalls the pipeline.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    default_project_name:
        Project used when the shared store has no project name.
    metrics:
        Optional :class:`~scrapshare.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) upload request/response to *stderr*.
    """

    # ── Targets ─────────────────────────────────────────────────────────
    scrapbox_base_url: str = "https://scrapbox.io"

    app_scheme: str = "logsense"

    upload_url: str = "https://upload.gyazo.com/api/upload"

    # ── Images ──────────────────────────────────────────────────────────
    jpeg_quality: int = 90

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float | None = None

    http_proxy: str | None = None

    # ── Shared store ────────────────────────────────────────────────────
    default_project_name: str = DEFAULT_PROJECT_NAME

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        for name in ("scrapbox_base_url", "upload_url"):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme not in ("http", "https") or not parsed.hostname:
                raise ValueError(f"{name} must be an absolute http(s) URL, got {getattr(self, name)!r}")
            if parsed.scheme == "http" and parsed.hostname not in (
                "localhost",
                "127.0.0.1",
                "::1",
            ):
                raise ValueError(
                    f"{name} uses insecure HTTP for non-local host '{parsed.hostname}'. "
                    "Use HTTPS, or target localhost for testing."
                )

        self.scrapbox_base_url = self.scrapbox_base_url.rstrip("/")

        if not _SCHEME_RE.match(self.app_scheme):
            raise ValueError(f"app_scheme is not a valid URL scheme: {self.app_scheme!r}")
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(f"jpeg_quality must be between 1 and 95, got {self.jpeg_quality}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0 or None, got {self.timeout_seconds}")
        if not self.default_project_name.strip():
            raise ValueError("default_project_name must not be empty")
