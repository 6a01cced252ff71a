"""Credential and payload redaction for safe logging.

The upload request carries the Gyazo access token and the raw image bytes.
Before either is written to logs or debug dumps :func:`redact` must be
applied:

* Values under **sensitive keys** (``access_token``, ``authorization``,
  anything containing ``token``/``secret``...) are masked, keeping only the
  last four characters.
* **bytes** values are replaced with ``<binary:N_bytes>``.
* The **token** itself, if supplied, is scrubbed from every string in the
  tree.
"""

from __future__ import annotations

import copy
from typing import Any

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
})


def _mask(value: str) -> str:
    if len(value) >= 8:
        return f"<redacted:...{value[-4:]}>"
    return "<redacted>"


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str) and token and token in value:
        return value.replace(token, _mask(token))
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask(value) if isinstance(value, str) else "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with credentials and binaries removed.

    Examples
    --------
    >>> redact({"access_token": "abcdefgh1234", "imagedata": b"\\xff\\xd8"})
    {'access_token': '<redacted:...1234>', 'imagedata': '<binary:2_bytes>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
