"""Title and URL extraction for link and text shares."""

from __future__ import annotations

import re
from urllib.parse import quote

import httpx

from scrapshare.errors import ScrapshareExtractionError
from scrapshare.models import ExtractedContent, LinkShare, TextShare

# RFC 3986 scheme followed by ':'.
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_WHITESPACE_RE = re.compile(r"\s")
# Scheme plus optional authority; kept byte for byte.
_PREFIX_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:(?://[^/?#]*)?")
# RFC 3986 reserved characters plus '%', so existing escapes survive.
_URL_SAFE = ":/?#[]@!$&'()*+,;=%"

_PARSE_ERRORS = (httpx.InvalidURL, UnicodeError, ValueError)


def normalize_url(raw: str) -> str:
    """Validate *raw* as an absolute URL and return it in encoded form.

    Only characters that may not appear in a URL (spaces, non-ASCII text in
    the path or query) are percent-encoded.  The scheme, the authority, and
    existing ``%xx`` escapes are kept exactly as shared.

    Raises
    ------
    ScrapshareExtractionError
        If *raw* is not an absolute URL.
    """
    candidate = raw.strip()
    if not _SCHEME_RE.match(candidate):
        raise ScrapshareExtractionError(
            message="Value is not an absolute URL",
            context={"reason": "missing_scheme", "value": candidate[:200]},
        )
    try:
        url = httpx.URL(candidate)
        # Punycode labels are only decoded on access.
        host = url.host
    except _PARSE_ERRORS as exc:
        raise ScrapshareExtractionError(
            message=f"Value is not a valid URL: {exc}",
            context={"reason": "invalid_url", "value": candidate[:200]},
            cause=exc,
        ) from exc

    if url.scheme in ("http", "https") and not host:
        raise ScrapshareExtractionError(
            message="HTTP URL has no host",
            context={"reason": "missing_host", "value": candidate[:200]},
        )

    prefix = _PREFIX_RE.match(candidate).group(0)
    return prefix + quote(candidate[len(prefix):], safe=_URL_SAFE)


def extract_link(share: LinkShare) -> ExtractedContent:
    """Resolve title and URL for a shared link.

    The payload's display text is the title when present; otherwise the URL
    itself is.
    """
    url = normalize_url(share.url)
    title = share.title if share.title and share.title.strip() else url
    return ExtractedContent(title=title, url=url)


def extract_text(share: TextShare) -> ExtractedContent:
    """Resolve title and URL for shared text.

    The whole text must be a single URL; it doubles as the title.

    Raises
    ------
    ScrapshareExtractionError
        If the text is empty, contains whitespace, or is not an absolute URL.
    """
    text = share.raw_text.strip()
    if not text or _WHITESPACE_RE.search(text):
        raise ScrapshareExtractionError(
            message="Shared text is not a single URL",
            context={"kind": "text", "reason": "not_a_url", "value": text[:200]},
        )
    return ExtractedContent(title=text, url=normalize_url(text))


def extract_content(share: LinkShare | TextShare) -> ExtractedContent:
    """Dispatch to :func:`extract_link` or :func:`extract_text`."""
    if isinstance(share, LinkShare):
        return extract_link(share)
    if isinstance(share, TextShare):
        return extract_text(share)
    raise TypeError(f"cannot extract content from {type(share).__name__}")
