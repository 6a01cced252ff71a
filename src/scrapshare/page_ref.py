"""Scrapbox page URL construction.

Page URLs have the shape::

    <base>/<project>/<encoded-title>?body=<encoded-body>

Two percent-encoding rules are used:

* **strict** -- only RFC 3986 unreserved characters (ASCII letters, digits,
  ``-._~``) are left as-is.  Used for the project, the title, and the link
  embedded in a body.  A title that is itself a URL therefore never leaks a
  ``/`` into the path.
* **query-safe** -- unreserved plus ``!$'()*,;:@/?``.  Used for the body.
  The query delimiters ``&``, ``=``, ``#`` and ``+`` are always escaped, so
  the body is a single ``body`` parameter.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from urllib.parse import quote

from scrapshare.models import ExtractedContent, ImageMetadata, PageReference

STRICT_SAFE = ""
QUERY_SAFE = "!$'()*,;:@/?"


def strict_encode(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters."""
    return quote(value, safe=STRICT_SAFE)


def query_encode(value: str) -> str:
    """Percent-encode *value* for use as a query parameter value."""
    return quote(value, safe=QUERY_SAFE)


def page_url(base_url: str, project: str, title: str, body: str) -> str:
    """Assemble a page URL from raw (unencoded) parts."""
    return (
        f"{base_url.rstrip('/')}/{strict_encode(project)}/"
        f"{strict_encode(title)}?body={query_encode(body)}"
    )


def link_body(title: str, url: str) -> str:
    """Body for a shared link: ``[<title> <strict-encoded-url>]``."""
    return f"[{title} {strict_encode(url)}]"


def image_body(hosted_url: str, metadata: ImageMetadata) -> str:
    """Body for a shared image.

    ``[<hosted_url>]``, followed on a new line by ``[<camera>] + [<lens>]``
    when both models are known, or by whichever one is known.
    """
    body = f"[{hosted_url}]"
    labels = [m for m in (metadata.camera_model, metadata.lens_model) if m]
    if labels:
        body += "\n" + " + ".join(f"[{label}]" for label in labels)
    return body


def today_iso() -> str:
    return date.today().isoformat()


def build_link_reference(
    base_url: str,
    project: str,
    content: ExtractedContent,
) -> PageReference:
    """Build the page reference for a link or text share."""
    body = link_body(content.title, content.url)
    return PageReference(
        title=content.title,
        body=body,
        url=page_url(base_url, project, content.title, body),
    )


def build_image_reference(
    base_url: str,
    project: str,
    hosted_url: str,
    metadata: ImageMetadata,
    today: Callable[[], str] = today_iso,
) -> PageReference:
    """Build the page reference for an uploaded image.

    The page title is the capture date, or today's local date when the
    image carries none.
    """
    title = metadata.capture_date or today()
    body = image_body(hosted_url, metadata)
    return PageReference(
        title=title,
        body=body,
        url=page_url(base_url, project, title, body),
    )
