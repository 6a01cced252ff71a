"""Ingestion: classify the share payload and extract its content.

Exports
-------
classify_payload
    Pick the attachment to process (image > URL > text).
load_share_request
    Load the chosen attachment into a ShareRequest variant.
extract_content
    Resolve a title and URL for link and text shares.
"""

from .classify import Classification, classify_payload, load_share_request
from .extract import extract_content, extract_link, extract_text, normalize_url

__all__ = [
    "Classification",
    "classify_payload",
    "extract_content",
    "extract_link",
    "extract_text",
    "load_share_request",
    "normalize_url",
]
