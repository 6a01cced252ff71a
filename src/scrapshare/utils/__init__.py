"""Internal helpers."""

from .redact import redact

__all__ = ["redact"]
