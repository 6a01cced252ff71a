"""Metrics hook protocol and no-op default implementation.

scrapshare emits counters and timings at the end of every invocation and
around the upload and delivery steps.  By default a :class:`NoopMetricsHook`
is used.  Supply any object satisfying :class:`MetricsHook` via
``ScrapshareConfig(metrics=...)`` to route data points to a real backend.

Emitted metric names:

* ``scrapshare.share_total``              -- counter, tag ``outcome``
* ``scrapshare.share_failure_total``      -- counter, tags ``code``, ``stage``
* ``scrapshare.upload_duration_ms``       -- timing
* ``scrapshare.upload_failure_total``     -- counter, tag ``reason``
* ``scrapshare.delivery_attempts_total``  -- counter, tags ``strategy``, ``success``
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
