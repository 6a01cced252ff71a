"""Deep-link construction and delivery back to the host application.

The deep link is ``<scheme>://open?scrapboxUrl=<target>`` where ``<target>``
is the page URL, fully percent-encoded as a single query value.

Delivery tries an ordered list of :class:`DeliveryStrategy` objects until
one reports success:

1. :class:`HostContextStrategy` -- ask the hosting context to open the link.
2. :class:`ResponderChainStrategy` -- walk the responder chain for an object
   able to open URLs.

Whatever happens, the host must be told the request is complete exactly
once, or it waits forever.  :class:`CompletionScope` owns that signal: the
pipeline runs inside ``async with CompletionScope(host):`` and the signal
fires on exit, on every path.
"""

from __future__ import annotations

import re
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote, urlencode, urlunsplit

from scrapshare.config import ScrapshareConfig
from scrapshare.errors import ScrapshareCallbackBuildError, ScrapshareDeliveryError
from scrapshare.models import CallbackOutcome, PageReference
from scrapshare.observability import NoopMetricsHook, get_logger

log = get_logger("scrapshare.callback")

DEEP_LINK_HOST = "open"
DEEP_LINK_PARAM = "scrapboxUrl"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


# ---------------------------------------------------------------------------
# Host-side protocols
# ---------------------------------------------------------------------------

@runtime_checkable
class HostContext(Protocol):
    """The process context the share pipeline runs in."""

    async def open(self, url: str) -> bool:
        """Ask the host to open *url*; return whether it succeeded."""
        ...

    def complete_request(self, items: list[Any] | None = None) -> None:
        """Tell the host the share request is finished."""
        ...


class Responder(Protocol):
    """A link in the responder chain.

    A responder able to open URLs exposes ``open_url_async(url) -> bool``
    (preferred) or the legacy ``open_url(url)``.
    """

    next_responder: Responder | None


# ---------------------------------------------------------------------------
# Deep link
# ---------------------------------------------------------------------------

def build_deep_link(scheme: str, target_url: str) -> str:
    """Build ``<scheme>://open?scrapboxUrl=<target_url>``.

    Every reserved character of *target_url* is percent-encoded, so
    decoding the ``scrapboxUrl`` value yields *target_url* exactly.

    Raises
    ------
    ScrapshareCallbackBuildError
        If *scheme* is not a valid URL scheme or *target_url* is not a
        non-empty string.
    """
    if not isinstance(scheme, str) or not _SCHEME_RE.match(scheme):
        raise ScrapshareCallbackBuildError(
            message=f"Invalid deep-link scheme: {scheme!r}",
            context={"scheme": scheme},
        )
    if not isinstance(target_url, str) or not target_url:
        raise ScrapshareCallbackBuildError(
            message="Deep-link target URL is empty",
            context={"scheme": scheme, "target_url": target_url},
        )
    query = urlencode({DEEP_LINK_PARAM: target_url}, quote_via=quote)
    return urlunsplit((scheme, DEEP_LINK_HOST, "", query, ""))


# ---------------------------------------------------------------------------
# Delivery strategies
# ---------------------------------------------------------------------------

@runtime_checkable
class DeliveryStrategy(Protocol):
    """One way of handing the deep link to the host application."""

    name: str

    async def deliver(self, url: str) -> bool:
        """Try to open *url*; return ``True`` on success."""
        ...


class HostContextStrategy:
    """Ask the hosting context to open the link and await its answer."""

    name = "host_context"

    def __init__(self, host: Any) -> None:
        self._host = host

    async def deliver(self, url: str) -> bool:
        opener = getattr(self._host, "open", None)
        if opener is None:
            log.debug(
                "Host context cannot open URLs",
                extra={"extra_fields": {"op": "deliver", "strategy": self.name}},
            )
            return False
        return bool(await opener(url))


class ResponderChainStrategy:
    """Walk the responder chain for an object that can open URLs.

    The first responder exposing ``open_url_async`` or ``open_url`` is used;
    ``open_url_async`` is preferred and its result is awaited.  The legacy
    ``open_url`` returns nothing, so invoking it counts as success.
    """

    name = "responder_chain"

    def __init__(self, start: Any) -> None:
        self._start = start

    async def deliver(self, url: str) -> bool:
        seen: set[int] = set()
        responder = self._start
        while responder is not None and id(responder) not in seen:
            seen.add(id(responder))

            opener = getattr(responder, "open_url_async", None)
            if callable(opener):
                success = bool(await opener(url))
                log.debug(
                    "Responder chain open finished",
                    extra={"extra_fields": {"op": "deliver", "api": "async", "success": success}},
                )
                return success

            legacy = getattr(responder, "open_url", None)
            if callable(legacy):
                legacy(url)
                log.debug(
                    "Responder chain open via legacy call",
                    extra={"extra_fields": {"op": "deliver", "api": "legacy"}},
                )
                return True

            responder = getattr(responder, "next_responder", None)

        log.debug(
            "No responder can open URLs",
            extra={"extra_fields": {"op": "deliver", "visited": len(seen)}},
        )
        return False


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

class CompletionScope:
    """Async context manager that signals completion to the host on exit.

    The signal fires exactly once, on normal exit, on error, and on
    cancellation, and always with no returned items.
    """

    def __init__(self, host: HostContext) -> None:
        self._host = host
        self.completed = False

    async def __aenter__(self) -> CompletionScope:
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self.completed:
            return
        self.completed = True
        self._host.complete_request(None)
        log.debug("Request completed", extra={"extra_fields": {"op": "complete"}})


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class CallbackDispatcher:
    """Builds the deep link for a page and delivers it.

    Parameters
    ----------
    config:
        Pipeline configuration (deep-link scheme, metrics).
    strategies:
        Delivery strategies in the order they are tried.  The first one is
        the primary tier; success through any later one is a fallback
        delivery.
    """

    def __init__(
        self,
        config: ScrapshareConfig,
        strategies: list[DeliveryStrategy],
    ) -> None:
        self._config = config
        self._strategies = list(strategies)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def build(self, page: PageReference) -> str:
        """Return the deep link for *page*."""
        return build_deep_link(self._config.app_scheme, page.url)

    async def deliver(self, deep_link: str) -> CallbackOutcome:
        """Try each strategy in order.

        Returns
        -------
        CallbackOutcome
            ``DELIVERED`` if the first strategy succeeded,
            ``FALLBACK_DELIVERED`` if a later one did.

        Raises
        ------
        ScrapshareDeliveryError
            If every strategy failed.
        """
        attempted: list[str] = []
        for index, strategy in enumerate(self._strategies):
            attempted.append(strategy.name)
            try:
                success = await strategy.deliver(deep_link)
            except Exception as exc:
                log.warning(
                    "Delivery strategy raised",
                    extra={
                        "extra_fields": {
                            "op": "deliver",
                            "strategy": strategy.name,
                            "error": repr(exc),
                        }
                    },
                )
                success = False

            self._metrics.increment(
                "scrapshare.delivery_attempts_total",
                tags={"strategy": strategy.name, "success": str(success).lower()},
            )
            if success:
                return CallbackOutcome.DELIVERED if index == 0 else CallbackOutcome.FALLBACK_DELIVERED

        raise ScrapshareDeliveryError(
            message="No delivery strategy could open the deep link",
            context={"deep_link": deep_link, "strategies": attempted},
        )
