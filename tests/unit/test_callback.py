"""Tests for scrapshare/callback.py.

Covers:
- build_deep_link structure, round-trip, and build failures
- HostContextStrategy / ResponderChainStrategy
- CallbackDispatcher outcome tiers and DeliveryError
- CompletionScope exactly-once guarantee
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest

from scrapshare.callback import (
    CallbackDispatcher,
    CompletionScope,
    HostContextStrategy,
    ResponderChainStrategy,
    build_deep_link,
)
from scrapshare.config import ScrapshareConfig
from scrapshare.errors import ScrapshareCallbackBuildError, ScrapshareDeliveryError
from scrapshare.models import CallbackOutcome, PageReference

TARGET = "https://scrapbox.io/my-notes/Example?body=%5BExample%20https%253A%252F%252Fexample.com%5D"


class _Strategy:
    def __init__(self, name: str, result: bool = True, exc: Exception | None = None):
        self.name = name
        self.result = result
        self.exc = exc
        self.calls: list[str] = []

    async def deliver(self, url: str) -> bool:
        self.calls.append(url)
        if self.exc is not None:
            raise self.exc
        return self.result


# =========================================================================
# Deep link
# =========================================================================


class TestBuildDeepLink:
    def test_shape(self):
        link = build_deep_link("logsense", TARGET)
        parts = urlsplit(link)
        assert parts.scheme == "logsense"
        assert parts.netloc == "open"
        assert parts.path == ""
        assert parts.query.startswith("scrapboxUrl=")

    def test_round_trip_is_exact(self):
        link = build_deep_link("logsense", TARGET)
        values = parse_qs(urlsplit(link).query)
        assert values == {"scrapboxUrl": [TARGET]}

    def test_target_fully_escaped(self):
        link = build_deep_link("logsense", TARGET)
        query = urlsplit(link).query
        value = query[len("scrapboxUrl="):]
        for ch in "/?&=:":
            assert ch not in value
        assert "%2525" in value  # existing %25 escapes are escaped again

    def test_invalid_scheme_raises(self):
        with pytest.raises(ScrapshareCallbackBuildError):
            build_deep_link("not a scheme", TARGET)

    def test_empty_target_raises(self):
        with pytest.raises(ScrapshareCallbackBuildError):
            build_deep_link("logsense", "")


# =========================================================================
# Strategies
# =========================================================================


class TestHostContextStrategy:
    async def test_reports_host_result(self, host_factory):
        host = host_factory(open_result=True)
        assert await HostContextStrategy(host).deliver("logsense://open") is True
        assert host.opened == ["logsense://open"]

    async def test_host_refusal_is_failure(self, host_factory):
        host = host_factory(open_result=False)
        assert await HostContextStrategy(host).deliver("logsense://open") is False

    async def test_host_without_open_is_failure(self):
        host = object()
        assert await HostContextStrategy(host).deliver("logsense://open") is False


class TestResponderChainStrategy:
    async def test_walks_to_first_capable_responder(self, responder_factory):
        capable = responder_factory(async_result=True)
        start = responder_factory(next_responder=responder_factory(next_responder=capable))
        assert await ResponderChainStrategy(start).deliver("logsense://open") is True
        assert capable.opened == ["logsense://open"]

    async def test_prefers_async_api_over_legacy(self, responder_factory):
        both = responder_factory(async_result=False, legacy=True)
        assert await ResponderChainStrategy(both).deliver("x://open") is False
        assert both.opened == ["x://open"]

    async def test_legacy_call_counts_as_success(self, responder_factory):
        legacy = responder_factory(legacy=True)
        assert await ResponderChainStrategy(legacy).deliver("x://open") is True
        assert legacy.opened == ["x://open"]

    async def test_no_capable_responder(self, responder_factory):
        start = responder_factory(next_responder=responder_factory())
        assert await ResponderChainStrategy(start).deliver("x://open") is False

    async def test_empty_chain(self):
        assert await ResponderChainStrategy(None).deliver("x://open") is False

    async def test_cycle_terminates(self, responder_factory):
        a = responder_factory()
        b = responder_factory(next_responder=a)
        a.next_responder = b
        assert await ResponderChainStrategy(a).deliver("x://open") is False


# =========================================================================
# Dispatcher
# =========================================================================


class TestCallbackDispatcher:
    def test_build_uses_configured_scheme(self):
        dispatcher = CallbackDispatcher(ScrapshareConfig(app_scheme="myapp"), [])
        page = PageReference(title="t", body="b", url=TARGET)
        assert dispatcher.build(page).startswith("myapp://open?scrapboxUrl=")

    async def test_primary_success_is_delivered(self, config):
        primary, fallback = _Strategy("primary"), _Strategy("fallback")
        outcome = await CallbackDispatcher(config, [primary, fallback]).deliver("x://open")
        assert outcome is CallbackOutcome.DELIVERED
        assert fallback.calls == []

    async def test_fallback_success(self, config):
        primary, fallback = _Strategy("primary", result=False), _Strategy("fallback")
        outcome = await CallbackDispatcher(config, [primary, fallback]).deliver("x://open")
        assert outcome is CallbackOutcome.FALLBACK_DELIVERED
        assert primary.calls == fallback.calls == ["x://open"]

    async def test_raising_strategy_falls_through(self, config):
        primary = _Strategy("primary", exc=RuntimeError("boom"))
        fallback = _Strategy("fallback")
        outcome = await CallbackDispatcher(config, [primary, fallback]).deliver("x://open")
        assert outcome is CallbackOutcome.FALLBACK_DELIVERED

    async def test_all_fail_raises_delivery_error(self, config):
        strategies = [_Strategy("primary", result=False), _Strategy("fallback", result=False)]
        with pytest.raises(ScrapshareDeliveryError) as exc_info:
            await CallbackDispatcher(config, strategies).deliver("x://open")
        assert exc_info.value.context["strategies"] == ["primary", "fallback"]

    async def test_metrics_per_attempt(self):
        metrics = MagicMock()
        cfg = ScrapshareConfig(metrics=metrics)
        strategies = [_Strategy("primary", result=False), _Strategy("fallback")]
        await CallbackDispatcher(cfg, strategies).deliver("x://open")
        names = [c.args[0] for c in metrics.increment.call_args_list]
        assert names == ["scrapshare.delivery_attempts_total"] * 2


# =========================================================================
# Completion
# =========================================================================


class TestCompletionScope:
    async def test_completes_once_on_normal_exit(self, host):
        async with CompletionScope(host) as scope:
            assert host.completions == []
        assert scope.completed is True
        assert host.completions == [None]

    async def test_completes_once_on_error(self, host):
        with pytest.raises(ValueError):
            async with CompletionScope(host):
                raise ValueError("stage blew up")
        assert host.completions == [None]

    async def test_completes_on_cancellation(self, host):
        async def stalled() -> None:
            async with CompletionScope(host):
                await asyncio.sleep(3600)

        task = asyncio.create_task(stalled())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert host.completions == [None]

    async def test_reexit_does_not_complete_twice(self, host):
        scope = CompletionScope(host)
        async with scope:
            pass
        await scope.__aexit__(None, None, None)
        assert host.completions == [None]
