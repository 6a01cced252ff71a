"""The share pipeline: payload in, deep link out, completion always.

:class:`SharePipeline` runs one share payload through the stages::

    classify -> extract (link/text) or process (image) -> upload (image)
             -> build page reference -> dispatch deep link -> complete

Any :class:`~scrapshare.errors.ScrapshareError` short-circuits to
completion with an ``UNDELIVERABLE`` outcome.  The host is told the request
is complete exactly once, whatever the path.

Usage::

    from scrapshare import SharePipeline, ScrapshareConfig, SharePayload
    from scrapshare.config import JsonFileConfigProvider

    pipeline = SharePipeline(
        ScrapshareConfig(),
        JsonFileConfigProvider("~/shared/settings.json"),
        host,
    )
    result = await pipeline.run(payload)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from scrapshare.callback import (
    CallbackDispatcher,
    CompletionScope,
    DeliveryStrategy,
    HostContext,
    HostContextStrategy,
    ResponderChainStrategy,
)
from scrapshare.config import ConfigProvider, ScrapshareConfig, SharedConfig
from scrapshare.errors import ScrapshareError
from scrapshare.image import async_process_image
from scrapshare.ingest import classify_payload, extract_content, load_share_request
from scrapshare.models import (
    CallbackOutcome,
    ImageShare,
    LinkShare,
    PageReference,
    PipelineStage,
    SharePayload,
    ShareRequest,
    ShareResult,
    TextShare,
)
from scrapshare.observability import NoopMetricsHook, get_logger
from scrapshare.page_ref import build_image_reference, build_link_reference, today_iso
from scrapshare.state import PipelineStateMachine
from scrapshare.upload import AsyncGyazoUploader

log = get_logger("scrapshare.pipeline")


class SharePipeline:
    """Processes one share payload per :meth:`run` call.

    Parameters
    ----------
    config:
        Pipeline configuration.
    provider:
        Read-only access to the shared store (project name, upload token).
    host:
        The hosting context: opens deep links and receives the completion
        signal.
    uploader:
        Image uploader.  Defaults to an :class:`AsyncGyazoUploader` created
        (and closed) per image share.
    strategies:
        Delivery strategies in order.  Defaults to the host context followed
        by the responder chain starting at *responder*.
    responder:
        First link of the responder chain.  Defaults to
        ``host.next_responder`` when the host has one.
    today:
        Returns today's date as ``YYYY-MM-DD``; used when an image has no
        capture date.
    """

    def __init__(
        self,
        config: ScrapshareConfig,
        provider: ConfigProvider,
        host: HostContext,
        *,
        uploader: Any | None = None,
        strategies: list[DeliveryStrategy] | None = None,
        responder: Any | None = None,
        today: Callable[[], str] = today_iso,
    ) -> None:
        self._config = config
        self._provider = provider
        self._host = host
        self._uploader = uploader
        self._today = today
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        if strategies is None:
            strategies = [
                HostContextStrategy(host),
                ResponderChainStrategy(
                    responder if responder is not None else getattr(host, "next_responder", None)
                ),
            ]
        self._dispatcher = CallbackDispatcher(config, strategies)

    async def run(self, payload: SharePayload) -> ShareResult:
        """Process *payload* and signal completion to the host.

        Returns
        -------
        ShareResult
            The outcome.  Pipeline errors are reported here, never raised.
        """
        machine = PipelineStateMachine()
        result = ShareResult(outcome=CallbackOutcome.UNDELIVERABLE)

        async with CompletionScope(self._host):
            try:
                await self._process(payload, machine, result)
            except ScrapshareError as exc:
                result.outcome = CallbackOutcome.UNDELIVERABLE
                result.failed_stage = machine.state
                result.error = exc
                self._report_failure(exc, machine.state)
            machine.transition(PipelineStage.COMPLETED)

        self._metrics.increment(
            "scrapshare.share_total",
            tags={"outcome": result.outcome.value},
        )
        log.info(
            "Share finished",
            extra={
                "extra_fields": {
                    "op": "share",
                    "outcome": result.outcome.value,
                    "stages": [s.value for s in machine.history],
                }
            },
        )
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _process(
        self,
        payload: SharePayload,
        machine: PipelineStateMachine,
        result: ShareResult,
    ) -> None:
        machine.transition(PipelineStage.CLASSIFYING)
        classification = classify_payload(payload)

        machine.transition(PipelineStage.EXTRACTING)
        request = await load_share_request(classification, payload)
        page = await self._build_page(request, machine)
        result.page = page

        machine.transition(PipelineStage.DISPATCHING)
        deep_link = self._dispatcher.build(page)
        result.deep_link = deep_link
        log.debug(
            "Dispatching deep link",
            extra={"extra_fields": {"op": "dispatch", "deep_link": deep_link}},
        )
        result.outcome = await self._dispatcher.deliver(deep_link)

    async def _build_page(
        self,
        request: ShareRequest,
        machine: PipelineStateMachine,
    ) -> PageReference:
        base_url = self._config.scrapbox_base_url

        if isinstance(request, (LinkShare, TextShare)):
            content = extract_content(request)
            shared = SharedConfig.from_provider(self._provider, self._config.default_project_name)
            machine.transition(PipelineStage.BUILDING_REFERENCE)
            return build_link_reference(base_url, shared.project_name, content)

        if isinstance(request, ImageShare):
            processed = await async_process_image(request.data, self._config.jpeg_quality)
            shared = SharedConfig.from_provider(self._provider, self._config.default_project_name)

            machine.transition(PipelineStage.UPLOADING)
            hosted_url = await self._upload(processed.data, shared.upload_token, processed.content_type)

            machine.transition(PipelineStage.BUILDING_REFERENCE)
            return build_image_reference(
                base_url,
                shared.project_name,
                hosted_url,
                processed.metadata,
                today=self._today,
            )

        raise TypeError(f"unhandled share request: {type(request).__name__}")

    async def _upload(self, data: bytes, token: str | None, content_type: str) -> str:
        if self._uploader is not None:
            upload_result = await self._uploader.upload(data, token, content_type)
        else:
            async with AsyncGyazoUploader(self._config) as uploader:
                upload_result = await uploader.upload(data, token, content_type)
        return upload_result.unwrap()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _report_failure(self, exc: ScrapshareError, stage: PipelineStage) -> None:
        code = exc.code.value if hasattr(exc.code, "value") else str(exc.code)
        self._metrics.increment(
            "scrapshare.share_failure_total",
            tags={"code": code, "stage": stage.value},
        )
        log.warning(
            "Share failed",
            exc_info=exc,
            extra={
                "extra_fields": {
                    "op": "share",
                    "stage": stage.value,
                    "error": exc.message,
                }
            },
        )
