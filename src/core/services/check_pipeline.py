"""Domain check orchestration.

This module wires one :class:`BatchScheduler` and one :class:`ResultStream`
per invocation and exposes the result as an async iterator of events, so any
entry point (CLI today, an SSE endpoint or a batch job tomorrow) consumes the
same contract:

- ``progress`` events, non-decreasing, 100 only after the last pair;
- exactly one terminal event: ``complete`` with every requested pair, or
  ``error`` with a human-readable message.

Request validation happens eagerly in :func:`check_domains`, before any
network activity; everything after that is reported through the stream.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable

from core.config import AppSettings
from core.domain.models import CheckRequest, CompleteEvent, ErrorEvent
from core.errors import BatchCancelled
from core.services.batch import BatchScheduler, PairResolver, RateLimit
from core.services.resolver import DomainStatusResolver
from core.services.stream import Event, ResultStream

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Failed to check domains"
CANCELLED_MESSAGE = "Check cancelled"


@dataclass
class CheckOptions:
    """Per-invocation knobs; anything left as None comes from settings."""

    resolver: PairResolver | None = None
    rate_limit: RateLimit | None = None
    cancel_event: asyncio.Event | None = None
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)


def _coerce_request(request: CheckRequest | dict[str, Any]) -> CheckRequest:
    if isinstance(request, CheckRequest):
        return request
    return CheckRequest.from_payload(request)


async def _produce(
    *,
    request: CheckRequest,
    scheduler: BatchScheduler,
    stream: ResultStream,
) -> None:
    try:
        results = await scheduler.run(request)
    except BatchCancelled as exc:
        logger.info("%s", exc)
        stream.fail(CANCELLED_MESSAGE)
        return
    except asyncio.CancelledError:
        if not stream.closed:
            stream.fail(CANCELLED_MESSAGE)
        raise
    except Exception:
        logger.exception("domain check batch failed")
        if not stream.closed:
            stream.fail(FAILED_MESSAGE)
        return

    try:
        stream.complete(results)
    except Exception:
        logger.exception("could not publish batch results")
        if not stream.closed:
            stream.fail(FAILED_MESSAGE)


async def _consume(producer_factory: Callable[[], Awaitable[None]], stream: ResultStream) -> AsyncIterator[Event]:
    task = asyncio.create_task(producer_factory())
    try:
        async for event in stream.events():
            yield event
        await task
    finally:
        # The reader went away (client disconnect): abort the remaining pairs.
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def check_domains(
    request: CheckRequest | dict[str, Any],
    settings: AppSettings | None = None,
    options: CheckOptions | None = None,
) -> AsyncIterator[Event]:
    """Validate ``request`` and return the event stream of its batch.

    Raises:
        CheckRequestError: if domains or TLDs are missing. Raised here,
            before the stream starts and before any network call.
    """

    checked = _coerce_request(request)
    settings = settings or AppSettings()
    options = options or CheckOptions()

    resolver = options.resolver or DomainStatusResolver.from_settings(settings)
    rate_limit = options.rate_limit or RateLimit(settings.checks_per_second)
    stream = ResultStream()
    scheduler = BatchScheduler(
        resolver,
        rate_limit,
        on_progress=stream.emit_progress,
        cancel_event=options.cancel_event,
        sleep=options.sleep,
    )

    logger.debug(
        "starting batch: %d domains x %d tlds at %.1f checks/s",
        len(checked.domains),
        len(checked.tlds),
        rate_limit.checks_per_second,
    )
    return _consume(
        lambda: _produce(request=checked, scheduler=scheduler, stream=stream),
        stream,
    )


async def run_check(
    request: CheckRequest | dict[str, Any],
    settings: AppSettings | None = None,
    options: CheckOptions | None = None,
    *,
    on_progress: Callable[[int], None] | None = None,
) -> CompleteEvent | ErrorEvent:
    """Drain :func:`check_domains` and return its terminal event."""

    terminal: CompleteEvent | ErrorEvent | None = None
    async for event in check_domains(request, settings, options):
        if isinstance(event, (CompleteEvent, ErrorEvent)):
            terminal = event
        elif on_progress is not None:
            on_progress(event.progress)
    if terminal is None:
        raise RuntimeError("event stream ended without a terminal event")
    return terminal

