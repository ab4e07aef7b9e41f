"""Ordered, single-consumer event channel for one batch.

Contract:

- one writer (the batch producer) and exactly one reader;
- events are delivered in the order they were emitted;
- progress values never decrease;
- exactly one terminal event (``complete`` or ``error``) closes the stream.

Violations raise :class:`~core.errors.StreamClosedError` on the writer side so
that bugs surface where they happen, not in the consumer.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Sequence

from core.domain.models import (
    CompleteEvent,
    DomainResult,
    ErrorEvent,
    ProgressEvent,
    is_terminal,
)
from core.errors import StreamClosedError

Event = ProgressEvent | CompleteEvent | ErrorEvent


class ResultStream:
    """Append-only channel backed by an unbounded :class:`asyncio.Queue`.

    No explicit backpressure: the producer emits at most one event per
    resolved pair.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._closed = False
        self._consumed = False
        self._last_progress = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_progress(self) -> int:
        return self._last_progress

    def _put(self, event: Event) -> None:
        if self._closed:
            raise StreamClosedError(f"cannot emit {event.type!r}: stream already closed")
        if is_terminal(event):
            self._closed = True
        self._queue.put_nowait(event)

    def emit_progress(self, progress: int) -> ProgressEvent:
        if progress < self._last_progress:
            raise StreamClosedError(
                f"progress must not decrease ({progress} < {self._last_progress})"
            )
        event = ProgressEvent(progress=progress)
        self._put(event)
        self._last_progress = progress
        return event

    def complete(self, results: Sequence[DomainResult]) -> CompleteEvent:
        event = CompleteEvent(results=list(results))
        self._put(event)
        return event

    def fail(self, message: str) -> ErrorEvent:
        event = ErrorEvent(error=message)
        self._put(event)
        return event

    async def events(self) -> AsyncIterator[Event]:
        """Yield events until (and including) the terminal one. Single use."""

        if self._consumed:
            raise StreamClosedError("stream already has a consumer")
        self._consumed = True
        while True:
            event = await self._queue.get()
            yield event
            if is_terminal(event):
                return

    def __aiter__(self) -> AsyncIterator[Event]:
        return self.events()
