"""Rate-limited, strictly sequential batch runner.

Why sequential:
- Bounding the outbound query rate protects third-party resolvers and the
  probed hosts regardless of batch size. Pairs are never probed concurrently
  inside one batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from core.domain.models import CheckRequest, DomainResult, DomainStatus
from core.errors import BatchCancelled

logger = logging.getLogger(__name__)

DEFAULT_CHECKS_PER_SECOND = 20.0


class PairResolver(Protocol):
    async def resolve(self, domain: str, tld: str) -> DomainResult: ...


@dataclass(frozen=True)
class RateLimit:
    """Ceiling on checks per second; 20/s means a 50 ms pause between pairs."""

    checks_per_second: float = DEFAULT_CHECKS_PER_SECOND

    def __post_init__(self) -> None:
        if self.checks_per_second <= 0:
            raise ValueError("checks_per_second must be positive")

    @property
    def interval(self) -> float:
        return 1.0 / self.checks_per_second


def compute_progress(completed: int, total: int) -> int:
    """Integer percentage that reaches 100 only when ``completed == total``."""

    if total <= 0:
        return 100
    return completed * 100 // total


class BatchScheduler:
    """Resolve every (domain, TLD) pair of a request, one at a time.

    Args:
        resolver: Object with an async ``resolve(domain, tld)``.
        rate_limit: Pause between consecutive pairs.
        on_progress: Called with the percentage after each pair.
        cancel_event: When set, remaining pairs are skipped and
            :class:`BatchCancelled` is raised.
        sleep: Injected for tests; defaults to :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        resolver: PairResolver,
        rate_limit: RateLimit | None = None,
        *,
        on_progress: Callable[[int], None] | None = None,
        cancel_event: asyncio.Event | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._resolver = resolver
        self._rate_limit = rate_limit or RateLimit()
        self._on_progress = on_progress
        self._cancel_event = cancel_event
        self._sleep = sleep

    async def _resolve_isolated(self, domain: str, tld: str) -> DomainResult:
        try:
            return await self._resolver.resolve(domain, tld)
        except Exception as exc:
            # One broken pair must not abort the batch.
            logger.warning("check failed for %s%s: %r", domain, tld, exc, exc_info=True)
            # Unvalidated: the failing pair may itself be the invalid input.
            return DomainResult.model_construct(
                domain=domain,
                tld=tld,
                status=DomainStatus.ERROR,
                cause=f"Unexpected failure: {type(exc).__name__}",
            )

    async def run(self, request: CheckRequest) -> list[DomainResult]:
        """Return one result per pair, in domain-major order."""

        pairs = request.pairs()
        total = len(pairs)
        results: list[DomainResult] = []

        for index, (domain, tld) in enumerate(pairs, start=1):
            if self._cancel_event is not None and self._cancel_event.is_set():
                raise BatchCancelled(completed=len(results), total=total)

            results.append(await self._resolve_isolated(domain, tld))

            if self._on_progress is not None:
                self._on_progress(compute_progress(index, total))

            if index < total:
                await self._sleep(self._rate_limit.interval)

        logger.debug("batch finished: %d checks", total)
        return results
