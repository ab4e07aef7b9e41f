"""Per-pair status resolution.

:class:`DomainStatusResolver` drives the cascade defined in
:mod:`core.domain.cascade`: it runs whichever stage the current state names,
feeds the outcome back into :func:`~core.domain.cascade.advance` and stops at
``RESOLVED``. Stage failures never escape as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from adapters.dns_probe import DnsQueryStage
from adapters.http_client import HttpProbeStage
from core.config import AppSettings
from core.domain.cascade import CascadeState, Stage, advance
from core.domain.classifier import classify_error
from core.domain.models import DomainResult, ProbeOutcome, build_fqdn, normalize_tld
from core.interfaces.probe import ProbeStage

logger = logging.getLogger(__name__)


@dataclass
class ProbeSet:
    """The four stages one resolver needs."""

    system_dns: ProbeStage
    secondary_dns: ProbeStage
    tertiary_dns: ProbeStage
    http_probe: ProbeStage

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ProbeSet":
        """Fresh stage instances (own resolvers) built from configuration."""

        timeout = settings.dns_timeout_seconds
        return cls(
            system_dns=DnsQueryStage("system", settings.system_nameservers, timeout=timeout),
            secondary_dns=DnsQueryStage("secondary", settings.secondary_nameservers, timeout=timeout),
            tertiary_dns=DnsQueryStage("tertiary", settings.tertiary_nameservers, timeout=timeout),
            http_probe=HttpProbeStage(settings),
        )

    def for_stage(self, stage: Stage) -> ProbeStage:
        mapping = {
            Stage.SYSTEM_DNS: self.system_dns,
            Stage.SECONDARY_DNS: self.secondary_dns,
            Stage.TERTIARY_DNS: self.tertiary_dns,
            Stage.HTTP_PROBE: self.http_probe,
        }
        return mapping[stage]


class DomainStatusResolver:
    """Resolve one (domain, TLD) pair to Available / Taken / Error."""

    def __init__(self, probes: ProbeSet) -> None:
        self._probes = probes

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "DomainStatusResolver":
        return cls(ProbeSet.from_settings(settings))

    async def _run_stage(self, stage: Stage, fqdn: str) -> ProbeOutcome:
        probe = self._probes.for_stage(stage)
        try:
            return await probe.probe(fqdn)
        except Exception as exc:
            # Stages should not raise; an unexpected exception is classified like any failure.
            logger.warning("stage %s raised for %s: %r", stage.value, fqdn, exc)
            return ProbeOutcome.failure(classify_error(exc), detail=repr(exc))

    async def run_cascade(self, fqdn: str) -> CascadeState:
        """Run stages until the cascade resolves and return the final state."""

        state = CascadeState()
        while not state.resolved:
            outcome = await self._run_stage(state.stage, fqdn)
            state = advance(state, outcome)
        return state

    async def resolve(self, domain: str, tld: str) -> DomainResult:
        tld = normalize_tld(tld)
        fqdn = build_fqdn(domain, tld)
        state = await self.run_cascade(fqdn)
        if state.verdict is None:
            raise RuntimeError(f"cascade for {fqdn} ended without a verdict")

        logger.debug(
            "resolved %s -> %s via %s",
            fqdn,
            state.verdict.status.value,
            " > ".join(stage.value for stage, _ in state.outcomes),
        )
        return DomainResult(
            domain=domain,
            tld=tld,
            status=state.verdict.status,
            cause=state.verdict.cause,
        )
