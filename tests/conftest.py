"""Shared pytest fixtures and test doubles for domain-sweep tests.

Nothing here touches the network: stages are scripted fakes and sleeping is
recorded instead of awaited.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from core.config import AppSettings
from core.domain.models import ErrorClass, ProbeOutcome
from core.services.resolver import DomainStatusResolver, ProbeSet

OK = ProbeOutcome.success()


def fail(error_class: ErrorClass, detail: str | None = None) -> ProbeOutcome:
    return ProbeOutcome.failure(error_class, detail=detail or error_class.value)


class ScriptedStage:
    """Probe stage returning a fixed outcome, optionally per FQDN."""

    def __init__(
        self,
        name: str,
        default: ProbeOutcome = OK,
        per_fqdn: dict[str, ProbeOutcome] | None = None,
        raises: BaseException | None = None,
    ) -> None:
        self.name = name
        self.default = default
        self.per_fqdn = per_fqdn or {}
        self.raises = raises
        self.calls: list[str] = []

    async def probe(self, fqdn: str) -> ProbeOutcome:
        self.calls.append(fqdn)
        if self.raises is not None:
            raise self.raises
        return self.per_fqdn.get(fqdn, self.default)


class SleepRecorder:
    """Drop-in for asyncio.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_probes(
    system: ProbeOutcome = OK,
    secondary: ProbeOutcome = OK,
    tertiary: ProbeOutcome = OK,
    http: ProbeOutcome = OK,
) -> ProbeSet:
    return ProbeSet(
        system_dns=ScriptedStage("system", system),
        secondary_dns=ScriptedStage("secondary", secondary),
        tertiary_dns=ScriptedStage("tertiary", tertiary),
        http_probe=ScriptedStage("http", http),
    )


@pytest.fixture
def scripted_stage() -> type[ScriptedStage]:
    return ScriptedStage


@pytest.fixture
def probes_factory() -> Callable[..., ProbeSet]:
    """Build a ProbeSet of scripted stages: ``probes_factory(system=fail(...), ...)``."""
    return make_probes


@pytest.fixture
def failure() -> Callable[..., ProbeOutcome]:
    return fail


@pytest.fixture
def resolver_factory() -> Callable[..., DomainStatusResolver]:
    def _build(**outcomes: ProbeOutcome) -> DomainStatusResolver:
        return DomainStatusResolver(make_probes(**outcomes))

    return _build


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppSettings:
    """Settings isolated from the developer's .env files and environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for key in [k for k in os.environ if k.upper().startswith("DOMAIN_SWEEP_")]:
        monkeypatch.delenv(key, raising=False)
    return AppSettings(_env_file=None)
