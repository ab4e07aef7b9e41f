"""Cascade state machine for one (domain, TLD) pair.

The resolver never branches on probe results itself: it runs the stage named
by the current :class:`CascadeState` and feeds the :class:`ProbeOutcome` back
into :func:`advance`, a pure transition function. Each rule is a separate
branch so it can be tested in isolation.

Stages::

    SYSTEM_DNS -> SECONDARY_DNS -> {HTTP_PROBE | TERTIARY_DNS} -> {HTTP_PROBE} -> RESOLVED
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from core.domain.models import DomainStatus, ErrorClass, ProbeOutcome


class Stage(str, Enum):
    SYSTEM_DNS = "system_dns"
    SECONDARY_DNS = "secondary_dns"
    TERTIARY_DNS = "tertiary_dns"
    HTTP_PROBE = "http_probe"
    RESOLVED = "resolved"

    @property
    def is_dns(self) -> bool:
        return self in (Stage.SYSTEM_DNS, Stage.SECONDARY_DNS, Stage.TERTIARY_DNS)


HTTP_INCONCLUSIVE = "HTTP probe inconclusive - try again later"
LOOKUP_FAILED = "DNS lookup failed"

_TRANSIENT_MESSAGES: dict[ErrorClass, str] = {
    ErrorClass.TIMEOUT: "DNS timeout - try again later",
    ErrorClass.SERVER_FAILURE: "DNS server error - try again later",
    ErrorClass.CONNECTION_ERROR: "DNS connection error - try again later",
}


def transient_message(error_class: ErrorClass) -> str:
    """Human-readable cause naming a transient DNS failure class."""

    return _TRANSIENT_MESSAGES.get(error_class, LOOKUP_FAILED)


@dataclass(frozen=True)
class Verdict:
    status: DomainStatus
    cause: str | None = None


@dataclass(frozen=True)
class CascadeState:
    """Where the cascade is and what each visited stage reported."""

    stage: Stage = Stage.SYSTEM_DNS
    outcomes: tuple[tuple[Stage, ProbeOutcome], ...] = field(default_factory=tuple)
    verdict: Verdict | None = None

    @property
    def resolved(self) -> bool:
        return self.stage is Stage.RESOLVED

    def outcome_of(self, stage: Stage) -> ProbeOutcome | None:
        for visited, outcome in self.outcomes:
            if visited is stage:
                return outcome
        return None

    @property
    def dns_not_found(self) -> bool:
        """True when some DNS stage reported the definitive NotFound."""

        return any(
            visited.is_dns and outcome.error_class is ErrorClass.NOT_FOUND
            for visited, outcome in self.outcomes
        )


def _goto(state: CascadeState, outcome: ProbeOutcome, stage: Stage) -> CascadeState:
    return replace(state, stage=stage, outcomes=(*state.outcomes, (state.stage, outcome)))


def _resolve(
    state: CascadeState,
    outcome: ProbeOutcome,
    status: DomainStatus,
    cause: str | None = None,
) -> CascadeState:
    return replace(
        state,
        stage=Stage.RESOLVED,
        outcomes=(*state.outcomes, (state.stage, outcome)),
        verdict=Verdict(status=status, cause=cause),
    )


def _from_system(state: CascadeState, outcome: ProbeOutcome) -> CascadeState:
    if outcome.succeeded:
        return _resolve(state, outcome, DomainStatus.TAKEN)
    return _goto(state, outcome, Stage.SECONDARY_DNS)


def _from_secondary(state: CascadeState, outcome: ProbeOutcome) -> CascadeState:
    if outcome.succeeded:
        return _resolve(state, outcome, DomainStatus.TAKEN)
    if outcome.error_class is ErrorClass.NOT_FOUND:
        return _goto(state, outcome, Stage.HTTP_PROBE)

    system = state.outcome_of(Stage.SYSTEM_DNS)
    system_transient = system is not None and system.error_class is not None and system.error_class.is_transient
    # Un único proveedor inestable no basta para escalar.
    if outcome.error_class is not None and outcome.error_class.is_transient and system_transient:
        return _goto(state, outcome, Stage.TERTIARY_DNS)
    return _resolve(state, outcome, DomainStatus.ERROR, LOOKUP_FAILED)


def _from_tertiary(state: CascadeState, outcome: ProbeOutcome) -> CascadeState:
    if outcome.succeeded:
        return _resolve(state, outcome, DomainStatus.TAKEN)
    if outcome.error_class is ErrorClass.NOT_FOUND:
        return _goto(state, outcome, Stage.HTTP_PROBE)
    if outcome.error_class is not None and outcome.error_class.is_transient:
        return _resolve(state, outcome, DomainStatus.ERROR, transient_message(outcome.error_class))
    return _resolve(state, outcome, DomainStatus.ERROR, LOOKUP_FAILED)


def _from_http(state: CascadeState, outcome: ProbeOutcome) -> CascadeState:
    if outcome.succeeded:
        return _resolve(state, outcome, DomainStatus.TAKEN)
    if outcome.no_server and state.dns_not_found:
        return _resolve(state, outcome, DomainStatus.AVAILABLE)
    if outcome.no_server:
        return _resolve(state, outcome, DomainStatus.ERROR, LOOKUP_FAILED)
    return _resolve(state, outcome, DomainStatus.ERROR, HTTP_INCONCLUSIVE)


_TRANSITIONS = {
    Stage.SYSTEM_DNS: _from_system,
    Stage.SECONDARY_DNS: _from_secondary,
    Stage.TERTIARY_DNS: _from_tertiary,
    Stage.HTTP_PROBE: _from_http,
}


def advance(state: CascadeState, outcome: ProbeOutcome) -> CascadeState:
    """Apply the outcome of ``state.stage`` and return the next state.

    Raises:
        ValueError: if the state is already resolved.
    """

    if state.resolved:
        raise ValueError("cascade already resolved")
    return _TRANSITIONS[state.stage](state, outcome)
