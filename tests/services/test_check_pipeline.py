"""End-to-end tests of the check pipeline with scripted probe stages."""

from __future__ import annotations

import asyncio

import pytest

from core.domain.grid import results_by_pair
from core.domain.models import (
    CheckRequest,
    CompleteEvent,
    DomainResult,
    DomainStatus,
    ErrorClass,
    ErrorEvent,
    ProbeOutcome,
    ProgressEvent,
)
from core.errors import CheckRequestError
from core.services.batch import RateLimit
from core.services.check_pipeline import (
    CANCELLED_MESSAGE,
    FAILED_MESSAGE,
    CheckOptions,
    check_domains,
    run_check,
)
from core.services.resolver import DomainStatusResolver

OK = ProbeOutcome.success()


async def _noop_sleep(delay: float) -> None:
    return None


async def _collect(iterator) -> list:
    return [event async for event in iterator]


def _terminal_count(events: list) -> int:
    return sum(1 for e in events if e.type in ("complete", "error"))


class TestHappyPath:
    def test_complete_event_covers_every_pair(self, resolver_factory, settings) -> None:
        request = {"domains": ["example", "test"], "tlds": [".com", ".net", ".io"]}
        options = CheckOptions(resolver=resolver_factory(system=OK), sleep=_noop_sleep)

        events = asyncio.run(_collect(check_domains(request, settings, options)))

        terminal = events[-1]
        assert isinstance(terminal, CompleteEvent)
        assert len(terminal.results) == 6
        expected = set(CheckRequest.from_payload(request).pairs())
        assert {(r.domain, r.tld) for r in terminal.results} == expected
        assert all(r.status is DomainStatus.TAKEN for r in terminal.results)

    def test_progress_events_precede_single_terminal(self, resolver_factory, settings) -> None:
        request = CheckRequest(domains=["a", "b", "c"], tlds=[".com", ".net", ".org"])
        options = CheckOptions(resolver=resolver_factory(), sleep=_noop_sleep)

        events = asyncio.run(_collect(check_domains(request, settings, options)))

        progress = [e.progress for e in events[:-1]]
        assert all(e.type == "progress" for e in events[:-1])
        assert progress == sorted(progress)
        assert progress[-1] == 100
        assert _terminal_count(events) == 1

    def test_taken_and_available_in_one_batch(self, probes_factory, scripted_stage, failure, settings) -> None:
        probes = probes_factory(
            secondary=failure(ErrorClass.NOT_FOUND),
            http=failure(ErrorClass.CONNECTION_ERROR),
        )
        probes.system_dns = scripted_stage(
            "system",
            failure(ErrorClass.NOT_FOUND),
            per_fqdn={"example.com": OK},
        )
        request = {"domains": ["example", "zzz-unregistered-xyz123"], "tlds": [".com"]}
        options = CheckOptions(resolver=DomainStatusResolver(probes), sleep=_noop_sleep)

        terminal = asyncio.run(run_check(request, settings, options))

        assert isinstance(terminal, CompleteEvent)
        by_pair = results_by_pair(terminal.results)
        assert by_pair[("example", ".com")].status is DomainStatus.TAKEN
        assert by_pair[("zzz-unregistered-xyz123", ".com")].status is DomainStatus.AVAILABLE

    def test_run_check_reports_progress(self, resolver_factory, settings) -> None:
        seen: list[int] = []
        request = CheckRequest(domains=["a"], tlds=[".com", ".net"])
        options = CheckOptions(resolver=resolver_factory(), sleep=_noop_sleep)

        terminal = asyncio.run(run_check(request, settings, options, on_progress=seen.append))

        assert isinstance(terminal, CompleteEvent)
        assert seen == [50, 100]

    def test_rate_limit_from_options(self, resolver_factory, sleep_recorder, settings) -> None:
        request = CheckRequest(domains=["a", "b"], tlds=[".com"])
        options = CheckOptions(resolver=resolver_factory(), rate_limit=RateLimit(10), sleep=sleep_recorder)
        asyncio.run(run_check(request, settings, options))
        assert sleep_recorder.delays == [pytest.approx(0.1)]

    def test_rate_limit_from_settings(self, resolver_factory, sleep_recorder, settings) -> None:
        request = CheckRequest(domains=["a", "b"], tlds=[".com"])
        options = CheckOptions(resolver=resolver_factory(), sleep=sleep_recorder)
        asyncio.run(run_check(request, settings, options))
        assert sleep_recorder.delays == [pytest.approx(0.05)]


class TestValidation:
    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"domains": [], "tlds": [".com"]}, "No domains provided"),
            ({"domains": ["example"], "tlds": []}, "No TLDs provided"),
            ({"tlds": [".com"]}, "No domains provided"),
            ({"domains": ["  "], "tlds": [".com"]}, "No domains provided"),
            ({"domains": ["a", "b"], "tlds": [".com", "."]}, "Invalid TLD"),
            ({"domains": ["a"], "tlds": ["..com"]}, "Invalid TLD"),
        ],
    )
    def test_rejected_before_any_probe(self, payload, message, probes_factory, settings) -> None:
        probes = probes_factory()
        options = CheckOptions(resolver=DomainStatusResolver(probes), sleep=_noop_sleep)
        with pytest.raises(CheckRequestError, match=message):
            check_domains(payload, settings, options)
        assert probes.system_dns.calls == []

    def test_duplicate_inputs_checked_once(self, resolver_factory, settings) -> None:
        request = {"domains": ["a", " a ", "b"], "tlds": ["com", ".com", "net"]}
        options = CheckOptions(resolver=resolver_factory(), sleep=_noop_sleep)

        terminal = asyncio.run(run_check(request, settings, options))

        pairs = [(r.domain, r.tld) for r in terminal.results]
        assert len(pairs) == len(set(pairs))
        assert pairs == [("a", ".com"), ("a", ".net"), ("b", ".com"), ("b", ".net")]


class TestFailures:
    def test_batch_failure_becomes_error_event(self, resolver_factory, settings) -> None:
        def broken_sleep(delay: float):
            raise RuntimeError("scheduler broke")

        request = CheckRequest(domains=["a", "b"], tlds=[".com"])
        options = CheckOptions(resolver=resolver_factory(), sleep=broken_sleep)

        events = asyncio.run(_collect(check_domains(request, settings, options)))

        assert isinstance(events[-1], ErrorEvent)
        assert events[-1].error == FAILED_MESSAGE
        assert _terminal_count(events) == 1

    def test_per_pair_failure_keeps_batch_alive(self, settings) -> None:
        class FlakyResolver:
            async def resolve(self, domain: str, tld: str) -> DomainResult:
                if domain == "bad":
                    raise KeyError(domain)
                return DomainResult(domain=domain, tld=tld, status=DomainStatus.TAKEN)

        request = CheckRequest(domains=["good", "bad"], tlds=[".com"])
        options = CheckOptions(resolver=FlakyResolver(), sleep=_noop_sleep)

        terminal = asyncio.run(run_check(request, settings, options))

        assert isinstance(terminal, CompleteEvent)
        statuses = {r.domain: r.status for r in terminal.results}
        assert statuses == {"good": DomainStatus.TAKEN, "bad": DomainStatus.ERROR}

    def test_invalid_pair_fails_alone(self, settings) -> None:
        class ValidatingResolver:
            async def resolve(self, domain: str, tld: str) -> DomainResult:
                return DomainResult(domain=domain, tld=tld, status=DomainStatus.TAKEN)

        # Skips CheckRequest validation, as a caller building the model directly could.
        request = CheckRequest.model_construct(domains=("a",), tlds=(".com", "."))
        options = CheckOptions(resolver=ValidatingResolver(), sleep=_noop_sleep)

        terminal = asyncio.run(run_check(request, settings, options))

        assert isinstance(terminal, CompleteEvent)
        assert [(r.tld, r.status) for r in terminal.results] == [
            (".com", DomainStatus.TAKEN),
            (".", DomainStatus.ERROR),
        ]
        assert terminal.results[1].cause == "Unexpected failure: ValidationError"

    def test_stream_without_terminal_event_raises(self, settings, monkeypatch: pytest.MonkeyPatch) -> None:
        import core.services.check_pipeline as check_pipeline

        async def truncated(*args, **kwargs):
            yield ProgressEvent(progress=100)

        monkeypatch.setattr(check_pipeline, "check_domains", truncated)
        with pytest.raises(RuntimeError, match="without a terminal event"):
            asyncio.run(run_check({"domains": ["a"], "tlds": [".com"]}, settings))

    def test_cancel_event_stops_batch(self, resolver_factory, settings) -> None:
        cancel = asyncio.Event()

        async def cancel_on_first_pause(delay: float) -> None:
            cancel.set()

        request = CheckRequest(domains=["a", "b", "c"], tlds=[".com"])
        options = CheckOptions(resolver=resolver_factory(), cancel_event=cancel, sleep=cancel_on_first_pause)

        events = asyncio.run(_collect(check_domains(request, settings, options)))

        assert [e.type for e in events] == ["progress", "error"]
        assert events[-1].error == CANCELLED_MESSAGE

    def test_consumer_leaving_cancels_producer(self, probes_factory, settings) -> None:
        probes = probes_factory()
        request = CheckRequest(domains=["a", "b", "c", "d"], tlds=[".com"])

        async def slow_sleep(delay: float) -> None:
            await asyncio.sleep(0.01)

        async def scenario() -> None:
            options = CheckOptions(resolver=DomainStatusResolver(probes), sleep=slow_sleep)
            stream = check_domains(request, settings, options)
            first = await stream.__anext__()
            assert first.type == "progress"
            await stream.aclose()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert len(probes.system_dns.calls) < 4
