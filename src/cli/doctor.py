"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.dns_probe import DnsQueryStage
from adapters.http_client import HttpProbeStage
from core.config import AppSettings, write_user_env_vars
from core.domain.models import ProbeOutcome
from core.interfaces.probe import ProbeStage

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and resolver configuration.")

_console = Console()

REFERENCE_HOST = "example.com"


def _describe(outcome: ProbeOutcome) -> tuple[str, str]:
    if outcome.succeeded:
        return "OK", "answered"
    error_class = outcome.error_class.value if outcome.error_class else "Unknown"
    return "FAIL", f"{error_class}: {outcome.detail or '-'}"


async def _run_checks(settings: AppSettings, host: str) -> list[tuple[str, str, ProbeOutcome]]:
    timeout = settings.dns_timeout_seconds
    stages: list[tuple[str, str, ProbeStage]] = [
        (
            "System DNS",
            ", ".join(settings.system_nameservers) or "OS default",
            DnsQueryStage("system", settings.system_nameservers, timeout=timeout),
        ),
        (
            "Secondary DNS",
            ", ".join(settings.secondary_nameservers),
            DnsQueryStage("secondary", settings.secondary_nameservers, timeout=timeout),
        ),
        (
            "Tertiary DNS",
            ", ".join(settings.tertiary_nameservers),
            DnsQueryStage("tertiary", settings.tertiary_nameservers, timeout=timeout),
        ),
        ("HTTP probe", f"http://{host}/", HttpProbeStage(settings)),
    ]
    rows: list[tuple[str, str, ProbeOutcome]] = []
    # Secuencial, como un lote real.
    for label, target, stage in stages:
        rows.append((label, target, await stage.probe(host)))
    return rows


@app.command()
def run(
    host: str = typer.Option(REFERENCE_HOST, "--host", help="Known-registered host to probe."),
) -> None:
    """Probe every cascade stage against a known host and report."""

    settings = AppSettings()

    table = Table(title="domain-sweep Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Target", style="white")
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Rate limit", "-", "OK", f"{settings.checks_per_second:g} checks/s")

    rows = asyncio.run(_run_checks(settings, host))
    failures = 0
    for label, target, outcome in rows:
        status, detail = _describe(outcome)
        failures += status != "OK"
        table.add_row(label, target, status, detail)

    _console.print(table)

    if failures:
        _console.print(
            "\n[yellow]Note:[/yellow] failing stages fall through the cascade; "
            "results for affected pairs may end as Error."
        )


@app.command(name="setup-resolvers")
def setup_resolvers() -> None:
    """Interactive resolver setup (stores config in the user config .env)."""

    current = AppSettings()

    system = typer.prompt(
        "System nameservers (comma separated, empty = OS default)",
        default=",".join(current.system_nameservers),
        show_default=True,
    ).strip()
    secondary = typer.prompt(
        "Secondary nameservers",
        default=",".join(current.secondary_nameservers),
        show_default=True,
    ).strip()
    tertiary = typer.prompt(
        "Tertiary nameservers",
        default=",".join(current.tertiary_nameservers),
        show_default=True,
    ).strip()
    rate = typer.prompt("Checks per second", default=current.checks_per_second, type=float)

    if not secondary or not tertiary:
        raise typer.BadParameter("secondary and tertiary nameservers are required")
    if rate <= 0:
        raise typer.BadParameter("checks per second must be positive")

    env_path = write_user_env_vars(
        {
            "DOMAIN_SWEEP_SYSTEM_NAMESERVERS": system,
            "DOMAIN_SWEEP_SECONDARY_NAMESERVERS": secondary,
            "DOMAIN_SWEEP_TERTIARY_NAMESERVERS": tertiary,
            "DOMAIN_SWEEP_CHECKS_PER_SECOND": f"{rate:g}",
        }
    )

    _console.print(f"[green]Saved resolver config to:[/green] {env_path}")
