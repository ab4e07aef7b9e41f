"""CLI de domain-sweep (Typer).

Por qué la CLI es fina:
- Valida la entrada, consume el stream de eventos y presenta/exporta.
- Toda la lógica de sondeo vive en `core.services.check_pipeline`.

Salidas:
- stdout: rejilla de resultados, o el stream crudo con `--events sse|jsonl`.
- stderr: logs (structlog) y mensajes de error.
"""

import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from adapters.csv_exporter import export_results_csv
from adapters.event_encoder import encode_json_line, encode_sse
from adapters.json_exporter import export_results_json
from adapters.report_exporter import export_results_html
from cli import doctor
from cli.ui_components import build_errors_table, build_progress, build_results_grid, print_banner
from core.config import AppSettings
from core.domain.models import CheckRequest, CompleteEvent, ErrorEvent
from core.errors import CheckRequestError
from core.logging import configure_logging
from core.services.batch import RateLimit
from core.services.check_pipeline import CheckOptions, check_domains

app = typer.Typer(
    no_args_is_help=True,
    help="Check domain availability across TLDs with a DNS/HTTP probe cascade.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


class EventFormat(str, Enum):
    NONE = "none"
    SSE = "sse"
    JSONL = "jsonl"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logs to stderr."),
    log_json: bool = typer.Option(False, "--log-json", help="Structured JSON logs."),
) -> None:
    configure_logging(verbose=verbose, log_json=log_json)


def read_domains_file(path: Path) -> List[str]:
    """Una etiqueta por línea; ignora vacías y comentarios (#)."""

    labels: List[str] = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line and not line.startswith("#"):
            labels.append(line)
    return labels


async def _drive(
    request: CheckRequest,
    settings: AppSettings,
    options: CheckOptions,
    events: EventFormat,
    show_progress: bool,
):
    terminal = None
    progress = build_progress(_err_console) if show_progress else None
    task_id = progress.add_task("check", total=100) if progress else None

    if progress:
        progress.start()
    try:
        async for event in check_domains(request, settings, options):
            if events is EventFormat.SSE:
                sys.stdout.write(encode_sse(event))
                sys.stdout.flush()
            elif events is EventFormat.JSONL:
                sys.stdout.write(encode_json_line(event))
                sys.stdout.flush()

            if isinstance(event, (CompleteEvent, ErrorEvent)):
                terminal = event
            elif progress is not None and task_id is not None:
                progress.update(task_id, completed=event.progress)
    finally:
        if progress:
            progress.stop()
    return terminal


@app.command()
def check(
    domains: Optional[List[str]] = typer.Argument(None, help="Domain labels (e.g. example)."),
    tld: Optional[List[str]] = typer.Option(
        None,
        "--tld",
        "-t",
        help="TLD to check (repeatable). Defaults to the configured list.",
    ),
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="Read domain labels from a file, one per line.",
    ),
    rate: Optional[float] = typer.Option(
        None,
        "--rate",
        min=0.1,
        help="Max checks per second (default from settings: 20).",
    ),
    events: EventFormat = typer.Option(
        EventFormat.NONE,
        "--events",
        case_sensitive=False,
        help="Print the raw event stream to stdout instead of the grid.",
    ),
    csv_path: Optional[Path] = typer.Option(
        None,
        "--csv",
        help="Write a CSV export (a directory gets domain-check-results-<ms>.csv).",
    ),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write a JSON export."),
    html_path: Optional[Path] = typer.Option(None, "--html", help="Write an HTML report."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Skip the banner."),
) -> None:
    """Check every DOMAIN against every TLD."""

    settings = AppSettings()
    labels = list(domains or [])
    if file is not None:
        labels.extend(read_domains_file(file))

    try:
        request = CheckRequest(domains=labels, tlds=list(tld or settings.default_tlds))
    except CheckRequestError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)

    interactive = events is EventFormat.NONE
    if interactive and not no_banner:
        print_banner(_console)

    options = CheckOptions(rate_limit=RateLimit(rate) if rate else None)
    terminal = asyncio.run(
        _drive(request, settings, options, events, show_progress=interactive and _err_console.is_terminal)
    )

    if isinstance(terminal, ErrorEvent) or terminal is None:
        message = terminal.error if terminal is not None else "Failed to check domains"
        _err_console.print(f"[red]{message}[/red]")
        raise typer.Exit(code=1)

    results = terminal.results
    if interactive:
        _console.print(build_results_grid(results))
        errors_table = build_errors_table(results)
        if errors_table is not None:
            _console.print(errors_table)

    if csv_path is not None:
        written = export_results_csv(results=results, output_path=csv_path)
        _err_console.print(f"[green]CSV written to:[/green] {written}")
    if json_path is not None:
        written = export_results_json(results=results, output_path=json_path)
        _err_console.print(f"[green]JSON written to:[/green] {written}")
    if html_path is not None:
        written = export_results_html(results=results, output_path=html_path)
        _err_console.print(f"[green]HTML report written to:[/green] {written}")


def run() -> None:
    app()
