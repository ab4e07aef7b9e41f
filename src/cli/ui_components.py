"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from core.domain.grid import build_grid
from core.domain.models import DomainResult, DomainStatus

_STATUS_CELLS: dict[DomainStatus, Text] = {
    DomainStatus.AVAILABLE: Text("✓ Available", style="bold green"),
    DomainStatus.TAKEN: Text("✗ Taken", style="red"),
    DomainStatus.ERROR: Text("! Error", style="yellow"),
}


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Se omite en modos no interactivos (eventos SSE/JSONL por stdout).
    """

    title = Text("domain-sweep", style="bold cyan")
    subtitle = Text("DNS cascade • HTTP probe • Rate-limited batches", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("[cyan]Checking"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def status_cell(result: DomainResult | None) -> Text:
    if result is None:
        return Text("")
    return _STATUS_CELLS[result.status].copy()


def build_results_grid(results: Sequence[DomainResult]) -> Table:
    """Rejilla dominio x TLD, ordenada; pares ausentes quedan vacíos."""

    grid = build_grid(results)
    table = Table(title="Domain availability")
    table.add_column("Domain", style="cyan", no_wrap=True)
    for tld in grid.tlds:
        table.add_column(tld, justify="center")
    for domain in grid.domains:
        table.add_row(domain, *(status_cell(grid.cell(domain, tld)) for tld in grid.tlds))
    return table


def build_errors_table(results: Sequence[DomainResult]) -> Table | None:
    """Detalle de causas para los pares en `Error` (None si no hay)."""

    errors = [r for r in results if r.status is DomainStatus.ERROR]
    if not errors:
        return None
    table = Table(title="Errors")
    table.add_column("Domain", style="cyan", no_wrap=True)
    table.add_column("Cause", style="yellow")
    for result in errors:
        table.add_row(result.fqdn, result.cause or "")
    return table
