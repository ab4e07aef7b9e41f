"""Exportación de reportes HTML.

Por qué está en adapters:
- El HTML es un detalle de presentación (Jinja2).
- El Core solo conoce la lista de `DomainResult`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.grid import build_grid
from core.domain.models import DomainResult, DomainStatus
from core.errors import ExportError

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_results_html(*, results: Sequence[DomainResult]) -> str:
    """Renderiza un HTML autocontenido con la rejilla dominio x TLD."""

    if not results:
        raise ExportError("No results provided")

    grid = build_grid(results)

    template = _get_env().get_template("report.html")
    return template.render(
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        domains=grid.domains,
        tlds=grid.tlds,
        cells=grid.cells,
        total=len(grid.cells),
        available_count=grid.count(DomainStatus.AVAILABLE),
        taken_count=grid.count(DomainStatus.TAKEN),
        error_count=grid.count(DomainStatus.ERROR),
    )


def export_results_html(*, results: Sequence[DomainResult], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_results_html(results=results), encoding="utf-8")
    return output_path
