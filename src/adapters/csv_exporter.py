"""Exportación tabular (CSV) del mapa (dominio, TLD) -> estado.

Formato:
- Una fila por dominio, en el orden en que aparece por primera vez.
- Cabecera `Domain Name` + una columna por TLD distinta, ordenadas.
- Celda = estado (`Available`/`Taken`/`Error`); vacía si el par no está.

`read_status_map` hace el camino inverso e ignora las celdas vacías, de modo
que exportar y releer reconstruye exactamente el mismo mapa.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from core.domain.models import DomainResult, DomainStatus
from core.errors import ExportError

DOMAIN_COLUMN = "Domain Name"


def default_csv_filename(now: datetime | None = None) -> str:
    """`domain-check-results-<epoch ms>.csv`"""

    now = now or datetime.now(timezone.utc)
    return f"domain-check-results-{int(now.timestamp() * 1000)}.csv"


def build_rows(results: Sequence[DomainResult]) -> tuple[list[str], list[dict[str, str]]]:
    """Agrupa por dominio; devuelve (cabecera, filas)."""

    if not results:
        raise ExportError("No results provided")

    tlds = sorted({result.tld for result in results})
    header = [DOMAIN_COLUMN, *tlds]

    rows: dict[str, dict[str, str]] = {}
    for result in results:
        row = rows.get(result.domain)
        if row is None:
            row = {DOMAIN_COLUMN: result.domain, **{tld: "" for tld in tlds}}
            rows[result.domain] = row
        row[result.tld] = result.status.value
    return header, list(rows.values())


def render_results_csv(results: Sequence[DomainResult]) -> str:
    header, rows = build_rows(results)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def export_results_csv(*, results: Sequence[DomainResult], output_path: Path) -> Path:
    """Escribe el CSV; si `output_path` es un directorio usa `default_csv_filename()`."""

    content = render_results_csv(results)
    if output_path.is_dir():
        output_path = output_path / default_csv_filename()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8", newline="")
    return output_path


def read_status_map(source: str | Iterable[str]) -> dict[tuple[str, str], DomainStatus]:
    """Lee un CSV exportado y devuelve `{(dominio, tld): estado}`.

    Las celdas vacías (pares sin resolver) se omiten; nunca son un error.
    """

    lines = io.StringIO(source) if isinstance(source, str) else source
    reader = csv.DictReader(lines)
    if reader.fieldnames is None or DOMAIN_COLUMN not in reader.fieldnames:
        raise ExportError(f"missing {DOMAIN_COLUMN!r} column")

    status_map: dict[tuple[str, str], DomainStatus] = {}
    for row in reader:
        domain = row.get(DOMAIN_COLUMN) or ""
        if not domain:
            continue
        for column, cell in row.items():
            if column == DOMAIN_COLUMN or column is None or not cell:
                continue
            status_map[(domain, column)] = DomainStatus(cell.strip())
    return status_map


def load_status_map(path: Path) -> dict[tuple[str, str], DomainStatus]:
    with path.open(encoding="utf-8", newline="") as handle:
        return read_status_map(handle)
