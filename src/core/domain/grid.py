"""Vista rejilla (dominio x TLD) de una lista de resultados.

La usan tanto la rejilla Rich de la CLI como el reporte HTML, así que vive en
el dominio: no hace I/O ni sabe renderizar.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from core.domain.models import DomainResult, DomainStatus


def results_by_pair(results: Iterable[DomainResult]) -> dict[tuple[str, str], DomainResult]:
    """Indexa por (dominio, tld)."""

    return {(r.domain, r.tld): r for r in results}


@dataclass(frozen=True)
class ResultGrid:
    domains: list[str]
    tlds: list[str]
    cells: dict[tuple[str, str], DomainResult]

    def cell(self, domain: str, tld: str) -> DomainResult | None:
        return self.cells.get((domain, tld))

    def count(self, status: DomainStatus) -> int:
        return sum(1 for result in self.cells.values() if result.status is status)


def build_grid(results: Sequence[DomainResult]) -> ResultGrid:
    """Dominios y TLDs ordenados alfabéticamente; un par ausente no tiene celda."""

    cells = results_by_pair(results)
    return ResultGrid(
        domains=sorted({domain for domain, _ in cells}),
        tlds=sorted({tld for _, tld in cells}),
        cells=cells,
    )
