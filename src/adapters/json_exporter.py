"""Exportación JSON de los resultados.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Conserva la causa de los resultados `Error`, que el CSV no lleva.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from core.domain.models import DomainResult
from core.errors import ExportError


def export_results_json(*, results: Sequence[DomainResult], output_path: Path) -> Path:
    """Exporta los resultados a JSON UTF-8 con formato estable (orden del lote)."""

    if not results:
        raise ExportError("No results provided")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"results": [result.to_wire() for result in results]}
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def load_results_json(path: Path) -> list[DomainResult]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [DomainResult.model_validate(item) for item in data.get("results", [])]
