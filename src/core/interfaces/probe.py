"""Contratos de las etapas de sondeo.

Por qué Protocol:
- El resolver depende de "algo que sondea un FQDN", no de dnspython/httpx.
- Los tests sustituyen las etapas por dobles sin red.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ProbeOutcome


@runtime_checkable
class ProbeStage(Protocol):
    """Contrato mínimo de una etapa (DNS o HTTP).

    Reglas de diseño:
    - `probe` es asíncrono porque hace I/O de red.
    - Nunca lanza por fallos de red: los devuelve clasificados en `ProbeOutcome`.
    - No reintenta; la cascada decide qué hacer con el fallo.
    """

    name: str

    async def probe(self, fqdn: str) -> ProbeOutcome:
        """Sondea `fqdn` una única vez y devuelve el resultado normalizado."""

        ...
