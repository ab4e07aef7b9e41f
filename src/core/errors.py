"""Excepciones del proyecto.

Por qué un módulo propio:
- El Core, los adaptadores y la CLI comparten la misma jerarquía sin
  importarse entre sí.
- Los fallos de red NO viven aquí: se clasifican en `ErrorClass` y nunca se
  propagan como excepción.
"""

from __future__ import annotations


class DomainSweepError(Exception):
    """Base de todas las excepciones propias."""


class CheckRequestError(DomainSweepError, ValueError):
    """Petición mal formada (sin dominios o sin TLDs).

    Se lanza antes de cualquier actividad de red.
    """


class StreamClosedError(DomainSweepError, RuntimeError):
    """Uso indebido del `ResultStream` (evento tras el terminal, segundo lector...)."""


class BatchCancelled(DomainSweepError):
    """El lote se canceló entre dos pares."""

    def __init__(self, completed: int, total: int) -> None:
        super().__init__(f"Batch cancelled after {completed}/{total} checks")
        self.completed = completed
        self.total = total


class ExportError(DomainSweepError):
    """No se pudo exportar (p.ej. colección de resultados vacía)."""
