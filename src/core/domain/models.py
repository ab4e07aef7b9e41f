"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta en el borde (peticiones) y serialización estable para
  el stream de eventos y los exportadores.
- Los modelos describen *qué* es un resultado, no *cómo* se obtiene.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from core.errors import CheckRequestError


class DomainStatus(str, Enum):
    """Veredicto final para un par (dominio, TLD)."""

    AVAILABLE = "Available"
    TAKEN = "Taken"
    ERROR = "Error"


class ErrorClass(str, Enum):
    """Categoría semántica de un fallo de red (interna, nunca expuesta tal cual)."""

    TIMEOUT = "Timeout"
    SERVER_FAILURE = "ServerFailure"
    CONNECTION_ERROR = "ConnectionError"
    NOT_FOUND = "NotFound"
    UNKNOWN = "Unknown"

    @property
    def is_transient(self) -> bool:
        """Timeout, ServerFailure y ConnectionError pueden desaparecer al reintentar."""

        return self in _TRANSIENT


_TRANSIENT = frozenset({ErrorClass.TIMEOUT, ErrorClass.SERVER_FAILURE, ErrorClass.CONNECTION_ERROR})


def normalize_tld(value: str) -> str:
    """Normaliza un sufijo a la forma canónica con punto inicial (`com` -> `.com`)."""

    cleaned = value.strip()
    if not cleaned:
        return ""
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


def build_fqdn(domain: str, tld: str) -> str:
    """Concatena etiqueta y TLD normalizado (`example`, `.com` -> `example.com`)."""

    normalized = normalize_tld(tld)
    return f"{domain}.{normalized[1:]}"


class ProbeOutcome(BaseModel):
    """Resultado de una única etapa (DNS o HTTP).

    Solo lo produce una etapa y solo lo consume la cascada del resolver.
    """

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    error_class: ErrorClass | None = None
    detail: str | None = Field(
        default=None,
        description="Mensaje/código crudo del fallo (trazabilidad en logs).",
    )

    @model_validator(mode="after")
    def _check_class(self) -> "ProbeOutcome":
        if self.succeeded and self.error_class is not None:
            raise ValueError("a succeeded outcome carries no error class")
        if not self.succeeded and self.error_class is None:
            raise ValueError("a failed outcome needs an error class")
        return self

    @classmethod
    def success(cls) -> "ProbeOutcome":
        return cls(succeeded=True)

    @classmethod
    def failure(cls, error_class: ErrorClass, detail: str | None = None) -> "ProbeOutcome":
        return cls(succeeded=False, error_class=error_class, detail=detail)

    @property
    def no_server(self) -> bool:
        """Para la sonda HTTP: conexión rechazada, red inalcanzable o nombre inexistente."""

        return self.error_class in (ErrorClass.CONNECTION_ERROR, ErrorClass.NOT_FOUND)


class DomainResult(BaseModel):
    """Resultado externo de un par (dominio, TLD).

    En el wire la causa viaja bajo la clave `error` y se omite si no existe.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    domain: str = Field(..., min_length=1, description="Etiqueta tal como se pidió (recortada).")
    tld: str = Field(..., min_length=2, description="Sufijo normalizado con punto inicial.")
    status: DomainStatus
    cause: str | None = Field(
        default=None,
        alias="error",
        description="Motivo legible; presente solo cuando status = Error.",
    )

    @model_validator(mode="after")
    def _cause_iff_error(self) -> "DomainResult":
        if self.status is DomainStatus.ERROR and not self.cause:
            raise ValueError("an Error result needs a non-empty cause")
        if self.status is not DomainStatus.ERROR and self.cause is not None:
            raise ValueError("only Error results carry a cause")
        return self

    @property
    def fqdn(self) -> str:
        return build_fqdn(self.domain, self.tld)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CheckRequest(BaseModel):
    """Petición de comprobación: etiquetas x sufijos.

    Reglas:
    - Etiquetas recortadas, sin vacías, sin normalizar mayúsculas.
    - TLDs normalizados a `.tld`; `.` o `..x` (sin etiqueta tras el punto) se rechazan.
    - Sin duplicados en ninguna de las dos listas (gana la primera aparición).
    - Cualquiera de las dos listas vacía -> `CheckRequestError`.
    """

    model_config = ConfigDict(frozen=True)

    domains: tuple[str, ...]
    tlds: tuple[str, ...]

    def __init__(self, **data: Any) -> None:
        # dict.fromkeys: sin duplicados, conservando el orden de aparición.
        domains = dict.fromkeys(
            d.strip() for d in data.get("domains") or () if isinstance(d, str) and d.strip()
        )
        tlds = dict.fromkeys(
            t for t in (normalize_tld(raw) for raw in data.get("tlds") or () if isinstance(raw, str)) if t
        )
        if not domains:
            raise CheckRequestError("No domains provided")
        if not tlds:
            raise CheckRequestError("No TLDs provided")
        for tld in tlds:
            if not tld[1:] or tld.startswith(".."):
                raise CheckRequestError(f"Invalid TLD: {tld!r}")
        super().__init__(domains=tuple(domains), tlds=tuple(tlds))

    @classmethod
    def from_payload(cls, payload: Any) -> "CheckRequest":
        """Construye la petición desde un JSON sin tipar (`{"domains": [...], "tlds": [...]}`)."""

        if not isinstance(payload, dict):
            raise CheckRequestError("Invalid request")
        domains = payload.get("domains")
        tlds = payload.get("tlds")
        if not isinstance(domains, list) or not domains:
            raise CheckRequestError("No domains provided")
        if not isinstance(tlds, list) or not tlds:
            raise CheckRequestError("No TLDs provided")
        return cls(domains=domains, tlds=tlds)

    @property
    def total(self) -> int:
        return len(self.domains) * len(self.tlds)

    def pairs(self) -> list[tuple[str, str]]:
        """Producto cruzado domain-major: todas las TLDs de un dominio antes del siguiente."""

        return [(domain, tld) for domain in self.domains for tld in self.tlds]


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["progress"] = "progress"
    progress: int = Field(..., ge=0, le=100)


class CompleteEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["complete"] = "complete"
    results: list[DomainResult] = Field(default_factory=list)


class ErrorEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    error: str = Field(..., min_length=1)


StreamEvent = Annotated[Union[ProgressEvent, CompleteEvent, ErrorEvent], Field(discriminator="type")]


def is_terminal(event: ProgressEvent | CompleteEvent | ErrorEvent) -> bool:
    return event.type != "progress"
