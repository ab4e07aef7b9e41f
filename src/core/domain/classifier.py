"""Clasificación de fallos de red.

Por qué una función pura:
- La cascada solo necesita la *categoría* del fallo, no el tipo concreto de
  excepción de dnspython/httpx/sockets.
- Sin efectos secundarios ni reintentos: testeable con strings o excepciones.
"""

from __future__ import annotations

import errno
import socket

import dns.exception
import dns.resolver
import httpx

from core.domain.models import ErrorClass

# Orden relevante: se evalúan de arriba abajo y gana la primera coincidencia.
_TEXT_INDICATORS: tuple[tuple[ErrorClass, tuple[str, ...]], ...] = (
    (
        ErrorClass.TIMEOUT,
        ("etimeout", "etimedout", "timed out", "timeout"),
    ),
    (
        ErrorClass.SERVER_FAILURE,
        ("eservfail", "servfail", "server failure"),
    ),
    (
        ErrorClass.CONNECTION_ERROR,
        (
            "econnrefused",
            "connection refused",
            "enetunreach",
            "network is unreachable",
            "eai_again",
            "temporary failure in name resolution",
        ),
    ),
    (
        ErrorClass.NOT_FOUND,
        (
            "enotfound",
            "enodata",
            "nxdomain",
            "does not exist",
            "name or service not known",
            "nodename nor servname",
            "no address associated with hostname",
            "getaddrinfo failed",
        ),
    ),
)

_TYPE_RULES: tuple[tuple[ErrorClass, tuple[type[BaseException], ...]], ...] = (
    (
        ErrorClass.TIMEOUT,
        (dns.exception.Timeout, httpx.TimeoutException, TimeoutError, socket.timeout),
    ),
    (ErrorClass.SERVER_FAILURE, (dns.resolver.NoNameservers,)),
    (
        ErrorClass.CONNECTION_ERROR,
        (ConnectionRefusedError, dns.resolver.NoResolverConfiguration),
    ),
    (ErrorClass.NOT_FOUND, (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer)),
)

_ERRNO_RULES: dict[int, ErrorClass] = {
    errno.ETIMEDOUT: ErrorClass.TIMEOUT,
    errno.ECONNREFUSED: ErrorClass.CONNECTION_ERROR,
    errno.ENETUNREACH: ErrorClass.CONNECTION_ERROR,
    errno.EHOSTUNREACH: ErrorClass.CONNECTION_ERROR,
}

# Los códigos EAI_* solo tienen sentido en socket.gaierror (colisionan con errno).
_GAI_RULES: dict[int, ErrorClass] = {
    socket.EAI_AGAIN: ErrorClass.CONNECTION_ERROR,
    socket.EAI_NONAME: ErrorClass.NOT_FOUND,
}


def _classify_text(text: str) -> ErrorClass:
    lowered = text.lower()
    for error_class, needles in _TEXT_INDICATORS:
        if any(needle in lowered for needle in needles):
            return error_class
    return ErrorClass.UNKNOWN


def _classify_exception(exc: BaseException) -> ErrorClass:
    for error_class, types in _TYPE_RULES:
        if isinstance(exc, types):
            return error_class

    if isinstance(exc, socket.gaierror):
        if exc.errno in _GAI_RULES:
            return _GAI_RULES[exc.errno]
    elif isinstance(exc, OSError) and exc.errno in _ERRNO_RULES:
        return _ERRNO_RULES[exc.errno]

    # anyio agrupa los intentos fallidos por dirección (IPv4/IPv6).
    for inner in getattr(exc, "exceptions", None) or ():
        nested = _classify_exception(inner)
        if nested is not ErrorClass.UNKNOWN:
            return nested

    # httpx envuelve el OSError original (ConnectError("[Errno 111] ...")).
    cause = exc.__cause__ or exc.__context__
    if cause is not None and cause is not exc:
        nested = _classify_exception(cause)
        if nested is not ErrorClass.UNKNOWN:
            return nested

    return _classify_text(f"{type(exc).__name__} {exc}")


def classify_error(raw: BaseException | str | None) -> ErrorClass:
    """Mapea un fallo crudo (excepción o código/mensaje) a su `ErrorClass`.

    Reglas, en orden:
    - indicadores de timeout -> Timeout
    - fallo del servidor (SERVFAIL) -> ServerFailure
    - conexión rechazada / resolver no disponible -> ConnectionError
    - nombre inexistente / sin datos -> NotFound
    - cualquier otra cosa -> Unknown
    """

    if raw is None:
        return ErrorClass.UNKNOWN
    if isinstance(raw, BaseException):
        return _classify_exception(raw)
    return _classify_text(str(raw))
