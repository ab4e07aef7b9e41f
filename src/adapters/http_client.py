"""Wrapper de httpx y sonda HTTP.

Por qué un wrapper:
- Estandariza timeouts, headers y redirecciones para toda la app.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import logging

import httpx

from core.config import AppSettings
from core.domain.classifier import classify_error
from core.domain.models import ProbeOutcome

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 2.0


def build_async_client(
    settings: AppSettings | None = None,
    *,
    timeout: float | None = None,
    follow_redirects: bool = False,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que sonda y `doctor` se comporten igual.
    - `transport` permite sustituir la red en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "*/*",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout if timeout is not None else settings.http_probe_timeout_seconds),
        follow_redirects=follow_redirects,
        headers=headers,
        transport=transport,
    )


class HttpProbeStage:
    """HEAD `http://<fqdn>/`: cualquier respuesta (incluso 4xx/5xx) indica servidor vivo.

    Fallos:
    - conexión rechazada / red inalcanzable / nombre inexistente -> `no_server`
    - timeout u otros -> inconcluso
    """

    name = "http"

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._timeout = timeout if timeout is not None else self._settings.http_probe_timeout_seconds
        self._transport = transport

    async def probe(self, fqdn: str) -> ProbeOutcome:
        url = f"http://{fqdn}/"
        try:
            async with build_async_client(
                self._settings,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.head(url)
        except httpx.HTTPError as exc:
            error_class = classify_error(exc)
            logger.debug("http probe failed for %s: %s (%s)", fqdn, error_class.value, exc)
            return ProbeOutcome.failure(error_class, detail=str(exc) or type(exc).__name__)
        except OSError as exc:
            error_class = classify_error(exc)
            logger.debug("http probe socket error for %s: %s (%s)", fqdn, error_class.value, exc)
            return ProbeOutcome.failure(error_class, detail=str(exc) or type(exc).__name__)

        logger.debug("http probe got %s from %s", response.status_code, fqdn)
        return ProbeOutcome.success()
