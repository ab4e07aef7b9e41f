"""Etapa DNS: consulta ANY contra un conjunto de servidores.

Por qué dnspython (`dns.asyncresolver`):
- Permite fijar servidores explícitos por etapa (sistema / Google / Cloudflare)
  sin tocar la configuración global del proceso.
- Expone excepciones tipadas (NXDOMAIN, NoAnswer, Timeout...) que el
  clasificador traduce a `ErrorClass`.

Nota:
- Cada instancia posee su propio `Resolver`: dos lotes concurrentes no
  comparten estado.
"""

from __future__ import annotations

import logging
from typing import Sequence

import dns.asyncresolver
import dns.exception
import dns.rdatatype

from core.domain.classifier import classify_error
from core.domain.models import ProbeOutcome

logger = logging.getLogger(__name__)

DEFAULT_DNS_TIMEOUT_SECONDS = 5.0


def build_resolver(
    nameservers: Sequence[str],
    *,
    timeout: float = DEFAULT_DNS_TIMEOUT_SECONDS,
) -> dns.asyncresolver.Resolver:
    """Crea un resolver aislado.

    - `nameservers` vacío -> configuración del sistema (/etc/resolv.conf, registro de Windows).
    - `timeout` acota la vida total de la consulta (todos los servidores).
    """

    if nameservers:
        resolver = dns.asyncresolver.Resolver(configure=False)
        resolver.nameservers = list(nameservers)
    else:
        resolver = dns.asyncresolver.Resolver()
    resolver.timeout = timeout
    resolver.lifetime = timeout
    return resolver


class DnsQueryStage:
    """Consulta ANY sobre un FQDN; cualquier respuesta cuenta como evidencia de existencia."""

    def __init__(
        self,
        name: str,
        nameservers: Sequence[str] = (),
        *,
        timeout: float = DEFAULT_DNS_TIMEOUT_SECONDS,
    ) -> None:
        self.name = name
        self.nameservers = tuple(nameservers)
        self._timeout = timeout
        self._resolver: dns.asyncresolver.Resolver | None = None

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        # Perezoso: un resolver del sistema sin configuración solo falla al usarse.
        if self._resolver is None:
            self._resolver = build_resolver(self.nameservers, timeout=self._timeout)
        return self._resolver

    async def probe(self, fqdn: str) -> ProbeOutcome:
        try:
            resolver = self._get_resolver()
            await resolver.resolve(fqdn, dns.rdatatype.ANY, search=False)
        except dns.exception.DNSException as exc:
            error_class = classify_error(exc)
            logger.debug("dns %s failed for %s: %s (%s)", self.name, fqdn, error_class.value, exc)
            return ProbeOutcome.failure(error_class, detail=str(exc) or type(exc).__name__)
        except OSError as exc:
            error_class = classify_error(exc)
            logger.debug("dns %s socket error for %s: %s (%s)", self.name, fqdn, error_class.value, exc)
            return ProbeOutcome.failure(error_class, detail=str(exc) or type(exc).__name__)

        logger.debug("dns %s answered for %s", self.name, fqdn)
        return ProbeOutcome.success()
