"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (DNS/HTTP) y el scheduler lean config de forma
  consistente.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_TLDS: tuple[str, ...] = (".com", ".net", ".io", ".ai", ".dev")


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "domain-sweep"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "domain-sweep"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "domain-sweep"
    return Path.home() / ".config" / "domain-sweep"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# domain-sweep user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def _split_list(value: object) -> object:
    """Acepta JSON (`["8.8.8.8"]`) o CSV (`8.8.8.8,8.8.4.4`) desde env vars."""

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            return json.loads(text)
        return [part.strip() for part in text.split(",") if part.strip()]
    return value


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOMAIN_SWEEP_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    dns_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Tiempo de vida máximo de una consulta DNS (segundos).",
    )
    http_probe_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        le=60,
        description="Timeout de la sonda HTTP HEAD (segundos).",
    )
    checks_per_second: float = Field(
        default=20.0,
        gt=0,
        le=1000,
        description="Techo de comprobaciones por segundo dentro de un lote.",
    )
    user_agent: str = Field(
        default=BROWSER_USER_AGENT,
        min_length=1,
        description="User-Agent de navegador genérico para la sonda HTTP.",
    )

    system_nameservers: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Servidores para la etapa 'sistema' (vacío = resolver del SO).",
    )
    secondary_nameservers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["8.8.8.8", "8.8.4.4"],
        min_length=1,
        description="Proveedor DNS independiente (segunda etapa).",
    )
    tertiary_nameservers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["1.1.1.1", "1.0.0.1"],
        min_length=1,
        description="Tercer proveedor DNS (solo ante fallos transitorios).",
    )
    default_tlds: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_TLDS),
        min_length=1,
        description="TLDs usados por la CLI cuando no se pasa --tld.",
    )

    @field_validator(
        "system_nameservers",
        "secondary_nameservers",
        "tertiary_nameservers",
        "default_tlds",
        mode="before",
    )
    @classmethod
    def _parse_lists(cls, value: object) -> object:
        return _split_list(value)
