"""Configuración de la aplicación.

Por qué existe:
- Centraliza variables de entorno (pydantic-settings) sin acoplar la CLI a
  ellas; los flags de la CLI pisan valores individuales.
- Los adapters (cliente HTTP, repositorios) leen su configuración desde aquí.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core import __version__

APP_NAME = "check-rsat"
APP_URL = "https://github.com/atc0005/check-rsat"

MB = 1_048_576

DEFAULT_PLUGIN_TIMEOUT_SECONDS = 240
DEFAULT_INSPECTOR_TIMEOUT_SECONDS = 300


class NetworkType(str, Enum):
    """Preferencia de familia de direcciones para conectar con Satellite."""

    AUTO = "auto"
    TCP4 = "tcp4"
    TCP6 = "tcp6"


class OutputFormat(str, Enum):
    """Formatos de reporte del comando `list`."""

    OVERVIEW = "overview"
    PRETTY_TABLE = "pretty-table"
    SIMPLE_TABLE = "simple-table"
    VERBOSE = "verbose"
    JSON = "json"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def default_user_agent() -> str:
    return f"{APP_NAME}/{__version__} (+{APP_URL})"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación."""

    model_config = SettingsConfigDict(
        env_prefix="CHECK_RSAT_",
        extra="ignore",
        case_sensitive=False,
        # Orden: .env del proyecto primero (dev), luego la config del usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    server: str = Field(
        default="",
        description="Red Hat Satellite server FQDN or IP address.",
    )
    port: int = Field(
        default=443,
        ge=1,
        le=65535,
        description="TCP port used by the Satellite API.",
    )
    username: str = Field(
        default="",
        description="Valid user for the Satellite server.",
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Password for the specified user.",
    )
    network_type: NetworkType = Field(
        default=NetworkType.AUTO,
        description="Limit connections to tcp4 (IPv4-only), tcp6 (IPv6-only) or auto (either).",
    )
    ca_cert: Path | None = Field(
        default=None,
        description="CA certificate bundle used to validate the server certificate chain.",
    )
    trust_cert: bool = Field(
        default=False,
        description="Trust the server certificate without validation.",
    )
    permit_tls_renegotiation: bool = Field(
        default=False,
        description="Accept a single renegotiation request from the server (not supported by TLS 1.3).",
    )
    read_limit: int = Field(
        default=MB,
        gt=0,
        description="Maximum bytes read from a single API response.",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Number of records requested per API page.",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Seconds before execution is abandoned (default depends on the command).",
    )
    user_agent: str = Field(
        default_factory=default_user_agent,
        description="User-Agent sent with API requests (empty keeps the httpx default).",
    )
    sync_grace_minutes: float = Field(
        default=5,
        ge=0,
        description="Minutes a past-due sync plan is tolerated before it counts as stuck.",
    )

    log_level: str = Field(default="info", description="Log level (debug, info, warning, error).")
    log_json: bool = Field(default=False, description="Emit log records as JSON.")
    omit_ok: bool = Field(default=False, description="Only list sync plans in a non-OK state.")
    verbose: bool = Field(default=False, description="Include configuration details in plugin output.")
    emit_branding: bool = Field(default=False, description="Append branding details to plugin output.")
    output_format: OutputFormat = Field(default=OutputFormat.PRETTY_TABLE)

    @field_validator("server")
    @classmethod
    def _strip_server(cls, value: str) -> str:
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in {"debug", "info", "warning", "error", "critical"}:
            raise ValueError(f"unsupported log level {value!r}")
        return level

    def effective_timeout(self, default: float) -> float:
        return self.timeout_seconds if self.timeout_seconds is not None else default

    def read_ca_cert(self) -> bytes | None:
        """Lee el CA bundle configurado, si hay (OSError si no se puede leer)."""

        if self.ca_cert is None:
            return None
        return self.ca_cert.read_bytes()
