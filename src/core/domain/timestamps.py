"""Normalización de timestamps de la API de Satellite.

Satellite publicó varios formatos de fecha/hora según la versión y la zona
horaria configurada en la cuenta del usuario de la API:

- `2024-05-09 21:14:51 UTC`   (zona "(GMT+00:00) UTC")
- `2024-05-09 16:14:51 -0500` (zona "Browser timezone")
- `2024/05/10 15:16:00 -0500` (formato legacy de `next_sync`, p. ej. Satellite 6.5)

La palabra clave JSON `null` (o un string vacío) significa "sin valor" y se
normaliza a `None`; no es un error.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

from core.errors import TimeParseError

JSON_NULL_KEYWORD = "null"

STANDARD_LAYOUT_WITH_TIMEZONE = "%Y-%m-%d %H:%M:%S UTC"
STANDARD_LAYOUT_WITH_OFFSET = "%Y-%m-%d %H:%M:%S %z"
SYNC_LAYOUT_WITH_TIMEZONE = "%Y-%m-%d %H:%M:%S UTC"
SYNC_LAYOUT_WITH_OFFSET = "%Y-%m-%d %H:%M:%S %z"
LEGACY_SYNC_LAYOUT = "%Y/%m/%d %H:%M:%S %z"

# El orden importa: gana el primer formato que parsea.
KNOWN_LAYOUTS: tuple[str, ...] = (
    STANDARD_LAYOUT_WITH_TIMEZONE,
    STANDARD_LAYOUT_WITH_OFFSET,
    SYNC_LAYOUT_WITH_TIMEZONE,
    SYNC_LAYOUT_WITH_OFFSET,
    LEGACY_SYNC_LAYOUT,
)

NOT_SCHEDULED_LABEL = "Not scheduled"


def parse_api_time(value: Any) -> datetime | None:
    """Parsea un timestamp de Satellite a un `datetime` con zona horaria.

    Devuelve `None` para el sentinel null o un valor vacío. Lanza
    `TimeParseError` si ningún formato conocido coincide.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise TimeParseError(repr(value), TypeError(f"expected str, got {type(value).__name__}"))

    text = value.strip().strip('"')
    if not text or text == JSON_NULL_KEYWORD:
        return None

    last_error: Exception | None = None
    for layout in KNOWN_LAYOUTS:
        try:
            parsed = datetime.strptime(text, layout)
        except ValueError as exc:
            last_error = exc
            continue
        if parsed.tzinfo is None:
            # Solo los formatos con el literal `UTC` producen valores naive.
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise TimeParseError(text, last_error)


def format_standard_time(value: datetime | None) -> str | None:
    """Serializa un time estándar de la API; `None` vuelve a ser JSON null."""

    if value is None:
        return None
    return value.strftime(STANDARD_LAYOUT_WITH_OFFSET)


def format_sync_time(value: datetime | None) -> str | None:
    """Serializa un sync time (`next_sync`, `sync_date`)."""

    if value is None:
        return None
    return value.strftime(SYNC_LAYOUT_WITH_OFFSET)


def display_sync_time(value: datetime | None) -> str:
    """Muestra un sync time en hora local, o un placeholder si no está agendado."""

    if value is None:
        return NOT_SCHEDULED_LABEL
    return value.astimezone().strftime(STANDARD_LAYOUT_WITH_OFFSET)


StandardAPITime = Annotated[
    datetime | None,
    BeforeValidator(parse_api_time),
    PlainSerializer(format_standard_time, return_type=str | None),
]

SyncTime = Annotated[
    datetime | None,
    BeforeValidator(parse_api_time),
    PlainSerializer(format_sync_time, return_type=str | None),
]
