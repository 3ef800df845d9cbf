"""Logging estructurado para check-rsat.

Por qué así:
- `configure_logging` se llama una vez desde la CLI; la salida va siempre a
  stderr para que el output del plugin en stdout siga siendo parseable.
- `BoundLogger` lleva campos clave/valor (server, org id, ...) y se pasa
  explícitamente a las operaciones de fetch en vez de usar un logger global.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "check_rsat"


class BoundLogger(logging.LoggerAdapter):
    """Logger adapter con campos estructurados asociados."""

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        super().__init__(logger, dict(fields or {}))

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.extra or {})

    def bind(self, **fields: Any) -> "BoundLogger":
        """Devuelve un logger hijo con campos adicionales."""

        return BoundLogger(self.logger, {**self.fields, **fields})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        call_fields = kwargs.pop("fields", None) or {}
        merged = {**self.fields, **call_fields}
        extra = dict(kwargs.get("extra") or {})
        extra["structured_fields"] = merged
        kwargs["extra"] = extra
        return msg, kwargs


def _render_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


class TextFieldsFormatter(logging.Formatter):
    """Agrega los campos al mensaje como pares `key=value`."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "structured_fields", None)
        if fields:
            message = f"{message} {_render_fields(fields)}"
        return message


class JSONFormatter(logging.Formatter):
    """Un documento JSON por registro de log."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(getattr(record, "structured_fields", None) or {})
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def get_logger(name: str = LOGGER_NAME, **fields: Any) -> BoundLogger:
    return BoundLogger(logging.getLogger(name), fields)


def configure_logging(level: str = "info", *, json_output: bool = False) -> BoundLogger:
    """Instala el handler de stderr en el logger de la app y lo devuelve."""

    log_level = getattr(logging, level.upper(), logging.INFO)

    handler: logging.Handler
    if json_output:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(TextFieldsFormatter("%(message)s"))

    logger = logging.getLogger(LOGGER_NAME)
    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False

    return get_logger()
