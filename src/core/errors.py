"""Taxonomía de errores del pipeline de Satellite.

Por qué un único tipo con `ErrorKind`:
- Todo fallo del core es un `RsatError` etiquetado con un kind cerrado.
- Quien llama compara el kind (o cualquier kind de la cadena vía `wraps`)
  en lugar de comparar tipos de excepción.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Conjunto cerrado de tipos de fallo que produce el core."""

    MISSING_VALUE = "missing expected value"
    PARSE_URL = "parse URL"
    PREPARE_REQUEST = "prepare request"
    SUBMIT_REQUEST = "submit request"
    VALIDATE_RESPONSE = "validate response"
    RESPONSE_OUTSIDE_RANGE = "response is outside acceptable range"
    DECODE = "decode JSON data"
    MULTIPLE_OBJECTS = "unexpected JSON object count"
    MISSING_SOURCE = "missing JSON source"
    UNEXPECTED_EMPTY_PAGE = "unexpected empty page"
    TIMEOUT = "timeout reached"
    TIME_PARSE = "unrecognized time format"
    ORGS_RETRIEVAL = "failed to retrieve organizations"
    SYNC_PLANS_RETRIEVAL = "failed to retrieve sync plans"


class RsatError(Exception):
    """Fallo al obtener o decodificar datos de la API de Satellite."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        source: str = "",
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.source = source
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"task: {self.kind.value!r}: {self.message}"
        if self.source:
            text += f": source: {self.source}"
        if self.cause is not None:
            text += f" cause: {self.cause}"
        return text

    def wraps(self, kind: ErrorKind) -> bool:
        """True si este error o alguno de los que envuelve tiene el kind dado."""

        seen: set[int] = set()
        current: BaseException | None = self
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            if getattr(current, "kind", None) is kind:
                return True
            current = getattr(current, "cause", None) or current.__cause__
        return False


class TimeParseError(ValueError):
    """Un timestamp no coincide con ningún formato conocido de Satellite.

    Hereda de `ValueError` para que los validators de pydantic lo reporten
    como un error de validación normal.
    """

    kind = ErrorKind.TIME_PARSE

    def __init__(self, value: str, cause: BaseException | None = None) -> None:
        self.value = value
        self.cause = cause
        super().__init__(f"unrecognized time format {value!r}: {cause}")
