"""Campos string que la API de Satellite puede enviar como JSON `null`.

`null` se decodifica como string vacío y el string vacío se vuelve a codificar
como `null`, así que una vez decodificados null y "" no se distinguen.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer


def _decode_nullable(value: Any) -> Any:
    if value is None:
        return ""
    return value


def _encode_nullable(value: str) -> str | None:
    return value or None


NullString = Annotated[
    str,
    BeforeValidator(_decode_nullable),
    PlainSerializer(_encode_nullable, return_type=str | None),
]
