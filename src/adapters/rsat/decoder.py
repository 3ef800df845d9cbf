"""Decodificación JSON de las respuestas de la API de Satellite.

Se espera que cada body contenga exactamente un objeto JSON. La entrada se
limita a un máximo de bytes; lo que exceda el límite nunca se lee.
"""

from __future__ import annotations

import json
from typing import IO, TypeVar, Union

from pydantic import BaseModel, ValidationError

from core.context import FetchContext
from core.errors import ErrorKind, RsatError

ModelT = TypeVar("ModelT", bound=BaseModel)

Source = Union[bytes, bytearray, IO[bytes]]


def read_limited(source: Source, limit: int) -> bytes:
    """Devuelve como máximo `limit` bytes de un bytes o un stream binario."""

    if isinstance(source, (bytes, bytearray)):
        return bytes(source[:limit])
    return source.read(limit)


def decode(
    source: Source | None,
    target: type[ModelT],
    *,
    source_name: str,
    limit: int,
    ctx: FetchContext | None = None,
) -> ModelT:
    """Decodifica un único objeto JSON de `source` en `target`.

    Los modelos destino ignoran campos desconocidos. Un segundo valor JSON
    después del primero se rechaza.
    """

    ctx = ctx or FetchContext()

    if source is None:
        raise RsatError(
            ErrorKind.DECODE,
            "failed to decode JSON data",
            source=source_name,
            cause=RsatError(ErrorKind.MISSING_SOURCE, "required JSON source was not provided"),
        )

    ctx.logger.debug(
        "Decoding JSON input",
        fields={"source": source_name, "read_limit": limit},
    )
    raw = read_limited(source, limit)

    try:
        text = raw.decode("utf-8")
        decoder = json.JSONDecoder()
        document, end = decoder.raw_decode(text.lstrip())
        trailing = text.lstrip()[end:].strip()
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RsatError(
            ErrorKind.DECODE,
            "failed to decode JSON data",
            source=source_name,
            cause=exc,
        ) from exc

    if trailing:
        raise RsatError(
            ErrorKind.DECODE,
            "failed to decode JSON data",
            source=source_name,
            cause=RsatError(
                ErrorKind.MULTIPLE_OBJECTS,
                f"source {source_name} contains multiple JSON objects; only one JSON object is supported",
            ),
        )

    try:
        result = target.model_validate(document)
    except ValidationError as exc:
        raise RsatError(
            ErrorKind.DECODE,
            "failed to decode JSON data",
            source=source_name,
            cause=exc,
        ) from exc

    ctx.logger.debug("Successfully decoded JSON input", fields={"source": source_name})
    return result
