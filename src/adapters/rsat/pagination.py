"""Obtención paginada de colecciones de la API de Satellite.

Pide `full_result=1&per_page=N&page=K` para K = 1, 2, ... y acumula `results`
hasta reunir el `subtotal` que informa el servidor.

Por qué fail-fast:
- Cualquier fallo aborta el fetch completo; nada se reintenta.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TypeVar

import httpx

from adapters.http_client import APIClient, CONTENT_TYPE
from adapters.rsat.decoder import decode
from core.context import FetchContext
from core.domain.models import PagedResponse
from core.errors import ErrorKind, RsatError

T = TypeVar("T")

QUERY_PARAM_FULL_RESULT = "full_result"
QUERY_PARAM_PER_PAGE = "per_page"
QUERY_PARAM_PAGE = "page"
FULL_RESULT_DEFAULT = "1"


@dataclass
class PageCursor:
    """Estado de paginación de un fetch de colección."""

    page: int = 0
    collected: int = 0
    subtotal: int = 0

    @property
    def remaining(self) -> int:
        return self.subtotal - self.collected

    def advance(self) -> int:
        self.page += 1
        return self.page


def prepare_request(
    client: APIClient | None,
    api_url: str,
    query_params: dict[str, str],
    *,
    timeout: float | None = None,
) -> httpx.Request:
    """Arma una request GET para `api_url` con los query params dados."""

    if client is None:
        raise RsatError(
            ErrorKind.PREPARE_REQUEST,
            "error preparing HTTP request",
            source=api_url,
            cause=RsatError(ErrorKind.MISSING_VALUE, "required API client was not provided"),
        )
    if not api_url:
        raise RsatError(
            ErrorKind.PREPARE_REQUEST,
            "error preparing HTTP request",
            source=api_url,
            cause=RsatError(ErrorKind.MISSING_VALUE, "required API URL was not provided"),
        )
    if not query_params:
        raise RsatError(
            ErrorKind.PREPARE_REQUEST,
            "error preparing HTTP request",
            source=api_url,
            cause=RsatError(
                ErrorKind.MISSING_VALUE,
                "required number of API URL query parameters were not provided",
            ),
        )

    try:
        url = httpx.URL(api_url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise RsatError(ErrorKind.PARSE_URL, "error parsing URL", source=api_url, cause=exc) from exc

    headers = {"Content-Type": CONTENT_TYPE}
    if client.auth.user_agent:
        headers["User-Agent"] = client.auth.user_agent

    return client.http.build_request(
        "GET",
        url,
        params=query_params,
        headers=headers,
        timeout=httpx.USE_CLIENT_DEFAULT if timeout is None else timeout,
    )


async def read_body(response: httpx.Response, limit: int) -> bytes:
    """Lee como máximo `limit` bytes de un body en streaming."""

    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk[: limit - len(buffer)])
        if len(buffer) >= limit:
            break
    return bytes(buffer)


def validate_response(ctx: FetchContext, response: httpx.Response, body: bytes) -> None:
    """Acepta 200 (esperado) o cualquier otro 2xx; rechaza el resto."""

    source = str(response.request.url)
    ctx.check(source)

    status = response.status_code
    if status == httpx.codes.OK:
        ctx.logger.debug("Status code received as expected", fields={"status_code": status})
        return
    if 200 < status <= 299:
        ctx.logger.debug(
            "Status code within success range received; expected 200",
            fields={"status_code": status, "reason": response.reason_phrase},
        )
        return

    text = body.decode("utf-8", errors="replace")
    raise RsatError(
        ErrorKind.VALIDATE_RESPONSE,
        "unexpected response",
        source=source,
        cause=RsatError(
            ErrorKind.RESPONSE_OUTSIDE_RANGE,
            f"response {status} {response.reason_phrase} ({text}) from API",
        ),
    )


async def _exchange(client: APIClient, request: httpx.Request) -> tuple[httpx.Response, bytes]:
    """Envía `request` y lee su body; la respuesta siempre se cierra."""

    try:
        response = await client.http.send(request, stream=True)
    except httpx.TimeoutException as exc:
        raise RsatError(ErrorKind.TIMEOUT, "timeout reached", source=str(request.url), cause=exc) from exc
    except httpx.HTTPError as exc:
        raise RsatError(
            ErrorKind.SUBMIT_REQUEST,
            "error submitting HTTP request",
            source=str(request.url),
            cause=exc,
        ) from exc

    try:
        body = await read_body(response, client.auth.read_limit)
    except httpx.TimeoutException as exc:
        raise RsatError(ErrorKind.TIMEOUT, "timeout reached", source=str(request.url), cause=exc) from exc
    except httpx.HTTPError as exc:
        raise RsatError(
            ErrorKind.VALIDATE_RESPONSE,
            "error reading response data",
            source=str(request.url),
            cause=exc,
        ) from exc
    finally:
        await response.aclose()

    return response, body


async def submit_query(
    ctx: FetchContext,
    client: APIClient,
    api_url: str,
    query_params: dict[str, str],
) -> bytes:
    """Emite una request GET y devuelve su body validado (con límite de tamaño).

    El deadline de la ejecución acota todo el intercambio, body incluido; los
    timeouts de httpx solo acotan cada lectura de red.
    """

    ctx.check(api_url)
    request = prepare_request(client, api_url, query_params, timeout=ctx.remaining())

    ctx.logger.debug("Submitting HTTP request", fields={"url": str(request.url)})
    try:
        response, body = await asyncio.wait_for(_exchange(client, request), ctx.remaining())
    except asyncio.TimeoutError as exc:
        raise RsatError(
            ErrorKind.TIMEOUT,
            f"timeout of {ctx.timeout}s reached while waiting for the response",
            source=str(request.url),
            cause=exc,
        ) from exc

    validate_response(ctx, response, body)
    return body


async def fetch_all_pages(
    ctx: FetchContext,
    client: APIClient,
    api_url: str,
    envelope: type[PagedResponse[T]],
    *,
    label: str = "records",
) -> list[T]:
    """Reúne todos los registros de un endpoint paginado."""

    query_params = {
        QUERY_PARAM_FULL_RESULT: FULL_RESULT_DEFAULT,
        QUERY_PARAM_PER_PAGE: str(client.limits.per_page),
    }

    cursor = PageCursor()
    collected: list[T] = []

    while True:
        ctx.check(api_url)
        query_params[QUERY_PARAM_PAGE] = str(cursor.advance())
        ctx.logger.debug(f"Collecting {label} from the API", fields={"page": cursor.page})

        body = await submit_query(ctx, client, api_url, query_params)
        page = decode(
            body,
            envelope,
            source_name=api_url,
            limit=client.auth.read_limit,
            ctx=ctx,
        )

        collected.extend(page.results)
        cursor.collected = len(collected)
        cursor.subtotal = page.subtotal

        ctx.logger.debug(
            f"Added decoded {label} to collection",
            fields={
                "api_endpoint": api_url,
                f"{label}_collected": cursor.collected,
                f"{label}_new": len(page.results),
                f"{label}_remaining": cursor.remaining,
            },
        )

        if cursor.remaining == 0:
            break

        if cursor.remaining < 0:
            ctx.logger.warning(
                f"API returned more {label} than its reported subtotal",
                fields={"subtotal": cursor.subtotal, "collected": cursor.collected},
            )
            break

        if not page.results:
            raise RsatError(
                ErrorKind.UNEXPECTED_EMPTY_PAGE,
                f"page {cursor.page} returned no {label} but {cursor.remaining} remain",
                source=api_url,
            )

    return collected
