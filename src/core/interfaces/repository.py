"""Contrato de repositorio para colecciones de Satellite.

Un repositorio obtiene un tipo de registro (organizaciones, sync plans) desde
la API y sigue la paginación hasta reunir la colección completa.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from core.context import FetchContext

if TYPE_CHECKING:
    from adapters.http_client import APIClient

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Repository(Protocol[T_co]):
    """Contrato mínimo para obtener una colección.

    - `fetch` es asíncrono porque hace I/O HTTP.
    - Las implementaciones respetan el deadline del contexto y nunca reintentan.
    """

    async def fetch(self, ctx: FetchContext, client: "APIClient") -> list[T_co]:
        """Obtiene todos los registros de la colección."""

        ...
