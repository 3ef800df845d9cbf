"""Obtención de organizaciones (`/api/v2/organizations`)."""

from __future__ import annotations

import time

from adapters.http_client import APIClient
from adapters.rsat.pagination import fetch_all_pages
from core.context import FetchContext
from core.domain.models import Organization, OrganizationsResponse
from core.errors import ErrorKind, RsatError
from core.interfaces.repository import Repository

ORGANIZATIONS_ENDPOINT_TEMPLATE = "https://{server}:{port}/api/v2/organizations"


def format_host(server: str) -> str:
    """Encierra literales IPv6 entre corchetes para usarlos en una URL."""

    if ":" in server and not server.startswith("["):
        return f"[{server}]"
    return server


def organizations_url(client: APIClient) -> str:
    return ORGANIZATIONS_ENDPOINT_TEMPLATE.format(
        server=format_host(client.auth.server),
        port=client.auth.port,
    )


class OrganizationRepository(Repository[Organization]):
    """Obtiene todas las organizaciones visibles para el usuario de la API."""

    async def fetch(self, ctx: FetchContext, client: APIClient | None) -> list[Organization]:
        if client is None:
            raise RsatError(ErrorKind.MISSING_VALUE, "required API client was not provided")

        started = time.monotonic()
        api_url = organizations_url(client)

        orgs = await fetch_all_pages(
            ctx,
            client,
            api_url,
            OrganizationsResponse,
            label="orgs",
        )

        ctx.logger.debug(
            "Completed retrieval of all organizations",
            fields={"orgs": len(orgs), "runtime_total": f"{time.monotonic() - started:.3f}s"},
        )
        return orgs


async def get_organizations(ctx: FetchContext, client: APIClient | None) -> list[Organization]:
    return await OrganizationRepository().fetch(ctx, client)
