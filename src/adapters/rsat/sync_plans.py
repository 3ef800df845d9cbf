"""Obtención de sync plans (`/katello/api/v2/organizations/{id}/sync_plans`).

Cada plan decodificado se anota con nombre, label y title de su organización,
así los reportes no necesitan volver a buscarla.
"""

from __future__ import annotations

import time
from typing import Iterable

from adapters.http_client import APIClient
from adapters.rsat.organizations import OrganizationRepository, format_host
from adapters.rsat.pagination import fetch_all_pages
from core.context import FetchContext
from core.domain.models import Organization, SyncPlan, SyncPlansResponse
from core.errors import ErrorKind, RsatError
from core.interfaces.repository import Repository

SYNC_PLANS_ENDPOINT_TEMPLATE = "https://{server}:{port}/katello/api/v2/organizations/{org_id}/sync_plans"


def sync_plans_url(client: APIClient, org: Organization) -> str:
    return SYNC_PLANS_ENDPOINT_TEMPLATE.format(
        server=format_host(client.auth.server),
        port=client.auth.port,
        org_id=org.id,
    )


def annotate(plans: Iterable[SyncPlan], org: Organization) -> list[SyncPlan]:
    annotated: list[SyncPlan] = []
    for plan in plans:
        plan.organization_name = org.name
        plan.organization_label = org.label
        plan.organization_title = org.title
        annotated.append(plan)
    return annotated


async def get_org_sync_plans(ctx: FetchContext, client: APIClient, org: Organization) -> list[SyncPlan]:
    """Obtiene todos los sync plans de una organización."""

    plans = await fetch_all_pages(
        ctx,
        client,
        sync_plans_url(client, org),
        SyncPlansResponse,
        label="sync_plans",
    )
    return annotate(plans, org)


class SyncPlanRepository(Repository[SyncPlan]):
    """Obtiene los sync plans de las organizaciones dadas.

    Sin organizaciones explícitas, primero obtiene todas.
    """

    def __init__(self, orgs: Iterable[Organization] = ()) -> None:
        self._orgs = list(orgs)

    async def fetch(self, ctx: FetchContext, client: APIClient | None) -> list[SyncPlan]:
        if client is None:
            raise RsatError(ErrorKind.MISSING_VALUE, "required API client was not provided")

        started = time.monotonic()

        orgs = self._orgs
        if not orgs:
            orgs = await OrganizationRepository().fetch(ctx, client)

        all_plans: list[SyncPlan] = []
        for request_num, org in enumerate(orgs, start=1):
            org_ctx = ctx.bind(org_id=org.id, org_name=org.name)
            retrieval_started = time.monotonic()
            org_ctx.logger.debug("Retrieving sync plans for organization")

            plans = await get_org_sync_plans(org_ctx, client, org)

            fields: dict[str, object] = {"retrieved_plans": len(plans)}
            if len(orgs) > 1:
                fields.update(
                    request=request_num,
                    requests_remaining=len(orgs) - request_num,
                    runtime_request=f"{time.monotonic() - retrieval_started:.3f}s",
                    runtime_elapsed=f"{time.monotonic() - started:.3f}s",
                )
            org_ctx.logger.debug("Finished sync plans retrieval for this organization", fields=fields)

            all_plans.extend(plans)

        ctx.logger.debug(
            "Completed sync plans retrieval for all requested organizations",
            fields={"runtime_total": f"{time.monotonic() - started:.3f}s"},
        )
        return all_plans
