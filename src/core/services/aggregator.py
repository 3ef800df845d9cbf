"""Agregación de organizaciones + sync plans.

Obtiene todas las organizaciones y luego los sync plans de cada una, de a una
por vez, y devuelve la colección lista para clasificar. La CLI (plugin e
inspector) y los tests pasan por `fetch_orgs_with_sync_plans`.

Por qué secuencial:
- Las requests se emiten estrictamente en orden; cualquier fallo aborta la
  ejecución y nunca se devuelve una colección parcial.
"""

from __future__ import annotations

import time

from adapters.http_client import APIClient
from adapters.rsat.organizations import OrganizationRepository
from adapters.rsat.sync_plans import SyncPlanRepository
from core.context import FetchContext
from core.errors import ErrorKind, RsatError
from core.services.classification import SYNC_TIME_GRACE_MINUTES, Organizations


async def fetch_orgs_with_sync_plans(
    ctx: FetchContext,
    client: APIClient | None,
    *,
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES,
) -> Organizations:
    """Obtiene todas las organizaciones junto con sus sync plans."""

    if client is None:
        raise RsatError(ErrorKind.MISSING_VALUE, "required API client was not provided")

    started = time.monotonic()
    ctx.logger.debug("Retrieving organizations")

    try:
        orgs = await OrganizationRepository().fetch(ctx, client)
    except RsatError as exc:
        ctx.logger.error("Failed to retrieve organizations", fields={"error": str(exc)})
        raise RsatError(ErrorKind.ORGS_RETRIEVAL, "failed to retrieve organizations", cause=exc) from exc

    ctx.logger.debug("Successfully retrieved organizations", fields={"orgs": len(orgs)})

    for request_num, org in enumerate(orgs, start=1):
        org_ctx = ctx.bind(org_id=org.id, org_name=org.name)
        retrieval_started = time.monotonic()

        try:
            plans = await SyncPlanRepository([org]).fetch(org_ctx, client)
        except RsatError as exc:
            org_ctx.logger.error("Failed to retrieve sync plans", fields={"error": str(exc)})
            raise RsatError(
                ErrorKind.SYNC_PLANS_RETRIEVAL,
                f"failed to retrieve sync plans for organization (name: {org.name}, id: {org.id})",
                cause=exc,
            ) from exc

        org_ctx.logger.debug(
            "Finished sync plans retrieval for this organization",
            fields={
                "retrieved_plans": len(plans),
                "request": request_num,
                "requests_remaining": len(orgs) - request_num,
                "runtime_request": f"{time.monotonic() - retrieval_started:.3f}s",
                "runtime_elapsed": f"{time.monotonic() - started:.3f}s",
            },
        )

        org.sync_plans = plans

    ctx.logger.debug("Successfully retrieved sync plans for all organizations")

    return Organizations(orgs, grace_minutes=grace_minutes)
