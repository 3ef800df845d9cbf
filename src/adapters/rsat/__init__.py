"""Adapters para la API de Red Hat Satellite.

- Un módulo por endpoint de colección (organizaciones, sync plans).
- La paginación y la decodificación JSON compartidas viven en `pagination` /
  `decoder`.
"""

from adapters.rsat.decoder import decode
from adapters.rsat.organizations import OrganizationRepository, get_organizations
from adapters.rsat.pagination import fetch_all_pages
from adapters.rsat.sync_plans import SyncPlanRepository, get_org_sync_plans

__all__ = [
    "OrganizationRepository",
    "SyncPlanRepository",
    "decode",
    "fetch_all_pages",
    "get_org_sync_plans",
    "get_organizations",
]
