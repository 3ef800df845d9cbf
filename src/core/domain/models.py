"""Modelos de dominio (Pydantic v2) para organizaciones y sync plans.

Por qué Pydantic:
- Los modelos reflejan los documentos JSON de la API v2 de Satellite.
- Los campos desconocidos se ignoran, así las versiones nuevas de Satellite
  siguen decodificando.
- Los modelos describen *qué* es el dato, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.nullable import NullString
from core.domain.timestamps import StandardAPITime, SyncTime

T = TypeVar("T")


class SortOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    by: NullString = ""
    order: NullString = ""


class PagedResponse(BaseModel, Generic[T]):
    """Envelope común a todos los endpoints paginados de Satellite.

    `page` llega como entero en la primera respuesta y como string en las
    siguientes; la validación lax acepta ambos.
    """

    model_config = ConfigDict(extra="ignore")

    results: list[T] = Field(
        default_factory=list,
        description="Records returned for the requested page.",
    )
    subtotal: int = Field(
        default=0,
        description="Number of records matching the query (equals `total` without a search).",
    )
    total: int = Field(
        default=0,
        description="Number of records without any search parameters.",
    )
    page: int = Field(default=0, description="Page number of this response.")
    per_page: int = Field(default=0, description="Pagination limit applied by the API.")
    search: NullString = ""
    sort: SortOptions = Field(default_factory=SortOptions)
    error: NullString = ""


class SyncPlanPermissions(BaseModel):
    """Permisos del usuario consultante sobre un sync plan (informativo)."""

    model_config = ConfigDict(extra="ignore")

    destroy_sync_plans: bool = False
    edit_sync_plans: bool = False
    view_sync_plans: bool = False


class Product(BaseModel):
    """Colección de repositorios de contenido asociada a un sync plan."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    cp_id: str = ""
    name: str = ""
    label: str = ""
    description: NullString = ""
    last_sync: StandardAPITime = None
    last_sync_words: str = ""
    sync_state: str = ""
    repository_count: int = 0


class SyncPlan(BaseModel):
    """Agenda recurrente que dispara la sincronización de contenido de una organización."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int = Field(..., description="Sync plan identifier.")
    name: str = Field(default="", description="Sync plan name.")
    organization_id: int = Field(default=0, description="Owning organization id.")
    enabled: bool = Field(default=False, description="Disabled plans are never reported as stuck.")
    interval: str = Field(default="", description="Schedule label (hourly, daily, weekly, custom cron).")
    next_sync: SyncTime = Field(
        default=None,
        description="Next scheduled run; None means the plan is not scheduled.",
    )
    sync_date: SyncTime = Field(
        default=None,
        description="Original sync date; reference instant when `next_sync` is absent.",
    )
    created_at: StandardAPITime = None
    updated_at: StandardAPITime = None
    cron_expression: NullString = ""
    description: NullString = ""
    products: list[Product] = Field(default_factory=list)
    permissions: SyncPlanPermissions = Field(default_factory=SyncPlanPermissions)
    recurring_logic_id: int = Field(default=0, alias="foreman_tasks_recurring_logic_id")

    # Copiado de la organización dueña por el repositorio de sync plans.
    organization_name: str = ""
    organization_label: str = ""
    organization_title: str = ""


class Organization(BaseModel):
    """Tenant aislado dentro de un Satellite."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Organization identifier (unique per fetch).")
    label: str = ""
    name: str = ""
    title: str = ""
    description: NullString = ""
    created_at: StandardAPITime = None
    updated_at: StandardAPITime = None
    sync_plans: list[SyncPlan] = Field(
        default_factory=list,
        exclude=True,
        description="Attached by the aggregator after retrieval; never part of the API payload.",
    )


OrganizationsResponse = PagedResponse[Organization]
SyncPlansResponse = PagedResponse[SyncPlan]
