"""Clasificación de salud de los sync plans.

Un sync plan está "stuck" cuando está habilitado y su próxima ejecución quedó
en el pasado por más de un margen corto. El margen absorbe el jitter del
scheduler: un plan que recién arranca, o que espera detrás de otras tareas en
un Satellite ocupado, no se marca.

Por qué colecciones:
- Los helpers agregan veredictos individuales en contadores y un único
  `ServiceState` con precedencia CRITICAL > WARNING > OK > UNKNOWN.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator

from core.domain.models import Organization, SyncPlan
from core.domain.state import ServiceState
from core.domain.timestamps import display_sync_time

SYNC_TIME_GRACE_MINUTES: float = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_stuck(
    plan: SyncPlan,
    now: datetime | None = None,
    *,
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES,
) -> bool:
    """Si la próxima ejecución del plan está vencida más allá del margen.

    Un plan habilitado sin `next_sync` se considera vencido.
    """

    if not plan.enabled:
        return False

    if plan.next_sync is None:
        return True

    now_utc = (now or _utcnow()).astimezone(timezone.utc)
    next_sync = plan.next_sync.astimezone(timezone.utc)
    if next_sync >= now_utc:
        return False

    diff_minutes = (now_utc - next_sync).total_seconds() / 60
    return diff_minutes > grace_minutes


def is_ok_state(
    plan: SyncPlan,
    now: datetime | None = None,
    *,
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES,
) -> bool:
    # Hoy "stuck" es el único síntoma de problema evaluado.
    return not is_stuck(plan, now, grace_minutes=grace_minutes)


def days_stuck(plan: SyncPlan, now: datetime | None = None) -> int:
    """Días completos desde que el plan debió ejecutarse, nunca negativo."""

    if not plan.enabled:
        return 0

    reference = plan.sync_date if plan.next_sync is None else plan.next_sync
    if reference is None:
        return 0

    elapsed_hours = ((now or _utcnow()) - reference).total_seconds() / 3600
    return max(int(math.trunc(elapsed_hours / 24)), 0)


def days_stuck_hr(
    plan: SyncPlan,
    now: datetime | None = None,
    *,
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES,
) -> str:
    """Días stuck legibles: `N/A`, `<1d` o la cantidad de días."""

    if is_ok_state(plan, now, grace_minutes=grace_minutes):
        return "N/A"

    days = days_stuck(plan, now)
    if days == 0:
        return "<1d"
    return str(days)


def next_sync_label(plan: SyncPlan) -> str:
    """Próxima ejecución del plan, lista para mostrar."""

    if plan.next_sync is None:
        return "N/A"
    return display_sync_time(plan.next_sync)


@dataclass
class SyncPlans:
    """Vista evaluada sobre una colección de sync plans."""

    plans: list[SyncPlan] = field(default_factory=list)
    now: datetime | None = None
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES

    def __iter__(self) -> Iterator[SyncPlan]:
        return iter(self.plans)

    def __len__(self) -> int:
        return len(self.plans)

    def _derive(self, plans: Iterable[SyncPlan]) -> "SyncPlans":
        return SyncPlans(list(plans), now=self.now, grace_minutes=self.grace_minutes)

    def is_stuck(self, plan: SyncPlan) -> bool:
        return is_stuck(plan, self.now, grace_minutes=self.grace_minutes)

    def total(self) -> int:
        return len(self.plans)

    def num_enabled(self) -> int:
        return sum(1 for plan in self.plans if plan.enabled)

    def num_disabled(self) -> int:
        return sum(1 for plan in self.plans if not plan.enabled)

    def num_stuck(self) -> int:
        return sum(1 for plan in self.plans if self.is_stuck(plan))

    def num_problem_plans(self) -> int:
        return self.num_stuck()

    def is_ok_state(self) -> bool:
        return self.num_problem_plans() == 0

    def enabled(self) -> "SyncPlans":
        return self._derive(plan for plan in self.plans if plan.enabled)

    def disabled(self) -> "SyncPlans":
        return self._derive(plan for plan in self.plans if not plan.enabled)

    def stuck(self) -> "SyncPlans":
        return self._derive(plan for plan in self.plans if self.is_stuck(plan))


@dataclass
class Organizations:
    """Organizaciones con sus sync plans y consultas agregadas."""

    items: list[Organization] = field(default_factory=list)
    now: datetime | None = None
    grace_minutes: float = SYNC_TIME_GRACE_MINUTES

    def __iter__(self) -> Iterator[Organization]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def plans_for(self, org: Organization) -> SyncPlans:
        return SyncPlans(list(org.sync_plans), now=self.now, grace_minutes=self.grace_minutes)

    def all_plans(self) -> SyncPlans:
        return SyncPlans(
            [plan for org in self.items for plan in org.sync_plans],
            now=self.now,
            grace_minutes=self.grace_minutes,
        )

    def sort(self) -> None:
        """Orden estable por nombre de organización."""

        self.items.sort(key=lambda org: org.name)

    def num_orgs(self) -> int:
        return len(self.items)

    def num_plans(self) -> int:
        return self.all_plans().total()

    def num_plans_enabled(self) -> int:
        return self.all_plans().num_enabled()

    def num_plans_disabled(self) -> int:
        return self.all_plans().num_disabled()

    def num_plans_stuck(self) -> int:
        return self.all_plans().num_stuck()

    def num_problem_plans(self) -> int:
        return self.num_plans_stuck()

    def has_critical_state(self) -> bool:
        # TODO: marcar CRITICAL cuando exista un umbral configurable de días stuck.
        return False

    def has_warning_state(self) -> bool:
        return not self.has_critical_state() and self.num_problem_plans() > 0

    def is_ok_state(self) -> bool:
        return not self.has_warning_state() and not self.has_critical_state()

    def service_state(self) -> ServiceState:
        if self.has_critical_state():
            return ServiceState.CRITICAL
        if self.has_warning_state():
            return ServiceState.WARNING
        if self.is_ok_state():
            return ServiceState.OK
        return ServiceState.UNKNOWN
