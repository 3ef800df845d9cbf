"""Exportador JSON de las organizaciones evaluadas.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Los timestamps usan los mismos formatos que la API de Satellite (ver
  `core.domain.timestamps`), así un export vuelve a decodificar en los
  mismos modelos.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.services.classification import Organizations, days_stuck


def organizations_payload(orgs: Organizations) -> dict[str, Any]:
    """Serializa organizaciones, sus sync plans y los contadores agregados."""

    items: list[dict[str, Any]] = []
    for org in orgs:
        plans = orgs.plans_for(org)
        org_payload = org.model_dump(mode="json")
        org_payload["sync_plans"] = [
            {
                **plan.model_dump(mode="json", by_alias=True),
                "stuck": plans.is_stuck(plan),
                "days_stuck": days_stuck(plan, orgs.now),
            }
            for plan in plans
        ]
        items.append(org_payload)

    state = orgs.service_state()
    return {
        "state": state.label,
        "exit_code": state.exit_code,
        "summary": {
            "organizations": orgs.num_orgs(),
            "sync_plans_total": orgs.num_plans(),
            "sync_plans_enabled": orgs.num_plans_enabled(),
            "sync_plans_disabled": orgs.num_plans_disabled(),
            "sync_plans_stuck": orgs.num_plans_stuck(),
            "sync_plans_problems": orgs.num_problem_plans(),
        },
        "organizations": items,
    }


def render_organizations_json(orgs: Organizations) -> str:
    return json.dumps(organizations_payload(orgs), ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_organizations_json(*, orgs: Organizations, output_path: Path) -> Path:
    """Exporta a JSON UTF-8 en `output_path` con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_organizations_json(orgs), encoding="utf-8")
    return output_path
