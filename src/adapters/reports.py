"""Reportes de sync plans en texto plano.

Se usan para el long output del plugin (`verbose`) y para los formatos
`overview` y `simple-table` del inspector. La tabla rich vive en
`cli.ui_components`.
"""

from __future__ import annotations

from typing import Sequence

from core.domain.models import Organization
from core.domain.timestamps import display_sync_time
from core.services.classification import Organizations, days_stuck_hr, next_sync_label

EOL = "\n"

_COLUMN_PADDING = 4


def report_lead_in() -> str:
    return f"{EOL}SYNC PLANS OVERVIEW{EOL}{EOL}"


def overview_report(orgs: Organizations) -> str:
    """Una línea por organización con sus contadores de planes."""

    lines = [report_lead_in()]
    orgs.sort()
    for org in orgs:
        plans = orgs.plans_for(org)
        lines.append(
            f"* {org.name} ({plans.num_stuck()} problems, "
            f"{plans.num_enabled()} enabled, {plans.num_disabled()} disabled){EOL}"
        )
    return "".join(lines)


def verbose_report(orgs: Organizations, *, omit_ok: bool = False) -> str:
    """Listado de sync plans por organización."""

    out: list[str] = [report_lead_in()]
    orgs.sort()
    has_problems = orgs.num_problem_plans() > 0

    for org in orgs:
        plans = orgs.plans_for(org)
        if has_problems:
            out.append(
                f"{EOL}{org.name} ({plans.num_stuck()} stuck, "
                f"{plans.num_enabled()} enabled, {plans.num_disabled()} disabled){EOL}"
            )
        else:
            out.append(
                f"* {org.name} ({plans.num_enabled()} enabled, {plans.num_disabled()} disabled){EOL}"
            )

        for plan in plans:
            ok = not plans.is_stuck(plan)
            if ok and omit_ok:
                continue
            if has_problems:
                out.append(
                    f"  * [Name: {plan.name}, "
                    f"Days Stuck: {days_stuck_hr(plan, orgs.now, grace_minutes=orgs.grace_minutes)}, "
                    f"Interval: {plan.interval}, Next Sync: {display_sync_time(plan.next_sync)}]{EOL}"
                )
            else:
                out.append(
                    f"  * [Name: {plan.name}, Interval: {plan.interval}, "
                    f"Next Sync: {next_sync_label(plan)}]{EOL}"
                )

        out.append(EOL)

    return "".join(out)


def _problem_marker(problem: bool) -> str:
    return "  !!  " if problem else "  OK  "


def _align(rows: Sequence[Sequence[str]]) -> list[str]:
    """Alinea columnas a la izquierda según la celda más ancha."""

    if not rows:
        return []
    widths = [0] * max(len(row) for row in rows)
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    return [
        "".join(cell.ljust(widths[idx] + _COLUMN_PADDING) for idx, cell in enumerate(row)).rstrip()
        for row in rows
    ]


def simple_table_rows(orgs: Organizations, *, omit_ok: bool = False) -> list[list[str]]:
    """Header, separador y filas; una fila vacía separa organizaciones."""

    has_problems = orgs.num_problem_plans() > 0
    if has_problems:
        header = ["Org Name", "Plan Name", "Days Stuck", "Interval", "Next Sync", "Status"]
    else:
        header = ["Org Name", "Plan Name", "Interval", "Next Sync", "Status"]

    rows: list[list[str]] = [header, ["-" * len(item) for item in header]]

    org_list: list[Organization] = list(orgs)
    for idx, org in enumerate(org_list):
        plans = orgs.plans_for(org)
        for plan in plans:
            problem = plans.is_stuck(plan)
            if not problem and omit_ok:
                continue
            row = [org.name, plan.name]
            if has_problems:
                row.append(days_stuck_hr(plan, orgs.now, grace_minutes=orgs.grace_minutes))
            row.extend([plan.interval, display_sync_time(plan.next_sync), _problem_marker(problem)])
            rows.append(row)

        if idx + 1 < len(org_list):
            rows.append([""] * len(header))

    return rows


def simple_table_report(orgs: Organizations, *, omit_ok: bool = False) -> str:
    orgs.sort()
    lines = _align(simple_table_rows(orgs, omit_ok=omit_ok))
    return report_lead_in() + EOL.join(lines) + EOL
