"""UI components for the CLI (Rich).

- Keeps command logic separate from presentation details.
- Tables are reused by the `list` and `doctor` commands.
"""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from core.domain.timestamps import display_sync_time
from core.services.classification import Organizations, days_stuck_hr


def _status_cell(problem: bool) -> Text:
    return Text(" ✘ ", style="bold red") if problem else Text(" ✔ ", style="bold green")


def build_sync_plans_table(orgs: Organizations, *, omit_ok: bool = False) -> Table:
    """Rich table of sync plans grouped by organization.

    The "Days Stuck" column is only shown when at least one plan is stuck.
    """

    has_problems = orgs.num_problem_plans() > 0
    orgs.sort()

    table = Table(title="SYNC PLANS OVERVIEW", show_lines=False)
    table.add_column("Org Name", style="cyan", no_wrap=True)
    table.add_column("Plan Name", style="white")
    if has_problems:
        table.add_column("Days Stuck", style="yellow", justify="right")
    table.add_column("Enabled", style="white")
    table.add_column("Interval", style="white")
    table.add_column("Next Sync", style="magenta")
    table.add_column("Status", justify="center")

    org_list = list(orgs)
    for idx, org in enumerate(org_list):
        plans = orgs.plans_for(org)
        for plan in plans:
            problem = plans.is_stuck(plan)
            if not problem and omit_ok:
                continue
            cells: list[str | Text] = [org.name, plan.name]
            if has_problems:
                cells.append(days_stuck_hr(plan, orgs.now, grace_minutes=orgs.grace_minutes))
            cells.extend(
                [
                    str(plan.enabled).lower(),
                    plan.interval,
                    display_sync_time(plan.next_sync),
                    _status_cell(problem),
                ]
            )
            table.add_row(*cells)

        if idx + 1 < len(org_list):
            table.add_section()

    return table


def build_settings_table(rows: list[tuple[str, str, str]], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    for row in rows:
        table.add_row(*row)
    return table
