"""Stuck detection, days-stuck math and the aggregate service state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.domain.models import Organization, SyncPlan
from core.domain.state import ServiceState
from core.services.classification import (
    Organizations,
    SyncPlans,
    days_stuck,
    days_stuck_hr,
    is_ok_state,
    is_stuck,
    next_sync_label,
)

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


def make_plan(
    plan_id: int = 1,
    *,
    enabled: bool = True,
    next_sync: datetime | None = None,
    sync_date: datetime | None = None,
    name: str = "",
) -> SyncPlan:
    return SyncPlan(
        id=plan_id,
        name=name or f"plan-{plan_id}",
        enabled=enabled,
        next_sync=next_sync,
        sync_date=sync_date,
    )


def make_org(org_id: int, name: str, plans: list[SyncPlan]) -> Organization:
    org = Organization(id=org_id, name=name)
    org.sync_plans = plans
    return org


def test_disabled_plan_is_never_stuck():
    plan = make_plan(enabled=False, next_sync=NOW - timedelta(days=90))

    assert not is_stuck(plan, NOW)
    assert is_ok_state(plan, NOW)


def test_future_next_sync_is_not_stuck():
    assert not is_stuck(make_plan(next_sync=NOW + timedelta(minutes=1)), NOW)


@pytest.mark.parametrize(
    ("minutes_overdue", "expected"),
    [(0, False), (4, False), (5, False), (6, True), (60 * 24 * 3, True)],
)
def test_grace_period(minutes_overdue, expected):
    plan = make_plan(next_sync=NOW - timedelta(minutes=minutes_overdue))

    assert is_stuck(plan, NOW) is expected


def test_stuck_is_monotonic_in_time():
    plan = make_plan(next_sync=NOW - timedelta(minutes=10))

    assert is_stuck(plan, NOW)
    assert is_stuck(plan, NOW + timedelta(hours=1))
    assert is_stuck(plan, NOW + timedelta(days=40))


def test_grace_period_is_configurable():
    plan = make_plan(next_sync=NOW - timedelta(minutes=2))

    assert not is_stuck(plan, NOW)
    assert is_stuck(plan, NOW, grace_minutes=0)
    assert not is_stuck(make_plan(next_sync=NOW - timedelta(minutes=20)), NOW, grace_minutes=30)


def test_enabled_plan_without_next_sync_is_stuck():
    assert is_stuck(make_plan(next_sync=None), NOW)


def test_offset_timestamps_are_compared_as_instants():
    minus_five = timezone(timedelta(hours=-5))
    # 06:58 at -0500 is two minutes before NOW.
    plan = make_plan(next_sync=datetime(2024, 5, 10, 6, 58, tzinfo=minus_five))

    assert not is_stuck(plan, NOW)


@pytest.mark.parametrize(
    ("overdue", "expected"),
    [
        (timedelta(hours=3), 0),
        (timedelta(days=1), 1),
        (timedelta(days=2, hours=23), 2),
        (timedelta(days=14, minutes=1), 14),
    ],
)
def test_days_stuck_truncates(overdue, expected):
    assert days_stuck(make_plan(next_sync=NOW - overdue), NOW) == expected


def test_days_stuck_never_negative():
    assert days_stuck(make_plan(next_sync=NOW + timedelta(days=5)), NOW) == 0


def test_days_stuck_zero_for_disabled_plan():
    assert days_stuck(make_plan(enabled=False, next_sync=NOW - timedelta(days=9)), NOW) == 0


def test_days_stuck_falls_back_to_sync_date():
    plan = make_plan(next_sync=None, sync_date=NOW - timedelta(days=3, hours=1))

    assert days_stuck(plan, NOW) == 3


def test_days_stuck_without_reference_time():
    assert days_stuck(make_plan(next_sync=None, sync_date=None), NOW) == 0


def test_days_stuck_hr():
    assert days_stuck_hr(make_plan(next_sync=NOW + timedelta(hours=1)), NOW) == "N/A"
    assert days_stuck_hr(make_plan(next_sync=NOW - timedelta(minutes=30)), NOW) == "<1d"
    assert days_stuck_hr(make_plan(next_sync=NOW - timedelta(days=4, hours=2)), NOW) == "4"


def test_next_sync_label():
    assert next_sync_label(make_plan(next_sync=None)) == "N/A"
    assert next_sync_label(make_plan(next_sync=NOW)) != "N/A"


def test_sync_plans_counters():
    plans = SyncPlans(
        [
            make_plan(1, next_sync=NOW + timedelta(hours=1)),
            make_plan(2, next_sync=NOW - timedelta(days=1)),
            make_plan(3, next_sync=NOW - timedelta(minutes=3)),
            make_plan(4, enabled=False, next_sync=NOW - timedelta(days=1)),
        ],
        now=NOW,
    )

    assert plans.total() == 4
    assert plans.num_enabled() == 3
    assert plans.num_disabled() == 1
    assert plans.num_stuck() == 1
    assert [plan.id for plan in plans.stuck()] == [2]
    assert [plan.id for plan in plans.disabled()] == [4]
    assert len(plans.enabled()) == 3
    assert not plans.is_ok_state()


def test_empty_collections_are_ok():
    assert SyncPlans(now=NOW).is_ok_state()

    orgs = Organizations(now=NOW)
    assert orgs.num_orgs() == 0
    assert orgs.num_plans() == 0
    assert orgs.service_state() is ServiceState.OK


def _mixed_orgs() -> Organizations:
    orgs = []
    for org_id, name in ((2, "Beta"), (1, "Alpha")):
        orgs.append(
            make_org(
                org_id,
                name,
                [
                    make_plan(org_id * 10 + 1, next_sync=NOW + timedelta(hours=2)),
                    make_plan(org_id * 10 + 2, next_sync=NOW - timedelta(days=2)),
                    make_plan(org_id * 10 + 3, enabled=False, next_sync=NOW - timedelta(days=2)),
                ],
            )
        )
    return Organizations(orgs, now=NOW)


def test_organizations_roll_up():
    orgs = _mixed_orgs()

    assert orgs.num_orgs() == 2
    assert orgs.num_plans() == 6
    assert orgs.num_plans_enabled() == 4
    assert orgs.num_plans_disabled() == 2
    assert orgs.num_plans_stuck() == 2
    assert orgs.num_problem_plans() == 2
    assert orgs.has_warning_state()
    assert not orgs.is_ok_state()
    assert orgs.service_state() is ServiceState.WARNING


def test_critical_state_is_never_reported():
    orgs = _mixed_orgs()
    for org in orgs:
        for plan in org.sync_plans:
            plan.enabled = True
            plan.next_sync = NOW - timedelta(days=365)

    assert not orgs.has_critical_state()
    assert orgs.service_state() is ServiceState.WARNING


def test_healthy_organizations_are_ok():
    orgs = Organizations(
        [make_org(1, "Alpha", [make_plan(1, next_sync=NOW + timedelta(days=1))])],
        now=NOW,
    )

    assert orgs.is_ok_state()
    assert orgs.service_state() is ServiceState.OK


def test_sort_orders_by_name():
    orgs = _mixed_orgs()
    orgs.sort()

    assert [org.name for org in orgs] == ["Alpha", "Beta"]


def test_plans_for_keeps_evaluation_settings():
    orgs = Organizations(
        [make_org(1, "A", [make_plan(1, next_sync=NOW - timedelta(minutes=8))])],
        now=NOW,
        grace_minutes=10,
    )

    plans = orgs.plans_for(next(iter(orgs)))

    assert plans.grace_minutes == 10
    assert plans.num_stuck() == 0


@pytest.mark.parametrize(
    ("state", "code"),
    [
        (ServiceState.OK, 0),
        (ServiceState.WARNING, 1),
        (ServiceState.CRITICAL, 2),
        (ServiceState.UNKNOWN, 3),
    ],
)
def test_service_state_exit_codes(state, code):
    assert state.exit_code == code


def test_service_state_from_label():
    assert ServiceState.from_label("warning") is ServiceState.WARNING
    assert ServiceState.from_label("bogus") is ServiceState.UNKNOWN
