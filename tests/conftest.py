"""Shared fixtures and Satellite API payload builders."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from adapters.http_client import build_api_client
from core.config import AppSettings

SERVER = "satellite.example.com"
PORT = 8443
BASE_URL = f"https://{SERVER}:{PORT}"
ORGS_URL = f"{BASE_URL}/api/v2/organizations"

API_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S %z"


def sync_plans_url(org_id: int) -> str:
    return f"{BASE_URL}/katello/api/v2/organizations/{org_id}/sync_plans"


def api_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(API_TIME_LAYOUT)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def org_payload(org_id: int, name: str) -> dict[str, Any]:
    return {
        "id": org_id,
        "name": name,
        "label": name.lower().replace(" ", "_"),
        "title": name,
        "description": None,
        "created_at": "2023-01-10 08:00:00 UTC",
        "updated_at": "2024-02-01 09:30:00 -0500",
    }


def plan_payload(
    plan_id: int,
    name: str,
    *,
    org_id: int = 1,
    enabled: bool = True,
    next_sync: datetime | None = None,
    sync_date: datetime | None = None,
    interval: str = "daily",
) -> dict[str, Any]:
    return {
        "id": plan_id,
        "name": name,
        "organization_id": org_id,
        "enabled": enabled,
        "interval": interval,
        "next_sync": api_time(next_sync),
        "sync_date": api_time(sync_date) or "2023-01-01 00:00:00 UTC",
        "created_at": "2023-01-01 00:00:00 UTC",
        "updated_at": "2023-06-01 00:00:00 UTC",
        "cron_expression": None,
        "description": None,
        "foreman_tasks_recurring_logic_id": 100 + plan_id,
        "products": [],
        "permissions": {"view_sync_plans": True},
    }


def paged(
    results: list[dict[str, Any]],
    *,
    subtotal: int | None = None,
    page: int | str = 1,
    per_page: int = 100,
) -> dict[str, Any]:
    count = len(results) if subtotal is None else subtotal
    return {
        "total": count,
        "subtotal": count,
        "page": page,
        "per_page": per_page,
        "search": None,
        "sort": {"by": "name", "order": "asc"},
        "results": results,
    }


def three_plans(org_id: int, now: datetime) -> list[dict[str, Any]]:
    """One healthy, one stuck and one disabled plan."""

    base = org_id * 10
    return [
        plan_payload(base + 1, f"Daily {org_id}", org_id=org_id, next_sync=now + timedelta(hours=6)),
        plan_payload(base + 2, f"Weekly {org_id}", org_id=org_id, next_sync=now - timedelta(days=2, hours=3)),
        plan_payload(
            base + 3,
            f"Retired {org_id}",
            org_id=org_id,
            enabled=False,
            next_sync=now - timedelta(days=30),
        ),
    ]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for key in list(os.environ):
        if key.upper().startswith("CHECK_RSAT_"):
            monkeypatch.delenv(key, raising=False)
    # Keeps a developer's project .env out of the settings.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(server=SERVER, port=PORT, username="monitor", password="s3cret")


@pytest.fixture
async def api_client(settings: AppSettings):
    async with build_api_client(settings) as client:
        yield client
