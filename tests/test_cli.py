"""Command line: plugin exit codes, inspector output and doctor."""

from __future__ import annotations

import json

from conftest import ORGS_URL, PORT, SERVER, org_payload, paged, sync_plans_url, three_plans, utcnow
from httpx import Response
from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()

CONNECTION_ARGS = [
    "--server",
    SERVER,
    "--port",
    str(PORT),
    "--username",
    "monitor",
    "--password",
    "s3cret",
]


def _mock_orgs(respx_mock, *, healthy: bool) -> None:
    now = utcnow()
    respx_mock.get(ORGS_URL).mock(
        return_value=Response(200, json=paged([org_payload(1, "Alpha"), org_payload(2, "Beta")]))
    )
    for org_id in (1, 2):
        plans = three_plans(org_id, now)
        if healthy:
            plans = [plan for plan in plans if "Weekly" not in plan["name"]]
        respx_mock.get(sync_plans_url(org_id)).mock(return_value=Response(200, json=paged(plans)))


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "check-rsat" in result.output


def test_check_ok(respx_mock):
    _mock_orgs(respx_mock, healthy=True)

    result = runner.invoke(app, ["check", *CONNECTION_ARGS])

    assert result.exit_code == 0, result.output
    assert "OK: No sync plans with non-OK status detected for satellite.example.com" in result.output
    assert "(evaluated 2 orgs, 4 sync plans)" in result.output
    assert "'sync_plans_stuck'=0;;;;" in result.output


def test_check_warning(respx_mock):
    _mock_orgs(respx_mock, healthy=False)

    result = runner.invoke(app, ["check", *CONNECTION_ARGS, "--verbose", "--branding"])

    assert result.exit_code == 1, result.output
    assert "WARNING: 2 problem sync plans detected for satellite.example.com" in result.output
    assert "**DETAILED INFO**" in result.output
    assert "Configuration settings" in result.output
    assert "Notification generated by check-rsat" in result.output
    assert "'sync_plans_problems'=2;;;;" in result.output


def test_check_api_failure_is_critical(respx_mock):
    respx_mock.get(ORGS_URL).mock(return_value=Response(401, text="Unable to authenticate"))

    result = runner.invoke(app, ["check", *CONNECTION_ARGS])

    assert result.exit_code == 2, result.output
    assert "CRITICAL: Error retrieving Red Hat Satellite sync plans" in result.output
    assert "**ERRORS**" in result.output


def test_check_without_server_is_unknown():
    result = runner.invoke(app, ["check"])

    assert result.exit_code == 3
    assert "UNKNOWN: Error initializing application" in result.output


def test_check_invalid_settings_is_unknown():
    result = runner.invoke(app, ["check", *CONNECTION_ARGS, "--log-level", "chatty"])

    assert result.exit_code == 3
    assert "UNKNOWN" in result.output


def test_check_unreadable_ca_cert_is_unknown(tmp_path):
    result = runner.invoke(app, ["check", *CONNECTION_ARGS, "--ca-cert", str(tmp_path / "missing.pem")])

    assert result.exit_code == 3
    assert "Error loading CA certificate" in result.output


def test_list_json(respx_mock):
    _mock_orgs(respx_mock, healthy=False)

    result = runner.invoke(app, ["list", *CONNECTION_ARGS, "--output-format", "json", "--log-level", "error"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["state"] == "WARNING"
    assert data["summary"]["organizations"] == 2
    assert data["summary"]["sync_plans_total"] == 6
    assert data["summary"]["sync_plans_stuck"] == 2


def test_list_simple_table_omit_ok(respx_mock):
    _mock_orgs(respx_mock, healthy=False)

    result = runner.invoke(
        app,
        ["list", *CONNECTION_ARGS, "--output-format", "simple-table", "--omit-ok", "--log-level", "error"],
    )

    assert result.exit_code == 0, result.output
    assert "Weekly 1" in result.stdout
    assert "Daily 1" not in result.stdout


def test_list_failure_exit_code(respx_mock):
    respx_mock.get(ORGS_URL).mock(return_value=Response(500, text="boom"))

    result = runner.invoke(app, ["list", *CONNECTION_ARGS, "--log-level", "error"])

    assert result.exit_code == 1


def test_doctor_without_configuration():
    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 1
    assert "FAIL" in result.output


def test_doctor_with_reachable_api(respx_mock, monkeypatch):
    monkeypatch.setenv("CHECK_RSAT_SERVER", SERVER)
    monkeypatch.setenv("CHECK_RSAT_PORT", str(PORT))
    monkeypatch.setenv("CHECK_RSAT_USERNAME", "monitor")
    monkeypatch.setenv("CHECK_RSAT_PASSWORD", "s3cret")
    route = respx_mock.get(ORGS_URL).mock(return_value=Response(200, json=paged([org_payload(1, "Alpha")])))

    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 0, result.output
    assert route.call_count == 1
    assert route.calls.last.request.url.params["per_page"] == "1"


def test_list_exports_json_file(respx_mock, tmp_path):
    _mock_orgs(respx_mock, healthy=True)
    target = tmp_path / "exports" / "sync_plans.json"

    result = runner.invoke(
        app,
        ["list", *CONNECTION_ARGS, "--output-format", "overview", "--export-json", str(target), "--log-level", "error"],
    )

    assert result.exit_code == 0, result.output
    assert "* Alpha (0 problems, 1 enabled, 1 disabled)" in result.stdout
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["state"] == "OK"
    assert data["summary"]["sync_plans_total"] == 4


def _garbage_pem(tmp_path):
    path = tmp_path / "garbage.pem"
    path.write_text("this is not a certificate\n", encoding="utf-8")
    return path


def test_check_unparseable_ca_cert_is_unknown(tmp_path):
    result = runner.invoke(app, ["check", *CONNECTION_ARGS, "--ca-cert", str(_garbage_pem(tmp_path))])

    assert result.exit_code == 3, result.output
    assert "UNKNOWN: Error loading CA certificate" in result.output


def test_list_unparseable_ca_cert(tmp_path):
    result = runner.invoke(
        app,
        ["list", *CONNECTION_ARGS, "--ca-cert", str(_garbage_pem(tmp_path)), "--log-level", "error"],
    )

    assert result.exit_code == 1


def test_doctor_unparseable_ca_cert(monkeypatch, tmp_path):
    monkeypatch.setenv("CHECK_RSAT_SERVER", SERVER)
    monkeypatch.setenv("CHECK_RSAT_CA_CERT", str(_garbage_pem(tmp_path)))

    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 1
    assert "SKIPPED" in result.output
