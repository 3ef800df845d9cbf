"""Doctor command for configuration and connectivity diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from adapters.http_client import build_api_client, load_ca_cert
from adapters.rsat.organizations import organizations_url
from adapters.rsat.pagination import submit_query
from cli.ui_components import build_settings_table
from core.config import AppSettings
from core.context import FetchContext
from core.errors import RsatError

app = typer.Typer(no_args_is_help=False, help="Configuration and connectivity checks.")

_console = Console()

_CONNECTIVITY_TIMEOUT_SECONDS = 30.0


async def _check_api(settings: AppSettings, ca_cert: bytes | None) -> tuple[bool, str]:
    ctx = FetchContext.with_timeout(_CONNECTIVITY_TIMEOUT_SECONDS)
    try:
        async with build_api_client(settings, ca_cert=ca_cert, timeout=ctx.timeout) as client:
            url = organizations_url(client)
            await submit_query(ctx, client, url, {"full_result": "1", "per_page": "1", "page": "1"})
        return True, url
    except RsatError as exc:
        return False, str(exc)


@app.callback(invoke_without_command=True)
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    rows: list[tuple[str, str, str]] = []

    rows.append(("Server", "OK" if settings.server else "FAIL", settings.server or "Not set (CHECK_RSAT_SERVER)"))
    rows.append(("Port", "OK", str(settings.port)))
    rows.append(("Username", "OK" if settings.username else "FAIL", settings.username or "Not set"))
    rows.append(
        (
            "Password",
            "OK" if settings.password.get_secret_value() else "FAIL",
            "Set" if settings.password.get_secret_value() else "Not set",
        )
    )
    rows.append(("Network type", "OK", settings.network_type.value))

    ca_cert: bytes | None = None
    if settings.trust_cert:
        rows.append(("TLS validation", "WARN", "Disabled (trust_cert); susceptible to MITM attacks"))
    else:
        rows.append(("TLS validation", "OK", "Enabled"))

    ca_ok = True
    try:
        ca_cert = load_ca_cert(settings)
        if settings.ca_cert is not None:
            rows.append(("CA certificate", "OK", str(settings.ca_cert)))
    except (OSError, ValueError) as exc:
        ca_ok = False
        rows.append(("CA certificate", "FAIL", str(exc)))

    if settings.server and ca_ok:
        ok_api, detail_api = asyncio.run(_check_api(settings, ca_cert))
        rows.append(("API connectivity", "OK" if ok_api else "FAIL", detail_api))
    else:
        rows.append(("API connectivity", "SKIPPED", "Fix the failed checks above first"))

    _console.print(build_settings_table(rows, title="check-rsat Doctor"))

    if any(status == "FAIL" for _, status, _ in rows):
        raise typer.Exit(code=1)
