"""check-rsat command line interface (Typer).

Commands:
- `check`: Nagios plugin evaluating sync plans across all organizations.
- `list`: inspector printing sync plan reports in several formats.
- `doctor`: configuration and connectivity diagnostics.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.http_client import build_api_client, load_ca_cert
from adapters.json_exporter import export_organizations_json, render_organizations_json
from adapters.nagios import PluginResult, perfdata_for
from adapters.reports import overview_report, simple_table_report, verbose_report
from cli import doctor
from cli.ui_components import build_sync_plans_table
from core import __version__
from core.config import (
    APP_NAME,
    APP_URL,
    DEFAULT_INSPECTOR_TIMEOUT_SECONDS,
    DEFAULT_PLUGIN_TIMEOUT_SECONDS,
    AppSettings,
    NetworkType,
    OutputFormat,
)
from core.context import FetchContext
from core.domain.state import ServiceState
from core.errors import RsatError
from core.logging_config import BoundLogger, configure_logging
from core.services.aggregator import fetch_orgs_with_sync_plans
from core.services.classification import Organizations

EXIT_CODE_CATCHALL = 1

app = typer.Typer(
    name=APP_NAME,
    no_args_is_help=True,
    help="Monitor Red Hat Satellite sync plans for stuck schedules.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()

ServerOpt = Annotated[Optional[str], typer.Option("--server", help="Red Hat Satellite server FQDN or IP address.")]
PortOpt = Annotated[Optional[int], typer.Option("--port", help="Port used by the Satellite API.")]
UsernameOpt = Annotated[Optional[str], typer.Option("--username", help="Valid user for the Satellite server.")]
PasswordOpt = Annotated[Optional[str], typer.Option("--password", help="Password for the specified user.")]
NetTypeOpt = Annotated[
    Optional[NetworkType],
    typer.Option("--net-type", help="Limit connections to tcp4, tcp6 or auto (either)."),
]
CACertOpt = Annotated[
    Optional[Path],
    typer.Option("--ca-cert", help="CA certificate used to validate the server certificate chain."),
]
TrustCertOpt = Annotated[
    Optional[bool],
    typer.Option(
        "--trust-cert/--no-trust-cert",
        help="Trust the certificate as-is without validation (susceptible to MITM attacks).",
    ),
]
RenegotiationOpt = Annotated[
    Optional[bool],
    typer.Option(
        "--permit-tls-renegotiation/--no-permit-tls-renegotiation",
        help="Accept renegotiation requests from the server (not supported by TLS 1.3).",
    ),
]
ReadLimitOpt = Annotated[
    Optional[int],
    typer.Option("--read-limit", help="Limit in bytes when reading API responses."),
]
TimeoutOpt = Annotated[
    Optional[float],
    typer.Option("--timeout", "-t", help="Seconds before execution is abandoned."),
]
LogLevelOpt = Annotated[Optional[str], typer.Option("--log-level", "--ll", help="Log level.")]
OmitOKOpt = Annotated[
    Optional[bool],
    typer.Option("--omit-ok/--no-omit-ok", help="Only list sync plans in a non-OK state."),
]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{APP_NAME} {__version__} ({APP_URL})")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
    ] = False,
) -> None:
    """check-rsat: Red Hat Satellite sync plan monitoring."""


def load_settings(**overrides: Any) -> AppSettings:
    """Environment/.env settings with CLI values (when given) taking precedence."""

    values = {key: value for key, value in overrides.items() if value is not None}
    return AppSettings(**values)


def bound_logger(settings: AppSettings) -> BoundLogger:
    logger = configure_logging(settings.log_level, json_output=settings.log_json)
    return logger.bind(
        server=settings.server,
        user=settings.username,
        port=settings.port,
        net_type=settings.network_type.value,
        cert_validation_disabled=settings.trust_cert,
        ca_cert_specified=settings.ca_cert is not None,
        permit_tls_renegotiation=settings.permit_tls_renegotiation,
    )


async def collect(settings: AppSettings, ca_cert: bytes | None, ctx: FetchContext) -> Organizations:
    async with build_api_client(settings, ca_cert=ca_cert, timeout=ctx.timeout) as client:
        return await fetch_orgs_with_sync_plans(ctx, client, grace_minutes=settings.sync_grace_minutes)


def configuration_block(settings: AppSettings, timeout: float) -> str:
    lines = [
        "",
        "------",
        "",
        "Configuration settings: ",
        "",
        f"* Server: {settings.server}",
        f"* Port: {settings.port}",
        f"* Username: {settings.username}",
        f"* NetworkType: {settings.network_type.value}",
        f"* Timeout: {timeout:g}s",
        f"* UserAgent: {settings.user_agent}",
    ]
    return "\n".join(lines) + "\n"


def _plugin_exit(result: PluginResult) -> typer.Exit:
    typer.echo(result.render(), nl=False)
    return typer.Exit(code=result.exit_code)


@app.command()
def check(
    server: ServerOpt = None,
    port: PortOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    net_type: NetTypeOpt = None,
    ca_cert: CACertOpt = None,
    trust_cert: TrustCertOpt = None,
    permit_tls_renegotiation: RenegotiationOpt = None,
    read_limit: ReadLimitOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
    omit_ok: OmitOKOpt = None,
    verbose: Annotated[Optional[bool], typer.Option("--verbose/--no-verbose", help="Include configuration details.")] = None,
    branding: Annotated[Optional[bool], typer.Option("--branding/--no-branding", help="Append branding details.")] = None,
) -> None:
    """Nagios plugin: evaluate all sync plans and report a service state."""

    result = PluginResult(started=time.monotonic())

    try:
        settings = load_settings(
            server=server,
            port=port,
            username=username,
            password=password,
            network_type=net_type,
            ca_cert=ca_cert,
            trust_cert=trust_cert,
            permit_tls_renegotiation=permit_tls_renegotiation,
            read_limit=read_limit,
            timeout_seconds=timeout,
            log_level=log_level,
            omit_ok=omit_ok,
            verbose=verbose,
            emit_branding=branding,
        )
    except ValidationError as exc:
        result.add_error(exc)
        result.set_output(ServiceState.UNKNOWN, "Error initializing application")
        raise _plugin_exit(result)

    if not settings.server:
        result.add_error(ValueError("server value not provided (--server or CHECK_RSAT_SERVER)"))
        result.set_output(ServiceState.UNKNOWN, "Error initializing application")
        raise _plugin_exit(result)

    if settings.emit_branding:
        result.branding = f"Notification generated by {APP_NAME} {__version__} ({APP_URL})"

    logger = bound_logger(settings)
    run_timeout = settings.effective_timeout(DEFAULT_PLUGIN_TIMEOUT_SECONDS)
    logger.debug("Beginning plugin execution", fields={"timeout": f"{run_timeout:g}s"})

    long_config = configuration_block(settings, run_timeout) if settings.verbose else ""

    try:
        ca_bytes = load_ca_cert(settings)
    except (OSError, ValueError) as exc:
        result.add_error(exc)
        result.set_output(
            ServiceState.UNKNOWN,
            "Error loading CA certificate for Red Hat Satellite instance",
            long_config,
        )
        raise _plugin_exit(result)

    ctx = FetchContext.with_timeout(run_timeout, logger)
    try:
        orgs = asyncio.run(collect(settings, ca_bytes, ctx))
    except RsatError as exc:
        logger.error("Error retrieving Red Hat Satellite sync plans", fields={"error": str(exc)})
        result.add_error(exc)
        result.set_output(
            ServiceState.CRITICAL,
            "Error retrieving Red Hat Satellite sync plans",
            long_config,
        )
        raise _plugin_exit(result)

    logger.debug(
        "Retrieved sync plans",
        fields={"orgs": orgs.num_orgs(), "sync_plans": orgs.num_plans()},
    )

    result.perfdata = perfdata_for(orgs)
    report = verbose_report(orgs, omit_ok=settings.omit_ok)

    if not orgs.is_ok_state():
        logger.debug("Problem sync plans detected")
        result.set_output(
            orgs.service_state(),
            f"{orgs.num_problem_plans()} problem sync plans detected for {settings.server} "
            f"(evaluated {orgs.num_orgs()} orgs, {orgs.num_plans()} sync plans)",
            report + long_config,
        )
    else:
        logger.debug("No problems detected")
        result.set_output(
            ServiceState.OK,
            f"No sync plans with non-OK status detected for {settings.server} "
            f"(evaluated {orgs.num_orgs()} orgs, {orgs.num_plans()} sync plans)",
            report + long_config,
        )

    raise _plugin_exit(result)


def render_report(orgs: Organizations, output_format: OutputFormat, *, omit_ok: bool) -> None:
    if output_format is OutputFormat.PRETTY_TABLE:
        _console.print(build_sync_plans_table(orgs, omit_ok=omit_ok))
    elif output_format is OutputFormat.SIMPLE_TABLE:
        typer.echo(simple_table_report(orgs, omit_ok=omit_ok))
    elif output_format is OutputFormat.VERBOSE:
        typer.echo(verbose_report(orgs, omit_ok=omit_ok))
    elif output_format is OutputFormat.JSON:
        typer.echo(render_organizations_json(orgs), nl=False)
    else:
        typer.echo(overview_report(orgs))


@app.command(name="list")
def list_sync_plans(
    server: ServerOpt = None,
    port: PortOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    net_type: NetTypeOpt = None,
    ca_cert: CACertOpt = None,
    trust_cert: TrustCertOpt = None,
    permit_tls_renegotiation: RenegotiationOpt = None,
    read_limit: ReadLimitOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
    omit_ok: OmitOKOpt = None,
    output_format: Annotated[
        Optional[OutputFormat],
        typer.Option("--output-format", help="Report format."),
    ] = None,
    export_json: Annotated[
        Optional[Path],
        typer.Option("--export-json", help="Also write the evaluated sync plans to this JSON file."),
    ] = None,
) -> None:
    """Inspector: list sync plans for all organizations."""

    try:
        settings = load_settings(
            server=server,
            port=port,
            username=username,
            password=password,
            network_type=net_type,
            ca_cert=ca_cert,
            trust_cert=trust_cert,
            permit_tls_renegotiation=permit_tls_renegotiation,
            read_limit=read_limit,
            timeout_seconds=timeout,
            log_level=log_level,
            omit_ok=omit_ok,
            output_format=output_format,
        )
    except ValidationError as exc:
        _console.print(f"[red]Error initializing application:[/red] {exc}")
        raise typer.Exit(code=EXIT_CODE_CATCHALL)

    if not settings.server:
        _console.print("[red]Error initializing application:[/red] server value not provided")
        raise typer.Exit(code=EXIT_CODE_CATCHALL)

    logger = bound_logger(settings)

    try:
        ca_bytes = load_ca_cert(settings)
    except (OSError, ValueError) as exc:
        logger.error("Error preparing auth info for Red Hat Satellite instance", fields={"error": str(exc)})
        raise typer.Exit(code=EXIT_CODE_CATCHALL)

    run_timeout = settings.effective_timeout(DEFAULT_INSPECTOR_TIMEOUT_SECONDS)
    logger.info(
        "Retrieving Red Hat Satellite sync plans (this may take a while)",
        fields={"timeout": f"{run_timeout:g}s"},
    )

    ctx = FetchContext.with_timeout(run_timeout, logger)
    try:
        orgs = asyncio.run(collect(settings, ca_bytes, ctx))
    except RsatError as exc:
        logger.error("Error retrieving Red Hat Satellite sync plans", fields={"error": str(exc)})
        raise typer.Exit(code=EXIT_CODE_CATCHALL)

    logger.info(
        "Retrieved sync plans",
        fields={"organizations": orgs.num_orgs(), "sync_plans": orgs.num_plans()},
    )

    if not orgs.is_ok_state():
        logger.warning(
            "Problem sync plans detected",
            fields={
                "total": orgs.num_plans(),
                "enabled": orgs.num_plans_enabled(),
                "disabled": orgs.num_plans_disabled(),
                "problematic": orgs.num_problem_plans(),
            },
        )
    else:
        logger.info("No problems detected")

    render_report(orgs, settings.output_format, omit_ok=settings.omit_ok)

    if export_json is not None:
        try:
            written = export_organizations_json(orgs=orgs, output_path=export_json)
        except OSError as exc:
            logger.error("Error writing JSON export", fields={"path": str(export_json), "error": str(exc)})
            raise typer.Exit(code=EXIT_CODE_CATCHALL)
        logger.info("JSON export written", fields={"path": str(written)})


def run() -> None:
    app()
