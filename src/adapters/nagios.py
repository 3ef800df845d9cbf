"""Output de plugin Nagios.

Genera la línea de servicio, el long output opcional, la performance data y
los errores registrados en el formato que esperan los sistemas de monitoreo
compatibles con Nagios:

    STATE: resumen | 'label'=value;;;; ...
    long output
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field

from core.domain.state import ServiceState
from core.errors import ErrorKind, RsatError
from core.services.classification import Organizations

EOL = "\n"

_LABEL_RE = re.compile(r"^[^'=]+$")

_ERROR_ADVICE: dict[ErrorKind, str] = {
    ErrorKind.TIMEOUT: (
        "consider increasing the timeout value (--timeout) or reviewing the "
        "performance of the Satellite server"
    ),
    ErrorKind.SUBMIT_REQUEST: (
        "verify the server name, port and network type, and that the "
        "Satellite API is reachable from this host"
    ),
    ErrorKind.RESPONSE_OUTSIDE_RANGE: (
        "verify the supplied credentials and the permissions of the API user"
    ),
    ErrorKind.MULTIPLE_OBJECTS: "the API returned an unexpected payload; verify the server address",
    ErrorKind.DECODE: (
        "the API response could not be decoded; consider raising --read-limit "
        "if responses are larger than expected"
    ),
}


@dataclass
class PerformanceData:
    label: str
    value: str
    unit: str = ""
    warn: str = ""
    crit: str = ""
    min: str = ""
    max: str = ""

    def __post_init__(self) -> None:
        if not _LABEL_RE.match(self.label):
            raise ValueError(f"invalid performance data label {self.label!r}")

    def render(self) -> str:
        return (
            f"'{self.label}'={self.value}{self.unit};"
            f"{self.warn};{self.crit};{self.min};{self.max}"
        )


def perfdata_for(orgs: Organizations) -> list[PerformanceData]:
    if orgs.num_orgs() == 0:
        return []
    return [
        PerformanceData("organizations", str(orgs.num_orgs())),
        PerformanceData("sync_plans_total", str(orgs.num_plans())),
        PerformanceData("sync_plans_enabled", str(orgs.num_plans_enabled())),
        PerformanceData("sync_plans_disabled", str(orgs.num_plans_disabled())),
        PerformanceData("sync_plans_stuck", str(orgs.num_plans_stuck())),
        PerformanceData("sync_plans_problems", str(orgs.num_problem_plans())),
    ]


def annotate_error(error: BaseException) -> str:
    """Agrega una sugerencia de diagnóstico para fallos conocidos."""

    if isinstance(error, RsatError):
        for kind, advice in _ERROR_ADVICE.items():
            if error.wraps(kind):
                return f"{error} (HINT: {advice})"
    return str(error)


@dataclass
class PluginResult:
    """Acumula el output del plugin y lo genera una sola vez al salir."""

    state: ServiceState = ServiceState.UNKNOWN
    service_output: str = ""
    long_output: str = ""
    perfdata: list[PerformanceData] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)
    branding: str = ""
    started: float | None = None

    @property
    def exit_code(self) -> int:
        return self.state.exit_code

    def set_output(self, state: ServiceState, message: str, long_output: str = "") -> None:
        self.state = state
        self.service_output = f"{state.label.upper()}: {message}"
        self.long_output = long_output

    def add_error(self, error: BaseException) -> None:
        self.errors.append(error)

    def all_perfdata(self) -> list[PerformanceData]:
        """Métricas reunidas más el runtime del plugin si `started` está definido."""

        perfdata = list(self.perfdata)
        if self.started is not None:
            elapsed_ms = int((time.monotonic() - self.started) * 1000)
            perfdata.append(PerformanceData("time", str(elapsed_ms), unit="ms"))
        return perfdata

    def render(self) -> str:
        out: list[str] = [self.service_output or f"{self.state.label}: (no output)"]

        if self.errors:
            out.append(f"{EOL}{EOL}**ERRORS**{EOL}")
            out.extend(f"{EOL}* {annotate_error(err)}" for err in self.errors)
            out.append(EOL)

        if self.long_output:
            out.append(f"{EOL}{EOL}**DETAILED INFO**{EOL}")
            out.append(f"{EOL}{self.long_output.rstrip()}{EOL}")

        if self.branding:
            out.append(f"{EOL}{self.branding}{EOL}")

        perfdata = self.all_perfdata()
        if perfdata:
            out.append(f"{EOL} | {' '.join(pd.render() for pd in perfdata)}")

        return "".join(out).rstrip(EOL) + EOL
