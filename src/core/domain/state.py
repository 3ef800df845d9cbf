"""Estados de servicio compatibles con Nagios.

Los cuatro estados se corresponden con los exit codes estándar de los
plugins de monitoreo. Viven en el dominio para que clasificación, CLI y
reportes compartan una única fuente de verdad.
"""

from __future__ import annotations

from enum import Enum


class ServiceState(str, Enum):
    """Veredicto agregado de salud para una colección de sync plans."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        return self.value

    @property
    def exit_code(self) -> int:
        """Exit code del plugin asociado al estado."""

        return _EXIT_CODES[self]

    @classmethod
    def from_label(cls, label: str) -> "ServiceState":
        """Resuelve un label (sin distinguir mayúsculas); si no existe, UNKNOWN."""

        try:
            return cls(label.strip().upper())
        except ValueError:
            return cls.UNKNOWN


_EXIT_CODES: dict[ServiceState, int] = {
    ServiceState.OK: 0,
    ServiceState.WARNING: 1,
    ServiceState.CRITICAL: 2,
    ServiceState.UNKNOWN: 3,
}
