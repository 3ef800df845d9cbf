"""Contexto de fetch por invocación.

Un `FetchContext` viaja por cada llamada de repositorio y del agregador.
Lleva el logger estructurado (con sus campos) y el deadline de toda la
ejecución, que se verifica antes de cada request y entre páginas.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any

from core.errors import ErrorKind, RsatError
from core.logging_config import BoundLogger, get_logger


@dataclass(frozen=True)
class FetchContext:
    logger: BoundLogger = field(default_factory=get_logger)
    deadline: float | None = None
    timeout: float | None = None

    @classmethod
    def with_timeout(cls, seconds: float, logger: BoundLogger | None = None) -> "FetchContext":
        return cls(
            logger=logger or get_logger(),
            deadline=time.monotonic() + seconds,
            timeout=seconds,
        )

    def bind(self, **fields: Any) -> "FetchContext":
        """Copia del contexto cuyo logger lleva campos extra."""

        return replace(self, logger=self.logger.bind(**fields))

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, source: str = "") -> None:
        """Lanza un error TIMEOUT si el deadline ya pasó."""

        if self.expired():
            self.logger.debug("context has expired", fields={"source": source} if source else None)
            raise RsatError(
                ErrorKind.TIMEOUT,
                f"timeout of {self.timeout}s reached",
                source=source,
            )
