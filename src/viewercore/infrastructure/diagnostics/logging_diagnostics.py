from __future__ import annotations

import logging
from typing import Iterable, Optional

from viewercore.application.diagnostics import DiagnosticEvent
from viewercore.application.ports import DiagnosticsPort
from viewercore.core.errors import ErrorSeverity

_LEVELS = {
    ErrorSeverity.WARNING: logging.INFO,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class LoggingDiagnostics(DiagnosticsPort):
    """
    Emit diagnostics as JSON lines to the Python logger.

    Gives observability without choosing a persistence backend.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("viewercore.diagnostics")

    def append(self, event: DiagnosticEvent) -> None:
        level = _LEVELS.get(event.severity, logging.INFO)
        if not event.failed and level < logging.ERROR:
            level = logging.DEBUG
        self._logger.log(level, event.to_json())

    def events(self, type: Optional[str] = None) -> Iterable[DiagnosticEvent]:
        # Logging backend cannot replay.
        return iter(())

    def close(self) -> None:
        return None
