from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from viewercore.application.diagnostics import DiagnosticEvent
from viewercore.application.ports import DiagnosticsPort

logger = logging.getLogger(__name__)


class CompositeDiagnostics(DiagnosticsPort):
    """
    Tee diagnostics to multiple backends.

    The default session pairs an in-memory sink with the logging sink.
    """

    def __init__(self, backends: List[Optional[DiagnosticsPort]]):
        self._backends = [b for b in backends if b is not None]

    @property
    def backends(self) -> List[DiagnosticsPort]:
        return list(self._backends)

    def append(self, event: DiagnosticEvent) -> None:
        for backend in self._backends:
            try:
                backend.append(event)
            except Exception as e:
                logger.debug(f"CompositeDiagnostics backend append failed: {e}")

    def events(self, type: Optional[str] = None) -> Iterable[DiagnosticEvent]:
        # First backend that can replay anything wins.
        for backend in self._backends:
            try:
                found = list(backend.events(type))
            except Exception as e:
                logger.debug(f"CompositeDiagnostics backend events failed: {e}")
                continue
            if found:
                return found
        return []

    def close(self) -> None:
        for backend in self._backends:
            try:
                backend.close()
            except Exception as e:
                logger.debug(f"CompositeDiagnostics backend close failed: {e}")
