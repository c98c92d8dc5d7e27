from __future__ import annotations

from typing import Iterable, List, Optional

from viewercore.application.diagnostics import DiagnosticEvent
from viewercore.application.ports import DiagnosticsPort


class InMemoryDiagnostics(DiagnosticsPort):
    """Simple in-memory diagnostics sink (useful for tests and the CLI)."""

    def __init__(self, max_events: Optional[int] = None) -> None:
        self._events: List[DiagnosticEvent] = []
        self._max_events = max_events

    def append(self, event: DiagnosticEvent) -> None:
        self._events.append(event)
        if self._max_events is not None and len(self._events) > self._max_events:
            del self._events[: len(self._events) - self._max_events]

    def events(self, type: Optional[str] = None) -> Iterable[DiagnosticEvent]:
        return [e for e in self._events if type is None or e.type == type]

    def clear(self) -> None:
        self._events.clear()

    def close(self) -> None:
        return None
