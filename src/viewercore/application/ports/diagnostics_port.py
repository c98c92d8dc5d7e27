from __future__ import annotations

from typing import Iterable, Optional, Protocol, runtime_checkable

from viewercore.application.diagnostics import DiagnosticEvent


@runtime_checkable
class DiagnosticsPort(Protocol):
    """
    Minimal diagnostics port.

    Registries report handler failures and lifecycle events here instead of
    raising them. Implementations may keep events in memory, log them as JSON
    lines, or fan them out to several backends.
    """

    def append(self, event: DiagnosticEvent) -> None:
        """Append an event."""

    def events(self, type: Optional[str] = None) -> Iterable[DiagnosticEvent]:
        """
        Iterate recorded events, optionally filtered by type.

        Write-only backends return an empty iterator.
        """

    def close(self) -> None:
        """Close underlying resources (optional)."""
