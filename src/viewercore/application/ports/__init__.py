from .diagnostics_port import DiagnosticsPort

__all__ = ["DiagnosticsPort"]
