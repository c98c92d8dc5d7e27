from .composite_diagnostics import CompositeDiagnostics
from .logging_diagnostics import LoggingDiagnostics
from .memory_diagnostics import InMemoryDiagnostics

__all__ = ["CompositeDiagnostics", "InMemoryDiagnostics", "LoggingDiagnostics"]
