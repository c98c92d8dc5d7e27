"""
Extension/mode lifecycle.
"""

from .extension import DataSourceDefinition, Extension, ServiceDeclaration, normalize_commands
from .extension_host import ExtensionActivated, ExtensionHost, HostState, ModeChanged
from .mode import Mode, ModeState

__all__ = [
    "DataSourceDefinition",
    "Extension",
    "ExtensionActivated",
    "ExtensionHost",
    "HostState",
    "Mode",
    "ModeChanged",
    "ModeState",
    "ServiceDeclaration",
    "normalize_commands",
]
