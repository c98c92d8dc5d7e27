"""
Core building blocks shared by the registries and the extension host.
"""

from .errors import (
    ErrorSeverity,
    ViewerCoreError,
    InvalidCommandName,
    CommandNotFound,
    CommandExecutionError,
    CustomizationNotFound,
    ServiceNotRegistered,
    ServiceDependencyUnresolved,
    ServiceInitializationFailed,
    ExtensionDependencyUnresolved,
    DuplicateRegistration,
    ModeNotRegistered,
    HostNotReady,
)

__all__ = [
    "ErrorSeverity",
    "ViewerCoreError",
    "InvalidCommandName",
    "CommandNotFound",
    "CommandExecutionError",
    "CustomizationNotFound",
    "ServiceNotRegistered",
    "ServiceDependencyUnresolved",
    "ServiceInitializationFailed",
    "ExtensionDependencyUnresolved",
    "DuplicateRegistration",
    "ModeNotRegistered",
    "HostNotReady",
]
