"""
Unified error module.
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
