"""
Unified error taxonomy for the extension host and its registries.

Lookup failures raise synchronously; handler failures are wrapped and reported
through the diagnostics channel instead of being raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional


class ErrorSeverity(Enum):
    WARNING = "warning"      # caller can degrade gracefully
    ERROR = "error"          # single operation failed
    CRITICAL = "critical"    # host cannot reach ready


class ViewerCoreError(Exception):
    code: str = "UNKNOWN"
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        *,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if severity is not None:
            self.severity = severity
        self.context: Dict[str, Any] = context or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidCommandName(ViewerCoreError, ValueError):
    code = "INVALID_COMMAND_NAME"

    def __init__(self, name: Any = None, *, reason: str = "command name must be a non-empty string") -> None:
        super().__init__(f"{reason} (got {name!r})", context={"name": name})
        self.name = name


class CommandNotFound(ViewerCoreError, KeyError):
    code = "COMMAND_NOT_FOUND"

    def __init__(self, command_name: str, contexts: Iterable[str]) -> None:
        self.command_name = command_name
        self.contexts = list(contexts)
        super().__init__(
            f"Command '{command_name}' not found in context(s): {', '.join(self.contexts)}",
            context={"command_name": command_name, "contexts": self.contexts},
        )


class CommandExecutionError(ViewerCoreError):
    code = "COMMAND_EXECUTION_ERROR"

    def __init__(self, command_name: str, cause: BaseException, *, context_name: str = "") -> None:
        self.command_name = command_name
        self.cause = cause
        self.context_name = context_name
        super().__init__(
            f"Command '{command_name}' failed: {cause}",
            context={"command_name": command_name, "context": context_name, "cause": repr(cause)},
        )
        self.__cause__ = cause


class CustomizationNotFound(ViewerCoreError, KeyError):
    code = "CUSTOMIZATION_NOT_FOUND"
    severity = ErrorSeverity.WARNING

    def __init__(self, customization_id: str) -> None:
        self.customization_id = customization_id
        super().__init__(
            f"No customization registered for '{customization_id}'",
            context={"customization_id": customization_id},
        )


class ServiceNotRegistered(ViewerCoreError, KeyError):
    code = "SERVICE_NOT_REGISTERED"

    def __init__(self, name: str, *, detail: str = "is not registered") -> None:
        self.name = name
        super().__init__(f"Service '{name}' {detail}", context={"service": name})


class ServiceDependencyUnresolved(ViewerCoreError):
    code = "SERVICE_DEPENDENCY_UNRESOLVED"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, service: str, missing: Iterable[str], *, cyclic: bool = False) -> None:
        self.service = service
        self.missing = sorted(missing)
        self.cyclic = cyclic
        kind = "cyclic dependency on" if cyclic else "unresolved dependency on"
        super().__init__(
            f"Service '{service}' has {kind}: {', '.join(self.missing)}",
            context={"service": service, "missing": self.missing, "cyclic": cyclic},
        )


class ServiceInitializationFailed(ViewerCoreError):
    code = "SERVICE_INITIALIZATION_FAILED"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, service: str, cause: BaseException) -> None:
        self.service = service
        self.cause = cause
        super().__init__(
            f"Service '{service}' failed to initialize: {cause}",
            context={"service": service, "cause": repr(cause)},
        )
        self.__cause__ = cause


class ExtensionDependencyUnresolved(ViewerCoreError):
    code = "EXTENSION_DEPENDENCY_UNRESOLVED"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, extension_id: str, missing: Iterable[str], *, cyclic: bool = False) -> None:
        self.extension_id = extension_id
        self.missing = sorted(missing)
        self.cyclic = cyclic
        kind = "cyclic dependency on" if cyclic else "unregistered dependency"
        super().__init__(
            f"Extension '{extension_id}' has {kind}: {', '.join(self.missing)}",
            context={"extension": extension_id, "missing": self.missing, "cyclic": cyclic},
        )


class DuplicateRegistration(ViewerCoreError, ValueError):
    code = "DUPLICATE_REGISTRATION"

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' already registered", context={"kind": kind, "name": name})


class ModeNotRegistered(ViewerCoreError, KeyError):
    code = "MODE_NOT_REGISTERED"

    def __init__(self, mode_id: str) -> None:
        self.mode_id = mode_id
        super().__init__(f"Mode '{mode_id}' is not registered", context={"mode": mode_id})


class HostNotReady(ViewerCoreError, RuntimeError):
    code = "HOST_NOT_READY"

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Extension host is not ready (state={state})", context={"state": state})
