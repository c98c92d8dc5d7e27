"""
viewercore: command registry, layered customizations and service locator
bound together by an extension/mode lifecycle host.
"""

from viewercore.application.host import (
    DataSourceDefinition,
    Extension,
    ExtensionHost,
    HostState,
    Mode,
    ModeState,
    ServiceDeclaration,
)
from viewercore.application.registries import (
    CommandDefinition,
    CommandRegistry,
    CustomizationOverride,
    CustomizationResolver,
    CustomizationScope,
    MergePolicy,
    ServiceRegistry,
)
from viewercore.core.errors import (
    CommandExecutionError,
    CommandNotFound,
    CustomizationNotFound,
    ExtensionDependencyUnresolved,
    InvalidCommandName,
    ServiceDependencyUnresolved,
    ServiceInitializationFailed,
    ServiceNotRegistered,
    ViewerCoreError,
)
from viewercore.core.pubsub import PubSubService, Subscription
from viewercore.session import ViewerSession, create_session

__version__ = "0.1.0"

__all__ = [
    "CommandDefinition",
    "CommandExecutionError",
    "CommandNotFound",
    "CommandRegistry",
    "CustomizationNotFound",
    "CustomizationOverride",
    "CustomizationResolver",
    "CustomizationScope",
    "DataSourceDefinition",
    "Extension",
    "ExtensionDependencyUnresolved",
    "ExtensionHost",
    "HostState",
    "InvalidCommandName",
    "MergePolicy",
    "Mode",
    "ModeState",
    "PubSubService",
    "ServiceDeclaration",
    "ServiceDependencyUnresolved",
    "ServiceInitializationFailed",
    "ServiceNotRegistered",
    "ServiceRegistry",
    "Subscription",
    "ViewerCoreError",
    "ViewerSession",
    "create_session",
]
