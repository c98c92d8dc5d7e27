"""
In-process registries fed by the extension host.
"""

from .command_registry import (
    DEFAULT_CONTEXT,
    CommandDefinition,
    CommandDescriptor,
    CommandRecord,
    CommandRegistry,
)
from .customization_registry import (
    CustomizationOverride,
    CustomizationResolver,
    CustomizationScope,
    CustomizationSource,
    MergePolicy,
)
from .service_registry import ServiceRecord, ServiceRegistry, ServicesView, ServiceState

__all__ = [
    "DEFAULT_CONTEXT",
    "CommandDefinition",
    "CommandDescriptor",
    "CommandRecord",
    "CommandRegistry",
    "CustomizationOverride",
    "CustomizationResolver",
    "CustomizationScope",
    "CustomizationSource",
    "MergePolicy",
    "ServiceRecord",
    "ServiceRegistry",
    "ServicesView",
    "ServiceState",
]
