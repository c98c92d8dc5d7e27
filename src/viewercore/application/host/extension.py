"""
Extension contribution contract.

An extension exposes factory methods producing commands, services,
customization defaults and data-source definitions. Each factory receives
the session so contributions can reach the other registries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from viewercore.application.registries.command_registry import (
    DEFAULT_CONTEXT,
    CommandDefinition,
    CommandHandler,
)

if TYPE_CHECKING:
    from viewercore.session import ViewerSession


@dataclass
class ServiceDeclaration:
    name: str
    provider: Any
    depends_on: List[str] = field(default_factory=list)


@dataclass
class DataSourceDefinition:
    """
    Data-source adapter type. `create(configuration)` builds the adapter.

    The host instantiates every definition under its own name with
    `configuration`; configured data sources add further named instances.
    """

    name: str
    create: Callable[[Dict[str, Any]], Any]
    configuration: Dict[str, Any] = field(default_factory=dict)
    description: str = ""


CommandContribution = Union[
    Mapping[str, Union[CommandHandler, CommandDefinition]],
    Iterable[CommandDefinition],
]


class Extension:
    """Base class for extensions; subclasses override the factories they need."""

    id: str = ""
    version: str = "0.0.0"
    dependencies: Sequence[str] = ()
    command_context: str = DEFAULT_CONTEXT

    def __init__(self, configuration: Optional[Dict[str, Any]] = None) -> None:
        self.configuration: Dict[str, Any] = dict(configuration or {})

    # Lifecycle -----------------------------------------------------------
    def pre_registration(self, session: "ViewerSession") -> None:
        """Called before any contribution is collected."""

    def on_services_ready(self, session: "ViewerSession") -> None:
        """Called once every activated extension's services are ready."""

    # Contributions -------------------------------------------------------
    def get_commands(self, session: "ViewerSession") -> CommandContribution:
        return {}

    def get_services(self, session: "ViewerSession") -> Iterable[ServiceDeclaration]:
        return []

    def get_customizations(self, session: "ViewerSession") -> Mapping[str, Any]:
        return {}

    def get_data_sources(self, session: "ViewerSession") -> Iterable[DataSourceDefinition]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, version={self.version!r})"


def normalize_commands(contribution: CommandContribution) -> List[CommandDefinition]:
    """Accept `{name: handler}`, `{name: CommandDefinition}` or a list of definitions."""
    if isinstance(contribution, Mapping):
        definitions: List[CommandDefinition] = []
        for name, value in contribution.items():
            if isinstance(value, CommandDefinition):
                definitions.append(value if value.name == name else _renamed(value, name))
            else:
                definitions.append(CommandDefinition(name=name, handler=value))
        return definitions
    return list(contribution)


def _renamed(definition: CommandDefinition, name: str) -> CommandDefinition:
    return CommandDefinition(
        name=name,
        handler=definition.handler,
        context=definition.context,
        options=dict(definition.options),
        params=definition.params,
        description=definition.description,
    )
