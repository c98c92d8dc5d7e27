"""
Built-in extension: viewport grid, session flags and user authentication
services, layout/tool commands, menu customizations and the DICOMweb
data-source type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping

from viewercore.application.host import DataSourceDefinition, Extension, ServiceDeclaration
from viewercore.application.registries import CommandDefinition

from .commands import get_commands
from .data_sources import DicomWebDataSource
from .services import (
    AuthenticatedUser,
    GridLayout,
    SessionFlagsService,
    UserAuthenticationService,
    ViewportGridService,
)
from .simple_login import apply_simple_login

if TYPE_CHECKING:
    from viewercore.session import ViewerSession

EXTENSION_ID = "default"

DEFAULT_CUSTOMIZATIONS = {
    "ohif.aboutModal": {"menuTitle": "About", "title": "About"},
    "ohif.userPreferencesModal": {"menuTitle": "Preferences", "title": "User Preferences"},
}


class DefaultExtension(Extension):
    id = EXTENSION_ID
    version = "1.0.0"

    def on_services_ready(self, session: "ViewerSession") -> None:
        apply_simple_login(session, self.configuration.get("simpleLogin"))

    def get_commands(self, session: "ViewerSession") -> List[CommandDefinition]:
        return get_commands(session)

    def get_services(self, session: "ViewerSession") -> Iterable[ServiceDeclaration]:
        return [
            ServiceDeclaration("sessionFlagsService", SessionFlagsService),
            ServiceDeclaration("viewportGridService", ViewportGridService),
            ServiceDeclaration("userAuthenticationService", UserAuthenticationService),
        ]

    def get_customizations(self, session: "ViewerSession") -> Mapping[str, Any]:
        customizations = {key: dict(value) for key, value in DEFAULT_CUSTOMIZATIONS.items()}
        customizations.update(self.configuration.get("customizations", {}))
        return customizations

    def get_data_sources(self, session: "ViewerSession") -> Iterable[DataSourceDefinition]:
        return [
            DataSourceDefinition(
                name="dicomweb",
                create=DicomWebDataSource.create,
                configuration=dict(self.configuration.get("dicomweb", {})),
                description="DICOMweb endpoint configuration",
            )
        ]


__all__ = [
    "EXTENSION_ID",
    "AuthenticatedUser",
    "DefaultExtension",
    "DicomWebDataSource",
    "GridLayout",
    "SessionFlagsService",
    "UserAuthenticationService",
    "ViewportGridService",
]
