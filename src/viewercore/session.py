"""
Session wiring: builds the registries once and hands the same session object
to every extension, mode hook and consumer. There is no module-level
instance; callers keep the session they created.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from viewercore.application.host import Extension, ExtensionHost, Mode
from viewercore.application.ports import DiagnosticsPort
from viewercore.application.registries import (
    CommandRegistry,
    CustomizationResolver,
    ServiceRegistry,
    ServicesView,
)
from viewercore.config import ViewerConfig, import_object
from viewercore.infrastructure.diagnostics import (
    CompositeDiagnostics,
    InMemoryDiagnostics,
    LoggingDiagnostics,
)

logger = logging.getLogger(__name__)


@dataclass
class ViewerSession:
    commands: CommandRegistry
    customizations: CustomizationResolver
    service_registry: ServiceRegistry
    diagnostics: DiagnosticsPort
    config: ViewerConfig = field(default_factory=ViewerConfig)
    host: ExtensionHost = field(init=False)

    def __post_init__(self) -> None:
        self.host = ExtensionHost(self)

    @classmethod
    def empty(cls, config: Optional[ViewerConfig] = None, *, diagnostics: Optional[DiagnosticsPort] = None) -> "ViewerSession":
        diagnostics = diagnostics or CompositeDiagnostics([InMemoryDiagnostics(max_events=1000), LoggingDiagnostics()])
        return cls(
            commands=CommandRegistry(diagnostics),
            customizations=CustomizationResolver(),
            service_registry=ServiceRegistry(diagnostics),
            diagnostics=diagnostics,
            config=config or ViewerConfig(),
        )

    @property
    def services(self) -> ServicesView:
        return self.service_registry.services

    def close(self) -> None:
        self.host.shutdown()
        self.diagnostics.close()


def materialize_extension(obj: Any, configuration: Optional[Dict[str, Any]] = None) -> Extension:
    if isinstance(obj, Extension):
        if configuration:
            obj.configuration.update(configuration)
        return obj
    if inspect.isclass(obj) and issubclass(obj, Extension):
        return obj(configuration)
    if callable(obj):
        return materialize_extension(obj(), configuration)
    raise TypeError(f"{obj!r} is not an Extension, Extension subclass or factory")


def materialize_mode(obj: Any) -> Mode:
    if isinstance(obj, Mode):
        return obj
    if callable(obj):
        return materialize_mode(obj())
    raise TypeError(f"{obj!r} is not a Mode or a factory returning one")


def create_session(
    config: Optional[ViewerConfig] = None,
    *,
    extensions: Iterable[Extension] = (),
    modes: Iterable[Mode] = (),
    diagnostics: Optional[DiagnosticsPort] = None,
    activate: bool = True,
) -> ViewerSession:
    """
    Build a session from config plus explicitly passed extensions and modes.

    With `activate`, extensions are activated, configured data sources created
    and the default mode (if any) entered.
    """
    config = config or ViewerConfig()
    session = ViewerSession.empty(config, diagnostics=diagnostics)
    host = session.host

    for ref in config.extensions:
        if not ref.enabled:
            logger.info(f"Skipping disabled extension {ref.path}")
            continue
        host.register_extension(materialize_extension(import_object(ref.path), ref.configuration))
    for ext in extensions:
        host.register_extension(ext)

    for mref in config.modes:
        if mref.enabled:
            host.register_mode(materialize_mode(import_object(mref.path)))
    for mode in modes:
        host.register_mode(mode)

    if not activate:
        return session

    host.activate_all()
    for ds in config.data_sources:
        host.add_data_source(ds.name, ds.source_name, ds.configuration)
    if config.default_mode:
        host.activate_mode(config.default_mode)
    return session
