"""
Extension host: registers extensions, resolves their dependency order, feeds
their contributions into the session registries and drives the mode
lifecycle (Idle -> Initializing -> Active -> Deactivating -> Idle).
"""

from __future__ import annotations

import graphlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from viewercore.application.diagnostics import make_event
from viewercore.application.host.extension import DataSourceDefinition, Extension, normalize_commands
from viewercore.application.host.mode import Mode, ModeState
from viewercore.core.errors import (
    DuplicateRegistration,
    ErrorSeverity,
    ExtensionDependencyUnresolved,
    HostNotReady,
    ModeNotRegistered,
    ViewerCoreError,
)
from viewercore.core.pubsub import PubSubService

if TYPE_CHECKING:
    from viewercore.session import ViewerSession

logger = logging.getLogger(__name__)


class HostState(str, Enum):
    REGISTERING = "registering"
    READY = "ready"
    FAILED = "failed"
    SHUT_DOWN = "shut-down"


@dataclass(frozen=True)
class ExtensionActivated:
    extension_id: str
    version: str


@dataclass(frozen=True)
class ModeChanged:
    mode_id: str
    state: ModeState


class ExtensionHost(PubSubService):
    EXTENSION_ACTIVATED = "EXTENSION_ACTIVATED"
    MODE_ACTIVATED = "MODE_ACTIVATED"
    MODE_DEACTIVATED = "MODE_DEACTIVATED"

    def __init__(self, session: "ViewerSession") -> None:
        super().__init__(
            {
                self.EXTENSION_ACTIVATED: ExtensionActivated,
                self.MODE_ACTIVATED: ModeChanged,
                self.MODE_DEACTIVATED: ModeChanged,
            },
            diagnostics=session.diagnostics,
        )
        self._session = session
        self._extensions: Dict[str, Extension] = {}
        self._activated: List[str] = []
        self._modes: Dict[str, Mode] = {}
        self._data_source_definitions: Dict[str, tuple[DataSourceDefinition, str]] = {}
        self._data_sources: Dict[str, tuple[Any, Optional[str]]] = {}
        self.state = HostState.REGISTERING
        self.mode_state = ModeState.IDLE
        self._active_mode: Optional[Mode] = None

    # ------------------ extensions ------------------
    @property
    def extensions(self) -> Dict[str, Extension]:
        return dict(self._extensions)

    @property
    def activation_order(self) -> List[str]:
        return list(self._activated)

    def register_extension(self, extension: Extension) -> None:
        """Validate id and dependency declarations, then queue for activation."""
        ext_id = getattr(extension, "id", None)
        if not isinstance(ext_id, str) or not ext_id.strip():
            raise ValueError(f"extension {extension!r} must declare a non-empty id")
        if ext_id in self._extensions:
            raise DuplicateRegistration("Extension", ext_id)

        deps = list(getattr(extension, "dependencies", ()) or ())
        for dep in deps:
            if not isinstance(dep, str) or not dep.strip():
                raise ValueError(f"extension '{ext_id}' declares an invalid dependency {dep!r}")
        if ext_id in deps:
            raise ExtensionDependencyUnresolved(ext_id, [ext_id], cyclic=True)

        self._extensions[ext_id] = extension
        logger.info(f"Registered extension {ext_id}@{extension.version}")

    def resolve_order(self) -> List[str]:
        """Topological order over every registered extension."""
        for ext_id, ext in self._extensions.items():
            missing = [d for d in ext.dependencies if d not in self._extensions]
            if missing:
                raise ExtensionDependencyUnresolved(ext_id, missing)

        graph = {ext_id: list(ext.dependencies) for ext_id, ext in self._extensions.items()}
        try:
            return list(graphlib.TopologicalSorter(graph).static_order())
        except graphlib.CycleError as exc:
            cycle = list(dict.fromkeys(exc.args[1]))
            raise ExtensionDependencyUnresolved(cycle[0], cycle[1:] or cycle, cyclic=True) from exc

    def activate_all(self) -> List[str]:
        """
        Activate every queued extension in dependency order, then finalize the
        service registry and call `on_services_ready` on the newly activated
        extensions. Any failure is fatal: the host moves to FAILED and refuses
        further activation. Returns the ids activated by this call.
        """
        if self.state in (HostState.FAILED, HostState.SHUT_DOWN):
            raise HostNotReady(self.state.value)
        activated: List[str] = []
        try:
            for ext_id in self.resolve_order():
                if ext_id in self._activated:
                    continue
                self._activate_extension(self._extensions[ext_id])
                activated.append(ext_id)
            self._session.service_registry.finalize()
            for ext_id in activated:
                self._extensions[ext_id].on_services_ready(self._session)
        except Exception as exc:
            self.state = HostState.FAILED
            logger.exception(f"Extension host failed to start: {exc}")
            self._session.diagnostics.append(
                make_event(
                    type="host.failed",
                    source="ExtensionHost",
                    message=exc.message if isinstance(exc, ViewerCoreError) else str(exc),
                    error=exc,
                    severity=ErrorSeverity.CRITICAL,
                )
            )
            raise
        self.state = HostState.READY
        return activated

    def _activate_extension(self, ext: Extension) -> None:
        session = self._session
        ext.pre_registration(session)

        for definition in normalize_commands(ext.get_commands(session)):
            session.commands.register_definition(definition, owner=ext.id, default_context=ext.command_context)

        for decl in ext.get_services(session):
            session.service_registry.register(decl.name, decl.provider, depends_on=decl.depends_on, owner=ext.id)

        session.customizations.add_defaults(ext.get_customizations(session), owner=ext.id)

        for definition in ext.get_data_sources(session):
            if definition.name in self._data_source_definitions:
                raise DuplicateRegistration("Data source", definition.name)
            self._data_source_definitions[definition.name] = (definition, ext.id)
            self._data_sources[definition.name] = (definition.create(dict(definition.configuration)), ext.id)

        self._activated.append(ext.id)
        logger.info(f"Activated extension {ext.id}@{ext.version}")
        session.diagnostics.append(
            make_event(type="extension.activated", source="ExtensionHost", payload={"extension": ext.id})
        )
        self.publish(self.EXTENSION_ACTIVATED, ExtensionActivated(ext.id, ext.version))

    def unload_extension(self, ext_id: str) -> None:
        """Remove an activated extension and everything it contributed."""
        if ext_id not in self._extensions:
            return
        dependents = [e for e in self._activated if ext_id in self._extensions[e].dependencies]
        if dependents:
            raise ValueError(f"extension '{ext_id}' is required by: {', '.join(dependents)}")

        session = self._session
        session.service_registry.teardown(session.service_registry.owned_by(ext_id))
        session.commands.unregister_owner(ext_id)
        session.customizations.remove_owner(ext_id)
        for name, (_, owner) in list(self._data_source_definitions.items()):
            if owner == ext_id:
                del self._data_source_definitions[name]
        for name, (_, owner) in list(self._data_sources.items()):
            if owner == ext_id:
                del self._data_sources[name]
        self._activated = [e for e in self._activated if e != ext_id]
        del self._extensions[ext_id]
        logger.info(f"Unloaded extension {ext_id}")

    # ------------------ data sources ------------------
    def add_data_source(self, name: str, source_name: str, configuration: Optional[Dict[str, Any]] = None) -> Any:
        """Instantiate the contributed definition `source_name` under `name`."""
        entry = self._data_source_definitions.get(source_name)
        if entry is None:
            raise KeyError(f"Data source definition not registered: {source_name}")
        definition, _ = entry
        adapter = definition.create({**definition.configuration, **(configuration or {})})
        self._data_sources[name] = (adapter, None)
        return adapter

    def get_data_sources(self, name: str) -> Optional[Any]:
        """Adapter configured under `name`, or None when absent (callers fall back to defaults)."""
        entry = self._data_sources.get(name)
        return entry[0] if entry is not None else None

    def data_source_names(self) -> List[str]:
        return list(self._data_sources)

    # ------------------ modes ------------------
    @property
    def modes(self) -> Dict[str, Mode]:
        return dict(self._modes)

    @property
    def active_mode(self) -> Optional[Mode]:
        return self._active_mode

    def register_mode(self, mode: Mode) -> None:
        if mode.id in self._modes:
            raise DuplicateRegistration("Mode", mode.id)
        self._modes[mode.id] = mode

    def activate_mode(self, mode_id: str) -> Mode:
        if self.state is not HostState.READY:
            raise HostNotReady(self.state.value)
        mode = self._modes.get(mode_id)
        if mode is None:
            raise ModeNotRegistered(mode_id)

        if self.mode_state in (ModeState.INITIALIZING, ModeState.DEACTIVATING):
            logger.warning(f"Ignoring activate_mode({mode_id}) during {self.mode_state.value} transition")
            return self._active_mode or mode
        if self.mode_state is ModeState.ACTIVE and self._active_mode is not None \
                and self._active_mode.id == mode_id:
            return self._active_mode

        missing = [e for e in mode.extensions if e not in self._activated]
        if missing:
            raise ExtensionDependencyUnresolved(mode.owner_key, missing)
        if self.mode_state is ModeState.ACTIVE:
            self.deactivate_mode()

        session = self._session
        self.mode_state = ModeState.INITIALIZING
        self._active_mode = mode
        try:
            session.commands.create_context(mode.context)
            for definition in mode.commands:
                session.commands.register_definition(definition, owner=mode.owner_key, default_context=mode.context)
            session.commands.active_context = mode.context
            session.customizations.on_mode_changed(mode.owner_key)
            session.customizations.add_mode_overrides(mode.customizations, mode_id=mode.owner_key)
            session.service_registry.notify("on_mode_enter", mode.id)
            if mode.on_mode_enter is not None:
                mode.on_mode_enter(session)
        except Exception:
            logger.exception(f"Mode {mode.id} failed to initialize; rolling back")
            self.mode_state = ModeState.DEACTIVATING
            self._run_exit_hooks(mode)
            self._unwind(mode)
            raise

        self.mode_state = ModeState.ACTIVE
        logger.info(f"Mode {mode.id} active")
        session.diagnostics.append(
            make_event(type="mode.activated", source="ExtensionHost", payload={"mode": mode.id})
        )
        self.publish(self.MODE_ACTIVATED, ModeChanged(mode.id, self.mode_state))
        return mode

    def deactivate_mode(self) -> None:
        if self.mode_state is not ModeState.ACTIVE or self._active_mode is None:
            return
        mode = self._active_mode
        session = self._session
        self.mode_state = ModeState.DEACTIVATING
        self._run_exit_hooks(mode)
        self._unwind(mode)
        logger.info(f"Mode {mode.id} deactivated")
        session.diagnostics.append(
            make_event(type="mode.deactivated", source="ExtensionHost", payload={"mode": mode.id})
        )
        self.publish(self.MODE_DEACTIVATED, ModeChanged(mode.id, self.mode_state))

    def _run_exit_hooks(self, mode: Mode) -> None:
        """Best effort: a failing exit hook is reported and cleanup continues."""
        session = self._session
        if mode.on_mode_exit is not None:
            try:
                mode.on_mode_exit(session)
            except Exception as exc:
                logger.exception(f"Mode {mode.id} exit hook failed")
                session.diagnostics.append(
                    make_event(
                        type="mode.hook_failed",
                        source="ExtensionHost",
                        payload={"mode": mode.id, "hook": "on_mode_exit"},
                        error=exc,
                    )
                )
        session.service_registry.notify("on_mode_exit", mode.id)

    def _unwind(self, mode: Mode) -> None:
        session = self._session
        session.commands.unregister_owner(mode.owner_key)
        if session.commands.active_context == mode.context:
            session.commands.active_context = None
        session.customizations.remove_owner(mode.owner_key)
        session.customizations.on_mode_changed(None)
        self._active_mode = None
        self.mode_state = ModeState.IDLE

    # ------------------ session end ------------------
    def shutdown(self) -> None:
        if self.state is HostState.SHUT_DOWN:
            return
        self.deactivate_mode()
        self._session.service_registry.teardown()
        self.unsubscribe_all()
        self.state = HostState.SHUT_DOWN
