"""
Named service locator for the running session.

Replaces the process-wide `Container.instance()` singleton with a registry
owned by the session. Services are instantiated once, after every service
they depend on is ready; registrations whose dependencies are still missing
stay pending until they resolve or `finalize()` reports them.
"""

from __future__ import annotations

import functools
import graphlib
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from viewercore.application.diagnostics import make_event
from viewercore.application.ports import DiagnosticsPort
from viewercore.core.errors import (
    DuplicateRegistration,
    ServiceDependencyUnresolved,
    ServiceInitializationFailed,
    ServiceNotRegistered,
)

logger = logging.getLogger(__name__)


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TORN_DOWN = "torn-down"


@dataclass
class ServiceRecord:
    name: str
    provider: Any
    depends_on: List[str] = field(default_factory=list)
    owner: Optional[str] = None
    state: ServiceState = ServiceState.UNINITIALIZED
    instance: Any = None


def is_factory(provider: Any) -> bool:
    return inspect.isclass(provider) or inspect.isfunction(provider) or inspect.ismethod(provider) \
        or isinstance(provider, functools.partial)


class ServicesView(Mapping[str, Any]):
    """
    Read-only mapping of ready services, also reachable as attributes:
    `services["viewportGridService"]` or `services.viewportGridService`.
    """

    def __init__(self, registry: "ServiceRegistry") -> None:
        object.__setattr__(self, "_registry", registry)

    def __getitem__(self, name: str) -> Any:
        record = self._registry._records.get(name)
        if record is None or record.state is not ServiceState.READY:
            raise KeyError(name)
        return record.instance

    def __iter__(self) -> Iterator[str]:
        return iter([r.name for r in self._registry._ready_records()])

    def __len__(self) -> int:
        return len(self._registry._ready_records())

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"no ready service named '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("services view is read-only")

    def __repr__(self) -> str:
        return f"ServicesView({sorted(self)})"


class ServiceRegistry:
    def __init__(self, diagnostics: Optional[DiagnosticsPort] = None) -> None:
        self._records: Dict[str, ServiceRecord] = {}
        self._init_order: List[str] = []
        self._failed: Dict[str, ServiceInitializationFailed] = {}
        self._diagnostics = diagnostics
        self.services = ServicesView(self)

    # ------------------ registration ------------------
    def register(
        self,
        name: str,
        factory_or_instance: Any,
        *,
        depends_on: Sequence[str] = (),
        owner: Optional[str] = None,
    ) -> ServiceRecord:
        """
        Add a service. Factories (classes, functions) are called with the
        read-only `services` view once `depends_on` are all ready.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("service name must be a non-empty string")
        existing = self._records.get(name)
        if existing is not None and existing.state is not ServiceState.TORN_DOWN:
            raise DuplicateRegistration("Service", name)
        if existing is not None:
            self._init_order = [n for n in self._init_order if n != name]
        self._failed.pop(name, None)

        record = ServiceRecord(
            name=name,
            provider=factory_or_instance,
            depends_on=list(dict.fromkeys(depends_on)),
            owner=owner,
        )
        self._records[name] = record
        self._initialize_pending()
        if name in self._failed:
            raise self._failed.pop(name)
        if record.state is ServiceState.UNINITIALIZED:
            missing = self._missing(record)
            logger.debug(f"Service '{name}' deferred; waiting on {', '.join(missing)}")
        return record

    def _missing(self, record: ServiceRecord) -> List[str]:
        return [
            dep for dep in record.depends_on
            if dep not in self._records or self._records[dep].state is not ServiceState.READY
        ]

    def _initialize_pending(self) -> None:
        # Keep sweeping until a pass makes no progress; readiness cascades.
        progressed = True
        while progressed:
            progressed = False
            for record in list(self._records.values()):
                if record.state is not ServiceState.UNINITIALIZED or self._missing(record):
                    continue
                self._initialize(record)
                progressed = record.state is ServiceState.READY or progressed

    def _initialize(self, record: ServiceRecord) -> None:
        provider = record.provider
        try:
            record.instance = provider(self.services) if is_factory(provider) else provider
        except Exception as exc:
            # Dropped so later sweeps never call the broken factory again.
            del self._records[record.name]
            error = ServiceInitializationFailed(record.name, exc)
            self._failed[record.name] = error
            logger.error(f"{error}", exc_info=exc)
            self._report("service.failed", record.name, exc)
            return
        record.state = ServiceState.READY
        self._init_order.append(record.name)
        logger.debug(f"Service '{record.name}' ready")

    def finalize(self) -> None:
        """
        Fail fast if any registration is still pending.

        Raises ServiceDependencyUnresolved naming the first pending service and
        what it is missing (or the cycle it belongs to). A factory that failed
        while some other service was being registered is raised here as
        ServiceInitializationFailed.
        """
        if self._failed:
            raise self._failed.pop(sorted(self._failed)[0])

        pending = {n: r for n, r in self._records.items() if r.state is ServiceState.UNINITIALIZED}
        if not pending:
            return

        for name in sorted(pending):
            unregistered = [d for d in pending[name].depends_on if d not in self._records]
            if unregistered:
                raise ServiceDependencyUnresolved(name, unregistered)

        graph = {name: [d for d in r.depends_on if d in pending] for name, r in pending.items()}
        try:
            graphlib.TopologicalSorter(graph).prepare()
        except graphlib.CycleError as exc:
            cycle = list(dict.fromkeys(exc.args[1]))
            raise ServiceDependencyUnresolved(cycle[0], cycle[1:] or cycle, cyclic=True) from exc

        # Remaining pending services wait on torn-down dependencies.
        name = sorted(pending)[0]
        raise ServiceDependencyUnresolved(name, self._missing(pending[name]))

    # ------------------ lookup ------------------
    def get(self, name: str) -> Any:
        record = self._records.get(name)
        if record is None:
            if name in self._failed:
                raise ServiceNotRegistered(name, detail="failed to initialize")
            raise ServiceNotRegistered(name)
        if record.state is ServiceState.UNINITIALIZED:
            raise ServiceNotRegistered(name, detail="is registered but waiting on dependencies")
        if record.state is ServiceState.TORN_DOWN:
            raise ServiceNotRegistered(name, detail="has been torn down")
        return record.instance

    def has(self, name: str) -> bool:
        return name in self._records

    def state(self, name: str) -> ServiceState:
        record = self._records.get(name)
        if record is None:
            raise ServiceNotRegistered(name)
        return record.state

    def names(self) -> List[str]:
        return list(self._records)

    @property
    def init_order(self) -> List[str]:
        return list(self._init_order)

    def owned_by(self, owner: str) -> List[str]:
        return [n for n, r in self._records.items() if r.owner == owner]

    def _ready_records(self) -> List[ServiceRecord]:
        return [self._records[n] for n in self._init_order if self._records[n].state is ServiceState.READY]

    # ------------------ lifecycle ------------------
    def notify(self, hook: str, *args: Any) -> None:
        """Call `hook` on every ready service that defines it, in init order."""
        for record in self._ready_records():
            fn: Optional[Callable[..., Any]] = getattr(record.instance, hook, None)
            if not callable(fn):
                continue
            try:
                fn(*args)
            except Exception as exc:
                logger.exception(f"Service '{record.name}' {hook} failed")
                self._report("service.hook_failed", record.name, exc, hook=hook)

    def teardown(self, names: Optional[Iterable[str]] = None) -> List[str]:
        """
        Tear down services in reverse initialization order.

        Errors are logged and reported; they never stop sibling teardown.
        Returns the names that were torn down.
        """
        wanted = set(names) if names is not None else None
        done: List[str] = []
        for record in reversed(self._ready_records()):
            if wanted is not None and record.name not in wanted:
                continue
            hook = getattr(record.instance, "teardown", None) or getattr(record.instance, "destroy", None)
            if callable(hook):
                try:
                    hook()
                except Exception as exc:
                    logger.exception(f"Service '{record.name}' teardown failed")
                    self._report("service.teardown_failed", record.name, exc)
            record.state = ServiceState.TORN_DOWN
            done.append(record.name)
        if wanted is not None:
            dependents = [
                r.name for r in self._ready_records()
                if any(dep in wanted for dep in r.depends_on)
            ]
            if dependents:
                logger.warning(f"Services still ready after dependency teardown: {', '.join(dependents)}")
        return done

    def _report(self, kind: str, service: str, exc: Exception, **payload: Any) -> None:
        if self._diagnostics is None:
            return
        self._diagnostics.append(
            make_event(
                type=kind,
                source="ServiceRegistry",
                message=f"service '{service}' raised {type(exc).__name__}",
                payload={"service": service, **payload},
                error=exc,
            )
        )
