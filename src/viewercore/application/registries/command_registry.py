"""
Named-command dispatch registry.

Commands are grouped by context (a namespace such as "default" or a mode
id). A descriptor is resolved against, in order: its explicit context, the
active mode's context, then "default".

Payload merge order, lowest to highest precedence:
definition `options` < descriptor `commandOptions` < positional payload.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from viewercore.application.diagnostics import make_event
from viewercore.application.ports import DiagnosticsPort
from viewercore.core.errors import CommandExecutionError, CommandNotFound, InvalidCommandName

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "default"

CommandHandler = Callable[[Dict[str, Any]], Any]


@dataclass
class CommandDefinition:
    """A command as contributed by an extension or mode."""

    name: str
    handler: CommandHandler
    context: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    params: Optional[Type[BaseModel]] = None
    description: str = ""


@dataclass
class CommandRecord:
    name: str
    context: str
    handler: CommandHandler
    owner: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    params: Optional[Type[BaseModel]] = None
    description: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.context, self.name)


class CommandDescriptor(BaseModel):
    """Structured request: `{commandName, commandOptions?, context?}`."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    command_name: str = Field(alias="commandName")
    command_options: Dict[str, Any] = Field(default_factory=dict, alias="commandOptions")
    context: Optional[str] = None

    @field_validator("command_options", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def parse(cls, value: Any) -> "CommandDescriptor":
        if isinstance(value, CommandDescriptor):
            descriptor = value
        elif isinstance(value, str):
            descriptor = cls(command_name=value)
        elif isinstance(value, Mapping):
            try:
                descriptor = cls.model_validate(dict(value))
            except ValidationError as exc:
                raise InvalidCommandName(
                    value.get("commandName", value.get("command_name")),
                    reason=f"malformed command descriptor: {exc.errors()[0]['msg']}",
                ) from exc
        else:
            raise InvalidCommandName(value, reason="descriptor must be a name or a mapping")
        if not descriptor.command_name.strip():
            raise InvalidCommandName(descriptor.command_name)
        return descriptor


Descriptor = Union[str, Mapping[str, Any], CommandDescriptor]


class CommandRegistry:
    """
    Keyed registry of `(context, name) -> CommandRecord`.

    Registering the same key again replaces the record. When a different owner
    replaces a record, the previous one is kept aside and restored by
    `unregister_owner`, so a mode can shadow an extension command and give it
    back on deactivation.
    """

    def __init__(self, diagnostics: Optional[DiagnosticsPort] = None) -> None:
        self._contexts: Dict[str, Dict[str, CommandRecord]] = {DEFAULT_CONTEXT: {}}
        self._shadowed: Dict[Tuple[str, str], List[CommandRecord]] = {}
        self._diagnostics = diagnostics
        self.active_context: Optional[str] = None
        # The event loop only keeps weak references to tasks.
        self._pending: Set["asyncio.Task[Any]"] = set()

    # ------------------ contexts ------------------
    @property
    def contexts(self) -> List[str]:
        return list(self._contexts)

    def create_context(self, name: str) -> None:
        if not name:
            raise ValueError("context name must not be empty")
        self._contexts.setdefault(name, {})

    def clear_context(self, name: str) -> None:
        for command in list(self._contexts.get(name, {})):
            self._shadowed.pop((name, command), None)
        self._contexts[name] = {}

    # ------------------ registration ------------------
    def register(
        self,
        name: str,
        handler: CommandHandler,
        context: Optional[str] = None,
        *,
        owner: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        params: Optional[Type[BaseModel]] = None,
        description: str = "",
    ) -> CommandRecord:
        if not isinstance(name, str) or not name.strip():
            raise InvalidCommandName(name)
        if not callable(handler):
            raise TypeError(f"handler for command '{name}' must be callable")

        ctx = context or DEFAULT_CONTEXT
        record = CommandRecord(
            name=name,
            context=ctx,
            handler=handler,
            owner=owner,
            options=dict(options or {}),
            params=params,
            description=description,
        )
        commands = self._contexts.setdefault(ctx, {})
        existing = commands.get(name)
        if existing is not None and existing.owner != owner:
            self._shadowed.setdefault(record.key, []).append(existing)
        commands[name] = record
        logger.debug(f"Registered command {ctx}/{name} (owner={owner})")
        return record

    def register_definition(self, definition: CommandDefinition, *, owner: Optional[str] = None,
                            default_context: Optional[str] = None) -> CommandRecord:
        return self.register(
            definition.name,
            definition.handler,
            definition.context or default_context,
            owner=owner,
            options=definition.options,
            params=definition.params,
            description=definition.description,
        )

    def unregister(self, name: str, context: Optional[str] = None) -> Optional[CommandRecord]:
        ctx = context or DEFAULT_CONTEXT
        record = self._contexts.get(ctx, {}).pop(name, None)
        if record is not None:
            self._restore(record.key)
        return record

    def unregister_owner(self, owner: str) -> List[CommandRecord]:
        """Remove every command contributed by `owner`, restoring anything it shadowed."""
        removed: List[CommandRecord] = []
        for key, stack in list(self._shadowed.items()):
            kept = [r for r in stack if r.owner != owner]
            if kept:
                self._shadowed[key] = kept
            else:
                del self._shadowed[key]
        for ctx, commands in self._contexts.items():
            for name, record in list(commands.items()):
                if record.owner == owner:
                    del commands[name]
                    removed.append(record)
                    self._restore((ctx, name))
        return removed

    def _restore(self, key: Tuple[str, str]) -> None:
        stack = self._shadowed.get(key)
        if not stack:
            return
        previous = stack.pop()
        if not stack:
            del self._shadowed[key]
        self._contexts.setdefault(key[0], {})[key[1]] = previous

    # ------------------ lookup ------------------
    def resolution_order(self, context: Optional[str] = None) -> List[str]:
        order: List[str] = []
        for candidate in (context, self.active_context, DEFAULT_CONTEXT):
            if candidate and candidate not in order:
                order.append(candidate)
        return order

    def get_command(self, name: str, context: Optional[str] = None) -> Optional[CommandRecord]:
        for ctx in self.resolution_order(context):
            record = self._contexts.get(ctx, {}).get(name)
            if record is not None:
                return record
        return None

    def commands(self, context: Optional[str] = None) -> Dict[str, List[str]]:
        if context is not None:
            return {context: sorted(self._contexts.get(context, {}))}
        return {ctx: sorted(cmds) for ctx, cmds in self._contexts.items()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_command(name) is not None

    # ------------------ dispatch ------------------
    def run(self, descriptor: Union[Descriptor, Sequence[Descriptor]], payload: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Dispatch one descriptor, or a list of descriptors in order.

        Lookup failures raise. Handler failures are reported to diagnostics and
        the call returns None (or an awaitable resolving to None for async
        handlers).
        """
        if isinstance(descriptor, (list, tuple)):
            # Resolve everything first so a miss has no side effect.
            resolved = [self._resolve(d) for d in descriptor]
            return [self._invoke(record, desc, payload) for desc, record in resolved]
        desc, record = self._resolve(descriptor)
        return self._invoke(record, desc, payload)

    def run_command(self, name: str, options: Optional[Mapping[str, Any]] = None, context: Optional[str] = None) -> Any:
        return self.run(CommandDescriptor(command_name=name, context=context), options)

    def _resolve(self, descriptor: Descriptor) -> Tuple[CommandDescriptor, CommandRecord]:
        desc = CommandDescriptor.parse(descriptor)
        record = self.get_command(desc.command_name, desc.context)
        if record is None:
            raise CommandNotFound(desc.command_name, self.resolution_order(desc.context))
        return desc, record

    def _invoke(self, record: CommandRecord, desc: CommandDescriptor, payload: Optional[Mapping[str, Any]]) -> Any:
        merged: Dict[str, Any] = {**record.options, **desc.command_options, **dict(payload or {})}
        logger.debug(f"Running command {record.context}/{record.name}")

        try:
            if record.params is not None:
                merged = {**merged, **record.params.model_validate(merged).model_dump(by_alias=True)}
            result = record.handler(merged)
        except Exception as exc:
            return self._report_failure(record, exc)

        if inspect.isawaitable(result):
            return self._schedule(record, result)

        self._report_success(record)
        return result

    def _schedule(self, record: CommandRecord, pending: Awaitable[Any]) -> Awaitable[Any]:
        async def _await_handler() -> Any:
            try:
                value = await pending
            except Exception as exc:
                return self._report_failure(record, exc)
            self._report_success(record)
            return value

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller drives the coroutine (e.g. asyncio.run).
            return _await_handler()
        task = asyncio.ensure_future(_await_handler())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _report_success(self, record: CommandRecord) -> None:
        if self._diagnostics is None:
            return
        self._diagnostics.append(
            make_event(
                type="command.executed",
                source="CommandRegistry",
                payload={"command": record.name, "context": record.context},
            )
        )

    def _report_failure(self, record: CommandRecord, exc: Exception) -> None:
        error = CommandExecutionError(record.name, exc, context_name=record.context)
        logger.error(f"{error}", exc_info=exc)
        if self._diagnostics is not None:
            self._diagnostics.append(
                make_event(
                    type="command.failed",
                    source="CommandRegistry",
                    message=error.message,
                    payload={"command": record.name, "context": record.context},
                    error=error,
                )
            )
        return None
