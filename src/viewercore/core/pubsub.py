"""
Typed publish/subscribe channel owned by the service layer.

Each service declares its events up front together with the payload type,
and subscribers receive a `Subscription` whose lifetime matches the consumer
that created it (subscribe on mount, unsubscribe on unmount).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from viewercore.application.diagnostics import make_event
from viewercore.application.ports import DiagnosticsPort

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned by `PubSubService.subscribe`."""

    def __init__(self, channel: "PubSubService", event: str, callback: Listener) -> None:
        self.event = event
        self.callback = callback
        self._channel: Optional[PubSubService] = channel

    @property
    def active(self) -> bool:
        return self._channel is not None

    def unsubscribe(self) -> None:
        if self._channel is None:
            return
        self._channel._remove(self)
        self._channel = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class PubSubService:
    """
    Base class for services that broadcast typed events.

    `events` maps event name to the payload type accepted by `publish`; use
    `object` for events whose payload is not checked.
    """

    def __init__(self, events: Mapping[str, type], *, diagnostics: Optional[DiagnosticsPort] = None) -> None:
        self.EVENTS: Dict[str, type] = dict(events)
        self._listeners: Dict[str, List[Subscription]] = {name: [] for name in self.EVENTS}
        self._diagnostics = diagnostics

    def subscribe(self, event: str, callback: Listener) -> Subscription:
        if event not in self.EVENTS:
            raise ValueError(f"{type(self).__name__} does not publish '{event}'")
        if not callable(callback):
            raise TypeError("callback must be callable")
        sub = Subscription(self, event, callback)
        self._listeners[event].append(sub)
        return sub

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(subs) for subs in self._listeners.values())

    def publish(self, event: str, payload: Any) -> int:
        """Deliver `payload` to every subscriber; returns the number notified."""
        expected = self.EVENTS.get(event)
        if expected is None:
            raise ValueError(f"{type(self).__name__} does not publish '{event}'")
        if not isinstance(payload, expected):
            raise TypeError(
                f"'{event}' expects {expected.__name__}, got {type(payload).__name__}"
            )

        delivered = 0
        # Snapshot: callbacks may unsubscribe while we iterate.
        for sub in list(self._listeners[event]):
            try:
                sub.callback(payload)
                delivered += 1
            except Exception as exc:
                logger.exception(f"Subscriber for {type(self).__name__}.{event} failed")
                if self._diagnostics is not None:
                    self._diagnostics.append(
                        make_event(
                            type="subscriber.failed",
                            source=type(self).__name__,
                            message=f"subscriber for '{event}' raised",
                            payload={"event": event},
                            error=exc,
                        )
                    )
        return delivered

    def unsubscribe_all(self) -> None:
        for subs in self._listeners.values():
            for sub in list(subs):
                sub.unsubscribe()

    def _remove(self, sub: Subscription) -> None:
        subs = self._listeners.get(sub.event, [])
        if sub in subs:
            subs.remove(sub)
