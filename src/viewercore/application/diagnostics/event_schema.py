from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from viewercore.core.errors import ErrorSeverity, ViewerCoreError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_event_id() -> str:
    return uuid.uuid4().hex


@dataclass
class DiagnosticEvent:
    """
    Diagnostics envelope emitted by the registries and the host.

    `type` is a dotted event kind such as `command.failed` or `mode.activated`;
    `source` names the component that emitted it.
    """

    type: str
    source: str = ""
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None
    severity: ErrorSeverity = ErrorSeverity.WARNING
    event_id: str = field(default_factory=new_event_id)
    ts: datetime = field(default_factory=utcnow)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "event_id": self.event_id,
            "type": self.type,
            "source": self.source,
            "message": self.message,
            "payload": self.payload,
            "severity": self.severity.value,
            "ts": self.ts.isoformat(),
        }
        if self.error is not None:
            d["error"] = self.error
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"), default=repr)


def describe_error(exc: BaseException) -> Dict[str, Any]:
    d: Dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, ViewerCoreError):
        d["code"] = exc.code
        d["context"] = exc.context
    return d


def make_event(
    *,
    type: str,
    source: str,
    message: str = "",
    payload: Optional[Dict[str, Any]] = None,
    error: Optional[BaseException] = None,
    severity: Optional[ErrorSeverity] = None,
) -> DiagnosticEvent:
    if severity is None:
        severity = ErrorSeverity.ERROR if error is not None else ErrorSeverity.WARNING
    return DiagnosticEvent(
        type=type,
        source=source,
        message=message,
        payload=payload or {},
        error=describe_error(error) if error is not None else None,
        severity=severity,
    )
