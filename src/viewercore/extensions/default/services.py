"""
Services contributed by the default extension.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from viewercore.core.pubsub import PubSubService


@dataclass(frozen=True)
class GridLayout:
    num_rows: int = 1
    num_cols: int = 1
    is_hanging_protocol_layout: bool = False


@dataclass(frozen=True)
class LayoutChanged:
    previous: GridLayout
    layout: GridLayout


class ViewportGridService(PubSubService):
    """Holds the viewport grid layout and broadcasts changes."""

    LAYOUT_CHANGED = "LAYOUT_CHANGED"

    def __init__(self, services: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__({self.LAYOUT_CHANGED: LayoutChanged})
        self._layout = GridLayout()
        self._active_tool: Optional[str] = None

    def get_state(self) -> Dict[str, Any]:
        return {
            "layout": {"numRows": self._layout.num_rows, "numCols": self._layout.num_cols},
            "isHangingProtocolLayout": self._layout.is_hanging_protocol_layout,
            "activeTool": self._active_tool,
        }

    @property
    def layout(self) -> GridLayout:
        return self._layout

    def set_layout(self, num_rows: int, num_cols: int, is_hanging_protocol_layout: bool = False) -> GridLayout:
        if num_rows < 1 or num_cols < 1:
            raise ValueError(f"grid layout must be at least 1x1, got {num_rows}x{num_cols}")
        previous = self._layout
        self._layout = GridLayout(num_rows, num_cols, is_hanging_protocol_layout)
        if self._layout != previous:
            self.publish(self.LAYOUT_CHANGED, LayoutChanged(previous, self._layout))
        return self._layout

    def set_active_tool(self, tool_name: str) -> None:
        self._active_tool = tool_name

    @property
    def active_tool(self) -> Optional[str]:
        return self._active_tool

    def on_mode_exit(self, mode_id: str) -> None:
        self._active_tool = None

    def teardown(self) -> None:
        self.unsubscribe_all()


@dataclass(frozen=True)
class FlagChanged:
    key: str
    value: Optional[str]


@dataclass(frozen=True)
class ToolSelected:
    tool_name: str
    is_measurement: bool = False


class SessionFlagsService(PubSubService):
    """
    Transient key/value flags for UI toggles.

    Values live only as long as the session; nothing here is durable.
    """

    FLAG_CHANGED = "FLAG_CHANGED"
    TOOL_SELECTED = "TOOL_SELECTED"

    def __init__(self, services: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__({self.FLAG_CHANGED: FlagChanged, self.TOOL_SELECTED: ToolSelected})
        self._flags: Dict[str, str] = {}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._flags.get(key, default)

    def get_bool(self, key: str) -> bool:
        return self._flags.get(key) == "1"

    def set(self, key: str, value: Any) -> None:
        if isinstance(value, bool):
            value = "1" if value else "0"
        text = str(value)
        if self._flags.get(key) == text:
            return
        self._flags[key] = text
        self.publish(self.FLAG_CHANGED, FlagChanged(key, text))

    def remove(self, key: str) -> None:
        if self._flags.pop(key, None) is not None:
            self.publish(self.FLAG_CHANGED, FlagChanged(key, None))

    def keys(self) -> List[str]:
        return sorted(self._flags)

    def clear(self) -> None:
        for key in list(self._flags):
            self.remove(key)

    def select_tool(self, tool_name: str, *, is_measurement: bool = False) -> None:
        self.publish(self.TOOL_SELECTED, ToolSelected(tool_name, is_measurement))

    def teardown(self) -> None:
        self._flags.clear()
        self.unsubscribe_all()


@dataclass
class AuthenticatedUser:
    username: Optional[str] = None
    access_token: Optional[str] = None
    profile: Dict[str, Any] = field(default_factory=dict)


class UserAuthenticationService:
    """
    Holds the signed-in user and produces authorization headers.

    Transport is out of scope; `set_service_implementation` lets an
    extension replace `get_authorization_header` or `get_user`.
    """

    def __init__(self, services: Optional[Mapping[str, Any]] = None) -> None:
        self.enabled = False
        self._user: Optional[AuthenticatedUser] = None
        self._overrides: Dict[str, Callable[..., Any]] = {}

    def set(self, *, enabled: bool) -> None:
        self.enabled = enabled

    def set_user(self, user: Optional[AuthenticatedUser]) -> None:
        self._user = user

    def get_user(self) -> Optional[AuthenticatedUser]:
        if "get_user" in self._overrides:
            return self._overrides["get_user"]()
        return self._user

    def get_authorization_header(self) -> Optional[Dict[str, str]]:
        if "get_authorization_header" in self._overrides:
            return self._overrides["get_authorization_header"]()
        user = self.get_user()
        if not self.enabled or user is None or not user.access_token:
            return None
        return {"Authorization": f"Bearer {user.access_token}"}

    def set_service_implementation(self, **overrides: Callable[..., Any]) -> None:
        unknown = set(overrides) - {"get_user", "get_authorization_header"}
        if unknown:
            raise ValueError(f"cannot override: {', '.join(sorted(unknown))}")
        self._overrides.update(overrides)

    def reset(self) -> None:
        self._user = None
        self._overrides.clear()
        self.enabled = False

    def teardown(self) -> None:
        self.reset()
