from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from viewercore.application.registries.command_registry import CommandDefinition

if TYPE_CHECKING:
    from viewercore.session import ViewerSession

ModeHook = Callable[["ViewerSession"], None]


class ModeState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"


@dataclass
class Mode:
    """
    A named application profile: layout, required extensions, customization
    overrides and mode-scoped commands.

    Everything a mode contributes is owned by `owner_key` and removed when
    the mode deactivates.
    """

    id: str
    display_name: str = ""
    layout: Dict[str, Any] = field(default_factory=dict)
    extensions: List[str] = field(default_factory=list)
    customizations: Dict[str, Any] = field(default_factory=dict)
    commands: List[CommandDefinition] = field(default_factory=list)
    command_context: Optional[str] = None
    on_mode_enter: Optional[ModeHook] = None
    on_mode_exit: Optional[ModeHook] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("mode id must be a non-empty string")
        if not self.display_name:
            self.display_name = self.id

    @property
    def context(self) -> str:
        return self.command_context or self.id

    @property
    def owner_key(self) -> str:
        return f"mode:{self.id}"
