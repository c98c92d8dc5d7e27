"""
Dental mode.

On enter the current grid layout is remembered, the grid switches to 2x2
and Zoom becomes the active tool. On exit the remembered layout comes back.
Tooth-selection state is kept in session flags under `ohif.dental.*`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

from viewercore.application.host import Mode
from viewercore.application.registries import CommandDefinition, CustomizationOverride, MergePolicy
from viewercore.core.pubsub import Subscription
from viewercore.extensions.default import EXTENSION_ID as DEFAULT_EXTENSION_ID
from viewercore.extensions.default.services import GridLayout, SessionFlagsService, ToolSelected

if TYPE_CHECKING:
    from viewercore.session import ViewerSession

logger = logging.getLogger(__name__)

MODE_ID = "dental"
FLAG_ENABLED = "ohif.dental.enabled"
FLAG_NUMBERING = "ohif.dental.toothNumbering"
FLAG_SELECTED_TOOTH = "ohif.dental.selectedTooth"
FLAG_SELECTOR_ENABLED = "ohif.dental.toothSelectorEnabled"


class ToothNumberingParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    numbering: Literal["universal", "palmer", "fdi"] = "universal"


class SelectToothParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    tooth: str = ""


class DentalModeController:
    """State that lives for one dental-mode activation."""

    def __init__(self) -> None:
        self.previous_layout: Optional[GridLayout] = None
        self._session: Optional["ViewerSession"] = None
        self._subscription: Optional[Subscription] = None

    @property
    def flags(self) -> SessionFlagsService:
        if self._session is None:
            raise RuntimeError("dental mode is not active")
        return self._session.services.sessionFlagsService

    # Hooks ---------------------------------------------------------------
    def on_mode_enter(self, session: "ViewerSession") -> None:
        self._session = session
        grid = session.services.viewportGridService
        flags = self.flags

        if self.previous_layout is None:
            self.previous_layout = grid.layout

        flags.set(FLAG_ENABLED, True)
        flags.set(FLAG_NUMBERING, flags.get(FLAG_NUMBERING) or "universal")
        flags.set(FLAG_SELECTOR_ENABLED, False)
        self._subscription = flags.subscribe(flags.TOOL_SELECTED, self._on_tool_selected)

        session.commands.run({
            "commandName": "setViewportGridLayout",
            "commandOptions": {"numRows": 2, "numCols": 2},
        })
        session.commands.run({
            "commandName": "setToolActive",
            "commandOptions": {"toolName": "Zoom"},
        })
        logger.debug(f"Dental mode entered; previous layout {self.previous_layout}")

    def on_mode_exit(self, session: "ViewerSession") -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        if self.previous_layout is not None:
            layout, self.previous_layout = self.previous_layout, None
            session.commands.run({
                "commandName": "setViewportGridLayout",
                "commandOptions": {
                    "numRows": layout.num_rows,
                    "numCols": layout.num_cols,
                    "isHangingProtocolLayout": layout.is_hanging_protocol_layout,
                },
            })
        # Also runs after a partial enter, so go through the session argument.
        session.services.sessionFlagsService.set(FLAG_ENABLED, False)
        self._session = None

    def _on_tool_selected(self, event: ToolSelected) -> None:
        # Picking a measurement tool hides the tooth selector.
        if event.is_measurement:
            self.flags.set(FLAG_SELECTOR_ENABLED, False)

    # Commands (context "dental") -----------------------------------------
    def set_tooth_numbering(self, options: Dict[str, Any]) -> str:
        self.flags.set(FLAG_NUMBERING, options["numbering"])
        return options["numbering"]

    def select_tooth(self, options: Dict[str, Any]) -> str:
        self.flags.set(FLAG_SELECTED_TOOTH, options["tooth"])
        self.flags.set(FLAG_SELECTOR_ENABLED, bool(options["tooth"]))
        return options["tooth"]


def create_dental_mode(controller: Optional[DentalModeController] = None) -> Mode:
    controller = controller or DentalModeController()
    return Mode(
        id=MODE_ID,
        display_name="Dental",
        layout={"id": "viewerLayout", "props": {"rightPanels": ["measurements"]}},
        extensions=[DEFAULT_EXTENSION_ID],
        customizations={
            "ohif.aboutModal": CustomizationOverride(
                {"title": "Dental About", "menuTitle": "About Dental"},
                merge=MergePolicy.MERGE,
            ),
        },
        commands=[
            CommandDefinition(
                name="setToothNumbering",
                handler=controller.set_tooth_numbering,
                params=ToothNumberingParams,
            ),
            CommandDefinition(
                name="selectTooth",
                handler=controller.select_tooth,
                params=SelectToothParams,
            ),
        ],
        on_mode_enter=controller.on_mode_enter,
        on_mode_exit=controller.on_mode_exit,
    )
