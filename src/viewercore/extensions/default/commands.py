"""
Commands in the `default` context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from viewercore.application.registries import CommandDefinition

if TYPE_CHECKING:
    from viewercore.session import ViewerSession


class GridLayoutParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    numRows: int = Field(ge=1)
    numCols: int = Field(ge=1)
    isHangingProtocolLayout: bool = False


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    toolName: str = Field(min_length=1)
    isMeasurement: bool = False


class SessionFlagParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str = Field(min_length=1)
    value: Optional[Any] = None


def get_commands(session: "ViewerSession") -> List[CommandDefinition]:
    services = session.services

    def set_viewport_grid_layout(options: Dict[str, Any]) -> Dict[str, Any]:
        services.viewportGridService.set_layout(
            options["numRows"],
            options["numCols"],
            options.get("isHangingProtocolLayout", False),
        )
        return services.viewportGridService.get_state()

    def set_tool_active(options: Dict[str, Any]) -> str:
        tool_name = options["toolName"]
        services.viewportGridService.set_active_tool(tool_name)
        services.sessionFlagsService.select_tool(tool_name, is_measurement=options.get("isMeasurement", False))
        return tool_name

    def set_session_flag(options: Dict[str, Any]) -> None:
        if options.get("value") is None:
            services.sessionFlagsService.remove(options["key"])
        else:
            services.sessionFlagsService.set(options["key"], options["value"])

    return [
        CommandDefinition(
            name="setViewportGridLayout",
            handler=set_viewport_grid_layout,
            params=GridLayoutParams,
            description="Change the viewport grid to numRows x numCols.",
        ),
        CommandDefinition(
            name="setToolActive",
            handler=set_tool_active,
            params=ToolParams,
            description="Activate a tool on the viewport grid.",
        ),
        CommandDefinition(
            name="setSessionFlag",
            handler=set_session_flag,
            params=SessionFlagParams,
            description="Set (or clear, when value is null) a transient session flag.",
        ),
    ]
