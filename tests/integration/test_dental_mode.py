"""
Dental mode end to end: default extension + dental mode in one session.
"""

import pytest

from viewercore.application.host import ModeState
from viewercore.extensions.default import DefaultExtension
from viewercore.extensions.default.services import GridLayout
from viewercore.modes import DentalModeController, create_dental_mode
from viewercore.modes.dental import (
    FLAG_ENABLED,
    FLAG_NUMBERING,
    FLAG_SELECTED_TOOTH,
    FLAG_SELECTOR_ENABLED,
)


class TestDentalMode:
    def test_enter_switches_grid_and_tool(self, viewer):
        grid = viewer.services.viewportGridService
        grid.set_layout(1, 3)

        viewer.host.activate_mode("dental")

        assert viewer.host.mode_state is ModeState.ACTIVE
        assert grid.layout == GridLayout(2, 2)
        assert grid.active_tool == "Zoom"
        flags = viewer.services.sessionFlagsService
        assert flags.get_bool(FLAG_ENABLED)
        assert flags.get(FLAG_NUMBERING) == "universal"
        assert not flags.get_bool(FLAG_SELECTOR_ENABLED)

    def test_exit_restores_previous_layout(self, viewer):
        grid = viewer.services.viewportGridService
        grid.set_layout(1, 3, True)
        viewer.host.activate_mode("dental")
        viewer.host.deactivate_mode()

        assert grid.layout == GridLayout(1, 3, True)
        assert grid.active_tool is None
        assert not viewer.services.sessionFlagsService.get_bool(FLAG_ENABLED)

    def test_about_modal_merges_over_default(self, viewer):
        viewer.host.activate_mode("dental")
        assert viewer.customizations.get_customization("ohif.aboutModal") == {
            "menuTitle": "About Dental",
            "title": "Dental About",
        }
        viewer.host.deactivate_mode()
        assert viewer.customizations.get_customization("ohif.aboutModal") == {
            "menuTitle": "About",
            "title": "About",
        }

    def test_dental_commands_only_while_active(self, viewer):
        assert viewer.commands.get_command("selectTooth") is None

        viewer.host.activate_mode("dental")
        assert viewer.commands.run({"commandName": "setToothNumbering", "commandOptions": {"numbering": "fdi"}}) == "fdi"
        assert viewer.commands.run("selectTooth", {"tooth": "14"}) == "14"

        flags = viewer.services.sessionFlagsService
        assert flags.get(FLAG_NUMBERING) == "fdi"
        assert flags.get(FLAG_SELECTED_TOOTH) == "14"
        assert flags.get_bool(FLAG_SELECTOR_ENABLED)

        viewer.host.deactivate_mode()
        assert viewer.commands.get_command("selectTooth") is None

    def test_invalid_numbering_is_reported(self, viewer, diagnostics):
        viewer.host.activate_mode("dental")
        assert viewer.commands.run("setToothNumbering", {"numbering": "roman"}) is None
        assert viewer.services.sessionFlagsService.get(FLAG_NUMBERING) == "universal"
        assert len(list(diagnostics.events("command.failed"))) == 1

    def test_measurement_tool_hides_tooth_selector(self, viewer):
        viewer.host.activate_mode("dental")
        viewer.commands.run("selectTooth", {"tooth": "8"})
        assert viewer.services.sessionFlagsService.get_bool(FLAG_SELECTOR_ENABLED)

        viewer.commands.run("setToolActive", {"toolName": "Length", "isMeasurement": True})
        assert not viewer.services.sessionFlagsService.get_bool(FLAG_SELECTOR_ENABLED)

    def test_tool_listener_removed_on_exit(self, viewer):
        flags = viewer.services.sessionFlagsService
        before = flags.listener_count(flags.TOOL_SELECTED)
        viewer.host.activate_mode("dental")
        assert flags.listener_count(flags.TOOL_SELECTED) == before + 1
        viewer.host.deactivate_mode()
        assert flags.listener_count(flags.TOOL_SELECTED) == before

    def test_reentry(self, viewer):
        viewer.host.activate_mode("dental")
        viewer.host.deactivate_mode()
        viewer.host.activate_mode("dental")
        assert viewer.services.viewportGridService.layout == GridLayout(2, 2)

    def test_controller_requires_active_mode(self):
        controller = DentalModeController()
        with pytest.raises(RuntimeError):
            controller.flags

    def test_mode_shape(self):
        mode = create_dental_mode()
        assert mode.id == "dental"
        assert mode.extensions == ["default"]
        assert mode.context == "dental"
        assert {c.name for c in mode.commands} == {"setToothNumbering", "selectTooth"}


class FailingEnterController(DentalModeController):
    def on_mode_enter(self, session):
        super().on_mode_enter(session)
        raise RuntimeError("viewport not available")


class TestDentalRollback:
    def test_partial_enter_is_cleaned_up(self, session):
        controller = FailingEnterController()
        session.host.register_extension(DefaultExtension())
        session.host.activate_all()
        session.host.register_mode(create_dental_mode(controller))

        grid = session.services.viewportGridService
        flags = session.services.sessionFlagsService
        grid.set_layout(1, 2)

        with pytest.raises(RuntimeError):
            session.host.activate_mode("dental")

        assert grid.layout == GridLayout(1, 2)
        assert flags.listener_count(flags.TOOL_SELECTED) == 0
        assert not flags.get_bool(FLAG_ENABLED)
        assert controller.previous_layout is None
        assert session.host.mode_state is ModeState.IDLE
