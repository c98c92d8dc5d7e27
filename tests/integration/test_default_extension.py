"""
Default extension services, commands and data sources inside a live session.
"""

import pytest

from viewercore import create_session
from viewercore.config import ViewerConfig
from viewercore.extensions.default import AuthenticatedUser, DefaultExtension, DicomWebDataSource
from viewercore.extensions.default.simple_login import store_user


class TestViewportGrid:
    def test_command_returns_grid_state(self, viewer):
        state = viewer.commands.run({"commandName": "setViewportGridLayout", "commandOptions": {"numRows": 2, "numCols": 3}})
        assert state == {"layout": {"numRows": 2, "numCols": 3}, "isHangingProtocolLayout": False, "activeTool": None}

    def test_layout_changed_published_once(self, viewer):
        grid = viewer.services.viewportGridService
        seen = []
        grid.subscribe(grid.LAYOUT_CHANGED, seen.append)
        grid.set_layout(2, 2)
        grid.set_layout(2, 2)
        assert len(seen) == 1
        assert seen[0].previous.num_rows == 1

    def test_bad_layout_is_reported(self, viewer, diagnostics):
        assert viewer.commands.run("setViewportGridLayout", {"numRows": 0, "numCols": 1}) is None
        assert len(list(diagnostics.events("command.failed"))) == 1

    def test_direct_bad_layout(self, viewer):
        with pytest.raises(ValueError):
            viewer.services.viewportGridService.set_layout(0, 1)


class TestSessionFlags:
    def test_set_and_clear_flag_through_command(self, viewer):
        flags = viewer.services.sessionFlagsService
        viewer.commands.run("setSessionFlag", {"key": "ui.panel", "value": True})
        assert flags.get("ui.panel") == "1"
        viewer.commands.run("setSessionFlag", {"key": "ui.panel", "value": None})
        assert flags.get("ui.panel") is None

    def test_flag_changed_only_on_change(self, viewer):
        flags = viewer.services.sessionFlagsService
        seen = []
        flags.subscribe(flags.FLAG_CHANGED, seen.append)
        flags.set("a", "x")
        flags.set("a", "x")
        flags.remove("a")
        assert [(e.key, e.value) for e in seen] == [("a", "x"), ("a", None)]

    def test_clear(self, viewer):
        flags = viewer.services.sessionFlagsService
        flags.set("a", 1)
        flags.set("b", False)
        assert flags.keys() == ["a", "b"]
        flags.clear()
        assert flags.keys() == []


class TestUserAuthentication:
    def test_header_requires_enabled_and_token(self, viewer):
        auth = viewer.services.userAuthenticationService
        auth.set_user(AuthenticatedUser(username="dr", access_token="tok"))
        assert auth.get_authorization_header() is None
        auth.set(enabled=True)
        assert auth.get_authorization_header() == {"Authorization": "Bearer tok"}

    def test_service_implementation_override(self, viewer):
        auth = viewer.services.userAuthenticationService
        auth.set_service_implementation(get_authorization_header=lambda: {"Authorization": "Basic x"})
        assert auth.get_authorization_header() == {"Authorization": "Basic x"}
        with pytest.raises(ValueError):
            auth.set_service_implementation(logout=lambda: None)
        auth.reset()
        assert auth.get_authorization_header() is None


class TestDefaultsAndDataSources:
    def test_default_customizations(self, viewer):
        assert viewer.customizations.customization_ids() == ["ohif.aboutModal", "ohif.userPreferencesModal"]

    def test_configured_customizations_override(self):
        session = create_session(extensions=[DefaultExtension({"customizations": {"ohif.aboutModal": {"title": "Site"}}})])
        try:
            assert session.customizations.get_customization("ohif.aboutModal") == {"title": "Site"}
        finally:
            session.close()

    def test_dicomweb_default_instance(self, viewer):
        source = viewer.host.get_data_sources("dicomweb")
        assert isinstance(source, DicomWebDataSource)
        assert source.study_url("1.2") is None

    def test_config_driven_session(self):
        config = ViewerConfig.from_dict({
            "extensions": [{"path": "viewercore.extensions.default:DefaultExtension"}],
            "modes": [{"path": "viewercore.modes:create_dental_mode"}],
            "data_sources": [{
                "name": "archive",
                "source_name": "dicomweb",
                "configuration": {"wadoRoot": "https://pacs.example.org/wado/", "qidoRoot": "https://pacs.example.org/qido"},
            }],
            "default_mode": "dental",
        })
        session = create_session(config)
        try:
            archive = session.host.get_data_sources("archive")
            assert archive.study_url("1.2.3") == "https://pacs.example.org/wado/studies/1.2.3"
            assert archive.get_config()["qidoRoot"] == "https://pacs.example.org/qido"
            assert session.host.active_mode.id == "dental"
        finally:
            session.close()

    def test_close_tears_down_services(self, viewer):
        flags = viewer.services.sessionFlagsService
        flags.set("a", 1)
        viewer.close()
        assert flags.keys() == []
        assert len(viewer.services) == 0


class TestSimpleLogin:
    def _session(self, raw, configuration=None):
        return create_session(ViewerConfig.from_dict(raw), extensions=[DefaultExtension(configuration)])

    def test_enabled_restores_user_and_header(self):
        session = self._session({"dental": {"simpleLogin": {"enabled": True, "user": {"username": "demo", "token": "t0k"}}}})
        try:
            auth = session.services.userAuthenticationService
            assert auth.enabled
            assert auth.get_user().username == "demo"
            assert auth.get_authorization_header() == {"Authorization": "Bearer t0k"}
        finally:
            session.close()

    def test_user_file(self, tmp_path):
        user_file = tmp_path / "user.json"
        store_user(user_file, "demo", "from-file")
        session = self._session({"dental": {"simpleLogin": {"enabled": True, "userFile": str(user_file)}}})
        try:
            assert session.services.userAuthenticationService.get_authorization_header() == {
                "Authorization": "Bearer from-file"
            }
        finally:
            session.close()

    def test_enabled_without_stored_user(self, tmp_path):
        session = self._session({"dental": {"simpleLogin": {"enabled": True, "userFile": str(tmp_path / "absent.json")}}})
        try:
            auth = session.services.userAuthenticationService
            assert auth.enabled
            assert auth.get_user() is None
            assert auth.get_authorization_header() is None
        finally:
            session.close()

    def test_unreadable_user_file_ignored(self, tmp_path):
        user_file = tmp_path / "user.json"
        user_file.write_text("{not json", encoding="utf-8")
        session = self._session({"dental": {"simpleLogin": {"enabled": True, "userFile": str(user_file)}}})
        try:
            assert session.services.userAuthenticationService.get_user() is None
        finally:
            session.close()

    def test_oidc_disables_simple_login(self):
        session = self._session({
            "oidc": [{"authority": "https://id.example.org"}],
            "dental": {"simpleLogin": {"enabled": True, "user": {"username": "demo", "token": "t0k"}}},
        })
        try:
            auth = session.services.userAuthenticationService
            assert not auth.enabled
            assert auth.get_user() is None
        finally:
            session.close()

    def test_disabled_by_default(self, viewer):
        assert not viewer.services.userAuthenticationService.enabled

    def test_extension_configuration_overrides(self):
        session = self._session({}, {"simpleLogin": {"enabled": True, "user": {"username": "kiosk", "token": "k"}}})
        try:
            assert session.services.userAuthenticationService.get_user().username == "kiosk"
        finally:
            session.close()
