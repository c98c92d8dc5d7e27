import json

from viewercore.application.host import Mode
from viewercore.cli import build_parser, main
from viewercore.extensions.default import DefaultExtension
from viewercore.session import create_session


def test_cli_run_flags():
    parser = build_parser()
    args = parser.parse_args(["--log-level", "DEBUG", "run", "setToolActive", "--options", '{"toolName": "Zoom"}', "--mode", "dental"])
    assert args.command == "run"
    assert args.command_name == "setToolActive"
    assert args.mode == "dental"
    assert args.context is None
    assert args.log_level == "DEBUG"


def test_cli_describe_defaults():
    parser = build_parser()
    args = parser.parse_args(["describe"])
    assert args.command == "describe"
    assert args.config is None


def test_cli_describe_output(capsys):
    assert main(["describe"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["state"] == "ready"
    assert out["extensions"] == [{"id": "default", "version": "1.0.0"}]
    assert out["modes"] == ["dental"]
    assert "setViewportGridLayout" in out["commands"]["default"]
    assert "viewportGridService" in out["services"]
    assert out["dataSources"] == ["dicomweb"]


def test_cli_run_in_mode(capsys):
    code = main(["run", "setToothNumbering", "--mode", "dental", "--options", '{"numbering": "palmer"}'])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == "palmer"


def test_cli_run_unknown_command(capsys):
    assert main(["run", "doesNotExist"]) == 1
    assert "doesNotExist" in capsys.readouterr().err


def test_cli_run_handler_failure(capsys):
    assert main(["run", "setViewportGridLayout", "--options", '{"numRows": 0, "numCols": 1}']) == 1


def test_cli_rejects_non_object_options(capsys):
    assert main(["run", "setToolActive", "--options", "[1, 2]"]) == 2


def test_cli_missing_config(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "absent.yaml"), "describe"]) == 2
    assert "startup failed" in capsys.readouterr().err


def test_cli_mode_entry_failure_not_blamed_on_command(monkeypatch, capsys):
    def noisy_enter(session):
        session.commands.run("setViewportGridLayout", {"numRows": 0, "numCols": 0})

    def load(config_path, log_level=None):
        return create_session(extensions=[DefaultExtension()], modes=[Mode(id="noisy", on_mode_enter=noisy_enter)])

    monkeypatch.setattr("viewercore.cli.load_session", load)
    assert main(["run", "setToolActive", "--mode", "noisy", "--options", '{"toolName": "Pan"}']) == 0
    assert json.loads(capsys.readouterr().out) == "Pan"
