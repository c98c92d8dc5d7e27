"""
Command line entry point.

    viewercore describe [--config app.yaml]
    viewercore run [--config app.yaml] [--mode dental] setViewportGridLayout --options '{"numRows": 2, "numCols": 2}'

Without --config the built-in default extension and dental mode are loaded.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional

from viewercore.config import ViewerConfig
from viewercore.core.errors import ViewerCoreError
from viewercore.extensions.default import DefaultExtension
from viewercore.infrastructure.logging import configure_logging
from viewercore.modes import create_dental_mode
from viewercore.session import ViewerSession, create_session


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="viewercore", description="Extension host for the viewer core")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--log-level", dest="log_level", default=None, help="Override logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("describe", help="Print extension order, commands, customizations, services and data sources")

    run_parser = sub.add_parser("run", help="Run a command and print its result as JSON")
    run_parser.add_argument("command_name", help="Command to run")
    run_parser.add_argument("--options", default=None, help="JSON object passed as commandOptions")
    run_parser.add_argument("--context", default=None, help="Explicit command context")
    run_parser.add_argument("--mode", default=None, help="Mode to activate before running")
    return parser


def load_session(config_path: Optional[str], log_level: Optional[str] = None) -> ViewerSession:
    if config_path:
        config = ViewerConfig.from_yaml(config_path)
        if log_level:
            config.logging.level = log_level
        configure_logging(config.logging)
        return create_session(config)

    config = ViewerConfig()
    if log_level:
        config.logging.level = log_level
    configure_logging(config.logging)
    return create_session(config, extensions=[DefaultExtension()], modes=[create_dental_mode()])


def describe(session: ViewerSession) -> Dict[str, Any]:
    host = session.host
    return {
        "state": host.state.value,
        "extensions": [
            {"id": ext_id, "version": host.extensions[ext_id].version}
            for ext_id in host.activation_order
        ],
        "modes": sorted(host.modes),
        "activeMode": host.active_mode.id if host.active_mode else None,
        "commands": session.commands.commands(),
        "customizations": session.customizations.customization_ids(),
        "services": list(session.services),
        "dataSources": host.data_source_names(),
    }


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        session = load_session(args.config, args.log_level)
    except (ViewerCoreError, FileNotFoundError) as exc:
        print(f"startup failed: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "describe":
            print(json.dumps(describe(session), indent=2))
            return 0

        if args.mode:
            session.host.activate_mode(args.mode)
        options = json.loads(args.options) if args.options else {}
        if not isinstance(options, dict):
            print("--options must be a JSON object", file=sys.stderr)
            return 2
        failed_before = len(list(session.diagnostics.events("command.failed")))
        result = session.commands.run(
            {"commandName": args.command_name, "commandOptions": options, "context": args.context}
        )
        failures = list(session.diagnostics.events("command.failed"))
        if len(failures) > failed_before:
            print(failures[-1].message, file=sys.stderr)
            return 1
        print(json.dumps(_jsonable(result), indent=2, default=repr))
        return 0
    except (ViewerCoreError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
