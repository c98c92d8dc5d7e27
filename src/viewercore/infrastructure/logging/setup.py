"""
Logging setup driven by `LoggingConfig`.

Safe to call more than once: handlers installed here are tagged and replaced
rather than duplicated.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from viewercore.config.models import LoggingConfig

_HANDLER_TAG = "_viewercore_handler"


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(config: Optional[LoggingConfig] = None, *, logger_name: str = "viewercore") -> logging.Logger:
    cfg = config or LoggingConfig()
    target = logging.getLogger(logger_name)
    target.setLevel(cfg.level.upper())

    for handler in list(target.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            target.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(cfg.format)
    handlers: List[logging.Handler] = []
    if cfg.console:
        handlers.append(_tagged(logging.StreamHandler()))
    if cfg.file:
        path = Path(cfg.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _tagged(
                RotatingFileHandler(
                    path,
                    maxBytes=cfg.max_size,
                    backupCount=cfg.backup_count,
                    encoding="utf-8",
                )
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        target.addHandler(handler)
    return target
