"""
Pydantic configuration models with YAML loading.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = "INFO"
    console: bool = True
    file: Optional[str] = None
    max_size: int = 10485760  # 10MB
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ExtensionRef(BaseModel):
    """`path` is `package.module:attribute`; the attribute is an Extension class, instance or factory."""

    model_config = ConfigDict(extra="ignore")

    path: str
    configuration: Dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _check_import_path(value)


class ModeRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: str
    enabled: bool = True

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _check_import_path(value)


class DataSourceConfig(BaseModel):
    """Instantiate the data-source definition `source_name` under `name`."""

    model_config = ConfigDict(extra="ignore")

    name: str
    source_name: str
    configuration: Dict[str, Any] = Field(default_factory=dict)


class ViewerConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    extensions: List[ExtensionRef] = Field(default_factory=list)
    modes: List[ModeRef] = Field(default_factory=list)
    data_sources: List[DataSourceConfig] = Field(default_factory=list)
    default_mode: Optional[str] = None
    default_data_source: Optional[str] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    raw: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ViewerConfig":
        file_path = Path(path).expanduser()
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewerConfig":
        # Keep the raw mapping for consumers that read their own sections.
        return cls(**{k: v for k, v in data.items() if k != "raw"}, raw=dict(data))


def _check_import_path(value: str) -> str:
    module, sep, attr = value.partition(":")
    if not sep or not module.strip() or not attr.strip():
        raise ValueError(f"import path must look like 'package.module:attribute', got {value!r}")
    return value.strip()


def import_object(path: str) -> Any:
    """Resolve `package.module:attribute` (attribute may be dotted)."""
    module_name, _, attr_path = _check_import_path(path).partition(":")
    obj: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj
