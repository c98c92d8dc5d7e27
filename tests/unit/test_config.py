"""
Configuration model unit tests
"""

import logging

import pytest
from pydantic import ValidationError

from viewercore.config import ExtensionRef, LoggingConfig, ViewerConfig, import_object
from viewercore.extensions.default import DefaultExtension
from viewercore.infrastructure.logging import configure_logging


CONFIG_YAML = """
extensions:
  - path: viewercore.extensions.default:DefaultExtension
    configuration:
      dicomweb:
        qidoRoot: https://pacs.example.org/qido
modes:
  - path: viewercore.modes:create_dental_mode
data_sources:
  - name: archive
    source_name: dicomweb
    configuration:
      wadoRoot: https://archive.example.org/wado
default_mode: dental
logging:
  level: DEBUG
  console: false
plugins:
  anything: goes
"""


class TestViewerConfig:
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "viewer.yaml"
        path.write_text(CONFIG_YAML, encoding="utf-8")

        config = ViewerConfig.from_yaml(path)
        assert config.extensions[0].configuration["dicomweb"]["qidoRoot"] == "https://pacs.example.org/qido"
        assert config.modes[0].path == "viewercore.modes:create_dental_mode"
        assert config.data_sources[0].source_name == "dicomweb"
        assert config.default_mode == "dental"
        assert config.logging.level == "DEBUG"
        assert config.raw["plugins"] == {"anything": "goes"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ViewerConfig.from_yaml(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        config = ViewerConfig.from_yaml(path)
        assert config.extensions == []
        assert config.logging.level == "INFO"

    def test_bad_import_path(self):
        with pytest.raises(ValidationError):
            ExtensionRef(path="viewercore.extensions.default.DefaultExtension")


class TestImportObject:
    def test_import_class(self):
        assert import_object("viewercore.extensions.default:DefaultExtension") is DefaultExtension

    def test_dotted_attribute(self):
        assert import_object("viewercore.extensions.default:DefaultExtension.id") == "default"

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            import_object("viewercore.extensions.default:Nope")


class TestConfigureLogging:
    def test_idempotent(self):
        logger = configure_logging(LoggingConfig(level="warning"), logger_name="viewercore.test")
        configure_logging(LoggingConfig(level="warning"), logger_name="viewercore.test")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "viewer.log"
        logger = configure_logging(
            LoggingConfig(console=False, file=str(log_file)),
            logger_name="viewercore.test.file",
        )
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
        configure_logging(LoggingConfig(console=False), logger_name="viewercore.test.file")
