"""
Tests for the logging configuration built from settings
"""
import logging
from pathlib import Path

import pytest

from app.core.config import LogConfig, Settings
from app.core.logging import setup_logging


def test_defaults_from_settings():
    config = Settings().get_log_config().log_config

    assert config["root"] == {"handlers": ["console"], "level": "INFO"}
    assert config["loggers"]["app.analytics"]["level"] == "INFO"
    assert config["loggers"]["pymongo"]["level"] == "WARNING"
    assert "file" not in config["handlers"]


def test_levels_from_settings():
    settings = Settings(LOG_LEVEL="warning", LOG_ANALYTICS_LEVEL="debug", LOG_LIBRARY_LEVEL="error")

    config = settings.get_log_config().log_config

    assert config["root"]["level"] == "WARNING"
    assert config["loggers"]["app.analytics"]["level"] == "DEBUG"
    assert all(config["loggers"][name]["level"] == "ERROR" for name in ("pymongo", "motor", "redis"))


def test_invalid_level_rejected():
    with pytest.raises(ValueError):
        Settings(LOG_LIBRARY_LEVEL="LOUD")


def test_rotating_file_handler(tmp_path):
    log_file = tmp_path / "app.log"
    settings = Settings(LOG_TO_FILE=True, LOG_FILE=log_file)

    config = settings.get_log_config().log_config

    handler = config["handlers"]["file"]
    assert handler["class"] == "logging.handlers.RotatingFileHandler"
    assert handler["filename"] == str(log_file)
    assert config["root"]["handlers"] == ["console", "file"]


def test_setup_logging_applies_config(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    config = LogConfig(LEVEL="INFO", ANALYTICS_LEVEL="DEBUG", FILE=log_file)

    setup_logging(config=config)

    assert log_file.parent.is_dir()
    assert logging.getLogger("app.analytics").level == logging.DEBUG
    assert logging.getLogger("motor").level == logging.WARNING
    assert isinstance(config.FILE, Path)

    setup_logging(config=LogConfig())
