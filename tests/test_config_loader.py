"""Tests for config_loader module."""

import logging

import pytest
import yaml

from config_loader import (
    ZoneFormatter,
    _validate_config,
    get_sample_config,
    load_config,
    setup_logging,
)
from connection.errors import ConfigurationError


def write_config(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_applied(self, tmp_path):
        config = load_config(write_config(tmp_path, {"bluetooth": {"connect_timeout_ms": 500}}))

        assert config["bluetooth"]["connect_timeout_ms"] == 500
        assert config["bluetooth"]["new_device_timeout_ms"] == 200
        assert config["bluetooth"]["common_pins"] == ["0000", "1111", "1234"]
        assert config["bluetooth"]["handshake_attempts"] == 5
        assert config["bluetooth"]["persistent_settings"] is True
        assert config["manager"]["watchdog_enabled"] is False
        assert config["logging"]["timezone"] == "UTC"
        assert config["logging"]["progress_level"] == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_missing_bluetooth_section(self, tmp_path):
        with pytest.raises(ConfigurationError, match="bluetooth"):
            load_config(write_config(tmp_path, {"manager": {}}))

    def test_empty_pin_list_allowed(self, tmp_path):
        config = load_config(write_config(tmp_path, {"bluetooth": {"common_pins": []}}))
        assert config["bluetooth"]["common_pins"] == []


class TestValidation:
    """Tests for _validate_config rules."""

    @pytest.mark.parametrize("bluetooth", [
        {"common_pins": "1234"},
        {"common_pins": [1234]},
        {"connect_timeout_ms": -1},
        {"device_pacing_seconds": "fast"},
        {"handshake_attempts": 0},
        {"handshake_attempts": 2.5},
        {"quick_scan": [255]},
    ])
    def test_invalid_bluetooth_values(self, bluetooth):
        with pytest.raises(ConfigurationError):
            _validate_config({"bluetooth": bluetooth})

    def test_negative_interval(self):
        with pytest.raises(ConfigurationError, match="scan_interval_seconds"):
            _validate_config({"bluetooth": {}, "manager": {"scan_interval_seconds": -0.5}})

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError, match="Mars/Olympus"):
            _validate_config({"bluetooth": {}, "logging": {"timezone": "Mars/Olympus"}})

    def test_sample_config_is_valid(self):
        _validate_config(get_sample_config())


class TestLogging:
    """Tests for the logging setup."""

    @pytest.fixture
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        yield root
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers = handlers
        root.setLevel(level)

    def test_zone_formatter_uses_timezone(self):
        formatter = ZoneFormatter("%(asctime)s %(message)s", "America/Toronto")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
        record.created = 1700000000.0  # 2023-11-14 22:13:20 UTC

        assert formatter.formatTime(record) == "2023-11-14 17:13:20 EST"
        assert formatter.formatTime(record, "%H:%M") == "17:13"

    def test_setup_logging_adds_handlers(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "link.log"
        before = len(restore_root_logger.handlers)

        setup_logging({"logging": {
            "level": "DEBUG",
            "file": str(log_file),
            "console_output": True,
            "timezone": "UTC",
        }})

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == before + 2
        assert log_file.parent.is_dir()
        assert all(isinstance(h.formatter, ZoneFormatter) for h in restore_root_logger.handlers[before:])
