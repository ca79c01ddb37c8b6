"""
Configuration loader for the Bluetooth link manager
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

from connection.errors import ConfigurationError

logger = logging.getLogger(__name__)

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Validate required sections
        _validate_config(config)

        # Apply defaults
        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    required_sections = ['bluetooth']

    for section in required_sections:
        if section not in config or not isinstance(config[section], dict):
            raise ConfigurationError(f"Missing required configuration section: {section}")

    bluetooth = config['bluetooth']

    # Common pins are deployment data - any list of strings, possibly empty
    pins = bluetooth.get('common_pins')
    if pins is not None:
        if not isinstance(pins, list) or not all(isinstance(pin, str) for pin in pins):
            raise ConfigurationError("bluetooth.common_pins must be a list of strings")

    for key in ('connect_timeout_ms', 'new_device_timeout_ms', 'probe_grace_seconds',
                'pairing_settle_seconds', 'device_pacing_seconds'):
        value = bluetooth.get(key)
        if value is not None and (not isinstance(value, (int, float)) or value < 0):
            raise ConfigurationError(f"bluetooth.{key} must be a non-negative number")

    attempts = bluetooth.get('handshake_attempts')
    if attempts is not None and (not isinstance(attempts, int) or attempts < 1):
        raise ConfigurationError("bluetooth.handshake_attempts must be an integer >= 1")

    for scan_section in ('quick_scan', 'thorough_scan'):
        if scan_section in bluetooth and not isinstance(bluetooth[scan_section], dict):
            raise ConfigurationError(f"bluetooth.{scan_section} must be a mapping")

    manager = config.get('manager', {})
    for key in ('scan_interval_seconds', 'watchdog_interval_seconds', 'idle_interval_seconds'):
        value = manager.get(key)
        if value is not None and (not isinstance(value, (int, float)) or value < 0):
            raise ConfigurationError(f"manager.{key} must be a non-negative number")

    # Validate logging timezone if present
    tz_name = config.get('logging', {}).get('timezone')
    if tz_name:
        try:
            pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            raise ConfigurationError(f"Unknown logging timezone: {tz_name}")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Bluetooth defaults
    bluetooth_defaults = {
        'persistent_settings': True,
        'settings_file': 'LastConnectedBluetoothSetting.yaml',
        'common_pins': ['0000', '1111', '1234'],
        'connect_timeout_ms': 1000,
        'new_device_timeout_ms': 200,
        'handshake_attempts': 5,
        'probe_grace_seconds': 0.5,
        'pairing_settle_seconds': 1.0,
        'device_pacing_seconds': 0.1,
    }
    for key, default_value in bluetooth_defaults.items():
        if key not in config['bluetooth']:
            config['bluetooth'][key] = default_value

    # Manager loop defaults
    if 'manager' not in config:
        config['manager'] = {}
    manager_defaults = {
        'scan_interval_seconds': 1.0,
        'watchdog_enabled': False,
        'watchdog_interval_seconds': 5.0,
        'idle_interval_seconds': 1.0,
    }
    for key, default_value in manager_defaults.items():
        if key not in config['manager']:
            config['manager'][key] = default_value

    # Logging defaults
    if 'logging' not in config:
        config['logging'] = {}
    logging_defaults = {
        'level': 'INFO',
        'file': 'logs/bluetooth_link.log',
        'console_output': True,
        'timezone': 'UTC',
        'progress_level': 3
    }
    for key, default_value in logging_defaults.items():
        if key not in config['logging']:
            config['logging'][key] = default_value

    return config


class ZoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.zone = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.zone)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = ZoneFormatter(log_format, tz_name)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=[]
    )
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler
    log_file = log_config.get('file')
    if log_file:
        # Create logs directory if it doesn't exist
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={tz_name}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "bluetooth": {
            "persistent_settings": True,
            "settings_file": "LastConnectedBluetoothSetting.yaml",
            "common_pins": ["0000", "1111", "1234"],
            "connect_timeout_ms": 1000,
            "new_device_timeout_ms": 200,
            "handshake_attempts": 5,
            "probe_grace_seconds": 0.5,
            "pairing_settle_seconds": 1.0,
            "device_pacing_seconds": 0.1,
            "quick_scan": {
                "max_devices": 255,
                "authenticated": True,
                "remembered": True,
                "unknown": False,
                "discoverable_only": False
            },
            "thorough_scan": {
                "max_devices": 65536,
                "authenticated": True,
                "remembered": True,
                "unknown": True,
                "discoverable_only": True
            }
        },
        "manager": {
            "scan_interval_seconds": 1.0,
            "watchdog_enabled": True,
            "watchdog_interval_seconds": 5.0,
            "idle_interval_seconds": 1.0
        },
        "logging": {
            "level": "INFO",
            "file": "logs/bluetooth_link.log",
            "console_output": True,
            "timezone": "UTC",
            "progress_level": 3
        },
        "host": {
            "collaborators": "my_transport.hc05:create_collaborators"
        }
    }
