"""
Credential store - last connected device and known pairing pins
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .models import PersistedConfig
from connection.errors import PersistenceFailed

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "LastConnectedBluetoothSetting.yaml"

class CredentialStore:
    """Keeps PersistedConfig in memory and flushes it to a YAML file after every change"""

    def __init__(self, settings_file: Union[str, Path] = DEFAULT_SETTINGS_FILE, persistent: bool = True):
        self.settings_file = Path(settings_file)
        self.persistent = persistent
        self.config = PersistedConfig()

    @classmethod
    def from_config(cls, config: Dict) -> "CredentialStore":
        return cls(
            settings_file=config.get('settings_file', DEFAULT_SETTINGS_FILE),
            persistent=config.get('persistent_settings', True),
        )

    @property
    def last_connected_device(self) -> Optional[str]:
        return self.config.last_connected_device

    def pin_for(self, address: str) -> Optional[str]:
        return self.config.device_pins.get(address)

    def load(self) -> PersistedConfig:
        """
        Read settings from disk. A missing, empty or unreadable file
        leaves the default empty config in place.
        """
        self.config = PersistedConfig()

        if not self.persistent:
            return self.config
        if not self.settings_file.exists():
            logger.debug(f"No stored settings at {self.settings_file}")
            return self.config

        try:
            self.config = self._read()
            logger.info(f"Stored settings loaded from {self.settings_file} "
                        f"({len(self.config.device_pins)} pins, last device: {self.config.last_connected_device})")
        except PersistenceFailed as e:
            logger.warning(f"Discarding stored settings: {e}")
            self.config = PersistedConfig()

        return self.config

    def _read(self) -> PersistedConfig:
        try:
            with open(self.settings_file, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise PersistenceFailed(f"cannot read {self.settings_file}: {e}") from e

        if data is None:
            return PersistedConfig()

        try:
            return PersistedConfig.model_validate(data)
        except ValidationError as e:
            raise PersistenceFailed(f"invalid settings in {self.settings_file}: {e.error_count()} errors") from e

    def save(self) -> bool:
        """Write settings to disk; failures are logged, never raised"""
        if not self.persistent:
            return False

        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, 'w') as f:
                yaml.safe_dump(self.config.model_dump(), f, default_flow_style=False)
            logger.debug(f"Stored settings written to {self.settings_file}")
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to store settings to {self.settings_file}: {e}")
            return False

    def record_successful_device(self, address: str) -> bool:
        self.config.last_connected_device = address
        return self.save()

    def record_pairing_secret(self, address: str, pin: str) -> bool:
        self.config.device_pins[address] = pin
        return self.save()
