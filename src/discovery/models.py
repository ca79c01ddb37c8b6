"""
Discovery data structures and models
"""

from typing import Dict, Iterator, Optional, Set, Tuple
from dataclasses import dataclass, field

@dataclass(frozen=True)
class DeviceRecord:
    """Represents a discovered Bluetooth device"""
    address: str  # exact-match identity, e.g. "20:13:07:26:10:08"
    name: str
    authenticated: bool = False

@dataclass(frozen=True)
class DiscoveryParameters:
    """Enumeration parameters handed to the transport's discover call"""
    max_devices: int
    authenticated: bool
    remembered: bool
    unknown: bool
    discoverable_only: bool

    @classmethod
    def from_config(cls, section: Optional[Dict], defaults: "DiscoveryParameters") -> "DiscoveryParameters":
        """Overlay a config section on top of default parameters"""
        section = section or {}
        return cls(
            max_devices=int(section.get('max_devices', defaults.max_devices)),
            authenticated=bool(section.get('authenticated', defaults.authenticated)),
            remembered=bool(section.get('remembered', defaults.remembered)),
            unknown=bool(section.get('unknown', defaults.unknown)),
            discoverable_only=bool(section.get('discoverable_only', defaults.discoverable_only)),
        )

# Quick: devices already known to the radio, short enumeration window
QUICK_SCAN_DEFAULTS = DiscoveryParameters(
    max_devices=255, authenticated=True, remembered=True, unknown=False, discoverable_only=False
)

# Thorough: full range with name/class/service lookups
THOROUGH_SCAN_DEFAULTS = DiscoveryParameters(
    max_devices=65536, authenticated=True, remembered=True, unknown=True, discoverable_only=True
)

@dataclass(frozen=True)
class DiscoverySnapshot:
    """Results from one discovery scan"""
    devices: Tuple[DeviceRecord, ...] = field(default_factory=tuple)
    mode: str = "none"  # "quick", "thorough" or "none"
    duration_seconds: float = 0.0

    def __iter__(self) -> Iterator[DeviceRecord]:
        return iter(self.devices)

    def __len__(self) -> int:
        return len(self.devices)

    def addresses(self) -> Set[str]:
        return {device.address for device in self.devices}

    def find(self, address: str) -> Optional[DeviceRecord]:
        for device in self.devices:
            if device.address == address:
                return device
        return None
