"""
Collaborator contracts for the wireless transport and the handshake protocol
"""

from enum import Enum
from typing import Protocol, Sequence

from discovery.models import DeviceRecord, DiscoveryParameters

class DeviceStatus(Enum):
    """Tri-state liveness result of one handshake probe"""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"  # answered, but not the expected application
    TIMED_OUT = "timed_out"

class BluetoothTransport(Protocol):
    """Device enumeration, link and pairing primitives of the radio stack"""

    @property
    def is_connected(self) -> bool:
        ...

    async def discover(self, parameters: DiscoveryParameters) -> Sequence[DeviceRecord]:
        ...

    async def open_link(self, address: str) -> bool:
        ...

    async def pair_request(self, address: str, pin: str) -> bool:
        ...

class Handshake(Protocol):
    """Request/response probe confirming the remote application is alive"""

    async def probe(self, timeout_ms: int) -> DeviceStatus:
        ...
