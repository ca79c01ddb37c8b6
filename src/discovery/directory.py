"""
Device directory - current and previous discovery results
"""

import logging
import time
from typing import Dict, List, Optional

from .models import (
    DeviceRecord,
    DiscoveryParameters,
    DiscoverySnapshot,
    QUICK_SCAN_DEFAULTS,
    THOROUGH_SCAN_DEFAULTS,
)
from connection.errors import DiscoveryFailed

logger = logging.getLogger(__name__)

class DeviceDirectory:
    """Holds the two most recent discovery snapshots for one transport"""

    def __init__(self, transport, config: Optional[Dict] = None):
        config = config or {}
        self.transport = transport
        self.quick_parameters = DiscoveryParameters.from_config(config.get('quick_scan'), QUICK_SCAN_DEFAULTS)
        self.thorough_parameters = DiscoveryParameters.from_config(config.get('thorough_scan'), THOROUGH_SCAN_DEFAULTS)

        self._current = DiscoverySnapshot()
        self._previous = DiscoverySnapshot()

    @property
    def current(self) -> DiscoverySnapshot:
        return self._current

    @property
    def previous(self) -> DiscoverySnapshot:
        return self._previous

    async def scan_nearby(self, thorough: bool = False) -> DiscoverySnapshot:
        """
        Enumerate devices in range and make the result the current snapshot.

        The old current snapshot becomes the previous one. If the transport
        fails, the current snapshot stays empty and DiscoveryFailed is raised.
        """
        mode = "thorough" if thorough else "quick"
        parameters = self.thorough_parameters if thorough else self.quick_parameters

        # Snapshots are immutable, handing over the reference transfers ownership
        self._previous = self._current
        self._current = DiscoverySnapshot(mode=mode)

        start_time = time.time()
        try:
            devices = await self.transport.discover(parameters)
        except DiscoveryFailed:
            raise
        except Exception as e:
            raise DiscoveryFailed(f"{mode} discovery failed: {e}") from e

        self._current = DiscoverySnapshot(
            devices=tuple(devices or ()),
            mode=mode,
            duration_seconds=time.time() - start_time,
        )
        logger.info(f"[SCAN] {mode} discovery: {len(self._current)} devices in {self._current.duration_seconds:.1f}s")
        if self._current.devices:
            logger.debug(f"[SCAN] Addresses: {', '.join(d.address for d in self._current)}")
        return self._current

    def newly_appeared(self) -> List[DeviceRecord]:
        """Devices in the current snapshot whose address was not in the previous one"""
        known = self._previous.addresses()
        return [device for device in self._current if device.address not in known]

    def find(self, address: str) -> Optional[DeviceRecord]:
        """Look an address up in the most recent snapshot"""
        return self._current.find(address)
