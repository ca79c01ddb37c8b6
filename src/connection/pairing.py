"""
Pairing negotiator - stored pin first, then the common pin list
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional

from discovery.models import DeviceRecord
from .errors import PairingFailed
from .progress import ProgressReporter

logger = logging.getLogger(__name__)

DEFAULT_COMMON_PINS = ["0000", "1111", "1234"]

class PairingResult(Enum):
    """Outcome of a pairing negotiation"""
    AUTHENTICATED = "authenticated"  # already paired before we started
    PAIRED_NOW = "paired_now"
    UNPAIRED = "unpaired"  # every pin failed, the caller still proceeds

class PairingNegotiator:
    """Tries to authenticate unpaired devices by trial and error"""

    def __init__(self, transport, credentials, progress: ProgressReporter,
                 config: Optional[Dict] = None):
        config = config or {}
        self.transport = transport
        self.credentials = credentials
        self.progress = progress
        self.common_pins: List[str] = list(config.get('common_pins', DEFAULT_COMMON_PINS))
        # Pairing too quickly in a row can lock the remote module
        self.settle_seconds = config.get('pairing_settle_seconds', 1.0)

    async def pair(self, device: DeviceRecord) -> PairingResult:
        """
        Pair with a device if it is not authenticated yet.

        UNPAIRED is not a failure for the scan: the connection attempt that
        follows runs regardless and fails on its own if pairing was needed.
        """
        if device.authenticated:
            return PairingResult.AUTHENTICATED

        await self.progress.report(2, f"Trying to pair device {device.name} ({device.address})")

        stored_pin = self.credentials.pin_for(device.address)
        if stored_pin is not None:
            await self.progress.report(3, f"Trying stored pin for device {device.name}")
            if await self._request(device, stored_pin):
                await self.progress.report(2, f"Pairing device {device.name} successful")
                return PairingResult.PAIRED_NOW
            await asyncio.sleep(self.settle_seconds)

        for pin in self.common_pins:
            await self.progress.report(3, f"Trying common pin {pin} for device {device.name}")
            if await self._request(device, pin):
                self.credentials.record_pairing_secret(device.address, pin)
                await self.progress.report(2, f"Pairing device {device.name} successful")
                return PairingResult.PAIRED_NOW
            await asyncio.sleep(self.settle_seconds)

        await self.progress.report(2, f"Pairing device {device.name} unsuccessful")
        return PairingResult.UNPAIRED

    async def _request(self, device: DeviceRecord, pin: str) -> bool:
        try:
            return bool(await self.transport.pair_request(device.address, pin))
        except PairingFailed as e:
            logger.debug(f"Pin {pin} rejected by {device.address}: {e.detail or 'no detail'}")
            return False
        except Exception as e:
            logger.warning(f"Unexpected pairing error for {device.address}: {e}")
            return False
