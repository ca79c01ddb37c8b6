"""
Connection attempt executor - link open plus handshake verification
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from discovery.models import DeviceRecord
from .errors import HandshakeTimeout
from .progress import ProgressReporter
from .transport import DeviceStatus

logger = logging.getLogger(__name__)

class AttemptFailure(Enum):
    """Why a connection attempt did not succeed"""
    NO_DEVICE = "no_device"
    NOT_FOUND = "not_found"
    LINK_FAILED = "link_failed"
    HANDSHAKE_TIMEOUT = "handshake_timeout"
    DEVICE_UNAVAILABLE = "device_unavailable"

@dataclass
class ConnectionOutcome:
    """Result of one connection attempt"""
    succeeded: bool
    device: Optional[DeviceRecord] = None
    failure: Optional[AttemptFailure] = None

    def __bool__(self) -> bool:
        return self.succeeded

    @property
    def connected_identity(self) -> Optional[str]:
        return self.device.address if self.succeeded and self.device else None

    @classmethod
    def success(cls, device: DeviceRecord) -> "ConnectionOutcome":
        return cls(True, device, None)

    @classmethod
    def failed(cls, failure: AttemptFailure, device: Optional[DeviceRecord] = None) -> "ConnectionOutcome":
        return cls(False, device, failure)

class ConnectionAttemptExecutor:
    """Runs one connect + handshake sequence at a time for a single transport"""

    def __init__(self, transport, handshake, directory, credentials,
                 progress: ProgressReporter, config: Optional[Dict] = None,
                 device: Optional[DeviceRecord] = None):
        config = config or {}
        self.transport = transport
        self.handshake = handshake
        self.directory = directory
        self.credentials = credentials
        self.progress = progress
        self.handshake_attempts = max(1, int(config.get('handshake_attempts', 5)))
        self.probe_grace_seconds = config.get('probe_grace_seconds', 0.5)

        self._lock = asyncio.Lock()
        self._current_device: Optional[DeviceRecord] = device
        self.connected = False

    @property
    def current_device(self) -> Optional[DeviceRecord]:
        return self._current_device

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def designate(self, device: Optional[DeviceRecord]):
        """Install a device as the active candidate without attempting it"""
        async with self._lock:
            self._current_device = device
            self.connected = False

    async def try_connect(self, target: Union[DeviceRecord, str, None] = None,
                          timeout_ms: int = 1000) -> ConnectionOutcome:
        """
        Attempt a connection under the executor lock.

        target may be None (retry the current device), a DeviceRecord (install
        it as current first) or an address (resolved against the most recent
        discovery snapshot; fails if it is not there).
        """
        async with self._lock:
            if isinstance(target, DeviceRecord):
                self._current_device = target
            elif target is not None:
                device = self.directory.find(target)
                if device is None:
                    logger.debug(f"Address {target} not in the latest scan")
                    return ConnectionOutcome.failed(AttemptFailure.NOT_FOUND)
                self._current_device = device

            return await self._attempt(timeout_ms)

    async def _attempt(self, timeout_ms: int) -> ConnectionOutcome:
        device = self._current_device
        if device is None:
            return ConnectionOutcome.failed(AttemptFailure.NO_DEVICE)

        self.connected = False
        await self.progress.report(1, f"Trying Bluetooth device {device.name}")

        if not await self._open_link(device):
            await self.progress.report(3, f"No connection made with Bluetooth device {device.name}")
            return ConnectionOutcome.failed(AttemptFailure.LINK_FAILED, device)

        await self.progress.report(3, f"Connected with Bluetooth device {device.name}, requesting response")
        status = await self._probe(timeout_ms)
        self.connected = status is DeviceStatus.AVAILABLE

        if self.connected:
            await self.progress.report(1, f"Connected with Bluetooth device {device.name}")
            self.credentials.record_successful_device(device.address)
            return ConnectionOutcome.success(device)

        await self.progress.report(3, f"Connected with Bluetooth device {device.name}, received no response")
        if status is DeviceStatus.UNAVAILABLE:
            return ConnectionOutcome.failed(AttemptFailure.DEVICE_UNAVAILABLE, device)
        return ConnectionOutcome.failed(AttemptFailure.HANDSHAKE_TIMEOUT, device)

    async def _open_link(self, device: DeviceRecord) -> bool:
        try:
            return bool(await self.transport.open_link(device.address))
        except Exception as e:
            logger.debug(f"Link to {device.address} failed: {e}")
            return False

    async def _probe(self, timeout_ms: int) -> DeviceStatus:
        """Send identify requests until one is answered or the attempts run out"""
        deadline = timeout_ms / 1000 + self.probe_grace_seconds

        for attempt in range(1, self.handshake_attempts + 1):
            try:
                status = await asyncio.wait_for(self.handshake.probe(timeout_ms), timeout=deadline)
            except (asyncio.TimeoutError, HandshakeTimeout):
                status = DeviceStatus.TIMED_OUT
            except Exception as e:
                logger.debug(f"Handshake probe {attempt} raised: {e}")
                status = DeviceStatus.TIMED_OUT

            if status is not DeviceStatus.TIMED_OUT:
                return status
            logger.debug(f"Handshake probe {attempt}/{self.handshake_attempts} timed out")

        return DeviceStatus.TIMED_OUT
