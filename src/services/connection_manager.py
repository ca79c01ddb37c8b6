"""
Bluetooth Connection Manager - scan orchestration and session lifecycle
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from discovery.directory import DeviceDirectory
from discovery.models import DeviceRecord
from credentials.store import CredentialStore
from connection.errors import DiscoveryFailed
from connection.executor import AttemptFailure, ConnectionAttemptExecutor, ConnectionOutcome
from connection.pairing import PairingNegotiator
from connection.progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

DeviceCallback = Callable[[DeviceRecord], Awaitable[None]]

class ConnectionManagerState(Enum):
    """What the session loop does on its next tick"""
    STOP = "stop"
    WAIT = "wait"
    CONNECT = "connect"
    SCAN = "scan"
    WATCHDOG = "watchdog"

class ScanPhase(Enum):
    """Which kind of scan the next scan cycle runs"""
    NONE = "none"
    QUICK = "quick"
    THOROUGH = "thorough"

class BluetoothConnectionManager:
    """Finds, pairs and keeps a verified link to one remote device"""

    def __init__(self, transport, handshake, config: Dict, device: Optional[DeviceRecord] = None):
        self.config = config
        bluetooth = config.get('bluetooth', {})
        manager = config.get('manager', {})

        self.transport = transport
        self.progress = ProgressReporter("bluetooth")

        self.credentials = CredentialStore.from_config(bluetooth)
        self.credentials.load()

        self.directory = DeviceDirectory(transport, bluetooth)
        self.negotiator = PairingNegotiator(transport, self.credentials, self.progress, bluetooth)
        self.executor = ConnectionAttemptExecutor(
            transport, handshake, self.directory, self.credentials, self.progress, bluetooth, device=device
        )

        # Attempt timings
        self.connect_timeout_ms = bluetooth.get('connect_timeout_ms', 1000)
        self.new_device_timeout_ms = bluetooth.get('new_device_timeout_ms', 200)
        self.device_pacing_seconds = bluetooth.get('device_pacing_seconds', 0.1)

        # Session loop timings
        self.scan_interval = manager.get('scan_interval_seconds', 1.0)
        self.watchdog_enabled = manager.get('watchdog_enabled', False)
        self.watchdog_interval = manager.get('watchdog_interval_seconds', 5.0)
        self.idle_interval = manager.get('idle_interval_seconds', 1.0)

        self.state = ConnectionManagerState.STOP
        self.scan_phase = ScanPhase.NONE
        self.running = False
        self._session_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

        self.connection_found_callbacks: List[DeviceCallback] = []
        self.connection_lost_callbacks: List[DeviceCallback] = []

        self.stats = {
            'ticks': 0,
            'quick_scans': 0,
            'thorough_scans': 0,
            'connections_found': 0,
            'connections_lost': 0,
            'tick_errors': 0
        }

    @property
    def persistent_settings(self) -> bool:
        return self.credentials.persistent

    @property
    def current_device(self) -> Optional[DeviceRecord]:
        return self.executor.current_device

    @property
    def connected(self) -> bool:
        return self.executor.connected

    # ================== EVENTS ==================

    def add_progress_callback(self, callback: ProgressCallback):
        """Add callback for leveled progress lines"""
        self.progress.add_callback(callback)

    def add_connection_found_callback(self, callback: DeviceCallback):
        """Add callback fired with the device once a verified link is made"""
        self.connection_found_callbacks.append(callback)

    def add_connection_lost_callback(self, callback: DeviceCallback):
        """Add callback fired when the watchdog loses the device"""
        self.connection_lost_callbacks.append(callback)

    async def _notify(self, callbacks: List[DeviceCallback], device: DeviceRecord):
        for callback in callbacks:
            try:
                await callback(device)
            except Exception as e:
                logger.error(f"Connection callback failed: {e}")

    # ================== SESSION LIFECYCLE ==================

    async def start_session(self, run_loop: bool = True):
        """
        Start a session. With run_loop=False the host drives tick() from its
        own timer instead of the built-in session loop.
        """
        if self.running:
            logger.debug("Session already running")
            return

        logger.info("Starting Bluetooth connection session...")
        if self.executor.current_device is not None:
            self.state = ConnectionManagerState.CONNECT
        else:
            self.start_scan()

        self.running = True
        self._stop_event.clear()
        if run_loop:
            self._session_task = asyncio.create_task(self._session_loop())

    async def stop_session(self):
        """Stop the session loop; an attempt in progress runs to completion first"""
        if not self.running:
            return

        logger.info("Stopping Bluetooth connection session...")
        self.running = False
        self.state = ConnectionManagerState.STOP
        self._stop_event.set()

        if self._session_task:
            # Called from a callback on the loop itself: the loop exits after this tick
            if asyncio.current_task() is not self._session_task:
                await asyncio.gather(self._session_task, return_exceptions=True)
            self._session_task = None
        logger.info("Bluetooth connection session stopped")

    def start_scan(self):
        """(Re)start a scan sequence from the first quick scan"""
        self.state = ConnectionManagerState.SCAN
        self.scan_phase = ScanPhase.NONE

    async def _session_loop(self):
        """Background loop driving tick() at the interval of the current state"""
        logger.info(f"Session loop started (scan every {self.scan_interval}s)")

        while self.running:
            await self.tick()
            if not self.running:
                break

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval_for_state())
            except asyncio.TimeoutError:
                pass

    def _interval_for_state(self) -> float:
        if self.state is ConnectionManagerState.WATCHDOG:
            return self.watchdog_interval
        if self.state is ConnectionManagerState.WAIT:
            return self.idle_interval
        return self.scan_interval

    async def tick(self) -> bool:
        """
        Run one unit of work for the current state.

        Returns True when a new connection was established on this tick.
        Never raises.
        """
        self.stats['ticks'] += 1
        try:
            if self.state is ConnectionManagerState.SCAN:
                outcome = await self.do_work_scan()
                if outcome:
                    await self._connection_established(outcome.device)
                    return True

            elif self.state is ConnectionManagerState.CONNECT:
                outcome = await self.executor.try_connect(timeout_ms=self.connect_timeout_ms)
                if outcome:
                    await self._connection_established(outcome.device)
                    return True
                if self.running:
                    logger.info("Reconnect failed - falling back to scanning")
                    self.start_scan()

            elif self.state is ConnectionManagerState.WATCHDOG:
                outcome = await self.executor.try_connect(timeout_ms=self.connect_timeout_ms)
                if not outcome:
                    await self._connection_lost(outcome.device or self.executor.current_device)

        except Exception as e:
            self.stats['tick_errors'] += 1
            logger.error(f"Connection manager tick error: {e}")

        return False

    async def _connection_established(self, device: DeviceRecord):
        self.stats['connections_found'] += 1
        if self.state is not ConnectionManagerState.STOP:
            self.state = ConnectionManagerState.WATCHDOG if self.watchdog_enabled else ConnectionManagerState.WAIT
        logger.info(f"[CONNECTED] {device.name} ({device.address}) - next state: {self.state.value}")
        await self._notify(self.connection_found_callbacks, device)

    async def _connection_lost(self, device: Optional[DeviceRecord]):
        self.stats['connections_lost'] += 1
        await self.progress.report(1, "Connection lost, restarting scan")
        if self.running:
            self.start_scan()
        if device is not None:
            await self._notify(self.connection_lost_callbacks, device)

    # ================== CONNECT / SCAN WORK ==================

    async def reconnect(self) -> ConnectionOutcome:
        """Immediate reconnect to the current device, without scanning"""
        outcome = await self.executor.try_connect(timeout_ms=self.connect_timeout_ms)
        if outcome:
            await self._connection_established(outcome.device)
        return outcome

    async def do_work_scan(self) -> ConnectionOutcome:
        """Run one scan cycle and advance the quick/thorough alternation"""
        if self.scan_phase is ScanPhase.NONE:
            self.scan_phase = ScanPhase.QUICK

        if self.scan_phase is ScanPhase.QUICK:
            try:
                return await self.quick_scan()
            finally:
                self.scan_phase = ScanPhase.THOROUGH
        else:
            try:
                return await self.thorough_scan()
            finally:
                self.scan_phase = ScanPhase.QUICK

    async def quick_scan(self) -> ConnectionOutcome:
        """Fast cycle over devices the radio already knows about"""
        self.stats['quick_scans'] += 1
        return await self._scan_cycle(thorough=False)

    async def thorough_scan(self) -> ConnectionOutcome:
        """Full-range cycle that also pairs unauthenticated devices"""
        self.stats['thorough_scans'] += 1
        return await self._scan_cycle(thorough=True)

    async def _scan_cycle(self, thorough: bool) -> ConnectionOutcome:
        mode = "thorough" if thorough else "quick"
        await self.progress.report(3, f"Performing {mode} scan")

        # First try if the current connection is open or can be opened
        outcome = await self.executor.try_connect(timeout_ms=self.connect_timeout_ms)
        if outcome:
            return outcome

        try:
            await self.directory.scan_nearby(thorough=thorough)
        except DiscoveryFailed as e:
            await self.progress.report(2, f"Device discovery failed: {e}")

        # Then try the last stored connection
        if self.persistent_settings:
            await self.progress.report(3, "Trying last stored connection")
            last_address = self.credentials.last_connected_device
            if last_address is not None:
                outcome = await self.executor.try_connect(last_address, timeout_ms=self.connect_timeout_ms)
                if outcome:
                    return outcome

        # Then see if new devices have appeared since the last scan
        outcome = await self._try_new_devices()
        if outcome:
            return outcome

        for device in self.directory.current:
            await asyncio.sleep(self.device_pacing_seconds)
            if thorough:
                await self.negotiator.pair(device)
            await self.progress.report(1, f"Trying device {device.name} ({device.address})")
            outcome = await self.executor.try_connect(device, timeout_ms=self.connect_timeout_ms)
            if outcome:
                return outcome

        return ConnectionOutcome.failed(AttemptFailure.NOT_FOUND)

    async def _try_new_devices(self) -> ConnectionOutcome:
        new_devices = self.directory.newly_appeared()
        if not new_devices:
            return ConnectionOutcome.failed(AttemptFailure.NOT_FOUND)

        await self.progress.report(1, "Trying new devices")
        for device in new_devices:
            outcome = await self.executor.try_connect(device, timeout_ms=self.new_device_timeout_ms)
            if outcome:
                return outcome
            await asyncio.sleep(self.device_pacing_seconds)

        return ConnectionOutcome.failed(AttemptFailure.NOT_FOUND)

    # ================== STATUS ==================

    def get_status(self) -> Dict:
        """Get connection manager status"""
        current = self.executor.current_device
        last_event = self.progress.last_event
        try:
            link_connected = bool(self.transport.is_connected)
        except Exception as e:
            logger.debug(f"Transport link status unavailable: {e}")
            link_connected = False

        return {
            'running': self.running,
            'state': self.state.value,
            'scan_phase': self.scan_phase.value,
            'current_device': current.address if current else None,
            'current_device_name': current.name if current else None,
            'connected': self.executor.connected,
            'link_connected': link_connected,
            'attempt_in_progress': self.executor.busy,
            'last_connected_device': self.credentials.last_connected_device,
            'persistent_settings': self.persistent_settings,
            'known_devices': len(self.directory.current),
            'last_progress': last_event.description if last_event else None,
            'stats': dict(self.stats)
        }
