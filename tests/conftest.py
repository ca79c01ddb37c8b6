"""
Pytest configuration and fixtures for the Bluetooth link manager.

Fixtures:
    - device_x / device_y: an unauthenticated and an authenticated device
    - link_config: config dict with zero delays and a temporary settings file
    - transport / handshake: in-memory collaborators
    - progress: ProgressReporter that records every event
    - credentials / directory / executor: components wired to the mocks
"""

import pytest

from connection.executor import ConnectionAttemptExecutor
from connection.progress import ProgressReporter
from credentials.store import CredentialStore
from discovery.directory import DeviceDirectory
from discovery.models import DeviceRecord
from tests.mocks import MockHandshake, MockTransport

# Note: With pytest-asyncio in auto mode, no event_loop fixture needed


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: Full scan cycles through the connection manager"
    )


@pytest.fixture
def device_x():
    """Unauthenticated device."""
    return DeviceRecord(address="20:13:07:26:10:08", name="HC-05", authenticated=False)


@pytest.fixture
def device_y():
    """Already paired device."""
    return DeviceRecord(address="98:D3:31:FB:2E:41", name="HC-06", authenticated=True)


@pytest.fixture
def link_config(tmp_path):
    """Configuration with all delays zeroed and settings in a temp dir."""
    return {
        "bluetooth": {
            "persistent_settings": True,
            "settings_file": str(tmp_path / "LastConnectedBluetoothSetting.yaml"),
            "common_pins": ["0000", "1111", "1234"],
            "connect_timeout_ms": 50,
            "new_device_timeout_ms": 20,
            "handshake_attempts": 5,
            "probe_grace_seconds": 0.5,
            "pairing_settle_seconds": 0,
            "device_pacing_seconds": 0,
        },
        "manager": {
            "scan_interval_seconds": 0.01,
            "watchdog_enabled": False,
            "watchdog_interval_seconds": 0.01,
            "idle_interval_seconds": 0.01,
        },
    }


@pytest.fixture
def transport():
    return MockTransport()


@pytest.fixture
def handshake(transport):
    return MockHandshake(transport)


@pytest.fixture
def progress():
    """ProgressReporter whose events are collected in progress.events."""
    reporter = ProgressReporter("test")
    reporter.events = []

    async def collect(event):
        reporter.events.append(event)

    reporter.add_callback(collect)
    return reporter


@pytest.fixture
def credentials(link_config):
    return CredentialStore.from_config(link_config["bluetooth"])


@pytest.fixture
def directory(transport, link_config):
    return DeviceDirectory(transport, link_config["bluetooth"])


@pytest.fixture
def executor(transport, handshake, directory, credentials, progress, link_config):
    return ConnectionAttemptExecutor(
        transport, handshake, directory, credentials, progress, link_config["bluetooth"]
    )
