"""
Bluetooth Link Manager - Main Entry Point
"""

import asyncio
import importlib
import signal
import sys
import logging
import os
from typing import Any, Callable, Dict

from config_loader import load_config, setup_logging
from connection.errors import ConfigurationError
from connection.progress import ProgressEvent
from discovery.models import DeviceRecord
from services.connection_manager import BluetoothConnectionManager

logger = logging.getLogger(__name__)

def resolve_factory(reference: str) -> Callable:
    """Resolve a "package.module:callable" reference"""
    module_name, sep, attr = (reference or "").partition(':')
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Invalid collaborator factory reference: {reference!r}")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"{module_name} has no attribute {attr}")

def build_manager(config: Dict[str, Any]) -> BluetoothConnectionManager:
    """Create transport/handshake through the configured factory and wrap them in a manager"""
    factory = resolve_factory(config.get('host', {}).get('collaborators', ''))
    transport, handshake = factory(config)
    return BluetoothConnectionManager(transport, handshake, config)

def attach_console_output(manager: BluetoothConnectionManager, max_level: int) -> None:
    """Print progress lines up to max_level and announce found connections"""

    async def print_progress(event: ProgressEvent):
        if event.level <= max_level:
            print(event.description)

    async def print_connection(device: DeviceRecord):
        print(f"Connection found: {device.name} ({device.address})")

    manager.add_progress_callback(print_progress)
    manager.add_connection_found_callback(print_connection)

async def main():
    """Main entry point"""
    config_path = os.environ.get('CONFIG_FILE', 'config/config.yaml')

    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"Cannot start: {e}")
        return 1

    setup_logging(config)
    logger.info(f"Using configuration file: {config_path}")

    try:
        manager = build_manager(config)
    except Exception as e:
        logger.error(f"Failed to create connection manager: {e}")
        return 1

    attach_console_output(manager, config['logging'].get('progress_level', 3))

    # Handle graceful shutdown
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        loop.call_soon_threadsafe(stop_requested.set)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        await manager.start_session()
        await stop_requested.wait()
    except Exception as e:
        logger.error(f"Connection manager failed: {e}")
        return 1
    finally:
        await manager.stop_session()

    return 0

def run():
    """Console script entry point"""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nStopped by user")
        sys.exit(0)

if __name__ == "__main__":
    run()
