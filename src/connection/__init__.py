"""
Connection module - pairing, attempt execution and collaborator contracts
"""

from .errors import (
    BluetoothLinkError,
    TransportError,
    DiscoveryFailed,
    LinkFailed,
    PairingFailed,
    HandshakeTimeout,
    PersistenceFailed,
    ConfigurationError,
)
from .transport import BluetoothTransport, DeviceStatus, Handshake
from .progress import ProgressEvent, ProgressReporter
from .pairing import PairingNegotiator, PairingResult
from .executor import AttemptFailure, ConnectionAttemptExecutor, ConnectionOutcome

__all__ = [
    'BluetoothLinkError', 'TransportError', 'DiscoveryFailed', 'LinkFailed', 'PairingFailed',
    'HandshakeTimeout', 'PersistenceFailed', 'ConfigurationError',
    'BluetoothTransport', 'DeviceStatus', 'Handshake',
    'ProgressEvent', 'ProgressReporter',
    'PairingNegotiator', 'PairingResult',
    'AttemptFailure', 'ConnectionAttemptExecutor', 'ConnectionOutcome',
]
