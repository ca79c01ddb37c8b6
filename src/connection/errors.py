"""
Exception types for the Bluetooth link manager

Collaborator adapters raise these; every component converts them to its own
result type at its boundary, so none of them escapes a scan cycle.
"""


class BluetoothLinkError(Exception):
    """Base exception for all link manager errors"""
    pass


# ================== TRANSPORT ERRORS ==================

class TransportError(BluetoothLinkError):
    """Raised by the wireless transport for any low-level failure"""
    pass


class DiscoveryFailed(TransportError):
    """Device enumeration failed - treated as zero devices found"""
    pass


class LinkFailed(TransportError):
    """Transport-level connect failed - attempt fails, no teardown"""
    pass


class PairingFailed(TransportError):
    """A single pairing request was rejected or errored"""

    def __init__(self, address: str, detail: str = ""):
        self.address = address
        self.detail = detail
        message = f"Pairing failed for {address}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# ================== HANDSHAKE / STORAGE / CONFIG ==================

class HandshakeTimeout(BluetoothLinkError):
    """The remote application did not answer the identify request in time"""
    pass


class PersistenceFailed(BluetoothLinkError):
    """Reading or writing the stored connection settings failed"""
    pass


class ConfigurationError(BluetoothLinkError):
    """Invalid configuration values"""
    pass
