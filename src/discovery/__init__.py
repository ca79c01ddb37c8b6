"""
Discovery module for Bluetooth device enumeration
"""

from .models import DeviceRecord, DiscoveryParameters, DiscoverySnapshot
from .directory import DeviceDirectory

__all__ = ['DeviceDirectory', 'DeviceRecord', 'DiscoveryParameters', 'DiscoverySnapshot']
