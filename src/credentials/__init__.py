"""
Credential module for stored connection settings and pairing pins
"""

from .models import PersistedConfig
from .store import CredentialStore

__all__ = ['CredentialStore', 'PersistedConfig']
