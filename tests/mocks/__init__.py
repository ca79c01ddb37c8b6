"""
In-memory collaborators standing in for the radio stack and the handshake protocol.
"""

from .bluetooth import MockHandshake, MockTransport

__all__ = ['MockHandshake', 'MockTransport']
