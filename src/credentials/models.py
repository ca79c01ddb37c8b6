"""
Persisted connection settings
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field

class PersistedConfig(BaseModel):
    """Last successful device plus the pins that paired each device"""
    last_connected_device: Optional[str] = None
    device_pins: Dict[str, str] = Field(default_factory=dict)
