"""
Leveled progress stream for connection attempts
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

@dataclass
class ProgressEvent:
    """One progress line; level 1 is high-level, higher levels are more verbose"""
    level: int
    description: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]

class ProgressReporter:
    """Writes progress lines to the log and to registered callbacks"""

    def __init__(self, name: str = "bluetooth"):
        self.name = name
        self.callbacks: List[ProgressCallback] = []
        self.last_event: Optional[ProgressEvent] = None

    def add_callback(self, callback: ProgressCallback):
        """Add callback for progress updates"""
        self.callbacks.append(callback)

    async def report(self, level: int, description: str):
        event = ProgressEvent(level=level, description=description)
        self.last_event = event

        if level <= 2:
            logger.info(f"[{self.name}] {description}")
        else:
            logger.debug(f"[{self.name}] {description}")

        for callback in self.callbacks:
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"Progress callback failed: {e}")
