"""Basic information about a connected device."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_NAME = "Android Device"
UNKNOWN_NAME = "Unknown"


@dataclass
class DeviceInfo:
    """Serial, name and screen size of a device."""

    serial: Optional[str] = None
    device_name: Optional[str] = DEFAULT_DEVICE_NAME
    width: int = 1920
    height: int = 1080

    def __post_init__(self) -> None:
        logger.info("Device initialized: %s", self.serial or "unknown")

    @property
    def name(self) -> str:
        """The device name, or "Unknown" when none is known."""
        return self.device_name or UNKNOWN_NAME

    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self.width, self.height