"""Media packets and merging of codec configuration packets."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass
class Packet:
    """A raw media packet; a pts of None marks a codec configuration packet."""

    data: bytes
    pts: Optional[int] = None
    key_frame: bool = False

    @property
    def is_config(self) -> bool:
        return self.pts is None

    @property
    def dts(self) -> Optional[int]:
        return self.pts


class PacketMerger:
    """Prepends the last configuration packet to the next media packet."""

    def __init__(self) -> None:
        self.config: Optional[bytes] = None

    def merge(self, packet: Packet) -> Packet:
        """Record a config packet, or return the media packet with any
        pending config prepended."""
        if packet.is_config:
            self.config = bytes(packet.data)
            return packet
        if self.config is not None:
            merged = replace(packet, data=self.config + bytes(packet.data))
            self.config = None
            return merged
        return packet