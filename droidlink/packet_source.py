"""Fan-out of demuxed packets to a small number of sinks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .packets import Packet

MAX_SINKS = 2


class PacketSink(ABC):
    """Receives the packets of one stream."""

    disabled: bool = False

    @abstractmethod
    def open(self, codec: Any) -> bool:
        """Prepare for packets of the given codec; return success."""

    @abstractmethod
    def close(self) -> None:
        """Release what open() acquired."""

    @abstractmethod
    def push(self, packet: Packet) -> bool:
        """Consume one packet; return success."""

    def disable(self) -> None:
        """Called instead of open/push/close when the stream is disabled."""
        self.disabled = True


class PacketSource:
    """Holds up to MAX_SINKS sinks and forwards packets to each of them."""

    def __init__(self) -> None:
        self._sinks: list[PacketSink] = []

    @property
    def sinks(self) -> tuple[PacketSink, ...]:
        return tuple(self._sinks)

    def add_sink(self, sink: PacketSink) -> None:
        if len(self._sinks) >= MAX_SINKS:
            raise ValueError(f"a packet source holds at most {MAX_SINKS} sinks")
        self._sinks.append(sink)

    def open_sinks(self, codec: Any) -> bool:
        """Open every sink; on failure close the ones already opened."""
        for opened, sink in enumerate(self._sinks):
            if not sink.open(codec):
                self._close_first(opened)
                return False
        return True

    def push_packet(self, packet: Packet) -> bool:
        """Push to each sink in turn, stopping at the first failure."""
        if not self._sinks:
            raise RuntimeError("no sink to push packets to")
        return all(sink.push(packet) for sink in self._sinks)

    def close_sinks(self) -> None:
        self._close_first(len(self._sinks))

    def clear_sinks(self) -> None:
        self.close_sinks()
        self._sinks.clear()

    def disable_sinks(self) -> None:
        if not self._sinks:
            raise RuntimeError("no sink to disable")
        for sink in self._sinks:
            sink.disable()

    def _close_first(self, count: int) -> None:
        for sink in reversed(self._sinks[:count]):
            sink.close()