"""Demultiplexing of a device media stream into packets."""

from __future__ import annotations

import logging
import struct
import threading
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Any, Callable, Optional

from .packet_source import PacketSource
from .packets import Packet, PacketMerger

logger = logging.getLogger(__name__)

PACKET_HEADER_SIZE = 12
PACKET_FLAG_CONFIG = 1 << 63
PACKET_FLAG_KEY_FRAME = 1 << 62
PACKET_PTS_MASK = PACKET_FLAG_KEY_FRAME - 1

AUDIO_SAMPLE_RATE = 48000
AUDIO_CHANNELS = 2


class CodecId(IntEnum):
    """Codec identifiers sent by the device, mostly ASCII names."""

    DISABLED = 0
    CONFIG_ERROR = 1
    H264 = 0x68323634
    H265 = 0x68323635
    AV1 = 0x00617631
    AAC = 0x00616163
    OPUS = 0x6F707573
    FLAC = 0x666C6163
    RAW = 0x00726177

    @property
    def is_video(self) -> bool:
        return self in _VIDEO_CODECS


_VIDEO_CODECS = frozenset({CodecId.H264, CodecId.H265, CodecId.AV1})
# Config packets must be merged with the next media packet only for H.26x
_MERGED_CONFIG_CODECS = frozenset({CodecId.H264, CodecId.H265})


class DemuxerStatus(Enum):
    EOS = auto()
    DISABLED = auto()
    ERROR = auto()


@dataclass(frozen=True)
class StreamInfo:
    """What the sinks need to know about the stream they receive."""

    codec: CodecId
    width: int = 0
    height: int = 0
    sample_rate: int = 0
    channels: int = 0
    sample_format: Optional[str] = None

    @property
    def is_video(self) -> bool:
        return self.codec.is_video


EndedCallback = Callable[["Demuxer", DemuxerStatus], None]


def _read_exact(stream: Any, size: int) -> Optional[bytes]:
    """Read exactly size bytes from a socket or binary file, or None if it
    ends first."""
    recv = getattr(stream, "recv", None)
    read = recv if recv is not None else stream.read
    received = bytearray()
    while len(received) < size:
        try:
            chunk = read(size - len(received))
        except OSError:
            return None
        if not chunk:
            return None
        received += chunk
    return bytes(received)


def read_packet(stream: Any) -> Optional[Packet]:
    """Read one packet: a 12-byte header (pts with flags, size) then the data.

    Return None at the end of the stream. Raise ValueError on an empty packet.
    """
    header = _read_exact(stream, PACKET_HEADER_SIZE)
    if header is None:
        return None
    pts_flags, length = struct.unpack(">QI", header)
    if length == 0:
        raise ValueError("packet with no data")
    data = _read_exact(stream, length)
    if data is None:
        return None
    pts = None if pts_flags & PACKET_FLAG_CONFIG else pts_flags & PACKET_PTS_MASK
    return Packet(data, pts, bool(pts_flags & PACKET_FLAG_KEY_FRAME))


class Demuxer:
    """Reads one media stream and forwards its packets to a PacketSource."""

    def __init__(
        self,
        name: str,
        stream: Any,
        on_ended: Optional[EndedCallback] = None,
        packet_source: Optional[PacketSource] = None,
    ) -> None:
        self.name = name
        self.stream = stream
        self.packet_source = packet_source if packet_source is not None else PacketSource()
        self.status: Optional[DemuxerStatus] = None
        self._on_ended = on_ended
        self._thread: Optional[threading.Thread] = None

    def run(self) -> DemuxerStatus:
        """Demux until the stream ends, then report and return the status."""
        status = self._demux()
        self.status = status
        if self._on_ended is not None:
            self._on_ended(self, status)
        return status

    def start(self) -> bool:
        logger.debug("Demuxer '%s': starting thread", self.name)
        self._thread = threading.Thread(
            target=self.run, name="droidlink-demuxer", daemon=True
        )
        self._thread.start()
        return True

    def join(self) -> None:
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _disable_sinks(self) -> None:
        if self.packet_source.sinks:
            self.packet_source.disable_sinks()

    def _demux(self) -> DemuxerStatus:
        raw = _read_exact(self.stream, 4)
        if raw is None:
            logger.error(
                "Demuxer '%s': stream disabled due to connection error", self.name
            )
            return DemuxerStatus.ERROR

        (raw_codec,) = struct.unpack(">I", raw)
        if raw_codec == CodecId.DISABLED:
            logger.warning(
                "Demuxer '%s': stream explicitly disabled by the device", self.name
            )
            self._disable_sinks()
            return DemuxerStatus.DISABLED
        if raw_codec == CodecId.CONFIG_ERROR:
            logger.error(
                "Demuxer '%s': stream configuration error on the device", self.name
            )
            return DemuxerStatus.ERROR

        try:
            codec = CodecId(raw_codec)
        except ValueError:
            logger.error("Unknown codec id 0x%08x", raw_codec)
            logger.error(
                "Demuxer '%s': stream disabled due to unsupported codec", self.name
            )
            self._disable_sinks()
            return DemuxerStatus.ERROR

        info = self._stream_info(codec)
        if info is None:
            return DemuxerStatus.ERROR
        if not self.packet_source.open_sinks(info):
            return DemuxerStatus.ERROR
        try:
            return self._pump(codec)
        finally:
            self.packet_source.close_sinks()

    def _stream_info(self, codec: CodecId) -> Optional[StreamInfo]:
        if codec.is_video:
            size = _read_exact(self.stream, 8)
            if size is None:
                return None
            width, height = struct.unpack(">II", size)
            return StreamInfo(codec, width=width, height=height)
        # The sample format is not set by the FLAC decoder
        sample_format = "s16" if codec is CodecId.FLAC else None
        return StreamInfo(
            codec,
            sample_rate=AUDIO_SAMPLE_RATE,
            channels=AUDIO_CHANNELS,
            sample_format=sample_format,
        )

    def _pump(self, codec: CodecId) -> DemuxerStatus:
        merger = PacketMerger() if codec in _MERGED_CONFIG_CODECS else None
        status = DemuxerStatus.EOS
        while True:
            try:
                packet = read_packet(self.stream)
            except ValueError as exc:
                logger.error("Demuxer '%s': %s", self.name, exc)
                status = DemuxerStatus.ERROR
                break
            if packet is None:
                break
            if merger is not None:
                packet = merger.merge(packet)
                if packet.is_config:
                    continue
            if not self.packet_source.push_packet(packet):
                status = DemuxerStatus.ERROR
                break
        logger.debug("Demuxer '%s': end of frames", self.name)
        return status