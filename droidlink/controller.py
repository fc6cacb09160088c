"""Control channel: sends control messages and receives device messages."""

from __future__ import annotations

import logging
import socket
import struct
import threading
from enum import IntEnum
from typing import Callable, Optional

from .control_msg import ControlMessage

logger = logging.getLogger(__name__)

EndedCallback = Callable[["Controller", bool], None]
TextCallback = Callable[["Controller", str], None]


class DeviceMessageType(IntEnum):
    """Types of the messages the device sends on the control socket."""

    CLIPBOARD = 0
    DEVICE_INFO = 3
    ERROR = 4


def _recv_exact(sock: socket.socket, size: int) -> Optional[bytes]:
    """Read exactly size bytes, or return None if the socket closes first."""
    received = bytearray()
    while len(received) < size:
        try:
            chunk = sock.recv(size - len(received))
        except OSError:
            return None
        if not chunk:
            return None
        received += chunk
    return bytes(received)


def _c_string(payload: bytes) -> str:
    """Decode a payload as a string that ends at the first NUL byte."""
    return payload.split(b"\0", 1)[0].decode("utf-8", errors="replace")


class Controller:
    """Sends control messages to the device and dispatches its replies."""

    def __init__(
        self,
        control_socket: Optional[socket.socket],
        *,
        on_ended: Optional[EndedCallback] = None,
        on_device_info: Optional[TextCallback] = None,
        on_error_message: Optional[TextCallback] = None,
    ) -> None:
        self.control_socket = control_socket
        self.stopped = False
        self._on_ended = on_ended
        self._on_device_info = on_device_info
        self._on_error_message = on_error_message
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "Controller":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> bool:
        """Start the receiver thread; return False without a socket."""
        if self.control_socket is None:
            return False
        self.stopped = False
        self._thread = threading.Thread(
            target=self._run, name="droidlink-controller", daemon=True
        )
        self._thread.start()
        return True

    def stop(self) -> None:
        """Ask the receiver to stop and wake it up if it is blocked."""
        self.stopped = True
        if self.control_socket is not None:
            try:
                self.control_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def join(self) -> None:
        """Wait for the receiver thread to end."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
            self._thread = None

    def close(self) -> None:
        self.stop()
        self.join()

    def push_msg(self, msg: ControlMessage) -> bool:
        """Send a control message; return whether it was fully written."""
        if self.stopped or self.control_socket is None:
            return False
        with self._lock:
            data = msg.serialize()
            if not data:
                return False
            try:
                self.control_socket.sendall(data)
            except OSError:
                return False
        return True

    def _read_payload(self) -> Optional[bytes]:
        assert self.control_socket is not None
        header = _recv_exact(self.control_socket, 4)
        if header is None:
            return None
        (length,) = struct.unpack(">I", header)
        if length == 0:
            return b""
        return _recv_exact(self.control_socket, length)

    def _run(self) -> None:
        assert self.control_socket is not None
        while not self.stopped:
            head = _recv_exact(self.control_socket, 1)
            if head is None:
                logger.info("[controller] Socket closed or error, exiting recv thread")
                break
            try:
                kind = DeviceMessageType(head[0])
            except ValueError:
                logger.error(
                    "[controller] Unknown device message type received: %d. "
                    "Closing receiver.",
                    head[0],
                )
                break
            payload = self._read_payload()
            if payload is None:
                logger.warning("[controller] Failed to read %s message", kind.name.lower())
                break
            if not payload:
                continue
            if kind is DeviceMessageType.DEVICE_INFO and self._on_device_info:
                self._on_device_info(self, _c_string(payload))
            elif kind is DeviceMessageType.ERROR and self._on_error_message:
                self._on_error_message(self, _c_string(payload))
        if self._on_ended:
            self._on_ended(self, False)