"""Control messages sent from the client to the device, and their wire format."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Optional, Sequence

CONTROL_MSG_MAX_SIZE = 1 << 18
INJECT_TEXT_MAX_LENGTH = 300
# type: 1 byte; sequence: 8 bytes; paste flag: 1 byte; length: 4 bytes
CLIPBOARD_TEXT_MAX_LENGTH = CONTROL_MSG_MAX_SIZE - 14

POINTER_ID_MOUSE = (1 << 64) - 1
POINTER_ID_GENERIC_FINGER = POINTER_ID_MOUSE - 1
# Additional virtual pointer used for pinch-to-zoom
POINTER_ID_VIRTUAL_FINGER = POINTER_ID_MOUSE - 2

MOTION_EVENT_ACTION_MASK = 0xFF

_KEYEVENT_ACTION_LABELS = ("down", "up", "multi")

_MOTIONEVENT_ACTION_LABELS = (
    "down",
    "up",
    "move",
    "cancel",
    "outside",
    "pointer-down",
    "pointer-up",
    "hover-move",
    "scroll",
    "hover-enter",
    "hover-exit",
    "btn-press",
    "btn-release",
)

_COPY_KEY_LABELS = ("none", "copy", "cut")

_POINTER_NAMES = {
    POINTER_ID_MOUSE: "mouse",
    POINTER_ID_GENERIC_FINGER: "finger",
    POINTER_ID_VIRTUAL_FINGER: "vfinger",
}


class ControlMsgType(IntEnum):
    INJECT_KEYCODE = 0
    INJECT_TEXT = 1
    INJECT_TOUCH_EVENT = 2
    INJECT_SCROLL_EVENT = 3
    BACK_OR_SCREEN_ON = 4
    EXPAND_NOTIFICATION_PANEL = 5
    EXPAND_SETTINGS_PANEL = 6
    COLLAPSE_PANELS = 7
    GET_CLIPBOARD = 8
    SET_CLIPBOARD = 9
    SET_DISPLAY_POWER = 10
    ROTATE_DEVICE = 11
    OPEN_HARD_KEYBOARD_SETTINGS = 12
    START_APP = 13
    RESET_VIDEO = 14
    CAMERA_SET_TORCH = 15
    CAMERA_ZOOM_IN = 16
    CAMERA_ZOOM_OUT = 17
    SWITCH_VIDEO_SOURCE = 18
    GET_DEVICE_INFO = 19
    PAUSE_RESUME_STREAM = 20
    RESIZE_DISPLAY = 21


class CopyKey(IntEnum):
    NONE = 0
    COPY = 1
    CUT = 2


_SIMPLE_DESCRIPTIONS = {
    ControlMsgType.EXPAND_NOTIFICATION_PANEL: "expand notification panel",
    ControlMsgType.EXPAND_SETTINGS_PANEL: "expand settings panel",
    ControlMsgType.COLLAPSE_PANELS: "collapse panels",
    ControlMsgType.ROTATE_DEVICE: "rotate device",
    ControlMsgType.OPEN_HARD_KEYBOARD_SETTINGS: "open hard keyboard settings",
    ControlMsgType.RESET_VIDEO: "reset video",
    ControlMsgType.CAMERA_ZOOM_IN: "camera zoom in",
    ControlMsgType.CAMERA_ZOOM_OUT: "camera zoom out",
}


def _label(labels: Sequence[str], value: int) -> str:
    return labels[value] if 0 <= value < len(labels) else "???"


def _f32(value: float) -> float:
    """Round a float to single precision."""
    return struct.unpack(">f", struct.pack(">f", value))[0]


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


def _float_to_u16fp(value: float) -> int:
    value = _f32(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"value out of range [0, 1]: {value}")
    return min(int(value * 0x10000), 0xFFFF)


def _float_to_i16fp(value: float) -> int:
    value = _f32(value)
    if not -1.0 <= value <= 1.0:
        raise ValueError(f"value out of range [-1, 1]: {value}")
    return min(int(value * 0x8000), 0x7FFF)


def utf8_truncation_index(data: Optional[bytes], max_len: int) -> int:
    """Return the length of the longest prefix of at most max_len bytes that
    does not cut a UTF-8 sequence."""
    if not data:
        return 0
    if len(data) <= max_len:
        return len(data)
    index = max_len
    while index > 0 and (data[index] & 0xC0) == 0x80:
        index -= 1
    return index


def _truncated(text: Optional[str], max_len: int) -> bytes:
    if not text:
        return b""
    data = text.encode("utf-8")
    return data[: utf8_truncation_index(data, max_len)]


def _string(text: Optional[str], max_len: int) -> bytes:
    """Length on 4 bytes followed by the (non null-terminated) string."""
    payload = _truncated(text, max_len)
    return struct.pack(">I", len(payload)) + payload


def _string_tiny(text: Optional[str], max_len: int) -> bytes:
    """Length on 1 byte followed by the (non null-terminated) string."""
    if max_len > 0xFF:
        raise ValueError("tiny strings hold at most 255 bytes")
    payload = _truncated(text, max_len)
    return bytes([len(payload)]) + payload


@dataclass(frozen=True)
class Position:
    """A point on a screen of the given size."""

    x: int
    y: int
    width: int
    height: int

    def pack(self) -> bytes:
        return struct.pack(">iiHH", self.x, self.y, self.width, self.height)


class ControlMessage:
    """Base of all control messages."""

    type: ClassVar[ControlMsgType]
    droppable: ClassVar[bool] = True

    def _payload(self) -> bytes:
        return b""

    def serialize(self) -> bytes:
        """Return the wire representation of the message."""
        data = bytes([self.type]) + self._payload()
        if len(data) > CONTROL_MSG_MAX_SIZE:
            raise ValueError("serialized control message too large")
        return data

    def describe(self) -> str:
        """Return a human-readable description, as used in debug logs."""
        return f"unknown type: {int(self.type)}"


@dataclass(frozen=True)
class InjectKeycode(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.INJECT_KEYCODE

    action: int
    keycode: int
    repeat: int = 0
    metastate: int = 0

    def _payload(self) -> bytes:
        return struct.pack(
            ">BIII",
            self.action & 0xFF,
            _u32(self.keycode),
            _u32(self.repeat),
            _u32(self.metastate),
        )

    def describe(self) -> str:
        label = _label(_KEYEVENT_ACTION_LABELS, self.action)
        return (
            f"key {label:<4} code={self.keycode} repeat={self.repeat} "
            f"meta={self.metastate:06x}"
        )


@dataclass(frozen=True)
class InjectText(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.INJECT_TEXT

    text: str

    def _payload(self) -> bytes:
        return _string(self.text, INJECT_TEXT_MAX_LENGTH)

    def describe(self) -> str:
        return f'text "{self.text}"'


@dataclass(frozen=True)
class InjectTouchEvent(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.INJECT_TOUCH_EVENT

    action: int
    pointer_id: int
    position: Position
    pressure: float
    action_button: int = 0
    buttons: int = 0

    def _payload(self) -> bytes:
        return (
            struct.pack(">BQ", self.action & 0xFF, self.pointer_id)
            + self.position.pack()
            + struct.pack(
                ">HII",
                _float_to_u16fp(self.pressure),
                _u32(self.action_button),
                _u32(self.buttons),
            )
        )

    def describe(self) -> str:
        action = self.action & MOTION_EVENT_ACTION_MASK
        name = _POINTER_NAMES.get(self.pointer_id, str(self.pointer_id))
        label = _label(_MOTIONEVENT_ACTION_LABELS, action)
        return (
            f"touch [id={name}] {label:<4} "
            f"position={self.position.x},{self.position.y} "
            f"pressure={self.pressure:f} "
            f"action_button={self.action_button:06x} buttons={self.buttons:06x}"
        )


@dataclass(frozen=True)
class InjectScrollEvent(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.INJECT_SCROLL_EVENT

    position: Position
    hscroll: float
    vscroll: float
    buttons: int = 0

    def _payload(self) -> bytes:
        # Values in [-16, 16] are normalized to [-1, 1].
        hscroll = min(max(_f32(self.hscroll) / 16, -1.0), 1.0)
        vscroll = min(max(_f32(self.vscroll) / 16, -1.0), 1.0)
        return self.position.pack() + struct.pack(
            ">hhI",
            _float_to_i16fp(hscroll),
            _float_to_i16fp(vscroll),
            _u32(self.buttons),
        )

    def describe(self) -> str:
        return (
            f"scroll position={self.position.x},{self.position.y} "
            f"hscroll={self.hscroll:f} vscroll={self.vscroll:f} "
            f"buttons={self.buttons:06x}"
        )


@dataclass(frozen=True)
class BackOrScreenOn(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.BACK_OR_SCREEN_ON

    action: int

    def _payload(self) -> bytes:
        return bytes([self.action & 0xFF])

    def describe(self) -> str:
        return f"back-or-screen-on {_label(_KEYEVENT_ACTION_LABELS, self.action)}"


@dataclass(frozen=True)
class GetClipboard(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.GET_CLIPBOARD

    copy_key: CopyKey = CopyKey.NONE

    def _payload(self) -> bytes:
        return bytes([int(self.copy_key) & 0xFF])

    def describe(self) -> str:
        return f"get clipboard copy_key={_label(_COPY_KEY_LABELS, int(self.copy_key))}"


@dataclass(frozen=True)
class SetClipboard(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.SET_CLIPBOARD

    sequence: int
    text: str
    paste: bool = False

    def _payload(self) -> bytes:
        return struct.pack(">QB", self.sequence, 1 if self.paste else 0) + _string(
            self.text, CLIPBOARD_TEXT_MAX_LENGTH
        )

    def describe(self) -> str:
        mode = "paste" if self.paste else "nopaste"
        return f'clipboard {self.sequence} {mode} "{self.text}"'


@dataclass(frozen=True)
class SetDisplayPower(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.SET_DISPLAY_POWER

    on: bool

    def _payload(self) -> bytes:
        return bytes([1 if self.on else 0])

    def describe(self) -> str:
        return f"display power {'on' if self.on else 'off'}"


@dataclass(frozen=True)
class StartApp(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.START_APP

    name: str

    def _payload(self) -> bytes:
        return _string_tiny(self.name, 255)

    def describe(self) -> str:
        return f'start app "{self.name}"'


@dataclass(frozen=True)
class CameraSetTorch(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.CAMERA_SET_TORCH

    on: bool

    def _payload(self) -> bytes:
        return bytes([1 if self.on else 0])

    def describe(self) -> str:
        return f"camera set torch {'on' if self.on else 'off'}"


@dataclass(frozen=True)
class ResizeDisplay(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.RESIZE_DISPLAY

    width: int
    height: int

    def _payload(self) -> bytes:
        return struct.pack(">HH", self.width, self.height)

    def describe(self) -> str:
        return f"resize display {self.width}x{self.height}"


@dataclass(frozen=True)
class SwitchVideoSource(ControlMessage):
    """Switch to a display (source 0) or to a camera (any other source)."""

    type: ClassVar[ControlMsgType] = ControlMsgType.SWITCH_VIDEO_SOURCE

    source: int = 0
    display_id: int = 0
    max_size: int = 0
    max_fps: float = 0.0
    camera_id: Optional[str] = None
    camera_width: int = 0
    camera_height: int = 0
    camera_fps: int = 0

    @property
    def is_display(self) -> bool:
        return self.source == 0

    def _payload(self) -> bytes:
        head = bytes([self.source & 0xFF])
        if self.is_display:
            return head + struct.pack(
                ">IIf", _u32(self.display_id), _u32(self.max_size), self.max_fps
            )
        return (
            head
            + _string_tiny(self.camera_id, 255)
            + struct.pack(
                ">III",
                _u32(self.camera_width),
                _u32(self.camera_height),
                _u32(self.camera_fps),
            )
        )

    def describe(self) -> str:
        if self.is_display:
            return (
                f"switch video source: display {self.display_id} "
                f"max_size={self.max_size} max_fps={self.max_fps:f}"
            )
        return (
            f'switch video source: camera "{self.camera_id or ""}" '
            f"size={self.camera_width}x{self.camera_height} fps={self.camera_fps}"
        )


@dataclass(frozen=True)
class GetDeviceInfo(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.GET_DEVICE_INFO

    def describe(self) -> str:
        return "get device info"


@dataclass(frozen=True)
class PauseResumeStream(ControlMessage):
    type: ClassVar[ControlMsgType] = ControlMsgType.PAUSE_RESUME_STREAM

    stream_type: int
    pause: bool

    def _payload(self) -> bytes:
        return bytes([self.stream_type & 0xFF, 1 if self.pause else 0])

    def describe(self) -> str:
        state = "true" if self.pause else "false"
        return f"pause resume stream: type={self.stream_type} pause={state}"


@dataclass(frozen=True)
class SimpleMessage(ControlMessage):
    """A message made of its type byte alone."""

    msg_type: ControlMsgType = field(default=ControlMsgType.RESET_VIDEO)

    def __post_init__(self) -> None:
        if self.msg_type not in _SIMPLE_DESCRIPTIONS:
            raise ValueError(f"message type {self.msg_type!r} carries a payload")

    @property
    def type(self) -> ControlMsgType:  # type: ignore[override]
        return ControlMsgType(self.msg_type)

    def describe(self) -> str:
        return _SIMPLE_DESCRIPTIONS[ControlMsgType(self.msg_type)]


def is_droppable(msg: ControlMessage) -> bool:
    """Tell whether the message may be dropped when the queue is full."""
    if not isinstance(msg, ControlMessage):
        raise TypeError(f"not a control message: {msg!r}")
    return msg.droppable