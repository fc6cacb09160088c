"""Building the server's command-line parameters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Any, Optional

_INVALID_CHARS = frozenset(" ;'\"*$?&`#\\|<>[]{}()!~\r\n")


class LogLevel(Enum):
    VERBOSE = "verbose"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Codec(Enum):
    H264 = "h264"
    H265 = "h265"
    AV1 = "av1"
    OPUS = "opus"
    AAC = "aac"
    FLAC = "flac"
    RAW = "raw"


class VideoSource(Enum):
    DISPLAY = "display"
    CAMERA = "camera"


class AudioSource(Enum):
    OUTPUT = "output"
    MIC = "mic"
    PLAYBACK = "playback"
    MIC_UNPROCESSED = "mic-unprocessed"
    MIC_CAMCORDER = "mic-camcorder"
    MIC_VOICE_RECOGNITION = "mic-voice-recognition"
    MIC_VOICE_COMMUNICATION = "mic-voice-communication"
    VOICE_CALL = "voice-call"
    VOICE_CALL_UPLINK = "voice-call-uplink"
    VOICE_CALL_DOWNLINK = "voice-call-downlink"
    VOICE_PERFORMANCE = "voice-performance"


class CameraFacing(Enum):
    ANY = "any"
    FRONT = "front"
    BACK = "back"
    EXTERNAL = "external"


class DisplayImePolicy(Enum):
    UNDEFINED = "undefined"
    LOCAL = "local"
    FALLBACK = "fallback"
    HIDE = "hide"


class OrientationLock(Enum):
    UNLOCKED = "unlocked"
    LOCKED_VALUE = "locked-value"
    LOCKED_INITIAL = "locked-initial"


class ListOption(IntFlag):
    NONE = 0
    ENCODERS = 1
    DISPLAYS = 2
    CAMERAS = 4
    CAMERA_SIZES = 8
    APPS = 16
    DEVICE_INFOS = 32


_LIST_KEYS = (
    (ListOption.ENCODERS, "list_encoders="),
    (ListOption.DISPLAYS, "list_displays="),
    (ListOption.CAMERAS, "list_cameras="),
    (ListOption.CAMERA_SIZES, "list_camera_sizes="),
    (ListOption.APPS, "list_apps="),
    (ListOption.DEVICE_INFOS, "list_device_infos="),
)


@dataclass
class ServerParams:
    """Parameters of a server session."""

    scid: int = 0
    req_serial: str = ""
    log_level: LogLevel = LogLevel.INFO
    video_codec: Codec = Codec.H264
    audio_codec: Codec = Codec.OPUS
    video_source: VideoSource = VideoSource.DISPLAY
    audio_source: AudioSource = AudioSource.OUTPUT
    camera_facing: CameraFacing = CameraFacing.ANY
    crop: str = ""
    video_codec_options: str = ""
    audio_codec_options: str = ""
    video_encoder: str = ""
    audio_encoder: str = ""
    camera_id: str = ""
    camera_size: str = ""
    camera_ar: str = ""
    camera_fps: int = 0
    port_range: tuple[int, int] = (27183, 27199)
    tunnel_host: int = 0
    tunnel_port: int = 0
    max_size: int = 0
    video_bit_rate: int = 0
    audio_bit_rate: int = 0
    max_fps: str = ""
    angle: str = ""
    screen_off_timeout_ms: Optional[int] = None
    capture_orientation: str = "0"
    capture_orientation_lock: OrientationLock = OrientationLock.UNLOCKED
    control: bool = True
    display_id: int = 0
    new_display: str = ""
    display_ime_policy: DisplayImePolicy = DisplayImePolicy.UNDEFINED
    video: bool = True
    audio: bool = True
    audio_dup: bool = False
    show_touches: bool = False
    stay_awake: bool = False
    force_adb_forward: bool = False
    power_off_on_close: bool = False
    clipboard_autosync: bool = True
    downsize_on_error: bool = True
    tcpip: bool = False
    tcpip_dst: str = ""
    select_usb: bool = False
    select_tcpip: bool = False
    cleanup: bool = True
    power_on: bool = True
    kill_adb_on_close: bool = False
    camera_high_speed: bool = False
    vd_destroy_content: bool = True
    vd_system_decorations: bool = True
    list: ListOption = ListOption.NONE


class InvalidServerParam(ValueError):
    """A parameter value holds a character the shell would interpret."""

    def __init__(self, key: str, value: str) -> None:
        super().__init__(f"Invalid value for {key} {value!r}")
        self.key = key
        self.value = value


def validate_value(value: str) -> bool:
    """Tell whether a value is free of special shell characters.

    Values are passed on the adb command line without escaping.
    """
    return not any(char in _INVALID_CHARS for char in value)


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class ServerCmdBuilder:
    """Appends "key=value" arguments to a command line."""

    def __init__(self, cmd: Optional[list[str]] = None) -> None:
        self.cmd: list[str] = cmd if cmd is not None else []

    def add(self, key: str, value: Any) -> None:
        self.cmd.append(key + _format(value))

    def add_bool(self, key: str, value: bool, default: bool = True) -> None:
        """Add "true"/"false" only when the value differs from the default."""
        if value != default:
            self.add(key, "true" if value else "false")

    def add_validated(self, key: str, value: str) -> None:
        if not validate_value(value):
            raise InvalidServerParam(key, value)
        self.add(key, value)

    def add_hex(self, key: str, value: int) -> None:
        self.cmd.append(f"{key}{value & 0xFFFFFFFF:x}")

    def build_from_params(self, params: ServerParams, tunnel_forward: bool) -> list[str]:
        """Add every parameter that differs from the server's default.

        Raises InvalidServerParam on a value the shell would interpret.
        """
        p = params
        self.add_hex("scid=", p.scid)
        self.add("log_level=", p.log_level.value)

        self.add_bool("video=", p.video)
        self.add_bool("audio=", p.audio)
        self.add_bool("control=", p.control)

        if p.video_bit_rate:
            self.add("video_bit_rate=", p.video_bit_rate)
        if p.audio_bit_rate:
            self.add("audio_bit_rate=", p.audio_bit_rate)

        if p.video_codec is not Codec.H264:
            self.add("video_codec=", p.video_codec.value)
        if p.audio_codec is not Codec.OPUS:
            self.add("audio_codec=", p.audio_codec.value)

        if p.video_source is not VideoSource.DISPLAY:
            self.add("video_source=", "camera")
        if p.audio_source is not AudioSource.OUTPUT and p.audio:
            self.add("audio_source=", p.audio_source.value)
        if p.audio_dup:
            self.add("audio_dup=", True)

        if p.max_fps:
            self.add_validated("max_fps=", p.max_fps)
        if p.angle:
            self.add_validated("angle=", p.angle)

        lock = p.capture_orientation_lock
        if lock is not OrientationLock.UNLOCKED or p.capture_orientation != "0":
            if lock is OrientationLock.LOCKED_INITIAL:
                orientation = "@"
            else:
                prefix = "@" if lock is not OrientationLock.UNLOCKED else ""
                orientation = prefix + p.capture_orientation
            self.add_validated("capture_orientation=", orientation)

        if p.crop:
            self.add_validated("crop=", p.crop)
        if p.max_size:
            self.add("max_size=", p.max_size)
        if p.display_id:
            self.add("display_id=", p.display_id)

        if p.camera_id:
            self.add_validated("camera_id=", p.camera_id)
        if p.camera_size:
            self.add_validated("camera_size=", p.camera_size)
        if p.camera_facing is not CameraFacing.ANY:
            self.add("camera_facing=", p.camera_facing.value)
        if p.camera_ar:
            self.add_validated("camera_ar=", p.camera_ar)
        if p.camera_fps:
            self.add("camera_fps=", p.camera_fps)

        if p.camera_high_speed:
            self.add("camera_high_speed=", "true")
        if p.show_touches:
            self.add("show_touches=", "true")
        if p.stay_awake:
            self.add("stay_awake=", "true")

        if p.screen_off_timeout_ms is not None and p.screen_off_timeout_ms >= 0:
            self.add("screen_off_timeout=", p.screen_off_timeout_ms)

        if p.video_codec_options:
            self.add_validated("video_codec_options=", p.video_codec_options)
        if p.audio_codec_options:
            self.add_validated("audio_codec_options=", p.audio_codec_options)
        if p.video_encoder:
            self.add_validated("video_encoder=", p.video_encoder)
        if p.audio_encoder:
            self.add_validated("audio_encoder=", p.audio_encoder)

        self.add_bool("clipboard_autosync=", p.clipboard_autosync)
        self.add_bool("downsize_on_error=", p.downsize_on_error)
        self.add_bool("cleanup=", p.cleanup)
        self.add_bool("power_on=", p.power_on)
        self.add_bool("power_off_on_close=", p.power_off_on_close)

        if p.new_display:
            self.add_validated("new_display=", p.new_display)

        if p.display_ime_policy is not DisplayImePolicy.UNDEFINED:
            self.add("display_ime_policy=", p.display_ime_policy.value)

        self.add_bool("vd_destroy_content=", p.vd_destroy_content)
        self.add_bool("vd_system_decorations=", p.vd_system_decorations)

        if tunnel_forward:
            self.add("tunnel_forward=", "true")

        for flag, key in _LIST_KEYS:
            if p.list & flag:
                self.add(key, "true")

        return self.cmd