import struct

import pytest

from droidlink.control_msg import (
    CLIPBOARD_TEXT_MAX_LENGTH,
    INJECT_TEXT_MAX_LENGTH,
    POINTER_ID_MOUSE,
    BackOrScreenOn,
    CameraSetTorch,
    ControlMsgType,
    CopyKey,
    GetClipboard,
    GetDeviceInfo,
    InjectKeycode,
    InjectScrollEvent,
    InjectText,
    InjectTouchEvent,
    PauseResumeStream,
    Position,
    ResizeDisplay,
    SetClipboard,
    SetDisplayPower,
    SimpleMessage,
    StartApp,
    SwitchVideoSource,
    is_droppable,
    utf8_truncation_index,
)


def test_inject_keycode_layout():
    data = InjectKeycode(action=1, keycode=66, repeat=5, metastate=0x41).serialize()
    assert len(data) == 14
    assert struct.unpack(">BBIII", data) == (ControlMsgType.INJECT_KEYCODE, 1, 66, 5, 0x41)


def test_inject_keycode_describe_uses_label():
    text = InjectKeycode(action=0, keycode=3).describe()
    assert text.startswith("key down")
    assert "code=3" in text


def test_inject_keycode_unknown_action_label():
    assert "???" in InjectKeycode(action=9, keycode=3).describe()


def test_inject_text_layout():
    data = InjectText("hello").serialize()
    assert data[0] == ControlMsgType.INJECT_TEXT
    assert struct.unpack(">I", data[1:5]) == (5,)
    assert data[5:] == b"hello"


def test_inject_text_truncated_to_max_length():
    data = InjectText("x" * (INJECT_TEXT_MAX_LENGTH + 100)).serialize()
    (length,) = struct.unpack(">I", data[1:5])
    assert length == INJECT_TEXT_MAX_LENGTH
    assert len(data) == 5 + INJECT_TEXT_MAX_LENGTH


def test_inject_text_truncation_keeps_utf8_valid():
    text = "a" + "é" * INJECT_TEXT_MAX_LENGTH
    data = InjectText(text).serialize()
    (length,) = struct.unpack(">I", data[1:5])
    assert length <= INJECT_TEXT_MAX_LENGTH
    decoded = data[5:].decode("utf-8")
    assert text.startswith(decoded)


def test_touch_event_layout():
    pos = Position(x=100, y=-200, width=1080, height=1920)
    msg = InjectTouchEvent(action=2, pointer_id=7, position=pos, pressure=1.0,
                           action_button=1, buttons=3)
    data = msg.serialize()
    assert len(data) == 32
    fields = struct.unpack(">BBQiiHHHII", data)
    assert fields[:7] == (ControlMsgType.INJECT_TOUCH_EVENT, 2, 7, 100, -200, 1080, 1920)
    assert fields[7] == 0xFFFF
    assert fields[8:] == (1, 3)


def test_touch_pressure_zero():
    pos = Position(0, 0, 10, 10)
    data = InjectTouchEvent(action=0, pointer_id=1, position=pos, pressure=0.0).serialize()
    assert struct.unpack(">H", data[22:24]) == (0,)


def test_touch_pressure_monotonic():
    pos = Position(0, 0, 10, 10)
    values = [
        struct.unpack(">H", InjectTouchEvent(0, 1, pos, p).serialize()[22:24])[0]
        for p in (0.1, 0.25, 0.5, 0.75, 0.99)
    ]
    assert values == sorted(values)


def test_touch_pressure_out_of_range():
    with pytest.raises(ValueError):
        InjectTouchEvent(action=0, pointer_id=1, position=Position(0, 0, 1, 1),
                         pressure=1.5).serialize()


def test_touch_describe_mouse_pointer():
    msg = InjectTouchEvent(action=5, pointer_id=POINTER_ID_MOUSE,
                           position=Position(4, 8, 10, 10), pressure=1.0)
    text = msg.describe()
    assert "[id=mouse]" in text
    assert "pointer-down" in text
    assert "position=4,8" in text


def test_touch_describe_numeric_pointer():
    msg = InjectTouchEvent(action=0, pointer_id=42, position=Position(0, 0, 1, 1), pressure=0.5)
    assert "[id=42]" in msg.describe()


def test_scroll_event_clamped():
    pos = Position(1, 2, 300, 400)
    data = InjectScrollEvent(position=pos, hscroll=100.0, vscroll=-100.0, buttons=4).serialize()
    assert len(data) == 21
    fields = struct.unpack(">BiiHHhhI", data)
    assert fields[:5] == (ControlMsgType.INJECT_SCROLL_EVENT, 1, 2, 300, 400)
    assert fields[5] == 0x7FFF
    assert fields[6] == -0x8000
    assert fields[7] == 4


def test_scroll_event_symmetry():
    pos = Position(0, 0, 10, 10)
    up = struct.unpack(">hh", InjectScrollEvent(pos, 4.0, 2.0).serialize()[13:17])
    down = struct.unpack(">hh", InjectScrollEvent(pos, -4.0, -2.0).serialize()[13:17])
    assert up == tuple(-v for v in down)
    assert up[0] > up[1] > 0


def test_back_or_screen_on():
    msg = BackOrScreenOn(action=1)
    assert msg.serialize() == bytes([ControlMsgType.BACK_OR_SCREEN_ON, 1])
    assert msg.describe() == "back-or-screen-on up"


def test_get_clipboard():
    msg = GetClipboard(CopyKey.CUT)
    assert msg.serialize() == bytes([ControlMsgType.GET_CLIPBOARD, CopyKey.CUT])
    assert msg.describe() == "get clipboard copy_key=cut"


def test_set_clipboard_layout():
    data = SetClipboard(sequence=0x0102030405060708, text="hi", paste=True).serialize()
    seq, paste, length = struct.unpack(">QBI", data[1:14])
    assert data[0] == ControlMsgType.SET_CLIPBOARD
    assert (seq, paste, length) == (0x0102030405060708, 1, 2)
    assert data[14:] == b"hi"


def test_set_clipboard_truncation_limit():
    data = SetClipboard(sequence=1, text="z" * (CLIPBOARD_TEXT_MAX_LENGTH + 10)).serialize()
    (length,) = struct.unpack(">I", data[10:14])
    assert length == CLIPBOARD_TEXT_MAX_LENGTH
    assert data[9] == 0


def test_set_clipboard_describe():
    assert SetClipboard(3, "abc").describe() == 'clipboard 3 nopaste "abc"'


def test_display_power_and_torch():
    assert SetDisplayPower(True).serialize() == bytes([ControlMsgType.SET_DISPLAY_POWER, 1])
    assert SetDisplayPower(False).describe() == "display power off"
    assert CameraSetTorch(True).serialize() == bytes([ControlMsgType.CAMERA_SET_TORCH, 1])
    assert CameraSetTorch(True).describe() == "camera set torch on"


def test_start_app_layout():
    data = StartApp("com.example.app").serialize()
    assert data[0] == ControlMsgType.START_APP
    assert data[1] == len("com.example.app")
    assert data[2:] == b"com.example.app"


def test_start_app_truncated_to_255():
    data = StartApp("n" * 300).serialize()
    assert data[1] == 255
    assert len(data) == 2 + 255


def test_resize_display():
    data = ResizeDisplay(width=1280, height=720).serialize()
    assert struct.unpack(">BHH", data) == (ControlMsgType.RESIZE_DISPLAY, 1280, 720)
    assert ResizeDisplay(1280, 720).describe() == "resize display 1280x720"


def test_switch_video_source_display():
    msg = SwitchVideoSource(source=0, display_id=2, max_size=1024, max_fps=30.0)
    data = msg.serialize()
    assert len(data) == 14
    assert struct.unpack(">BBIIf", data) == (ControlMsgType.SWITCH_VIDEO_SOURCE, 0, 2, 1024, 30.0)


def test_switch_video_source_camera():
    msg = SwitchVideoSource(source=1, camera_id="cam0", camera_width=640,
                            camera_height=480, camera_fps=24)
    data = msg.serialize()
    assert len(data) == 14 + 1 + len("cam0")
    assert data[1] == 1
    assert data[2] == len("cam0")
    assert data[3:7] == b"cam0"
    assert struct.unpack(">III", data[7:]) == (640, 480, 24)
    assert 'camera "cam0"' in msg.describe()


def test_get_device_info_and_pause_resume():
    assert GetDeviceInfo().serialize() == bytes([ControlMsgType.GET_DEVICE_INFO])
    assert GetDeviceInfo().describe() == "get device info"
    data = PauseResumeStream(stream_type=1, pause=True).serialize()
    assert data == bytes([ControlMsgType.PAUSE_RESUME_STREAM, 1, 1])
    assert PauseResumeStream(0, False).describe() == "pause resume stream: type=0 pause=false"


@pytest.mark.parametrize(
    "msg_type",
    [
        ControlMsgType.EXPAND_NOTIFICATION_PANEL,
        ControlMsgType.EXPAND_SETTINGS_PANEL,
        ControlMsgType.COLLAPSE_PANELS,
        ControlMsgType.ROTATE_DEVICE,
        ControlMsgType.OPEN_HARD_KEYBOARD_SETTINGS,
        ControlMsgType.RESET_VIDEO,
        ControlMsgType.CAMERA_ZOOM_IN,
        ControlMsgType.CAMERA_ZOOM_OUT,
    ],
)
def test_simple_messages_are_one_byte(msg_type):
    assert SimpleMessage(msg_type).serialize() == bytes([msg_type])


def test_simple_message_describe():
    assert SimpleMessage(ControlMsgType.ROTATE_DEVICE).describe() == "rotate device"


def test_simple_message_rejects_payload_type():
    with pytest.raises(ValueError):
        SimpleMessage(ControlMsgType.INJECT_TEXT)


def test_utf8_truncation_index_short_input():
    assert utf8_truncation_index(b"abc", 10) == len(b"abc")
    assert utf8_truncation_index(None, 10) == 0


def test_utf8_truncation_index_avoids_split():
    data = "aé".encode("utf-8")
    index = utf8_truncation_index(data, len(data) - 1)
    assert data[:index].decode("utf-8") == "a"


def test_is_droppable():
    assert is_droppable(InjectText("x")) is True
    assert is_droppable(GetDeviceInfo()) is True