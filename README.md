# droidlink

Building blocks for mirroring and controlling an Android device from a
desktop: the binary control messages sent to the on-device server, parsers
for `adb` output, device selection rules, the demuxer for the device's
video/audio streams, and the builder for the server's `key=value` command-line
parameters.

The package has no third-party dependencies and never starts a process. You
give it the text that `adb` printed and the sockets or binary streams that the
device server is connected to.

## Installation

```
pip install droidlink
```

To run the test suite from a checkout:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Purpose |
| --- | --- |
| `droidlink.control_msg` | Control messages (`InjectKeycode`, `InjectText`, `InjectTouchEvent`, `InjectScrollEvent`, `SetClipboard`, `SwitchVideoSource`, `SimpleMessage`, ...) with `serialize()` for the wire bytes and `describe()` for a log line |
| `droidlink.controller` | `Controller`: sends control messages over a socket with `push_msg()` and reads device messages on a background thread, calling `on_device_info` and `on_error_message` with their text; clipboard messages are read and discarded |
| `droidlink.device` | `DeviceInfo`: serial, name and size of a device (defaults: "Android Device", 1920x1080) |
| `droidlink.packets` | `Packet` and `PacketMerger`, which keeps a config packet and prepends it to the next media packet |
| `droidlink.packet_source` | `PacketSink` (abstract) and `PacketSource`, which forwards packets to at most two sinks |
| `droidlink.adb_parser` | `parse_devices()` / `parse_device()` for `adb devices -l` output, `parse_device_ip()` for `ip route` output, `AdbDevice` and `DeviceState` |
| `droidlink.adb_select` | `select_device()` with a `DeviceSelector` (all, by serial, USB, TCP/IP), `device_type()`, and `check_connect_output()`, `parse_getprop_output()`, `parse_pair_output()` |
| `droidlink.demuxer` | `read_packet()` for the 12-byte packet header framing, and `Demuxer`, which reads a stream's codec id and packets and feeds a `PacketSource` |
| `droidlink.server_cmd` | `ServerParams` and `ServerCmdBuilder`, which turn parameters into the `key=value` arguments the device server expects |

## Examples

Parse the output of `adb devices -l` and pick a device:

```python
from droidlink.adb_parser import parse_devices
from droidlink.adb_select import DeviceSelector, SelectorType, select_device

output = (
    "List of devices attached\n"
    "FAKE0001       device usb:1-1 product:demo model:Demo_Phone device:demo\n"
    "192.168.0.10:5555 device product:demo model:Demo_Tablet device:demo\n"
)
devices = parse_devices(output)
usb_device = select_device(devices, DeviceSelector(SelectorType.USB))
print(usb_device.serial, usb_device.model)  # FAKE0001 Demo_Phone
```

When no device, or more than one, matches the selector, or the matching
device is not in the `device` state, `select_device()` raises
`DeviceSelectionError` with a message that says why. `parse_devices()` raises
`ValueError` when the output has no `List of devices attached` header.

Find the Wi-Fi address of a device from `ip route` output:

```python
from droidlink.adb_parser import parse_device_ip

route = "192.168.0.0/24 dev wlan0 proto kernel scope link src 192.168.0.10\n"
print(parse_device_ip(route))  # 192.168.0.10
```

Serialize a control message:

```python
from droidlink.control_msg import ResizeDisplay

msg = ResizeDisplay(width=1280, height=720)
print(msg.serialize().hex())  # 150500 02d0
print(msg.describe())         # resize display 1280x720
```

Build server parameters:

```python
from droidlink.server_cmd import ServerCmdBuilder, ServerParams, validate_value

args = ServerCmdBuilder().build_from_params(ServerParams(max_size=1024), tunnel_forward=False)
print(args)  # ['scid=0', 'log_level=info', 'max_size=1024']

validate_value("1920:1080:0:0")  # True
validate_value("a b")            # False
```

Only values that differ from the server's defaults are added. String values
such as `crop` or `camera_id` that hold a special shell character make
`build_from_params()` raise `InvalidServerParam`.

## Notes

- Text in `InjectText` is truncated to 300 bytes and clipboard text to the
  protocol's maximum, always on a UTF-8 character boundary (see
  `utf8_truncation_index()`).
- Serials containing `:` are TCP/IP devices; a serial selector without a
  port matches a TCP/IP device by its address alone. Serials starting with
  `emulator-` count as USB for `device_type()`.
- For H.264 and H.265 streams, the `Demuxer` merges config packets into the
  next media packet before pushing it to the sinks.

## What the package does not do

- It does not run `adb`, push the server to the device, or open tunnels;
  that is left to the caller, who hands over the resulting output or sockets.
- It does not decode video or audio: sinks receive raw packets and a
  `StreamInfo` describing the stream.
- It has no command-line program and no user interface.