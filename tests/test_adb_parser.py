import pytest

from droidlink.adb_parser import (
    AdbDevice,
    DeviceState,
    device_state_from_string,
    parse_device,
    parse_device_ip,
    parse_devices,
)

SAMPLE = (
    "* daemon not running; starting now at tcp:5037\n"
    "* daemon started successfully\n"
    "List of devices attached\n"
    "serial-one             device usb:1-1 product:prod model:Test_Phone device:dev transport_id:1\n"
    "192.168.0.10:5555      unauthorized transport_id:2\n"
    "\n"
)


def test_parse_devices_sample():
    devices = parse_devices(SAMPLE)
    assert devices == [
        AdbDevice("serial-one", DeviceState.DEVICE, "Test_Phone"),
        AdbDevice("192.168.0.10:5555", DeviceState.UNAUTHORIZED, ""),
    ]


def test_parse_devices_crlf():
    devices = parse_devices(SAMPLE.replace("\n", "\r\n"))
    assert [d.serial for d in devices] == ["serial-one", "192.168.0.10:5555"]
    assert devices[0].model == "Test_Phone"


def test_lines_before_header_ignored():
    output = "serial-zero device\nList of devices attached\nserial-one offline\n"
    devices = parse_devices(output)
    assert [d.serial for d in devices] == ["serial-one"]
    assert devices[0].state is DeviceState.OFFLINE


def test_missing_header_raises():
    with pytest.raises(ValueError):
        parse_devices("serial-one device\n")


def test_empty_device_list():
    assert parse_devices("List of devices attached\n\n") == []


@pytest.mark.parametrize(
    "line",
    ["", "* daemon started", "adb server version mismatch", "serialonly", " device", "serial   "],
)
def test_parse_device_rejects(line):
    assert parse_device(line) is None


def test_parse_device_tab_separator():
    device = parse_device("abc\tdevice")
    assert device == AdbDevice("abc", DeviceState.DEVICE, "")
    assert device.selected is False


def test_state_mapping():
    assert device_state_from_string("device") is DeviceState.DEVICE
    assert device_state_from_string("sideload") is DeviceState.SIDELOAD
    assert device_state_from_string("weird") is DeviceState.UNKNOWN
    assert parse_device("abc weird").state is DeviceState.UNKNOWN


def test_parse_device_ip_prefers_wlan():
    output = (
        "10.0.0.0/8 dev rmnet0 proto kernel scope link src 10.0.0.5\n"
        "192.168.1.0/24 dev wlan0 proto kernel scope link src 192.168.1.42\r\n"
    )
    assert parse_device_ip(output) == "192.168.1.42"


def test_parse_device_ip_none():
    assert parse_device_ip("10.0.0.0/8 dev rmnet0 src 10.0.0.5\n") is None
    assert parse_device_ip("192.168.1.0/24 dev wlan0 src\n") is None
    assert parse_device_ip("") is None