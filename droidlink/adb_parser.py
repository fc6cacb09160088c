"""Parsing of adb command output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEVICES_HEADER = "List of devices attached"


class DeviceState(Enum):
    """Connection state of a device as reported by adb."""

    OFFLINE = "offline"
    BOOTLOADER = "bootloader"
    DEVICE = "device"
    RECOVERY = "recovery"
    UNAUTHORIZED = "unauthorized"
    SIDELOAD = "sideload"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass
class AdbDevice:
    serial: str
    state: DeviceState = DeviceState.UNKNOWN
    model: str = ""
    selected: bool = False


def device_state_from_string(text: str) -> DeviceState:
    """Map an adb state word to a DeviceState; unknown words give UNKNOWN."""
    try:
        return DeviceState(text)
    except ValueError:
        return DeviceState.UNKNOWN


def _lines(output: str):
    for line in output.split("\n"):
        yield line.rstrip("\r ")


def parse_devices(output: str) -> list[AdbDevice]:
    """Parse the output of "adb devices -l".

    Raises ValueError if the header line is missing.
    """
    header_found = False
    devices: list[AdbDevice] = []
    for line in _lines(output):
        if not header_found:
            header_found = line == DEVICES_HEADER
            continue
        if not line:
            continue
        device = parse_device(line)
        if device is not None:
            devices.append(device)
    if not header_found:
        raise ValueError("adb devices output has no header")
    return devices


def parse_device(line: str) -> Optional[AdbDevice]:
    """Parse one device line, or return None if it does not describe one."""
    if not line or line.startswith("*") or line.startswith("adb server"):
        return None

    match = re.search(r"[ \t]", line)
    if match is None or match.start() == 0:
        return None
    serial = line[: match.start()]
    rest = line[match.start() + 1 :].lstrip(" \t")
    if not rest:
        return None

    state, _, properties = rest.partition(" ")
    if not state:
        return None

    model = ""
    for token in properties.split(" "):
        if token.startswith("model:"):
            model = token[len("model:") :]
            break

    return AdbDevice(serial, device_state_from_string(state), model)


def parse_device_ip(output: str) -> Optional[str]:
    """Find the source address of a wlan route in "ip route" output."""
    for line in _lines(output):
        if not line:
            continue
        tokens = [token for token in re.split(r"[ \t]", line) if token]
        dev_index = src_index = None
        for index, token in enumerate(tokens):
            if token == "dev":
                dev_index = index
            elif token == "src":
                src_index = index
        if (
            dev_index is not None
            and src_index is not None
            and dev_index + 1 < len(tokens)
            and src_index + 1 < len(tokens)
            and tokens[dev_index + 1].startswith("wlan")
        ):
            return tokens[src_index + 1]
    return None