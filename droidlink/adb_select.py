"""Choosing a device among those adb reports, and reading adb command replies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence

from .adb_parser import AdbDevice, DeviceState

logger = logging.getLogger(__name__)

EMULATOR_PREFIX = "emulator-"
_CONNECT_OK_PREFIXES = ("connected", "already connected")
_PAIR_SUCCESS = "Successfully paired"
_PAIR_NO_OUTPUT = "No output returned from adb pair or process failed"
_SELECT_HINT = (
    "Select a device via -s (--serial), -d (--select-usb) or -e (--select-tcpip)"
)


class AdbDeviceType(Enum):
    USB = auto()
    TCPIP = auto()
    EMULATOR = auto()


class SelectorType(Enum):
    ALL = auto()
    SERIAL = auto()
    USB = auto()
    TCPIP = auto()


@dataclass(frozen=True)
class DeviceSelector:
    """Which device(s) to accept; serial is used only by SERIAL."""

    type: SelectorType = SelectorType.ALL
    serial: str = ""

    def __post_init__(self) -> None:
        if self.type is SelectorType.SERIAL and not self.serial:
            raise ValueError("a serial selector needs a serial")


class DeviceSelectionError(Exception):
    """No single usable device matches the selector."""


def device_type(serial: str) -> AdbDeviceType:
    """Classify a device by its serial."""
    if serial.startswith(EMULATOR_PREFIX):
        return AdbDeviceType.USB
    if ":" in serial:
        return AdbDeviceType.TCPIP
    return AdbDeviceType.USB


def accept_device(device: AdbDevice, selector: DeviceSelector) -> bool:
    """Tell whether the device matches the selector."""
    if selector.type is SelectorType.ALL:
        return True
    if selector.type is SelectorType.SERIAL:
        if not selector.serial:
            raise ValueError("a serial selector needs a serial")
        host, colon, _ = device.serial.partition(":")
        if colon and ":" not in selector.serial:
            # The device is ip:port and the request has no port: match the ip.
            return host == selector.serial
        return device.serial == selector.serial
    if selector.type is SelectorType.USB:
        return device_type(device.serial) is AdbDeviceType.USB
    if selector.type is SelectorType.TCPIP:
        # Both emulators and TCP/IP devices are selected via -e
        return device_type(device.serial) is not AdbDeviceType.USB
    raise ValueError(f"unexpected selector type: {selector.type!r}")


def _none_found_message(selector: DeviceSelector) -> str:
    if selector.type is SelectorType.SERIAL:
        return f"Could not find ADB device {selector.serial}"
    if selector.type is SelectorType.USB:
        return "Could not find any ADB device over USB"
    if selector.type is SelectorType.TCPIP:
        return "Could not find any ADB device over TCP/IP"
    raise ValueError(f"unexpected selector type: {selector.type!r}")


def _multiple_message(selector: DeviceSelector, count: int) -> str:
    if selector.type is SelectorType.ALL:
        return f"Multiple ({count}) ADB devices"
    if selector.type is SelectorType.SERIAL:
        return f"Multiple ({count}) ADB devices with serial {selector.serial}"
    if selector.type is SelectorType.USB:
        return f"Multiple ({count}) ADB devices over USB"
    if selector.type is SelectorType.TCPIP:
        return f"Multiple ({count}) ADB devices over TCP/IP"
    raise ValueError(f"unexpected selector type: {selector.type!r}")


def _check_state(device: AdbDevice, devices: Sequence[AdbDevice]) -> None:
    if device.state is DeviceState.DEVICE:
        return
    if device.state is DeviceState.UNAUTHORIZED:
        lines = ["Device is unauthorized:"]
        lines.extend(f"  {d.serial} [{d.state}]" for d in devices)
        lines.append("A popup should open on the device to request authorization.")
        raise DeviceSelectionError("\n".join(lines))
    raise DeviceSelectionError(
        f"Device could not be connected (state={device.state})"
    )


def select_device(
    devices: Sequence[AdbDevice], selector: DeviceSelector
) -> AdbDevice:
    """Return the single connected device matching the selector.

    Raises DeviceSelectionError when there is none, more than one, or when
    the matching device is not in the "device" state.
    """
    if not devices:
        raise DeviceSelectionError("Could not find any ADB device")

    matches = [device for device in devices if accept_device(device, selector)]
    if not matches:
        raise DeviceSelectionError(_none_found_message(selector))
    if len(matches) > 1:
        raise DeviceSelectionError(
            f"{_multiple_message(selector, len(matches))}\n{_SELECT_HINT}"
        )

    device = matches[0]
    _check_state(device, devices)
    logger.info("ADB device found: %s", device.serial)
    return device


def check_connect_output(output: str) -> bool:
    """Tell whether the output of "adb connect" reports a connection."""
    ok = output.startswith(_CONNECT_OK_PREFIXES)
    if not ok:
        first_line = output.replace("\r", "\n").split("\n", 1)[0]
        logger.error("%s", first_line)
    return ok


def parse_getprop_output(output: str) -> str:
    """Return the property value: the output up to the first space or newline."""
    for index, char in enumerate(output):
        if char in " \r\n":
            return output[:index]
    return output


def parse_pair_output(output: str) -> str:
    """Return the trimmed output of "adb pair" if it reports success.

    Raises ValueError carrying the output (or a fixed message when there is
    none) otherwise.
    """
    if not output:
        raise ValueError(_PAIR_NO_OUTPUT)
    trimmed = output.rstrip("\r\n ")
    if _PAIR_SUCCESS in trimmed:
        return trimmed
    raise ValueError(trimmed)