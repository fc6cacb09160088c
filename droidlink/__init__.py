"""Control messages, adb output parsing, device selection, stream demuxing and
server parameters for mirroring and controlling Android devices."""

__version__ = "0.1.0"