"""Device bridges used to reach test devices."""

from adbshard.bridge.adb import AdbBridge
from adbshard.bridge.base import DeviceBridge

__all__ = [
    "AdbBridge",
    "DeviceBridge",
]
