"""Parse ``adb devices`` output."""

from __future__ import annotations

import re

from adbshard.models.instrumentation import Device

# USB serials, emulator-NNNN and host:port network serials
_ADB_DEVICES_REGEX = re.compile(r"^([\w.:-]{5,})[ \t]+(\w+)", flags=re.MULTILINE)

_ONLINE_STATUS = "device"


def parse_device_list(output: str, *, online_only: bool = True) -> list[Device]:
    """Return the devices listed in ``adb devices`` *output*.

    The ``List of devices attached`` header and daemon start-up chatter are
    ignored. With *online_only* (the default) only devices in the
    ``device`` state are returned; ``offline`` and ``unauthorized`` entries
    cannot run commands.
    """
    devices = [
        Device(serial=match.group(1), status=match.group(2))
        for match in _ADB_DEVICES_REGEX.finditer(output)
    ]
    if online_only:
        devices = [d for d in devices if d.status == _ONLINE_STATUS]
    return devices
