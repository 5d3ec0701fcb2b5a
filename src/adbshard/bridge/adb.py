"""``adb`` implementation of the device bridge."""

from __future__ import annotations

import logging
import os

from adbshard.bridge.base import DeviceBridge
from adbshard.models.instrumentation import Device
from adbshard.parsing.devices import parse_device_list
from adbshard.utils.process import ProcessError, run_process

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 60.0


class AdbBridge(DeviceBridge):
    """Drive devices through the ``adb`` command-line tool.

    Command lines are built as argument lists; nothing goes through a shell
    on the host side.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        reinstall: bool = True,
    ) -> None:
        """Initialize the bridge.

        Args:
            adb_path: Path to (or name of) the adb executable.
            timeout: Wall-clock timeout in seconds for each adb invocation.
            reinstall: Pass ``-r`` to ``adb install`` to replace existing apps.
        """
        self._adb = adb_path
        self._timeout = timeout
        self._reinstall = reinstall

    @property
    def name(self) -> str:
        return "adb"

    async def list_devices(self) -> list[Device]:
        """List online devices via ``adb devices``.

        Raises:
            ProcessError: If adb cannot be started.
        """
        logger.debug("Getting list of devices")
        result = await run_process([self._adb, "devices"], timeout=self._timeout)
        if result.timed_out:
            logger.warning("'adb devices' timed out; using partial output")
        devices = parse_device_list(result.stdout)
        logger.debug("Devices (%d): %s", len(devices), ", ".join(d.serial for d in devices))
        return devices

    async def install(self, device: Device, path: str) -> None:
        """Install the APK at *path* on *device*.

        Failures, including an adb that cannot be started, are only logged.
        """
        apk_path = os.path.expanduser(path)
        logger.debug("Installing APK from %s into %s", apk_path, device.serial)
        command = [self._adb, "-s", device.serial, "install"]
        if self._reinstall:
            command.append("-r")
        command.append(apk_path)

        try:
            result = await run_process(command, timeout=self._timeout)
        except ProcessError as exc:
            logger.warning("Installing %s on %s failed: %s", apk_path, device.serial, exc)
            return
        if result.timed_out:
            logger.warning("Installing %s on %s timed out", apk_path, device.serial)
        elif not result.success:
            logger.warning(
                "Installing %s on %s failed (exit %d): %s",
                apk_path,
                device.serial,
                result.returncode,
                (result.stderr or result.stdout).strip(),
            )

    async def run_instrumentation(self, device: Device, runner: str) -> str:
        """Run ``am instrument -e log true`` so tests are listed, not executed.

        Returns empty output, which lists no tests, when adb cannot be started.
        """
        logger.debug("Getting list of UI tests from %s using %s", device.serial, runner)
        command = [
            self._adb,
            "-s",
            device.serial,
            "shell",
            "am",
            "instrument",
            "-w",
            "-r",
            "-e",
            "log",
            "true",
            runner,
        ]
        try:
            result = await run_process(command, timeout=self._timeout)
        except ProcessError as exc:
            logger.warning("Instrumentation dry run could not start: %s", exc)
            return ""
        if result.timed_out:
            logger.warning(
                "Instrumentation dry run timed out after %ss; parsing partial output",
                self._timeout,
            )
        elif not result.success:
            logger.warning(
                "Instrumentation dry run exited with %d: %s",
                result.returncode,
                result.stderr.strip(),
            )
        return result.stdout
