"""Abstract device bridge.

The sharding core never talks to devices. Everything that needs a process
(listing devices, installing APKs, running the instrumentation dry run)
goes through a ``DeviceBridge``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adbshard.models.instrumentation import Device


class DeviceBridge(ABC):
    """Narrow interface to the connected test devices."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Bridge identifier (e.g. ``'adb'``)."""

    @abstractmethod
    async def list_devices(self) -> list[Device]:
        """Return the devices that can currently run commands."""

    @abstractmethod
    async def install(self, device: Device, path: str) -> None:
        """Install the package at *path* on *device*.

        Fire-and-forget: failures are reported through logging and must not
        abort the run.
        """

    @abstractmethod
    async def run_instrumentation(self, device: Device, runner: str) -> str:
        """Run the instrumentation dry run for *runner* on *device*.

        Returns:
            The raw text printed by the instrumentation tool. May be empty or
            truncated if the command timed out.
        """
