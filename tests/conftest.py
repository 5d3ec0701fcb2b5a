"""Shared fixtures for adbshard tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from adbshard.bridge.base import DeviceBridge
from adbshard.models.instrumentation import Device

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


# ── Instrumentation output helpers ───────────────────────────────


def instrumentation_output(pairs: Iterable[tuple[str, str]]) -> str:
    """Render ``am instrument -r -e log true`` output for *pairs*.

    Each test is reported twice, as a started (code 1) and a finished
    (code 0) status block, the way AndroidJUnitRunner prints them.
    """
    pairs = list(pairs)
    lines: list[str] = []
    for current, (class_name, test_name) in enumerate(pairs, start=1):
        for code in ("1", "0"):
            lines.extend(
                [
                    f"INSTRUMENTATION_STATUS: class={class_name}",
                    f"INSTRUMENTATION_STATUS: current={current}",
                    "INSTRUMENTATION_STATUS: id=AndroidJUnitRunner",
                    f"INSTRUMENTATION_STATUS: numtests={len(pairs)}",
                    "INSTRUMENTATION_STATUS: stream=",
                    f"INSTRUMENTATION_STATUS: test={test_name}",
                    f"INSTRUMENTATION_STATUS_CODE: {code}",
                ]
            )
    lines.extend(
        [
            "INSTRUMENTATION_RESULT: stream=",
            "",
            "Time: 0.012",
            "",
            f"OK ({len(pairs)} tests)",
            "",
            "INSTRUMENTATION_CODE: -1",
        ]
    )
    return "\n".join(lines) + "\n"


# ── Fake bridge ──────────────────────────────────────────────────


class FakeBridge(DeviceBridge):
    """In-memory bridge recording the calls made by the CLI."""

    def __init__(
        self,
        devices: list[Device] | None = None,
        output: str = "",
    ) -> None:
        self.devices = devices if devices is not None else [Device("emulator-5554", "device")]
        self.output = output
        self.installed: list[tuple[str, str]] = []
        self.runners: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def list_devices(self) -> list[Device]:
        return list(self.devices)

    async def install(self, device: Device, path: str) -> None:
        self.installed.append((device.serial, path))

    async def run_instrumentation(self, device: Device, runner: str) -> str:
        self.runners.append((device.serial, runner))
        return self.output


@pytest.fixture
def five_tests_output() -> str:
    """Dry-run output listing A#t1 .. E#t5."""
    return instrumentation_output(
        [("A", "t1"), ("B", "t2"), ("C", "t3"), ("D", "t4"), ("E", "t5")]
    )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host configuration out of the tests."""
    for var in (
        "ADBSHARD_ADB_PATH",
        "ADBSHARD_ADB_TIMEOUT",
        "ADBSHARD_SENTRY_ENABLED",
        "ADBSHARD_SENTRY_DSN",
        "ADBSHARD_SENTRY_TRACES_SAMPLE_RATE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_adbshard_logger() -> Iterator[None]:
    """Undo ``configure_logging`` so caplog sees package records."""
    yield
    package_logger = logging.getLogger("adbshard")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
