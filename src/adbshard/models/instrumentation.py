"""Instrumentation test and device models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UITest:
    """A single instrumentation test reported by a dry run.

    Two tests are equal when their fully-qualified names are equal.
    """

    class_name: str = field(compare=False)
    """Fully-qualified test class (e.g. ``com.example.app.LoginTest``)."""

    test_name: str = field(compare=False)
    """Test method name (e.g. ``loginSucceeds``)."""

    full_name: str = field(init=False, repr=False)
    """Identity key: ``class_name#test_name``."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "full_name", f"{self.class_name}#{self.test_name}")

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class Device:
    """A device as listed by ``adb devices``."""

    serial: str
    """Device serial used to target ``adb -s`` commands."""

    status: str
    """Connection state reported by adb (``device``, ``offline``, ...)."""
