"""Tests for adbshard.errors."""

from __future__ import annotations

import pytest

from adbshard.errors import (
    AdbShardError,
    NoDevicesError,
    NoShardsError,
    NoTestsError,
    ShardConfigurationError,
    ShardIndexOutOfRangeError,
)


@pytest.mark.parametrize(
    ("error_type", "code"),
    [
        (NoDevicesError, 1),
        (NoTestsError, 2),
        (NoShardsError, 3),
        (ShardConfigurationError, 4),
        (ShardIndexOutOfRangeError, 5),
    ],
)
def test_exit_codes(error_type: type[AdbShardError], code: int) -> None:
    error = error_type("boom")
    assert error.exit_code == code
    assert error.message == "boom"
    assert str(error) == "boom"


def test_exit_codes_are_distinct() -> None:
    codes = {
        cls.exit_code
        for cls in (
            NoDevicesError,
            NoTestsError,
            NoShardsError,
            ShardConfigurationError,
            ShardIndexOutOfRangeError,
        )
    }
    assert len(codes) == 5


def test_builtin_compatibility() -> None:
    assert issubclass(ShardConfigurationError, ValueError)
    assert issubclass(ShardIndexOutOfRangeError, IndexError)
