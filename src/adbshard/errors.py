"""Error taxonomy for a sharding run.

Every error is terminal for the run and maps to a distinct process exit
code. Codes 1-3 keep the values CI scripts already rely on.
"""

from __future__ import annotations

ERROR_CODE_NO_DEVICES = 1
ERROR_CODE_NO_TESTS = 2
ERROR_CODE_NO_SHARDS = 3
ERROR_CODE_NO_PARAMETERS = 4
ERROR_CODE_SHARD_OUT_OF_RANGE = 5


class AdbShardError(Exception):
    """Base class for errors that end a sharding run."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        """Initialize with a human-readable message."""
        super().__init__(message)
        self.message = message


class NoDevicesError(AdbShardError):
    """No online device was reported by ``adb devices``."""

    exit_code = ERROR_CODE_NO_DEVICES


class NoTestsError(AdbShardError):
    """No tests were left after parsing and filtering."""

    exit_code = ERROR_CODE_NO_TESTS


class NoShardsError(AdbShardError):
    """Partitioning produced no shards to select from."""

    exit_code = ERROR_CODE_NO_SHARDS


class ShardConfigurationError(AdbShardError, ValueError):
    """Invalid run configuration, e.g. a non-positive shard count."""

    exit_code = ERROR_CODE_NO_PARAMETERS


class ShardIndexOutOfRangeError(AdbShardError, IndexError):
    """The requested shard index is not in ``[0, shard_count)``."""

    exit_code = ERROR_CODE_SHARD_OUT_OF_RANGE
