"""Contiguous shard splitting and shard selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from adbshard.errors import NoShardsError, ShardConfigurationError, ShardIndexOutOfRangeError
from adbshard.models.shard import Shard

if TYPE_CHECKING:
    from collections.abc import Sequence

    from adbshard.models.instrumentation import UITest


def split_into_shards(tests: Sequence[UITest], shard_count: int) -> list[Shard]:
    """Split *tests* into *shard_count* contiguous shards.

    Every shard gets ``len(tests) // shard_count`` tests; the last shard
    also takes the remainder. When there are more shards than tests, all
    shards but the last are empty.

    Args:
        tests: Ordered list of tests.
        shard_count: Total number of shards.

    Returns:
        Shards in index order. Concatenating their tests gives *tests* back.

    Raises:
        ShardConfigurationError: If shard_count is not positive.
    """
    if shard_count < 1:
        msg = f"shard_count must be >= 1, got {shard_count}"
        raise ShardConfigurationError(msg)

    total = len(tests)
    per_shard = total // shard_count
    shards: list[Shard] = []
    for index in range(shard_count):
        start = index * per_shard
        end = total if index == shard_count - 1 else start + per_shard
        shards.append(Shard(index=index, tests=tuple(tests[start:end])))
    return shards


def select_shard(shards: Sequence[Shard], shard_index: int) -> Shard:
    """Return the shard at *shard_index*.

    Raises:
        NoShardsError: If *shards* is empty.
        ShardIndexOutOfRangeError: If shard_index is not in ``[0, len(shards))``.
    """
    if not shards:
        raise NoShardsError("The list of shards is empty")
    if shard_index < 0 or shard_index >= len(shards):
        msg = f"shard_index must be in [0, {len(shards)}), got {shard_index}"
        raise ShardIndexOutOfRangeError(msg)
    return shards[shard_index]
