"""Test filtering, shard splitting and shard serialization."""

from adbshard.sharding.filter import filter_tests
from adbshard.sharding.serializer import serialize_shard
from adbshard.sharding.splitter import select_shard, split_into_shards

__all__ = [
    "filter_tests",
    "select_shard",
    "serialize_shard",
    "split_into_shards",
]
