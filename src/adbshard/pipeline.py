"""Sharding pipeline: parse, filter, split, select and serialize.

Every stage is a pure in-memory transformation. The only side effect is
logging, and it goes through the logger supplied by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from adbshard.errors import NoTestsError, ShardConfigurationError
from adbshard.parsing.instrumentation import parse_instrumentation_output
from adbshard.sharding.filter import filter_tests
from adbshard.sharding.serializer import serialize_shard
from adbshard.sharding.splitter import select_shard, split_into_shards

if TYPE_CHECKING:
    from collections.abc import Sequence

    from adbshard.models.instrumentation import UITest
    from adbshard.models.shard import Shard

_default_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShardRequest:
    """Which shard to produce and how to narrow the test list first."""

    shard_count: int
    """Total number of shards."""

    shard_index: int
    """Zero-based index of the shard to select."""

    filter_text: str = ""
    """Case-insensitive substring a test's full name must contain."""

    def validate(self) -> None:
        """Raise ``ShardConfigurationError`` for a non-positive shard count."""
        if self.shard_count < 1:
            msg = f"shard_count must be >= 1, got {self.shard_count}"
            raise ShardConfigurationError(msg)


def build_shards(
    tests: Sequence[UITest],
    request: ShardRequest,
    *,
    logger: logging.Logger | None = None,
) -> list[Shard]:
    """Filter *tests* and split them into ``request.shard_count`` shards.

    Raises:
        ShardConfigurationError: If the shard count is not positive.
        NoTestsError: If no test is left after filtering.
    """
    log = logger or _default_logger
    request.validate()

    filtered = filter_tests(tests, request.filter_text)
    if request.filter_text:
        log.debug(
            "Filter %r kept %d of %d tests", request.filter_text, len(filtered), len(tests)
        )
    if not filtered:
        raise NoTestsError("The list of tests is empty")

    log.debug("Tests (%d):", len(filtered))
    for test in filtered:
        log.debug("  %s", test.full_name)

    shards = split_into_shards(filtered, request.shard_count)
    log.debug("Shards (%d):", len(shards))
    for shard in shards:
        log.debug("  %s", shard)
    return shards


def run_pipeline(
    raw_output: str,
    request: ShardRequest,
    *,
    logger: logging.Logger | None = None,
) -> str:
    """Turn raw instrumentation output into the serialized selected shard.

    Identical inputs always produce the identical string.

    Raises:
        ShardConfigurationError: If the shard count is not positive.
        NoTestsError: If no test is parsed or left after filtering.
        ShardIndexOutOfRangeError: If the shard index is out of range.
    """
    log = logger or _default_logger
    request.validate()

    tests = parse_instrumentation_output(raw_output)
    shards = build_shards(tests, request, logger=log)
    shard = select_shard(shards, request.shard_index)
    log.debug("Selected %s", shard)
    return serialize_shard(shard)
