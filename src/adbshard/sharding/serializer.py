"""Render a shard as the comma-separated list consumed by test runners."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adbshard.models.shard import Shard

SEPARATOR = ","


def serialize_shard(shard: Shard) -> str:
    """Join the shard's fully-qualified test names with commas.

    The result has no whitespace and no trailing separator, so it can be
    passed straight to ``am instrument -e class``. An empty shard gives
    an empty string.
    """
    return SEPARATOR.join(test.full_name for test in shard.tests)
