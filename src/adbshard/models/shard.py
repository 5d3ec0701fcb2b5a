"""Shard model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adbshard.models.instrumentation import UITest


@dataclass(frozen=True)
class Shard:
    """A contiguous slice of the test list with a zero-based index."""

    index: int
    """Zero-based shard index."""

    tests: tuple[UITest, ...] = ()
    """Tests assigned to this shard, in input order."""

    @property
    def size(self) -> int:
        """Number of tests in the shard."""
        return len(self.tests)

    def __str__(self) -> str:
        return f"Shard(index={self.index}, num_tests={self.size})"
