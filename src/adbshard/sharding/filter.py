"""Substring filtering of test lists."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from adbshard.models.instrumentation import UITest


def filter_tests(tests: Sequence[UITest], substring: str | None) -> list[UITest]:
    """Keep the tests whose ``full_name`` contains *substring*.

    Matching is case-insensitive and order is preserved. An empty or
    ``None`` substring keeps every test.
    """
    if not substring:
        return list(tests)
    needle = substring.casefold()
    return [t for t in tests if needle in t.full_name.casefold()]
