"""Parse the output of an instrumentation dry run into tests.

``am instrument -r -e log true`` reports every discovered test as a block of
``INSTRUMENTATION_STATUS`` lines. Each block carries one ``class=`` and one
``test=`` field. The two fields are scanned independently and paired by
position: the Nth class marker belongs to the Nth test marker.
"""

from __future__ import annotations

import logging
import re

from adbshard.models.instrumentation import UITest

logger = logging.getLogger(__name__)

_CLASS_REGEX = re.compile(r"class=([\w.]*)")
_TEST_REGEX = re.compile(r"test=(\w*)")


def parse_instrumentation_output(output: str) -> list[UITest]:
    """Extract the ordered, de-duplicated list of tests from *output*.

    Markers are paired positionally and pairing stops at the shorter of the
    two sequences, so unmatched trailing markers are dropped. Pairs with
    an empty class or test name are skipped after pairing. Output without
    markers (including empty or truncated output) yields an empty list.

    Args:
        output: Raw text printed by the instrumentation dry run.

    Returns:
        Tests in first-seen order, unique by ``full_name``.
    """
    class_names = [m.group(1) for m in _CLASS_REGEX.finditer(output)]
    test_names = [m.group(1) for m in _TEST_REGEX.finditer(output)]

    logger.debug(
        "Found %d class markers and %d test markers",
        len(class_names),
        len(test_names),
    )
    if len(class_names) != len(test_names):
        logger.warning(
            "Marker count mismatch (class=%d, test=%d); dropping %d unmatched marker(s)",
            len(class_names),
            len(test_names),
            abs(len(class_names) - len(test_names)),
        )

    tests: list[UITest] = []
    seen: set[str] = set()
    for class_name, test_name in zip(class_names, test_names, strict=False):
        if not class_name or not test_name:
            continue
        test = UITest(class_name=class_name, test_name=test_name)
        if test.full_name in seen:
            continue
        seen.add(test.full_name)
        tests.append(test)

    logger.debug("Parsed %d unique tests", len(tests))
    return tests
