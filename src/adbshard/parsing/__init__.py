"""Parsers for adb and instrumentation output."""

from adbshard.parsing.devices import parse_device_list
from adbshard.parsing.instrumentation import parse_instrumentation_output

__all__ = [
    "parse_device_list",
    "parse_instrumentation_output",
]
