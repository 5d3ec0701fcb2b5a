"""Diagnostic reporters."""

from adbshard.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "reporter",
]
