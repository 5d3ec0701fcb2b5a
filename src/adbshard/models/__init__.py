"""Data models for adbshard."""

from adbshard.models.instrumentation import Device, UITest
from adbshard.models.shard import Shard

__all__ = [
    "Device",
    "Shard",
    "UITest",
]
