"""adbshard: split Android instrumentation tests into reproducible shards."""

__version__ = "0.1.0"
