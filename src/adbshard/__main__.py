"""Allow ``python -m adbshard``."""

from adbshard.cli import cli

if __name__ == "__main__":
    cli()
