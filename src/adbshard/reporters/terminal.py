"""Rich diagnostics for the CLI.

Everything here is written to stderr: stdout is reserved for the
serialized shard that downstream tooling consumes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.status import Status

    from adbshard.models.instrumentation import Device
    from adbshard.models.shard import Shard

console = Console(stderr=True)


class CLIReporter:
    """Human-facing output for a sharding run."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def _line(self, label: str, message: str) -> None:
        self.console.print(f"{label} {escape(message)}", highlight=False)

    def print_error(self, message: str) -> None:
        """Print ``ERROR: <message>``."""
        self._line("[bold red]ERROR:[/bold red]", message)

    def print_warning(self, message: str) -> None:
        self._line("[yellow]WARNING:[/yellow]", message)

    def print_success(self, message: str) -> None:
        self._line("[green]OK[/green]", message)

    def print_info(self, message: str) -> None:
        self.console.print(escape(message), style="dim", highlight=False)

    def status(self, message: str) -> Status:
        """Spinner shown while adb is busy; invisible when stderr is not a terminal."""
        return self.console.status(message, spinner="dots")

    def print_devices(self, devices: Sequence[Device]) -> None:
        """Print the reachable devices as a table."""
        table = Table(title=f"Devices ({len(devices)})", title_justify="left")
        table.add_column("Serial", style="cyan")
        table.add_column("Status")
        for device in devices:
            table.add_row(device.serial, device.status)
        self.console.print(table)

    def print_shards(self, shards: Sequence[Shard], selected: int | None = None) -> None:
        """Print shard sizes and first tests, marking the *selected* index."""
        table = Table(title=f"Shards ({len(shards)})", title_justify="left")
        table.add_column("Index", justify="right")
        table.add_column("Tests", justify="right")
        table.add_column("First test", overflow="fold")
        for shard in shards:
            index = str(shard.index)
            if shard.index == selected:
                index = f"[bold green]{index} *[/bold green]"
            first = shard.tests[0].full_name if shard.tests else "-"
            table.add_row(index, str(shard.size), escape(first))
        self.console.print(table)


reporter = CLIReporter()
