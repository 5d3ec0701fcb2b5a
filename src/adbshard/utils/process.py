"""Run external commands with a wall-clock timeout.

Commands are argument lists handed to ``asyncio.create_subprocess_exec``;
no shell is involved. Output is read as it arrives, so when a command
overruns its timeout the process is killed and everything it printed until
then is still returned, flagged with ``timed_out``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096
# Time allowed for pipes to reach EOF once a timed-out process is killed
_PIPE_CLOSE_GRACE = 1.0


@dataclass
class ProcessOutput:
    """What a finished or killed command left behind."""

    command: tuple[str, ...]
    """The argument list that was run."""

    returncode: int
    """Exit status; -1 when the process never started or was killed."""

    stdout: str = ""
    """Everything written to standard output, possibly cut short."""

    stderr: str = ""
    """Everything written to standard error."""

    timed_out: bool = False
    """True if the process was killed for overrunning its timeout."""

    duration_ms: float = 0.0
    """Wall-clock run time in milliseconds."""

    @property
    def success(self) -> bool:
        """True when the command exited with 0 before its timeout."""
        return self.returncode == 0 and not self.timed_out


class ProcessError(Exception):
    """A command could not be started, or failed while ``check`` was set."""

    def __init__(self, message: str, output: ProcessOutput) -> None:
        super().__init__(message)
        self.output = output


async def _read_into(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while chunk := await stream.read(_CHUNK_SIZE):
        chunks.append(chunk)


def _working_directory(cwd: Path | None) -> Path:
    work_dir = cwd.resolve() if cwd else Path.cwd()
    if not work_dir.is_dir():
        raise ValueError(f"working directory not found: {work_dir}")
    return work_dir


async def _spawn(
    argv: tuple[str, ...], work_dir: Path, env: dict[str, str] | None
) -> asyncio.subprocess.Process:
    try:
        return await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=work_dir,
            env=env,
        )
    except FileNotFoundError as exc:
        logger.error("%s is not installed or not on PATH", argv[0])
        raise ProcessError(
            f"Command not found: {argv[0]}", ProcessOutput(argv, -1, stderr=str(exc))
        ) from exc
    except OSError as exc:
        logger.error("Could not start %s: %s", argv[0], exc)
        raise ProcessError(
            f"Could not start {argv[0]}: {exc}", ProcessOutput(argv, -1, stderr=str(exc))
        ) from exc


async def _kill(process: asyncio.subprocess.Process, readers: asyncio.Future[Any]) -> None:
    """Kill *process* and give its pipes a moment to drain."""
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()
    try:
        await asyncio.wait_for(readers, timeout=_PIPE_CLOSE_GRACE)
    except TimeoutError:
        logger.debug("Pipes still open after kill; keeping what was read")


async def run_process(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = 60.0,
    env: dict[str, str] | None = None,
    check: bool = False,
) -> ProcessOutput:
    """Run *command* and collect its output.

    Args:
        command: Program and arguments, e.g. ``["adb", "devices"]``.
        cwd: Working directory. Defaults to the current directory.
        timeout: Seconds before the process is killed.
        env: Environment for the child. ``None`` inherits ours.
        check: Raise ``ProcessError`` unless the command succeeds.

    Returns:
        The collected output. On timeout it holds what was read before
        the kill, with ``timed_out`` set.

    Raises:
        ProcessError: If the program cannot be started, or if *check* is
            set and the command fails or times out.
        ValueError: If *command* is empty, *timeout* is not positive or
            *cwd* does not exist.
    """
    if not command:
        raise ValueError("command must not be empty")
    if timeout <= 0:
        raise ValueError(f"timeout must be positive (got {timeout})")

    argv = tuple(str(part) for part in command)
    work_dir = _working_directory(cwd)
    logger.debug("$ %s (timeout %ss)", " ".join(argv), timeout)

    started = time.perf_counter()
    process = await _spawn(argv, work_dir, env)

    out_chunks: list[bytes] = []
    err_chunks: list[bytes] = []
    readers = asyncio.gather(
        _read_into(process.stdout, out_chunks),
        _read_into(process.stderr, err_chunks),
    )
    timed_out = False
    try:
        await asyncio.wait_for(asyncio.shield(readers), timeout=timeout)
        await process.wait()
    except TimeoutError:
        timed_out = True
        logger.warning("%s did not finish within %ss; killing it", argv[0], timeout)
        await _kill(process, readers)

    stderr = b"".join(err_chunks).decode("utf-8", errors="replace")
    returncode = process.returncode if process.returncode is not None else -1
    if timed_out:
        stderr = f"{stderr}\nkilled after {timeout}s timeout".lstrip("\n")
        returncode = returncode or -1

    output = ProcessOutput(
        command=argv,
        returncode=returncode,
        stdout=b"".join(out_chunks).decode("utf-8", errors="replace"),
        stderr=stderr,
        timed_out=timed_out,
        duration_ms=(time.perf_counter() - started) * 1000,
    )
    logger.debug("%s exited with %d after %.0fms", argv[0], returncode, output.duration_ms)

    if check and not output.success:
        raise ProcessError(f"{' '.join(argv)} failed with exit code {returncode}", output)
    return output
