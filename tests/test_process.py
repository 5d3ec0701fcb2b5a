"""Tests for adbshard.utils.process."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from adbshard.utils.process import ProcessError, ProcessOutput, run_process


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestRunProcess:
    async def test_success(self) -> None:
        output = await run_process(["echo", "List of devices attached"])

        assert output.success
        assert output.returncode == 0
        assert output.stdout.strip() == "List of devices attached"
        assert output.command == ("echo", "List of devices attached")
        assert output.timed_out is False
        assert output.duration_ms > 0

    async def test_working_directory(self, tmp_path: Path) -> None:
        (tmp_path / "app-debug.apk").write_bytes(b"PK")

        output = await run_process(["ls"], cwd=tmp_path)

        assert "app-debug.apk" in output.stdout

    async def test_stderr_kept_apart(self) -> None:
        output = await run_process(_python("import sys; sys.stderr.write('Failure')"))

        assert output.stderr == "Failure"
        assert output.stdout == ""

    async def test_nonzero_exit(self) -> None:
        output = await run_process(_python("import sys; sys.exit(42)"))

        assert not output.success
        assert output.returncode == 42

    async def test_output_larger_than_one_chunk(self) -> None:
        output = await run_process(_python("print('x' * 100000)"))

        assert len(output.stdout.strip()) == 100000


class TestArguments:
    async def test_empty_command(self) -> None:
        with pytest.raises(ValueError, match="command must not be empty"):
            await run_process([])

    @pytest.mark.parametrize("timeout", [0, -1])
    async def test_non_positive_timeout(self, timeout: float) -> None:
        with pytest.raises(ValueError, match="timeout must be positive"):
            await run_process(["echo"], timeout=timeout)

    async def test_missing_working_directory(self) -> None:
        with pytest.raises(ValueError, match="working directory not found"):
            await run_process(["echo"], cwd=Path("/nonexistent/path/xyz"))

    async def test_missing_program(self) -> None:
        with pytest.raises(ProcessError, match="Command not found") as exc_info:
            await run_process(["adb-does-not-exist-xyz", "devices"])

        assert exc_info.value.output.returncode == -1
        assert not exc_info.value.output.success


class TestTimeout:
    async def test_slow_command_is_killed(self) -> None:
        output = await run_process(_python("import time; time.sleep(10)"), timeout=0.2)

        assert output.timed_out is True
        assert not output.success
        assert output.returncode != 0
        assert "killed after" in output.stderr
        assert output.duration_ms < 5000

    async def test_partial_output_is_kept(self) -> None:
        code = (
            "import time\n"
            "print('INSTRUMENTATION_STATUS: class=a.A', flush=True)\n"
            "print('INSTRUMENTATION_STATUS: test=one', flush=True)\n"
            "time.sleep(10)\n"
        )

        output = await run_process(_python(code), timeout=1.0)

        assert output.timed_out is True
        assert "class=a.A" in output.stdout
        assert "test=one" in output.stdout

    async def test_fast_command_not_flagged(self) -> None:
        output = await run_process(["echo", "quick"], timeout=10.0)

        assert not output.timed_out


class TestCheck:
    async def test_raises_on_failure(self) -> None:
        with pytest.raises(ProcessError, match="failed with exit code 3") as exc_info:
            await run_process(_python("import sys; sys.exit(3)"), check=True)

        assert exc_info.value.output.returncode == 3

    async def test_returns_on_success(self) -> None:
        output = await run_process(["echo", "ok"], check=True)

        assert output.success


def test_success_property() -> None:
    assert ProcessOutput(("adb",), 0).success
    assert not ProcessOutput(("adb",), 0, timed_out=True).success
    assert not ProcessOutput(("adb",), 1).success
