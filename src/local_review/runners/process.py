"""Async external process execution with timeouts."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one external command."""

    command: tuple[str, ...]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    not_found: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """stdout and stderr combined."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


CommandRunner = Callable[[list[str], Path, float], Awaitable[ProcessResult]]


async def run_command(command: list[str], cwd: Path, timeout: float) -> ProcessResult:
    """Run ``command`` in ``cwd``, killing it if it exceeds ``timeout`` seconds.

    Missing executables and timeouts are reported in the result, not raised.
    """
    start_time = time.monotonic()
    logger.debug(f"Running {' '.join(command)} in {cwd}")

    def _elapsed() -> int:
        return int((time.monotonic() - start_time) * 1000)

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        return ProcessResult(
            command=tuple(command),
            returncode=None,
            stderr=f"command not found: {command[0]}",
            duration_ms=_elapsed(),
            not_found=True,
        )
    except OSError as e:
        return ProcessResult(
            command=tuple(command),
            returncode=None,
            stderr=f"could not start {command[0]}: {e}",
            duration_ms=_elapsed(),
            not_found=True,
        )

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning(f"{command[0]} timed out after {timeout}s")
        return ProcessResult(
            command=tuple(command),
            returncode=None,
            stderr=f"timed out after {timeout:g}s",
            duration_ms=_elapsed(),
            timed_out=True,
        )
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise

    return ProcessResult(
        command=tuple(command),
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        duration_ms=_elapsed(),
    )
