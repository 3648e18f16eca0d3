"""Runs one search command as a child process."""

import asyncio
import contextlib
import os
import signal
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from quick_file_search.logger import logging

logger = logging.getLogger(__name__)

NO_MATCHES_EXIT_CODE = 1
KILL_WAIT_TIMEOUT = 5.0


class SpawnError(OSError):
    """The search tool process could not be started."""


@dataclass
class ProcessOutcome:
    returncode: int
    stdout: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def no_matches(self) -> bool:
        return self.returncode == NO_MATCHES_EXIT_CODE and not self.stdout.strip()

    @property
    def killed(self) -> bool:
        # asyncio reports termination by signal N as return code -N
        return self.returncode < 0


class ProcessRunner(Protocol):
    async def run(self, args: Sequence[str], cwd: Path) -> ProcessOutcome: ...


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the search tool and anything it started."""
    with contextlib.suppress(ProcessLookupError):
        if sys.platform == "win32":
            process.kill()
        else:
            os.killpg(process.pid, signal.SIGKILL)


class SubprocessRunner:
    """Runs commands directly (no shell) with ``asyncio`` subprocesses."""

    async def run(self, args: Sequence[str], cwd: Path) -> ProcessOutcome:
        command_text = " ".join(args)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=sys.platform != "win32",
            )
        except OSError as e:
            raise SpawnError(f"Failed to start '{command_text}' in {cwd}: {e}") from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            _kill(process)
            # Reap the child so it does not linger as a zombie.
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(asyncio.shield(process.wait()), KILL_WAIT_TIMEOUT)
            logger.debug("Killed superseded process %s", process.pid)
            raise

        returncode = process.returncode if process.returncode is not None else -1
        message = ""
        if returncode != 0:
            message = _decode(stderr).strip() or f"Command failed: {command_text}"

        return ProcessOutcome(returncode=returncode, stdout=_decode(stdout), message=message)
