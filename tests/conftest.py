"""
Shared fixtures for the quick-file-search test suite.

Search tool processes are replaced by FakeRunner, whose processes only finish
when a test releases them. This makes completion order and supersession
deterministic without needing ripgrep installed.
"""

import asyncio
from collections.abc import Sequence
from pathlib import Path

import pytest

from quick_file_search.config import SearchConfig
from quick_file_search.search.runner import ProcessOutcome


class FakeProcess:
    def __init__(self, args: Sequence[str], cwd: Path):
        self.args = tuple(args)
        self.cwd = cwd
        self.cancelled = False
        self.future: asyncio.Future[ProcessOutcome] = asyncio.get_running_loop().create_future()

    def finish(self, returncode: int = 0, stdout: str = "", message: str = "") -> None:
        self.future.set_result(ProcessOutcome(returncode, stdout, message))


class FakeRunner:
    """Records every run; each run waits until the test finishes it."""

    def __init__(self, ignore_cancel: bool = False):
        self.processes: list[FakeProcess] = []
        self.ignore_cancel = ignore_cancel

    async def run(self, args: Sequence[str], cwd: Path) -> ProcessOutcome:
        process = FakeProcess(args, cwd)
        self.processes.append(process)
        try:
            return await asyncio.shield(process.future)
        except asyncio.CancelledError:
            process.cancelled = True
            if self.ignore_cancel:
                # A process that exits on its own after being signalled
                return await process.future
            raise

    def find(self, predicate, cwd: Path | None = None) -> FakeProcess:
        matches = [p for p in self.processes if predicate(p.args) and (cwd is None or p.cwd == cwd)]
        assert len(matches) == 1, f"expected one matching process, got {len(matches)}"
        return matches[0]

    def filename_process(self, keyword: str, cwd: Path | None = None) -> FakeProcess:
        glob = f"*{keyword}*.{{md,markdown,mdown,mkdn,txt}}"
        return self.find(lambda args: "--files" in args and args[-1] == glob, cwd)

    def content_process(self, keyword: str, cwd: Path | None = None) -> FakeProcess:
        return self.find(lambda args: "--files" not in args and args[-2:] == ("-e", keyword), cwd)


async def drain() -> None:
    """Let spawned tasks and completion callbacks run."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def roots(tmp_path) -> list[Path]:
    paths = [tmp_path / "notes", tmp_path / "work"]
    for path in paths:
        path.mkdir()
    return [path.resolve() for path in paths]


@pytest.fixture
def config(roots) -> SearchConfig:
    return SearchConfig(
        roots=roots[:1],
        quote_char="'",
        debounce_interval=0,
        selection_settle_delay=0,
    )


@pytest.fixture
def two_root_config(roots) -> SearchConfig:
    return SearchConfig(
        roots=roots,
        quote_char="'",
        debounce_interval=0,
        selection_settle_delay=0,
    )
