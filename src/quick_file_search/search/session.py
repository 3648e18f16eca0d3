"""Headless search sessions for the CLI and the MCP server."""

import asyncio
from collections.abc import Sequence

from quick_file_search.config import SearchConfig
from quick_file_search.search.orchestrator import ProcessOrchestrator
from quick_file_search.search.results import FileMatch, ItemKind, ResultItem
from quick_file_search.search.runner import ProcessRunner


class CollectingSurface:
    """A surface without a screen: keeps the committed list and busy flag."""

    items: Sequence[ResultItem]
    closed: bool

    def __init__(self):
        self.items = ()
        self.closed = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def busy(self) -> bool:
        return not self._idle.is_set()

    @busy.setter
    def busy(self, value: bool) -> None:
        if value:
            self._idle.clear()
        else:
            self._idle.set()

    def close(self) -> None:
        self.closed = True

    async def wait_idle(self) -> None:
        await self._idle.wait()


async def run_query(
    query: str, config: SearchConfig, runner: ProcessRunner | None = None
) -> tuple[ResultItem, ...]:
    """Run one query to completion and return the final result list."""
    surface = CollectingSurface()
    orchestrator = ProcessOrchestrator(config, surface, runner=runner)
    try:
        orchestrator.on_query_change(query)
        await surface.wait_idle()
    finally:
        orchestrator.close()
    return tuple(surface.items)


async def search_files(
    query: str, config: SearchConfig, runner: ProcessRunner | None = None
) -> list[FileMatch]:
    items = await run_query(query, config, runner=runner)
    return [item for item in items if item.kind is ItemKind.FILE_MATCH]
