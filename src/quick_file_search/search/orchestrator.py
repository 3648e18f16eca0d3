"""Process orchestration for live search.

Every query change starts a new generation: the previous generation's
processes are killed, the generation counter is incremented and one process is
spawned per (root, command) pair. Completions are matched against the current
generation by comparing the counter recorded at spawn time, so output of a
superseded process that arrives late is dropped.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from quick_file_search.config import SearchConfig
from quick_file_search.logger import logging
from quick_file_search.search.aggregator import ResultAggregator
from quick_file_search.search.query import SearchCommand, compile_query
from quick_file_search.search.results import OrKey, ResultItem, is_selectable
from quick_file_search.search.runner import (
    ProcessOutcome,
    ProcessRunner,
    SpawnError,
    SubprocessRunner,
)
from quick_file_search.search.sink import DebouncedSink

logger = logging.getLogger(__name__)

# Reported for processes that never started, like a shell's "command not found".
SPAWN_FAILED_EXIT_CODE = 127


class SearchSurface(Protocol):
    """The host list that displays results."""

    items: Sequence[ResultItem]
    busy: bool

    def close(self) -> None: ...


@dataclass(eq=False)
class SpawnedProcess:
    generation: int
    root: Path
    command: SearchCommand
    raw_query: str
    task: asyncio.Task | None = field(default=None, repr=False)


class ProcessOrchestrator:
    config: SearchConfig
    surface: SearchSurface
    runner: ProcessRunner
    aggregator: ResultAggregator
    generation: int
    result: "asyncio.Future[Path | None]"

    def __init__(
        self,
        config: SearchConfig,
        surface: SearchSurface,
        runner: ProcessRunner | None = None,
    ):
        loop = asyncio.get_running_loop()
        self.config = config
        self.surface = surface
        self.runner = runner if runner else SubprocessRunner()
        self.generation = 0
        self.result = loop.create_future()

        self._outstanding: set[SpawnedProcess] = set()
        self._first_completion_seen = False
        self._settle_handle: asyncio.TimerHandle | None = None
        self._sink: DebouncedSink[tuple[ResultItem, ...]] = DebouncedSink(
            self._commit_items, (), interval=config.debounce_interval, loop=loop
        )
        self.aggregator = ResultAggregator(
            self._sink.push, max_results_per_command=config.max_results_per_command
        )

    @property
    def busy(self) -> bool:
        return bool(self._outstanding)

    @property
    def outstanding(self) -> frozenset[SpawnedProcess]:
        return frozenset(self._outstanding)

    @property
    def items(self) -> tuple[ResultItem, ...]:
        """Latest result list, including changes the sink has not committed yet."""
        return self._sink.current

    def on_query_change(self, raw_query: str) -> None:
        self._cancel_pending_selection()
        self._terminate_generation()

        self.generation += 1
        self.aggregator.reset_generation()
        self._first_completion_seen = False

        plan = compile_query(raw_query, self.config)
        if plan and not self.config.roots:
            logger.warning("No search roots configured; nothing to search")
            plan = []
        if not plan:
            self.aggregator.clear()
            self._sink.flush()
            self._set_busy(False)
            return

        logger.info(
            "Starting generation %d: %d commands across %d roots",
            self.generation,
            len(plan),
            len(self.config.roots),
        )
        self._set_busy(True)
        for root in self.config.roots:
            for command in plan:
                self._spawn(root, command, raw_query)

    def on_selection(self, items: Sequence[ResultItem]) -> None:
        self._cancel_pending_selection()
        if not items or not is_selectable(items[0]):
            return

        item = items[0]
        if self.config.selection_settle_delay <= 0:
            self._commit_selection(item)
            return
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_later(
            self.config.selection_settle_delay, self._commit_selection, item
        )

    def on_dismiss(self) -> None:
        self._cancel_pending_selection()
        self._terminate_generation()
        self._set_busy(False)
        if not self.result.done():
            logger.info("Search dismissed without a selection")
            self.result.set_result(None)

    def close(self) -> None:
        """End the session: kill running processes and publish the final list."""
        self._cancel_pending_selection()
        self._terminate_generation()
        self._sink.flush()
        self._sink.close()
        self._set_busy(False)
        if not self.result.done():
            self.result.set_result(None)

    def _spawn(self, root: Path, command: SearchCommand, raw_query: str) -> None:
        record = SpawnedProcess(self.generation, root, command, raw_query)
        self._outstanding.add(record)
        logger.debug("Spawning in %s: %s", root, command.text)
        record.task = asyncio.create_task(self._run(record))

    async def _run(self, record: SpawnedProcess) -> None:
        try:
            outcome = await self.runner.run(record.command.args, record.root)
        except SpawnError as e:
            logger.warning("Could not start search in %s: %s", record.root, e)
            outcome = ProcessOutcome(returncode=SPAWN_FAILED_EXIT_CODE, message=str(e))
        except Exception as e:
            logger.warning("Search in %s failed: %s", record.root, e)
            outcome = ProcessOutcome(returncode=SPAWN_FAILED_EXIT_CODE, message=str(e))
        self._on_process_exit(record, outcome)

    def _on_process_exit(self, record: SpawnedProcess, outcome: ProcessOutcome) -> None:
        if record.generation != self.generation or record not in self._outstanding:
            logger.debug(
                "Ignoring completion from generation %d (current %d)",
                record.generation,
                self.generation,
            )
            return

        self._outstanding.discard(record)

        if not outcome.killed:
            if not self._first_completion_seen:
                self._first_completion_seen = True
                self.aggregator.clear()

            if outcome.ok:
                self.aggregator.add_file_results(
                    record.root, record.command, outcome.stdout, record.raw_query
                )
            elif outcome.no_matches:
                self.aggregator.clear(OrKey(record.root, record.command.or_set_index))
            elif outcome.message:
                logger.warning("Search tool failed in %s: %s", record.root, outcome.message)
                self.aggregator.add_status_message(record.root, outcome.message)

        if not self._outstanding:
            logger.debug("Generation %d finished", self.generation)
            self._sink.flush()
            self._set_busy(False)

    def _terminate_generation(self) -> None:
        if self._outstanding:
            logger.debug(
                "Terminating %d processes of generation %d",
                len(self._outstanding),
                self.generation,
            )
        for record in self._outstanding:
            if record.task is not None:
                record.task.cancel()
        self._outstanding.clear()

    def _commit_selection(self, item: ResultItem) -> None:
        self._settle_handle = None
        if self.result.done() or not is_selectable(item):
            return
        logger.info("Selected %s", item.path)
        self.result.set_result(item.path)
        self.surface.close()

    def _cancel_pending_selection(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def _commit_items(self, items: tuple[ResultItem, ...]) -> None:
        self.surface.items = items

    def _set_busy(self, busy: bool) -> None:
        self.surface.busy = busy
