"""Merges per-command search output into the displayed result list.

Commands of one or-set are AND-terms: the first output seen for a root/or-set
is unioned into the list, every later output for the same root/or-set narrows
that root/or-set's items to the intersection. Different roots and different
or-sets are always unioned. Outputs may arrive in any order and some may never
arrive at all.
"""

from collections.abc import Callable, Iterable
from pathlib import Path

from quick_file_search.logger import logging
from quick_file_search.search.query import SearchCommand
from quick_file_search.search.results import (
    FileMatch,
    ItemKind,
    OrKey,
    ResultItem,
    StatusMessage,
    unique_by_key,
)

logger = logging.getLogger(__name__)


def parse_output(
    command: SearchCommand, raw_output: str, limit: int = 0
) -> list[tuple[str, str]]:
    """
    Parse search tool output into ``(file_name, context)`` pairs.

    Filename commands print one path per line and have no context. Content
    commands print ``path\\0matched line`` per line. Pairs are de-duplicated by
    file name, keeping the first matched line. ``limit`` caps the number of
    files kept from filename commands; 0 means no cap. Content output is
    always read in full, since it is intersected with other AND-terms.
    """
    if not command.is_filename_match:
        limit = 0

    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for line in raw_output.split("\n"):
        if limit and len(pairs) >= limit:
            break
        line = line.rstrip("\r")
        if not line:
            continue
        if command.is_filename_match:
            file_name, context = line, ""
        else:
            file_name, _, context = line.partition("\0")
            context = context.strip()
        if not file_name or file_name in seen:
            continue
        seen.add(file_name)
        pairs.append((file_name, context))
    return pairs


def _entry_key(item: ResultItem) -> tuple:
    match item.kind:
        case ItemKind.FILE_MATCH:
            return (item.root, item.or_set_index, item.path)
        case ItemKind.STATUS_MESSAGE:
            return (item.message,)
    raise ValueError(f"Unknown result kind: {item.kind}")


class ResultAggregator:
    """
    Owns the displayed result list.

    Entries are stored once per root, or-set and path, so a file found by two
    or-sets survives when one of them narrows it away. The published list
    collapses those entries by match key, first occurrence winning.
    """

    entries: tuple[ResultItem, ...]
    ledger: frozenset[OrKey]
    max_results_per_command: int

    def __init__(
        self,
        publish: Callable[[tuple[ResultItem, ...]], None],
        max_results_per_command: int = 0,
    ):
        self._publish = publish
        self.entries = ()
        self.items: tuple[ResultItem, ...] = ()
        self.ledger = frozenset()
        self.max_results_per_command = max_results_per_command

    def _set_entries(self, entries: Iterable[ResultItem]) -> None:
        seen: set[tuple] = set()
        unique = []
        for entry in entries:
            key = _entry_key(entry)
            if key not in seen:
                seen.add(key)
                unique.append(entry)
        self.entries = tuple(unique)

        items = unique_by_key(self.entries)
        if items != self.items:
            self.items = items
            self._publish(items)

    def reset_generation(self) -> None:
        """Forget which root/or-sets were seen. The displayed list is kept."""
        self.ledger = frozenset()

    def add_file_results(
        self, root: Path, command: SearchCommand, raw_output: str, raw_query: str
    ) -> None:
        pairs = parse_output(command, raw_output, self.max_results_per_command)
        new_items = [
            FileMatch.create(root, file_name, context, raw_query, command.or_set_index)
            for file_name, context in pairs
        ]
        key = OrKey(root, command.or_set_index)

        if key not in self.ledger:
            self.ledger = self.ledger | {key}
            self._set_entries([*self.entries, *new_items])
            logger.debug(
                "First result set for %s (or-set %d): %d items",
                root,
                command.or_set_index,
                len(new_items),
            )
            return

        # Narrow this root/or-set to the intersection; keep display order.
        new_paths = {item.path for item in new_items}
        self._set_entries(
            entry
            for entry in self.entries
            if not (entry.kind is ItemKind.FILE_MATCH and entry.or_key == key)
            or entry.path in new_paths
        )

    def add_status_message(self, root: Path, message: str) -> None:
        self._set_entries([*self.entries, StatusMessage(root, message)])

    def clear(self, or_key: OrKey | None = None) -> None:
        """
        Remove displayed items.

        With no key, empties the list. With a key, removes only the file matches
        of that root/or-set and records the key as seen, so a later AND-term of
        the same root/or-set narrows the empty set instead of repopulating it.
        """
        if or_key is None:
            self._set_entries(())
            return

        self.ledger = self.ledger | {or_key}
        self._set_entries(
            entry
            for entry in self.entries
            if not (entry.kind is ItemKind.FILE_MATCH and entry.or_key == or_key)
        )
