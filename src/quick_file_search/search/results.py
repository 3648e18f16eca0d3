from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple


class ItemKind(Enum):
    """Discriminant of a displayed result row."""

    FILE_MATCH = "file_match"
    STATUS_MESSAGE = "status_message"


class OrKey(NamedTuple):
    """A root and the or-set a command belongs to."""

    root: Path
    or_set_index: int


@dataclass(frozen=True)
class FileMatch:
    root: Path
    path: Path  # resolved absolute path
    label: str  # file basename
    description: str  # match context followed by the raw query
    or_set_index: int
    kind: ItemKind = field(default=ItemKind.FILE_MATCH, init=False)

    @classmethod
    def create(cls, root: Path, file_name: str, context: str, raw_query: str, or_set_index: int):
        path = (root / file_name).resolve()
        description = f"{context} {raw_query}".strip() if context else raw_query
        return cls(
            root=root,
            path=path,
            label=path.name,
            description=description,
            or_set_index=or_set_index,
        )

    @property
    def or_key(self) -> OrKey:
        return OrKey(self.root, self.or_set_index)

    @property
    def relative_path(self) -> Path:
        """Path relative to the root, or absolute if a symlink leads outside it."""
        try:
            return self.path.relative_to(self.root)
        except ValueError:
            return self.path

    @property
    def relative_dir(self) -> str:
        return str(self.relative_path.parent)


@dataclass(frozen=True)
class StatusMessage:
    root: Path
    message: str
    kind: ItemKind = field(default=ItemKind.STATUS_MESSAGE, init=False)

    @property
    def label(self) -> str:
        return self.message.replace("\r\n", " ").replace("\n", " ")


ResultItem = FileMatch | StatusMessage


def match_key(item: ResultItem) -> str:
    """Key used to collapse duplicates when or-sets are merged."""
    match item.kind:
        case ItemKind.FILE_MATCH:
            return str(item.path)
        case ItemKind.STATUS_MESSAGE:
            return item.message
    raise ValueError(f"Unknown result kind: {item.kind}")


def is_selectable(item: ResultItem) -> bool:
    match item.kind:
        case ItemKind.FILE_MATCH:
            return True
        case ItemKind.STATUS_MESSAGE:
            return False
    raise ValueError(f"Unknown result kind: {item.kind}")


def unique_by_key(items: Iterable[ResultItem]) -> tuple[ResultItem, ...]:
    """Drop items whose match key was already seen, keeping first occurrences."""
    seen: set[str] = set()
    unique = []
    for item in items:
        key = match_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return tuple(unique)
