from collections.abc import Sequence
from pathlib import Path

from quick_file_search.logger import logging

logger = logging.getLogger(__name__)


def find_recent_notes(root: Path, extensions: Sequence[str], limit: int = 20) -> list[Path]:
    """
    Find the most recently modified notes under a root.

    Returns paths relative to the root, newest first. Hidden directories and
    files are skipped.
    """
    suffixes = {f".{ext.lower()}" for ext in extensions}
    found: list[tuple[float, Path]] = []
    for path in root.rglob("*"):
        rel_path = path.relative_to(root)
        if any(part.startswith(".") for part in rel_path.parts):
            continue
        if path.suffix.lower() not in suffixes:
            continue
        try:
            if not path.is_file():
                continue
            mtime = path.stat().st_mtime
        except OSError as e:
            logger.warning("Failed to stat %s: %s", path, e)
            continue
        found.append((mtime, rel_path))

    found.sort(key=lambda entry: entry[0], reverse=True)
    return [rel_path for _, rel_path in found[:limit]]
