import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

import click

from quick_file_search.config import ConfigError, SearchConfig, get_config
from quick_file_search.logger import logging
from quick_file_search.search.results import FileMatch, ItemKind

logger = logging.getLogger(__name__)


def _load_config(root_paths: Sequence[Path], **overrides) -> SearchConfig:
    try:
        return get_config(list(root_paths), **overrides)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e


root_option = click.option(
    "--root",
    "-r",
    "root_paths",
    multiple=True,
    help="Directory to search. Defaults to QUICK_FILE_SEARCH_ROOTS or the current directory.",
    type=click.Path(exists=True, dir_okay=True, file_okay=False, path_type=Path),
)


@click.group("quick-file-search")
def main():
    """
    Live search over notes with ripgrep.
    """
    pass


@main.command("search")
@click.argument("query", nargs=-1, required=True)
@root_option
@click.option("--rg", "rg_path", help="Path to the ripgrep executable.", default=None)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
def search_cmd(
    query: Sequence[str],
    root_paths: Sequence[Path],
    rg_path: str | None,
    as_json: bool,
):
    """
    Search once and print the matching files.

    Words are keywords that must all appear in a file; words starting with #
    match any of the given tags. File names containing a keyword match too.
    """
    from quick_file_search.search.session import run_query

    config = _load_config(root_paths, rg_path=rg_path)
    logger.debug("Searching %s", ", ".join(str(root) for root in config.roots))
    items = asyncio.run(run_query(" ".join(query), config))

    matches = [item for item in items if item.kind is ItemKind.FILE_MATCH]
    for item in items:
        if item.kind is ItemKind.STATUS_MESSAGE:
            click.echo(f"{item.root}: {item.label}", err=True)

    if as_json:
        click.echo(json.dumps([_match_to_dict(match) for match in matches], indent=2))
    else:
        for match in matches:
            click.echo(f"{match.relative_path}\t{match.description}")

    if not matches:
        sys.exit(1)


def _match_to_dict(match: FileMatch) -> dict:
    return {
        "root": str(match.root),
        "path": str(match.path),
        "label": match.label,
        "directory": match.relative_dir,
        "description": match.description,
        "or_set": match.or_set_index,
    }


@main.command("mcp")
@root_option
def mcp_cmd(root_paths: Sequence[Path]):
    """
    Run the quick-file-search MCP server.
    """
    from quick_file_search.mcp_server import run_server

    run_server(_load_config(root_paths))


if __name__ == "__main__":
    main()
