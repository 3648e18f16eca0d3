import asyncio
from pathlib import Path
from urllib.parse import unquote

import mcp.server.stdio
import mcp.types as types
import pydantic
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from quick_file_search.config import SearchConfig
from quick_file_search.logger import logging
from quick_file_search.recent_notes import find_recent_notes
from quick_file_search.search.results import ItemKind, ResultItem
from quick_file_search.search.session import run_query

logger = logging.getLogger(__name__)

URI_SCHEME = "quicksearch"


def root_names(roots: list[Path]) -> dict[str, Path]:
    """Name each root by its directory name, suffixing duplicates."""
    names: dict[str, Path] = {}
    for root in roots:
        name = root.name or str(root)
        candidate = name
        n = 2
        while candidate in names:
            candidate = f"{name}-{n}"
            n += 1
        names[candidate] = root
    return names


def format_result(item: ResultItem) -> str:
    match item.kind:
        case ItemKind.FILE_MATCH:
            return f"{item.path}\n{item.description}"
        case ItemKind.STATUS_MESSAGE:
            return f"error: {item.label} ({item.root})"
    raise ValueError(f"Unknown result kind: {item.kind}")


def resolve_note(roots: dict[str, Path], uri: pydantic.networks.AnyUrl) -> Path:
    """Map a ``quicksearch://<root>/<path>`` URI to a file inside that root."""
    if uri.scheme != URI_SCHEME:
        raise ValueError(f"Unsupported scheme: {uri.scheme}")

    if not uri.path:
        raise ValueError("Missing path")

    root_name = unquote(uri.host or "")
    root = roots.get(root_name)
    if not root:
        raise ValueError(f"Unknown root: {root_name}")

    note_path = (root / unquote(uri.path.lstrip("/"))).resolve()
    if not note_path.is_relative_to(root):
        raise ValueError(f"Path escapes root: {note_path}")
    if not note_path.is_file():
        raise ValueError(f"Note not found: {note_path}")
    return note_path


def run_server(config: SearchConfig):
    server = Server("quick-file-search")
    roots = root_names(config.roots)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """
        List available tools.
        Each tool specifies its arguments using JSON Schema validation.
        """
        return [
            types.Tool(
                name="search-notes",
                description=(
                    "Search notes by content, #tags and file name. Keywords must all "
                    "match a file's content; file names matching any keyword are "
                    "included as well."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string"},
                    },
                    "required": ["query"],
                },
            )
        ]

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: dict | None
    ) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
        if name != "search-notes":
            raise ValueError(f"Unknown tool: {name}")

        if not arguments:
            raise ValueError("Missing arguments")

        query = arguments.get("query")

        if not query or not str(query).strip():
            raise ValueError("Missing query")

        items = await run_query(str(query), config)
        if not items:
            return [types.TextContent(type="text", text="No matching notes.")]
        return [types.TextContent(type="text", text=format_result(item)) for item in items]

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        """
        List recently changed notes of every root.
        """
        resources = []
        for root_name, root in roots.items():
            for note_path in find_recent_notes(root, config.extensions):
                resources.append(
                    types.Resource(
                        uri=pydantic.networks.AnyUrl(
                            f"{URI_SCHEME}://{root_name}/{note_path.as_posix()}"
                        ),
                        name=note_path.stem,
                        description=f"{root_name}: {note_path.parent}",
                        mimeType="text/markdown",
                    )
                )
        return resources

    @server.read_resource()
    async def handle_read_resource(uri: pydantic.networks.AnyUrl) -> str:
        logger.info("Reading resource: %s", uri)
        note_path = resolve_note(roots, uri)
        return note_path.read_text(encoding="utf-8")

    async def serve():
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name="quick-file-search",
                    server_version="0.1.0",
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )

    logger.info("Starting server for %d roots", len(roots))

    asyncio.run(serve())
