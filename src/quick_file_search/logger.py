"""Logging setup shared by every module.

Modules import ``logging`` from here so the handler is installed exactly once:

    from quick_file_search.logger import logging

    logger = logging.getLogger(__name__)

Log records go to stderr; stdout is reserved for the MCP stdio transport.
"""

import logging
import os
import sys

ENV_VAR_NAME = "QUICK_FILE_SEARCH_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure() -> None:
    level_name = os.environ.get(ENV_VAR_NAME, "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger("quick_file_search")
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)


_configure()

__all__ = ["logging"]
