"""Search configuration and environment overrides."""

import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path

ROOTS_ENV_VAR = "QUICK_FILE_SEARCH_ROOTS"
RG_ENV_VAR = "QUICK_FILE_SEARCH_RG"
DEBOUNCE_ENV_VAR = "QUICK_FILE_SEARCH_DEBOUNCE_MS"
SETTLE_ENV_VAR = "QUICK_FILE_SEARCH_SETTLE_MS"
EXTENSIONS_ENV_VAR = "QUICK_FILE_SEARCH_EXTENSIONS"

DEFAULT_EXTENSIONS = ("md", "markdown", "mdown", "mkdn", "txt")
DEFAULT_TAG_PREFIX = "#"
DEFAULT_DEBOUNCE_INTERVAL = 0.02  # seconds
DEFAULT_SELECTION_SETTLE_DELAY = 0.5  # seconds
DEFAULT_MAX_RESULTS_PER_COMMAND = 50


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


def default_quote_char() -> str:
    """Return the platform shell's quote character, used when displaying commands."""
    return '"' if sys.platform == "win32" else "'"


@dataclass
class SearchConfig:
    """Configuration consumed by the query compiler and the orchestrator."""

    roots: list[Path] = field(default_factory=list)
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    tag_prefix: str = DEFAULT_TAG_PREFIX
    quote_char: str = field(default_factory=default_quote_char)
    rg_path: str = "rg"
    debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL
    selection_settle_delay: float = DEFAULT_SELECTION_SETTLE_DELAY
    max_results_per_command: int = DEFAULT_MAX_RESULTS_PER_COMMAND  # 0 = unlimited


def _milliseconds_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of milliseconds, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value / 1000.0


def _roots_from_env() -> list[Path]:
    raw = os.environ.get(ROOTS_ENV_VAR, "")
    return [Path(part) for part in raw.split(os.pathsep) if part]


def _resolve_roots(roots: list[Path]) -> list[Path]:
    resolved = []
    for root in roots:
        path = Path(root).expanduser()
        if not path.is_dir():
            raise ConfigError(f"Search root is not a directory: {path}")
        resolved.append(path.resolve())
    return resolved


def get_config(roots: list[Path] | None = None, **overrides) -> SearchConfig:
    """
    Build the search configuration.

    Args:
        roots: Search roots. If empty or None, uses the QUICK_FILE_SEARCH_ROOTS
               environment variable, falling back to the current directory.
        overrides: Field values that take precedence over the environment.

    Returns:
        The search configuration.

    Raises:
        ConfigError: If a root is not a directory or an environment value is invalid.
    """
    if not roots:
        roots = _roots_from_env() or [Path.cwd()]

    config = SearchConfig(
        roots=_resolve_roots(list(roots)),
        rg_path=os.environ.get(RG_ENV_VAR, "rg"),
        debounce_interval=_milliseconds_from_env(DEBOUNCE_ENV_VAR, DEFAULT_DEBOUNCE_INTERVAL),
        selection_settle_delay=_milliseconds_from_env(
            SETTLE_ENV_VAR, DEFAULT_SELECTION_SETTLE_DELAY
        ),
    )

    extensions = os.environ.get(EXTENSIONS_ENV_VAR)
    if extensions:
        parsed = tuple(ext.strip().lstrip(".") for ext in extensions.split(",") if ext.strip())
        if not parsed:
            raise ConfigError(f"{EXTENSIONS_ENV_VAR} does not name any extension")
        config.extensions = parsed

    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        try:
            config = replace(config, **overrides)
        except TypeError as e:
            raise ConfigError(str(e)) from None

    return config
