"""Query compiler.

Turns a raw query string into a flat list of search commands, each tagged with
the index of the or-set it belongs to:

- or-set 0 matches by file content: one command for all ``#tags`` (the tag
  alternation is an OR inside a single regex) plus one command per keyword.
  Results of these commands are intersected per root, so every keyword has to
  match.
- or-set 1 matches by file name: one glob command per keyword. Its results are
  unioned into the list regardless of what or-set 0 found.
"""

from dataclasses import dataclass
from enum import Enum

from quick_file_search.config import SearchConfig

CONTENT_OR_SET = 0
FILENAME_OR_SET = 1


class CommandKind(Enum):
    TAG = "tag"
    CONTENT = "content"
    FILENAME = "filename"


@dataclass(frozen=True)
class SearchCommand:
    args: tuple[str, ...]  # executed directly, never through a shell
    or_set_index: int
    kind: CommandKind
    text: str = ""  # display form for logs and messages

    @property
    def is_filename_match(self) -> bool:
        """Filename commands print bare paths instead of ``path\\0line`` pairs."""
        return self.kind is CommandKind.FILENAME


CommandPlan = list[SearchCommand]


def split_query(raw_query: str, tag_prefix: str) -> tuple[list[str], list[str]]:
    """Split a query into tag values (marker removed) and keywords."""
    tags: list[str] = []
    keywords: list[str] = []
    for word in raw_query.split():
        if word.startswith(tag_prefix):
            tag = word[len(tag_prefix) :]
            if tag:
                tags.append(tag)
        else:
            keywords.append(word)
    return tags, keywords


def _extension_glob(config: SearchConfig, stem: str = "*") -> str:
    return f"{stem}.{{{','.join(config.extensions)}}}"


def _command(
    args: list[str], or_set_index: int, kind: CommandKind, quote_char: str
) -> SearchCommand:
    # Values (anything but the executable and flags) are quoted in the display text.
    shown = [args[0]] + [
        arg if arg.startswith("-") else f"{quote_char}{arg}{quote_char}" for arg in args[1:]
    ]
    return SearchCommand(tuple(args), or_set_index, kind, text=" ".join(shown))


def compile_query(raw_query: str, config: SearchConfig | None = None) -> CommandPlan:
    """
    Compile a raw query into search commands.

    Args:
        raw_query: The text typed by the user.
        config: Supplies the tool path, quoting, tag marker and extensions.

    Returns:
        The commands in the order: tag command, keyword content commands,
        filename commands. Empty for an empty or whitespace-only query.

    Query words only ever become single arguments. Patterns are passed after
    ``-e`` so a word starting with ``-`` is never read as an option.
    """
    if config is None:
        config = SearchConfig()

    tags, keywords = split_query(raw_query, config.tag_prefix)
    if not tags and not keywords:
        return []

    q = config.quote_char
    rg = config.rg_path
    options = ["-0", "--no-line-number", "--no-heading", "-i", "-g", _extension_glob(config)]

    plan: CommandPlan = []

    if tags:
        alternation = "|".join(tags)
        pattern = rf"^tags\s*:\s*\[[^\]]*({alternation})[^\]]*\]$"
        plan.append(_command([rg, *options, "-e", pattern], CONTENT_OR_SET, CommandKind.TAG, q))

    for keyword in keywords:
        plan.append(_command([rg, *options, "-e", keyword], CONTENT_OR_SET, CommandKind.CONTENT, q))

    for keyword in keywords:
        plan.append(
            _command(
                [rg, "--files", "-i", "--glob-case-insensitive", "-g", _extension_glob(config, f"*{keyword}*")],
                FILENAME_OR_SET,
                CommandKind.FILENAME,
                q,
            )
        )

    return plan
