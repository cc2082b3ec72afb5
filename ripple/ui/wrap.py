"""Width resolution and word wrapping for prose lines.

Width is sampled fresh on every call; nothing here caches terminal state.
Wrapping only ever breaks at whitespace. A word wider than the available
columns is kept whole on its own line.
"""

import logging
import os
import re

from rich.cells import cell_len
from rich.text import Text

from ..config import DEFAULT_WIDTH

_log = logging.getLogger(__name__)

# stdin, stdout, stderr: the same probe order rich uses for Console.size
_STD_FILENOS = (0, 1, 2)

_WORD = re.compile(r"\S+")

# Tabs in prose become spaces before measuring; a raw tab has no cell width
TAB_SIZE = 4


def terminal_width(default: int = DEFAULT_WIDTH) -> int:
    """Return the current terminal column count, or ``default`` without one."""
    for fd in _STD_FILENOS:
        try:
            columns = os.get_terminal_size(fd).columns
        except (AttributeError, OSError, ValueError):
            continue
        if columns > 0:
            return columns
    _log.debug("No terminal size available, using %d columns", default)
    return default


def wrap_offsets(plain: str, width: int) -> list[int]:
    """Compute the character offsets where ``plain`` should be broken.

    Breaks land on the first character of a word so that the previous line
    ends in (strippable) whitespace.
    """
    offsets: list[int] = []
    line_start = None
    for match in _WORD.finditer(plain):
        start, end = match.span()
        if line_start is None:
            line_start = start
            continue
        if cell_len(plain[line_start:end]) > width:
            offsets.append(start)
            line_start = start
    return offsets


def wrap_text(
    text: Text,
    width: int,
    first_prefix: Text | None = None,
    rest_prefix: Text | None = None,
) -> list[Text]:
    """Wrap styled text into lines no wider than ``width`` cells.

    Args:
        text: Styled prose. Embedded newlines are hard breaks; tabs are
            expanded to spaces.
        width: Total columns, prefix included.
        first_prefix: Prepended to the first output line (list marker, quote bar).
        rest_prefix: Prepended to continuation lines; defaults to ``first_prefix``.
    """
    text = text.copy()
    text.expand_tabs(TAB_SIZE)
    first_prefix = first_prefix or Text()
    rest_prefix = rest_prefix if rest_prefix is not None else first_prefix
    indent = max(cell_len(first_prefix.plain), cell_len(rest_prefix.plain))
    available = max(width - indent, 1)

    lines: list[Text] = []
    for segment in text.split("\n", allow_blank=True):
        offsets = wrap_offsets(segment.plain, available)
        pieces = segment.divide(offsets) if offsets else [segment]
        for piece in pieces:
            piece.rstrip()
            lines.append(piece)

    result = []
    for i, line in enumerate(lines):
        prefixed = (first_prefix if i == 0 else rest_prefix).copy()
        prefixed.append_text(line)
        result.append(prefixed)
    return result
