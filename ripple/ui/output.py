"""Output rendering -- thin facade turning markdown into an ANSI string.

Lines are converted segment by segment with ``Style.render`` rather than
printed through a Console, so no wrapping, cropping or tab expansion is
applied after the markdown pass has laid the lines out.
"""

from io import StringIO

from rich.color import ColorSystem
from rich.console import Console
from rich.text import Text

from ..config import RenderConfig
from .code_block import CodeLine
from .markdown import render_markdown_lines
from .theme import DEFAULT_THEME, RippleTheme

# Only used to resolve styles while segmenting; never written to.
_SEGMENT_CONSOLE = Console(file=StringIO(), force_terminal=True, color_system="truecolor")


def to_ansi(line: Text | CodeLine, color_system: ColorSystem | None = ColorSystem.TRUECOLOR) -> str:
    """Render one line of Rich Text (or code) to a string with ANSI escape codes.

    Passing ``color_system=None`` produces plain text.
    """
    if isinstance(line, CodeLine):
        segments = line.segments
    else:
        segments = line.render(_SEGMENT_CONSOLE, end="")
    out = []
    for segment in segments:
        if segment.style and color_system is not None:
            out.append(segment.style.render(segment.text, color_system=color_system))
        else:
            out.append(segment.text)
    return "".join(out)


def render_markdown(
    source: str,
    width: int,
    theme: RippleTheme = DEFAULT_THEME,
    config: RenderConfig | None = None,
    color_system: ColorSystem | None = ColorSystem.TRUECOLOR,
) -> str:
    """Render markdown ``source`` at ``width`` columns to a terminal string."""
    lines = render_markdown_lines(source, width, theme, config)
    return "\n".join(to_ansi(line, color_system) for line in lines)
