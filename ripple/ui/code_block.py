"""Fenced code block rendering with syntax highlighting.

Code lines are passed through exactly as written: no wrapping, no cropping,
no tab expansion, no control-code stripping. Highlighting only attaches
styles to slices of the original string, using pygments token offsets, and
the slices are kept as rich Segments rather than Text (Text would drop
characters such as form feed or BEL).
"""

import logging
from dataclasses import dataclass, field

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound
from rich.cells import cell_len
from rich.segment import Segment
from rich.syntax import PygmentsSyntaxTheme
from rich.text import Text

from ..config import RenderConfig
from .theme import DEFAULT_THEME, RippleTheme

_log = logging.getLogger(__name__)


@dataclass
class CodeLine:
    """One physical line of fence content as styled segments."""

    segments: list[Segment] = field(default_factory=list)

    @property
    def plain(self) -> str:
        return "".join(segment.text for segment in self.segments)


def _get_lexer(language: str) -> Lexer | None:
    if not language:
        return None
    try:
        return get_lexer_by_name(language)
    except ClassNotFound:
        _log.debug("No lexer for code fence language %r", language)
        return None


def highlight_segments(code: str, language: str = "", theme_name: str = "monokai") -> list[Segment]:
    """Split ``code`` into styled segments.

    The segment texts always concatenate back to ``code``. Unknown languages
    come back as a single unstyled segment.
    """
    lexer = _get_lexer(language)
    if lexer is None or not code:
        return [Segment(code)] if code else []

    syntax_theme = PygmentsSyntaxTheme(theme_name)
    segments = []
    pos = 0
    try:
        for index, token_type, value in lexer.get_tokens_unprocessed(code):
            end = min(index + len(value), len(code))
            if end <= pos:
                continue
            if index > pos:
                segments.append(Segment(code[pos:index]))
            start = max(index, pos)
            segments.append(Segment(code[start:end], syntax_theme.get_style_for_token(token_type)))
            pos = end
    except Exception:
        _log.debug("Highlighting failed for %r, rendering plain", language, exc_info=True)
        return [Segment(code)]
    if pos < len(code):
        segments.append(Segment(code[pos:]))
    return segments


def _split_lines(segments: list[Segment]) -> list[CodeLine]:
    lines = [CodeLine()]
    for segment in segments:
        parts = segment.text.split("\n")
        for n, part in enumerate(parts):
            if n:
                lines.append(CodeLine())
            if part:
                lines[-1].segments.append(Segment(part, segment.style))
    return lines


def render_code_block(
    code: str,
    language: str,
    width: int,
    closed: bool = True,
    theme: RippleTheme = DEFAULT_THEME,
    config: RenderConfig | None = None,
) -> list[Text | CodeLine]:
    """Render a fenced code block as a list of lines.

    Args:
        code: The code string (without fences).
        language: Info string from the opening fence, e.g. ``python``.
        width: Effective width, used only for the label and closing rules.
        closed: False for a fence still open at render time; the closing
            rule is left off so the block reads as unfinished.
        theme: Theme for the rule lines.
        config: Render settings (code theme, rule glyph).
    """
    config = config or RenderConfig()
    glyph = config.rule_glyph
    label = language or "text"

    header = Text.assemble((f"{glyph * 2} {label} ", theme.rule))
    if cell_len(header.plain) > width:
        header.truncate(width, overflow="ellipsis")
    header.append(glyph * max(width - cell_len(header.plain), 0), style=theme.rule)
    lines: list[Text | CodeLine] = [header]

    if code:
        lines.extend(_split_lines(highlight_segments(code, language, config.code_theme)))

    if closed:
        lines.append(Text.assemble((glyph * width, theme.rule)))
    return lines
