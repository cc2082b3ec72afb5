"""Terminal rendering: markdown blocks, code fences, wrapping and theme."""

from .theme import ColorPalette, RippleTheme, DEFAULT_THEME
from .markdown import Block, parse_blocks, render_blocks, render_inline, render_markdown_lines, has_open_fence
from .code_block import CodeLine, highlight_segments, render_code_block
from .wrap import terminal_width, wrap_offsets, wrap_text
from .output import render_markdown, to_ansi

__all__ = [
    "ColorPalette",
    "RippleTheme",
    "DEFAULT_THEME",
    "Block",
    "parse_blocks",
    "render_blocks",
    "render_inline",
    "render_markdown_lines",
    "has_open_fence",
    "CodeLine",
    "highlight_segments",
    "render_code_block",
    "terminal_width",
    "wrap_offsets",
    "wrap_text",
    "render_markdown",
    "to_ansi",
]
