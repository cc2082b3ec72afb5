"""Recovering markdown renderer for streamed model output.

The parser never fails: anything it does not recognise is kept as literal
paragraph text, an unclosed emphasis marker stays as typed, and a code fence
with no closing line is treated as running to the end of the input.

Blocks are parsed line by line, then rendered to a list of Rich Text lines
at a given width. Prose blocks go through ``wrap_text``; code blocks go
through ``render_code_block`` and are never re-wrapped.
"""

import re
from dataclasses import dataclass, field

from rich.cells import cell_len
from rich.text import Text

from ..config import RenderConfig
from .code_block import CodeLine, render_code_block
from .theme import DEFAULT_THEME, RippleTheme
from .wrap import TAB_SIZE, wrap_text

_FENCE = re.compile(r"^([ \t]*)(`{3,}|~{3,})[ \t]*([^`]*?)[ \t]*$")
_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_SETEXT = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_RULE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_BULLET = re.compile(r"^([ \t]*)([-*+])[ \t]+(.*)$")
_ORDERED = re.compile(r"^([ \t]*)(\d{1,9}[.)])[ \t]+(.*)$")
_QUOTE = re.compile(r"^ {0,3}>[ \t]?(.*)$")
_TABLE_ROW = re.compile(r"^ {0,3}\|")
_TABLE_DELIM = re.compile(r"^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$")

_INLINE_CODE = re.compile(r"(`+)(.+?)(?<!`)\1(?!`)")
_ESCAPE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!~|>])")
_BOLD = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*|__(?=\S)(.+?)(?<=\S)__")
_STRIKE = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~")
_ITALIC = re.compile(
    r"(?<![*\w])\*(?=[^\s*])([^*]+?)(?<=\S)\*(?![*\w])"
    r"|(?<![_\w])_(?=[^\s_])([^_]+?)(?<=\S)_(?![_\w])"
)
_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]*)(?:[ \t]+\"[^\"]*\")?\)")

# Stands in for protected characters (code spans, escapes) while the
# emphasis patterns run, so offsets stay aligned with the original text.
_MASK = "\x00"


@dataclass
class Block:
    """One parsed markdown block."""

    kind: str
    text: str = ""
    level: int = 0
    marker: str = ""
    language: str = ""
    closed: bool = True
    rows: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Inline spans
# ---------------------------------------------------------------------------

def render_inline(text: str, theme: RippleTheme = DEFAULT_THEME) -> Text:
    """Convert inline markdown (code, bold, italic, strike, links) to Rich Text.

    Overlapping matches are resolved in favour of the one that starts first;
    markers that never close are left in the output verbatim.
    """
    spans = []
    masked = list(text)
    for m in _INLINE_CODE.finditer(text):
        spans.append((m.start(), m.end(), "code", m))
        masked[m.start():m.end()] = _MASK * (m.end() - m.start())
    for m in _ESCAPE.finditer("".join(masked)):
        spans.append((m.start(), m.end(), "escape", m))
        masked[m.start():m.end()] = _MASK * (m.end() - m.start())

    masked_text = "".join(masked)
    for pattern, kind in ((_BOLD, "bold"), (_STRIKE, "strike"), (_ITALIC, "italic"), (_LINK, "link")):
        for m in pattern.finditer(masked_text):
            spans.append((m.start(), m.end(), kind, m))

    # Earliest start wins; on a tie the longer span wins
    spans.sort(key=lambda s: (s[0], -s[1]))
    filtered = []
    last_end = 0
    for start, end, kind, m in spans:
        if start >= last_end:
            filtered.append((start, end, kind, m))
            last_end = end

    result = Text()
    pos = 0
    for start, end, kind, m in filtered:
        if start > pos:
            result.append(text[pos:start])
        if kind == "code":
            content = text[m.start(2):m.end(2)]
            if len(content) > 2 and content.startswith(" ") and content.endswith(" "):
                content = content[1:-1]
            result.append(content, style=theme.code)
        elif kind == "escape":
            result.append(text[m.start(1):m.end(1)])
        elif kind == "link":
            label = render_inline(text[m.start(1):m.end(1)], theme)
            label.stylize_before(theme.link)
            result.append_text(label)
            url = text[m.start(2):m.end(2)]
            if url and url != label.plain:
                result.append(f" ({url})", style=theme.marker)
        else:
            group = 1 if m.group(1) is not None else 2
            inner = render_inline(text[m.start(group):m.end(group)], theme)
            inner.stylize_before(_EMPHASIS[kind](theme))
            result.append_text(inner)
        pos = end

    if pos < len(text):
        result.append(text[pos:])
    return result


_EMPHASIS = {
    "bold": lambda theme: theme.bold,
    "italic": lambda theme: theme.italic,
    "strike": lambda theme: theme.strike,
}


# ---------------------------------------------------------------------------
# Block parsing
# ---------------------------------------------------------------------------

def _indent_width(whitespace: str) -> int:
    return len(whitespace.expandtabs(4))


def _strip_indent(line: str, count: int) -> str:
    """Remove up to ``count`` leading spaces (fence content indentation)."""
    i = 0
    while i < count and i < len(line) and line[i] == " ":
        i += 1
    return line[i:]


def _is_block_start(line: str) -> bool:
    return bool(
        _FENCE.match(line)
        or _HEADING.match(line)
        or _RULE.match(line)
        or _BULLET.match(line)
        or _ORDERED.match(line)
        or _QUOTE.match(line)
        or _TABLE_ROW.match(line)
    )


def _open_fence(line: str, item_column: int | None) -> re.Match | None:
    """Match a fence opener. Inside a list item the fence may be indented
    up to three columns past the item's content column."""
    m = _FENCE.match(line)
    if not m:
        return None
    limit = 3 if item_column is None else item_column + 3
    return m if _indent_width(m.group(1)) <= limit else None


def _join_lines(lines: list[str]) -> str:
    """Join soft-wrapped source lines; trailing double space or ``\\`` is a hard break."""
    out = ""
    for i, raw in enumerate(lines):
        hard = raw.endswith("  ") or raw.endswith("\\")
        piece = raw.strip()
        if hard and piece.endswith("\\"):
            piece = piece[:-1].rstrip()
        out += piece
        if i < len(lines) - 1:
            out += "\n" if hard else " "
    return out


def _quote_depth(content: str) -> tuple[int, str]:
    depth = 1
    while True:
        m = _QUOTE.match(content)
        if not m:
            return depth, content
        depth += 1
        content = m.group(1)


def parse_blocks(source: str) -> list[Block]:
    """Split markdown source into blocks. Never raises."""
    lines = source.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks: list[Block] = []
    paragraph: list[str] = []
    list_indents: list[int] = []
    # Column where the latest list item's text starts, None outside lists
    item_column: int | None = None
    i = 0

    def close_paragraph() -> None:
        if paragraph:
            blocks.append(Block("paragraph", _join_lines(paragraph)))
            paragraph.clear()

    def last_item() -> Block | None:
        for block in reversed(blocks):
            if block.kind == "item":
                return block
            if block.kind != "blank":
                return None
        return None

    while i < len(lines):
        line = lines[i]

        fence = _open_fence(line, item_column)
        if fence:
            close_paragraph()
            indent, marker, info = fence.group(1), fence.group(2), fence.group(3)
            closing = re.compile(
                rf"^[ \t]{{0,{len(indent) + 3}}}{re.escape(marker[0])}{{{len(marker)},}}[ \t]*$"
            )
            body = []
            closed = False
            i += 1
            while i < len(lines):
                if closing.match(lines[i]):
                    closed = True
                    i += 1
                    break
                body.append(_strip_indent(lines[i], len(indent)))
                i += 1
            language = info.split()[0] if info.split() else ""
            blocks.append(Block("code", "\n".join(body), language=language, closed=closed))
            if not indent or item_column is None:
                list_indents.clear()
                item_column = None
            continue

        if not line.strip():
            close_paragraph()
            if blocks and blocks[-1].kind != "blank":
                blocks.append(Block("blank"))
            i += 1
            continue

        setext = _SETEXT.match(line)
        if setext and paragraph:
            level = 1 if setext.group(1).startswith("=") else 2
            blocks.append(Block("heading", _join_lines(paragraph), level=level))
            paragraph.clear()
            i += 1
            continue

        if _RULE.match(line):
            close_paragraph()
            blocks.append(Block("rule"))
            list_indents.clear()
            item_column = None
            i += 1
            continue

        heading = _HEADING.match(line)
        if heading:
            close_paragraph()
            blocks.append(Block("heading", heading.group(2) or "", level=len(heading.group(1))))
            list_indents.clear()
            item_column = None
            i += 1
            continue

        item = _BULLET.match(line) or _ORDERED.match(line)
        if item:
            close_paragraph()
            indent = _indent_width(item.group(1))
            while list_indents and indent < list_indents[-1]:
                list_indents.pop()
            if not list_indents or indent > list_indents[-1]:
                list_indents.append(indent)
            marker = item.group(2)
            item_column = _indent_width(line[:item.start(3)])
            item_lines = [item.group(3)]
            i += 1
            while i < len(lines) and lines[i].strip() and not _is_block_start(lines[i]):
                item_lines.append(lines[i])
                i += 1
            blocks.append(Block(
                "item",
                _join_lines(item_lines),
                level=len(list_indents) - 1,
                marker=marker,
            ))
            continue

        if _QUOTE.match(line):
            close_paragraph()
            list_indents.clear()
            item_column = None
            quoted: list[str] = []
            depth = 0
            while i < len(lines) and _QUOTE.match(lines[i]):
                line_depth, content = _quote_depth(_QUOTE.match(lines[i]).group(1))
                if not content.strip() or (quoted and line_depth != depth):
                    if quoted:
                        blocks.append(Block("quote", _join_lines(quoted), level=depth))
                        quoted = []
                    if not content.strip():
                        blocks.append(Block("quote", "", level=line_depth))
                        i += 1
                        continue
                depth = line_depth
                quoted.append(content)
                i += 1
            if quoted:
                blocks.append(Block("quote", _join_lines(quoted), level=depth))
            continue

        if _TABLE_ROW.match(line):
            close_paragraph()
            list_indents.clear()
            item_column = None
            rows = []
            while i < len(lines) and _TABLE_ROW.match(lines[i]):
                rows.append(lines[i].strip())
                i += 1
            blocks.append(Block("table", rows=rows))
            continue

        # Indented text after a blank line continues the previous list item
        previous = last_item()
        if (
            not paragraph
            and previous is not None
            and blocks[-1].kind == "blank"
            and _indent_width(line[:len(line) - len(line.lstrip())]) > 0
        ):
            body = [line]
            i += 1
            while i < len(lines) and lines[i].strip() and not _is_block_start(lines[i]):
                body.append(lines[i])
                i += 1
            blocks.append(Block(
                "item",
                _join_lines(body),
                level=previous.level,
                marker=" " * cell_len(previous.marker),
            ))
            continue

        if not paragraph:
            list_indents.clear()
            item_column = None
        paragraph.append(line)
        i += 1

    close_paragraph()
    return blocks


def has_open_fence(source: str) -> bool:
    """True when ``source`` ends inside a code fence with no closing line."""
    blocks = parse_blocks(source)
    return bool(blocks) and blocks[-1].kind == "code" and not blocks[-1].closed


# ---------------------------------------------------------------------------
# Block rendering
# ---------------------------------------------------------------------------

def _split_cells(row: str) -> list[str]:
    row = row.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip() for cell in re.split(r"(?<!\\)\|", row)]


def _cell(text: str, theme: RippleTheme) -> Text:
    cell = render_inline(text, theme)
    cell.expand_tabs(TAB_SIZE)
    return cell


def _fit_columns(widths: list[int], minimums: list[int], available: int) -> list[int] | None:
    """Narrow the widest columns until they fit ``available``; None if they cannot."""
    if sum(minimums) > available:
        return None
    widths = list(widths)
    while sum(widths) > available:
        c = max((c for c in range(len(widths)) if widths[c] > minimums[c]), key=lambda c: widths[c])
        widths[c] -= 1
    return widths


def _render_table(
    rows: list[str], width: int, theme: RippleTheme, config: RenderConfig,
) -> list[Text]:
    """Align a pipe table within ``width``.

    Columns that do not fit are narrowed and their cells wrapped onto extra
    lines. Rows without a delimiter line, or tables whose longest words alone
    overflow the width, render as literal prose rows.
    """
    literal = len(rows) < 2 or not _TABLE_DELIM.match(rows[1])

    if not literal:
        header = [_cell(c, theme) for c in _split_cells(rows[0])]
        body = [[_cell(c, theme) for c in _split_cells(r)] for r in rows[2:]]
        columns = max(len(header), *(len(r) for r in body)) if body else len(header)
        grid = [header] + body
        for row in grid:
            row.extend(Text() for _ in range(columns - len(row)))
        widths = [max(cell_len(row[c].plain) for row in grid) for c in range(columns)]
        minimums = [
            max([1] + [cell_len(word) for row in grid for word in row[c].plain.split()])
            for c in range(columns)
        ]
        fitted = _fit_columns(widths, minimums, width - 3 * (columns - 1))
        literal = fitted is None

    if literal:
        lines = []
        for row in rows:
            lines.extend(wrap_text(render_inline(row, theme), width))
        return lines

    sep = Text.assemble((" │ ", theme.rule))
    lines = []
    for n, row in enumerate(grid):
        if n == 0:
            for cell in row:
                cell.stylize_before(theme.bold)
        wrapped = [wrap_text(cell, fitted[c]) for c, cell in enumerate(row)]
        for r in range(max(len(cell_lines) for cell_lines in wrapped)):
            line = Text()
            for c, cell_lines in enumerate(wrapped):
                if c:
                    line.append_text(sep)
                piece = cell_lines[r] if r < len(cell_lines) else Text()
                line.append_text(piece)
                line.append(" " * (fitted[c] - cell_len(piece.plain)))
            line.rstrip()
            lines.append(line)
        if n == 0:
            rule = f"{config.rule_glyph}┼{config.rule_glyph}".join(config.rule_glyph * w for w in fitted)
            lines.append(Text.assemble((rule, theme.rule)))
    return lines


def render_blocks(
    blocks: list[Block],
    width: int,
    theme: RippleTheme = DEFAULT_THEME,
    config: RenderConfig | None = None,
) -> list[Text | CodeLine]:
    """Render parsed blocks into terminal lines at ``width`` columns."""
    config = config or RenderConfig()
    lines: list[Text | CodeLine] = []

    start, end = 0, len(blocks)
    while start < end and blocks[start].kind == "blank":
        start += 1
    while end > start and blocks[end - 1].kind == "blank":
        end -= 1

    for block in blocks[start:end]:
        if block.kind == "blank":
            lines.append(Text())

        elif block.kind == "paragraph":
            lines.extend(wrap_text(render_inline(block.text, theme), width))

        elif block.kind == "heading":
            text = render_inline(block.text, theme)
            text.stylize_before(theme.heading(block.level))
            lines.extend(wrap_text(text, width))

        elif block.kind == "item":
            indent = "  " * block.level
            marker = block.marker if block.marker[:1].isdigit() or not block.marker.strip() else config.bullet
            first = Text(indent)
            first.append(marker, style=theme.marker)
            first.append(" ")
            rest = Text(" " * cell_len(first.plain))
            lines.extend(wrap_text(render_inline(block.text, theme), width, first, rest))

        elif block.kind == "quote":
            prefix = Text.assemble((f"{config.quote_glyph} " * block.level, theme.marker))
            if block.text:
                text = render_inline(block.text, theme)
                text.stylize_before(theme.quote)
                lines.extend(wrap_text(text, width, prefix))
            else:
                bar = prefix.copy()
                bar.rstrip()
                lines.append(bar)

        elif block.kind == "rule":
            lines.append(Text.assemble((config.rule_glyph * width, theme.rule)))

        elif block.kind == "code":
            lines.extend(render_code_block(
                block.text, block.language, width, block.closed, theme, config,
            ))

        elif block.kind == "table":
            lines.extend(_render_table(block.rows, width, theme, config))

    return lines


def render_markdown_lines(
    source: str,
    width: int,
    theme: RippleTheme = DEFAULT_THEME,
    config: RenderConfig | None = None,
) -> list[Text | CodeLine]:
    """Parse and render ``source`` in one step."""
    return render_blocks(parse_blocks(source), width, theme, config)
