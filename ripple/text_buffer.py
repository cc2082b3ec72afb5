"""Text buffer for accumulating streaming text with markdown rendering.

The ``TextBuffer`` collects text chunks from a streaming response and renders
them as wrapped, styled markdown when flushed. Typical use::

    buffer = TextBuffer()
    for chunk in stream:
        buffer.push(chunk)
    rendered = buffer.flush()
    if rendered is not None:
        log_event(rendered)

A buffer is owned by one consumer. It holds no lock; appending from one
thread while another flushes needs external synchronization.

Constructs split across two flushes are not reassembled: each flush renders
only what arrived since the previous one, best effort. A fence that is still
open renders as an unfinished code block. Callers that would rather wait for
the fence to close can check ``has_open_fence()`` before flushing.
"""

import logging
from typing import Optional

from .config import RenderConfig
from .ui.markdown import has_open_fence
from .ui.output import render_markdown
from .ui.theme import DEFAULT_THEME, RippleTheme
from .ui import wrap

_log = logging.getLogger(__name__)


class TextBuffer:
    """Buffer for accumulating streaming text until a render boundary.

    Args:
        width: Fixed column count, or None to query the terminal on every
            flush so that resizes between flushes are honoured.
        theme: Styles for markdown elements.
        config: Render settings; ``config.default_width`` is the fallback
            when the terminal size cannot be determined.
    """

    def __init__(
        self,
        width: Optional[int] = None,
        *,
        theme: Optional[RippleTheme] = None,
        config: Optional[RenderConfig] = None,
    ):
        if width is not None:
            if isinstance(width, bool) or not isinstance(width, int):
                raise TypeError(f"width must be an int, got {type(width).__name__}")
            if width <= 0:
                raise ValueError(f"width must be positive, got {width}")
        self._width = width
        self._theme = theme or DEFAULT_THEME
        self._config = config or RenderConfig()
        self._chunks: list[str] = []
        self._length = 0

    @classmethod
    def with_width(cls, width: int, **kwargs) -> "TextBuffer":
        """Create a buffer that always wraps at ``width`` columns."""
        return cls(width, **kwargs)

    @property
    def width(self) -> Optional[int]:
        """The fixed width, or None when the terminal is queried."""
        return self._width

    @property
    def content(self) -> str:
        """The raw text accumulated since the last flush."""
        if len(self._chunks) > 1:
            self._chunks = ["".join(self._chunks)]
        return self._chunks[0] if self._chunks else ""

    def push(self, text: str) -> None:
        """Append text to the buffer."""
        if not isinstance(text, str):
            raise TypeError(f"chunk must be str, got {type(text).__name__}")
        if text:
            self._chunks.append(text)
            self._length += len(text)

    append = push

    def is_empty(self) -> bool:
        """Check if the buffer is empty."""
        return self._length == 0

    def __len__(self) -> int:
        return self._length

    def has_open_fence(self) -> bool:
        """True if the buffered text ends inside an unterminated code fence."""
        return has_open_fence(self.content)

    def effective_width(self) -> int:
        """Resolve the width for a render: fixed, or the terminal's right now."""
        if self._width is not None:
            return self._width
        return wrap.terminal_width(self._config.default_width)

    def flush(self) -> Optional[str]:
        """Render and clear the buffered text.

        Returns the rendered text with trailing newlines normalized to exactly
        ``\\n\\n``, or None if the buffer was empty or held only whitespace.
        """
        if self.is_empty():
            return None

        text = self.content
        self._chunks = []
        self._length = 0

        width = self.effective_width()
        rendered = render_markdown(text, width, self._theme, self._config)

        trimmed = rendered.rstrip("\n")
        if not trimmed.strip():
            _log.debug("Flushed %d whitespace-only chars, nothing to render", len(text))
            return None
        return f"{trimmed}\n\n"

    render = flush
