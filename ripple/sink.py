"""Process-wide output sink for formatted log output.

An output sink decides where messages go (terminal, file, a test capture).
Exactly one sink is active per handle; swapping it affects every emission
that starts afterwards. With no sink installed, emission is a no-op, so
library code can log before the application has set anything up.

Usage::

    from ripple import ConsoleSink, set_output_sink, log_event

    set_output_sink(ConsoleSink())
    log_event("Tool completed successfully")

Tests that want isolation can build their own ``SinkHandle`` instead of
touching the process-wide one.
"""

import threading
from typing import Optional, Protocol, runtime_checkable

from rich.console import Console


@runtime_checkable
class OutputSink(Protocol):
    """Destination for log output.

    ``emit`` is for complete blocks that want visual separation after them;
    ``emit_line`` is for continuous output such as multi-line tool results.
    """

    def emit(self, message: str) -> None: ...

    def emit_line(self, message: str) -> None: ...


class ConsoleSink:
    """Write messages to a Rich Console (stdout by default).

    Messages are written to the console's file as-is: they usually already
    carry ANSI styling from the formatters or a TextBuffer flush, and must
    not be re-wrapped.
    """

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
        self._lock = threading.Lock()

    def emit(self, message: str) -> None:
        with self._lock:
            self._write(f"{message}\n\n")

    def emit_line(self, message: str) -> None:
        with self._lock:
            self._write(f"{message}\n")

    def _write(self, data: str) -> None:
        file = self._console.file
        file.write(data)
        file.flush()


class CaptureSink:
    """Keep emitted messages in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._emits: list[str] = []
        self._lines: list[str] = []

    def emit(self, message: str) -> None:
        with self._lock:
            self._emits.append(message)

    def emit_line(self, message: str) -> None:
        with self._lock:
            self._lines.append(message)

    @property
    def emits(self) -> list[str]:
        with self._lock:
            return list(self._emits)

    @property
    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lock:
            self._emits.clear()
            self._lines.clear()


class SinkHandle:
    """Shared, swappable reference to the active sink.

    ``set`` replaces the sink atomically. Emission reads the current sink
    under the swap lock, then calls it while holding a re-entrant emit lock,
    so messages from concurrent emitters never interleave and a sink that
    logs from inside ``emit`` does not deadlock.
    """

    def __init__(self, sink: Optional[OutputSink] = None):
        self._sink = sink
        self._swap_lock = threading.Lock()
        self._emit_lock = threading.RLock()
        self._enabled = True

    def set(self, sink: OutputSink) -> None:
        with self._swap_lock:
            self._sink = sink

    def get(self) -> Optional[OutputSink]:
        with self._swap_lock:
            return self._sink

    def reset(self) -> None:
        with self._swap_lock:
            self._sink = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    def emit(self, message: str) -> None:
        if not self._enabled:
            return
        sink = self.get()
        if sink is not None:
            with self._emit_lock:
                sink.emit(message)

    def emit_line(self, message: str) -> None:
        if not self._enabled:
            return
        sink = self.get()
        if sink is not None:
            with self._emit_lock:
                sink.emit_line(message)


_handle = SinkHandle()


def default_handle() -> SinkHandle:
    """The process-wide handle used by the module-level functions."""
    return _handle


def set_output_sink(sink: OutputSink) -> None:
    """Set the process-wide output sink, replacing any previous one."""
    _handle.set(sink)


def get_output_sink() -> Optional[OutputSink]:
    return _handle.get()


def reset_output_sink() -> None:
    """Remove the process-wide sink; emission becomes a no-op."""
    _handle.reset()


def disable_logging() -> None:
    """Turn emission off without removing the sink. Useful in tests."""
    _handle.enabled = False


def enable_logging() -> None:
    _handle.enabled = True


def is_logging_enabled() -> bool:
    return _handle.enabled


def log_event(message: str) -> None:
    """Log a complete block with trailing blank line for visual separation."""
    _handle.emit(message)


def log_event_line(message: str) -> None:
    """Log a line without trailing blank line (for multi-line tool output)."""
    _handle.emit_line(message)
