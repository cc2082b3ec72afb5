"""Tests for ripple.sink."""

import threading
import time
from io import StringIO

import pytest
from rich.console import Console

from ripple.sink import (
    CaptureSink,
    ConsoleSink,
    OutputSink,
    SinkHandle,
    default_handle,
    disable_logging,
    enable_logging,
    get_output_sink,
    is_logging_enabled,
    log_event,
    log_event_line,
    reset_output_sink,
    set_output_sink,
)


@pytest.fixture(autouse=True)
def _clean_global_sink():
    reset_output_sink()
    enable_logging()
    yield
    reset_output_sink()
    enable_logging()


def test_capture_sink_is_output_sink():
    assert isinstance(CaptureSink(), OutputSink)
    assert isinstance(ConsoleSink(Console(file=StringIO())), OutputSink)


def test_set_get_reset():
    assert get_output_sink() is None
    sink = CaptureSink()
    set_output_sink(sink)
    assert get_output_sink() is sink
    assert default_handle().get() is sink
    reset_output_sink()
    assert get_output_sink() is None


def test_replacement():
    sink1 = CaptureSink()
    set_output_sink(sink1)
    log_event("message1")

    sink2 = CaptureSink()
    set_output_sink(sink2)
    log_event("message2")

    assert sink1.emits == ["message1"]
    assert sink2.emits == ["message2"]


def test_log_event_routes_to_emit():
    sink = CaptureSink()
    set_output_sink(sink)
    log_event("block message")
    assert sink.emits == ["block message"]
    assert sink.lines == []


def test_log_event_line_routes_to_emit_line():
    sink = CaptureSink()
    set_output_sink(sink)
    log_event_line("line message")
    assert sink.emits == []
    assert sink.lines == ["line message"]


def test_noop_without_sink():
    log_event("message")
    log_event_line("line")


def test_disable_logging():
    sink = CaptureSink()
    set_output_sink(sink)
    disable_logging()
    assert not is_logging_enabled()
    log_event("dropped")
    enable_logging()
    log_event("kept")
    assert sink.emits == ["kept"]


def test_isolated_handles():
    handle = SinkHandle()
    private = CaptureSink()
    handle.set(private)
    shared = CaptureSink()
    set_output_sink(shared)

    handle.emit("private")
    log_event("shared")

    assert private.emits == ["private"]
    assert shared.emits == ["shared"]


def test_capture_sink_clear():
    sink = CaptureSink()
    sink.emit("a")
    sink.emit_line("b")
    sink.clear()
    assert sink.emits == [] and sink.lines == []


def test_console_sink_spacing():
    out = StringIO()
    sink = ConsoleSink(Console(file=out))
    sink.emit("block")
    sink.emit_line("line")
    assert out.getvalue() == "block\n\nline\n"


def test_console_sink_writes_verbatim():
    out = StringIO()
    sink = ConsoleSink(Console(file=out, width=10))
    message = "\x1b[1mbold\x1b[0m\twith a line much wider than ten columns"
    sink.emit_line(message)
    assert out.getvalue() == message + "\n"


class _SlowSink:
    """Writes one character at a time so interleaving would show."""

    def __init__(self):
        self.chars = []

    def emit(self, message):
        for ch in message:
            self.chars.append(ch)
            time.sleep(0)

    def emit_line(self, message):
        self.emit(message)


def test_concurrent_emission_does_not_interleave():
    handle = SinkHandle()
    sink = _SlowSink()
    handle.set(sink)
    letters = "ABCDEFGH"

    def worker(letter):
        for _ in range(20):
            handle.emit(letter * 25)

    threads = [threading.Thread(target=worker, args=(c,)) for c in letters]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    output = "".join(sink.chars)
    assert len(output) == len(letters) * 20 * 25
    for i in range(0, len(output), 25):
        chunk = output[i:i + 25]
        assert chunk == chunk[0] * 25


def test_concurrent_replacement_routes_every_message_once():
    handle = SinkHandle()
    sinks = [CaptureSink() for _ in range(5)]
    handle.set(sinks[0])
    stop = threading.Event()

    def swapper():
        i = 0
        while not stop.is_set():
            handle.set(sinks[i % len(sinks)])
            i += 1

    def emitter():
        for n in range(200):
            handle.emit_line(str(n))

    swap_thread = threading.Thread(target=swapper)
    emitters = [threading.Thread(target=emitter) for _ in range(4)]
    swap_thread.start()
    for t in emitters:
        t.start()
    for t in emitters:
        t.join()
    stop.set()
    swap_thread.join()

    total = sum(len(s.lines) for s in sinks)
    assert total == 4 * 200


def test_default_handle_backs_module_functions():
    handle = default_handle()
    sink = CaptureSink()
    handle.set(sink)
    log_event("via module")
    handle.enabled = False
    assert not is_logging_enabled()
    log_event("dropped")
    handle.enabled = True
    assert sink.emits == ["via module"]
