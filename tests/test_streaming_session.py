"""Simulated agent sessions: streamed prose, tool blocks and notices routed
through an output sink, the way an agent CLI drives ripple."""

import re
from datetime import timedelta

import pytest

from ripple import (
    CaptureSink,
    TextBuffer,
    enable_logging,
    format_cancelled,
    format_context_warning,
    format_error_detail,
    format_retry,
    format_tool_executing,
    format_tool_result,
    log_event,
    log_event_line,
    reset_output_sink,
    set_output_sink,
)


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def _tool_block(name, args, duration_ms, tokens, has_error=False):
    return format_tool_executing(name, args, color=False) + format_tool_result(
        name, timedelta(milliseconds=duration_ms), tokens, has_error, color=False
    )


@pytest.fixture
def sink():
    capture = CaptureSink()
    set_output_sink(capture)
    enable_logging()
    yield capture
    reset_output_sink()


def _flush_to(buffer: TextBuffer):
    rendered = buffer.flush()
    if rendered is not None:
        log_event(rendered)


class TestToolSequences:
    def test_rapid_glob_sequence(self):
        patterns = ["**/*.py", "**/*.toml", "**/*.md", "**/test_*.py", "**/__init__.py"]
        output = "".join(
            _tool_block("glob", {"pattern": p}, 15 + i * 5, 50)
            for i, p in enumerate(patterns)
        )
        assert output.count("┌─") == 5
        assert output.count("└─") == 5
        for pattern in patterns:
            assert pattern in output

    def test_grep_read_edit_chain(self):
        output = _tool_block("grep", {"pattern": "TODO", "path": "src/"}, 45, 120)
        output += _tool_block("read", {"file_path": "/project/main.py", "offset": 100, "limit": 50}, 12, 250)
        output += _tool_block(
            "edit",
            {
                "file_path": "/project/main.py",
                "old_string": "TODO: implement",
                "new_string": "DONE: implemented",
            },
            8,
            30,
        )
        assert "TODO: implement" not in output
        assert "DONE: implemented" not in output
        assert 'file_path="/project/main.py"' in output

    def test_bash_durations(self):
        commands = [("make check", 1200), ("make lint", 2500), ("make test", 3000), ("make dist", 8000)]
        output = "".join(_tool_block("bash", {"command": c}, ms, 80) for c, ms in commands)
        for expected in ("1.20s", "2.50s", "3.00s", "8.00s"):
            assert expected in output


class TestStreamingMarkdown:
    def test_long_response(self):
        buffer = TextBuffer.with_width(80)
        chunks = [
            "# Project Analysis\n\n",
            "Here's my analysis of the codebase:\n\n",
            "## Overview\n\n",
            "- `src/` - Main source code\n",
            "- `tests/` - Test files\n\n",
            "1. **Architecture** - The code follows ",
            "a clean event-driven pattern.\n",
            "2. **Testing** - Good coverage.\n\n",
            "```python\n",
            "def main():\n",
            "    print(\"Hello, world!\")\n",
            "```\n\n",
            "Consider adding more integration tests.\n",
        ]
        for chunk in chunks:
            buffer.push(chunk)

        content = _strip_ansi(buffer.flush())
        for fragment in ("Project Analysis", "Overview", "Main source code",
                         "Architecture - The code follows a clean event-driven pattern.",
                         '    print("Hello, world!")',
                         "Consider adding more integration tests."):
            assert fragment in content

    def test_emphasis_split_across_chunks(self):
        buffer = TextBuffer.with_width(80)
        buffer.push("This is **important")
        buffer.push(" text** that spans chunks.")
        out = buffer.flush()
        assert "This is important text that spans chunks." in _strip_ansi(out)
        assert "**" not in out

    def test_multiple_code_blocks(self):
        buffer = TextBuffer.with_width(60)
        buffer.push("First:\n\n```python\na = 1\n```\n\nSecond:\n\n```sh\necho hi\n```\n")
        lines = _strip_ansi(buffer.flush()).split("\n")
        assert "a = 1" in lines
        assert "echo hi" in lines
        assert sum(1 for line in lines if line == "─" * 60) == 2


class TestSessions:
    def test_interleaved_explanation_and_tools(self, sink):
        buffer = TextBuffer.with_width(80)

        buffer.push("I'll look for the config loader first.\n\n")
        _flush_to(buffer)
        log_event_line(format_tool_executing("grep", {"pattern": "load_config"}, color=False).rstrip("\n"))
        log_event(format_tool_result("grep", 0.03, 40, color=False))

        buffer.push("Found it in `config.py`. Reading it now.")
        _flush_to(buffer)
        log_event_line(format_tool_executing("read", {"file_path": "config.py"}, color=False).rstrip("\n"))
        log_event(format_tool_result("read", 0.01, 300, color=False))

        assert len(sink.emits) == 4
        assert _strip_ansi(sink.emits[0]) == "I'll look for the config loader first.\n\n"
        assert sink.emits[1] == "└─ grep 0.03s ~40 tok"
        assert _strip_ansi(sink.emits[2]) == "Found it in config.py. Reading it now.\n\n"
        assert sink.lines == ['┌─ grep pattern="load_config" ', '┌─ read file_path="config.py" ']

    def test_tool_error_and_recovery(self, sink):
        log_event_line(format_tool_executing("bash", {"command": "pytest"}, color=False).rstrip("\n"))
        log_event_line(format_tool_result("bash", 4.2, 900, True, color=False))
        log_event(format_error_detail("exit status 1", color=False))

        buffer = TextBuffer.with_width(80)
        buffer.push("The test failed, retrying with `-x`.\n")
        _flush_to(buffer)

        assert sink.lines[1] == "└─ bash 4.20s ~900 tok ERROR"
        assert sink.emits[0] == "  └─ error: exit status 1"
        assert "retrying with -x" in _strip_ansi(sink.emits[1])

    def test_api_retry_sequence(self, sink):
        for attempt in range(1, 4):
            log_event_line(format_retry(attempt, 3, 2 ** attempt, "rate limit", color=False))
        assert sink.lines == [
            "[rate limit: retrying in 2s (attempt 1/3)]",
            "[rate limit: retrying in 4s (attempt 2/3)]",
            "[rate limit: retrying in 8s (attempt 3/3)]",
        ]

    def test_context_warning_progression(self):
        warnings = [format_context_warning(p) for p in (80.0, 90.0, 96.0, 99.5)]
        assert not any("/clear" in w for w in warnings[:2])
        assert all("/clear" in w for w in warnings[2:])
        assert "99.5%" in warnings[3]

    def test_cancelled_session(self, sink):
        buffer = TextBuffer.with_width(80)
        buffer.push("Starting a long refactor")
        _flush_to(buffer)
        log_event(format_cancelled(color=False))
        assert sink.emits[-1] == "ABORTED task cancelled by client"

    def test_whitespace_flush_emits_nothing(self, sink):
        buffer = TextBuffer.with_width(80)
        buffer.push("\n\n  \n")
        _flush_to(buffer)
        assert sink.emits == []
