"""Pure formatting functions for tool output, warnings and status notices.

Every function here is deterministic: no terminal queries, no global
settings. Color is opt-out per call with ``color=False``, which returns the
same text without ANSI codes.
"""

import json
from datetime import timedelta
from typing import Any, Mapping, Union

from rich.color import ColorSystem
from rich.style import Style

Duration = Union[timedelta, float, int]

# Longest string argument shown before truncating with "..."
MAX_ARG_DISPLAY_LEN = 80

# Rough average for English text and code
CHARS_PER_TOKEN = 4

# Arguments too bulky to show on the tool-start line
_HIDDEN_ARGS: dict[str, frozenset[str]] = {
    "edit": frozenset({"old_string", "new_string"}),
    "todo_write": frozenset({"todos"}),
    "ask_user": frozenset({"question", "options"}),
}


def _paint(text: str, style: str, color: bool) -> str:
    if not color:
        return text
    return Style.parse(style).render(text, color_system=ColorSystem.STANDARD)


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


def _format_arg_value(value: Any) -> str:
    if isinstance(value, str):
        flat = value.replace("\n", " ")
        if len(flat) > MAX_ARG_DISPLAY_LEN:
            return f'"{flat[:MAX_ARG_DISPLAY_LEN - 3]}..."'
        return f'"{flat}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    return "..."


# ---------------------------------------------------------------------------
# Tool lines
# ---------------------------------------------------------------------------

def format_tool_args(tool_name: str, args: Any) -> str:
    """Format tool arguments as ``key=value`` pairs with a trailing space.

    Non-mapping arguments produce an empty string. Strings are quoted with
    newlines flattened and truncated past 80 characters; lists and mappings
    show as ``...``.
    """
    if not isinstance(args, Mapping):
        return ""

    hidden = _HIDDEN_ARGS.get(tool_name, frozenset())
    parts = [
        f"{key}={_format_arg_value(value)}"
        for key, value in args.items()
        if key not in hidden
    ]
    if not parts:
        return ""
    return " ".join(parts) + " "


def format_tool_executing(name: str, args: Any, *, color: bool = True) -> str:
    """Tool-start line: ``┌─ <name> <key=value ...>`` plus newline."""
    args_str = format_tool_args(name, args)
    return f"┌─ {_paint(name, 'cyan', color)} {args_str}\n"


def format_tool_result(
    name: str,
    duration: Duration,
    estimated_tokens: int,
    has_error: bool = False,
    *,
    color: bool = True,
) -> str:
    """Tool-result line: ``└─ <name> <secs>s ~<tokens> tok``, with ERROR on failure."""
    elapsed = _seconds(duration)
    duration_str = f"{elapsed:.3f}s" if elapsed < 0.001 else f"{elapsed:.2f}s"
    error_suffix = _paint(" ERROR", "bold bright_red", color) if has_error else ""
    return (
        f"└─ {_paint(name, 'cyan', color)} {_paint(duration_str, 'yellow', color)}"
        f" ~{estimated_tokens} tok{error_suffix}"
    )


def format_error_detail(error_message: str, *, color: bool = True) -> str:
    return f"  └─ error: {_paint(error_message, 'dim', color)}"


# ---------------------------------------------------------------------------
# Status notices
# ---------------------------------------------------------------------------

def context_percentage(used: int, limit: int) -> float:
    """Percentage of the context window in use; 0 for a non-positive limit."""
    if limit <= 0:
        return 0.0
    return used / limit * 100.0


def format_context_warning(percentage: float) -> str:
    if percentage > 95.0:
        return f"WARNING: Context window at {percentage:.1f}%. Use /clear to reset."
    return f"WARNING: Context window at {percentage:.1f}%."


def format_retry(
    attempt: int,
    max_attempts: int,
    delay: Duration,
    error: str,
    *,
    color: bool = True,
) -> str:
    """Retry notice, e.g. ``[rate limit: retrying in 2s (attempt 1/3)]``."""
    seconds = int(_seconds(delay))
    return (
        f"[{_paint(error, 'bright_yellow', color)}: retrying in {seconds}s "
        f"(attempt {attempt}/{max_attempts})]"
    )


def format_error_message(msg: str, *, color: bool = True) -> str:
    return _paint(msg, "red", color)


def format_ctrl_c() -> str:
    return "[ctrl-c received]"


def format_cancelled(*, color: bool = True) -> str:
    return f"{_paint('ABORTED', 'red', color)} task cancelled by client"


# ---------------------------------------------------------------------------
# Token estimation
# ---------------------------------------------------------------------------

def estimate_tokens(value: Any) -> int:
    """Approximate the token count of a JSON-like value.

    Compact JSON length in UTF-8 bytes divided by four. This is a heuristic
    for display only, not a tokenizer. Values JSON cannot encode are
    serialized with ``str()``.
    """
    try:
        serialized = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        # Non-string keys or circular references
        serialized = str(value)
    return len(serialized.encode("utf-8")) // CHARS_PER_TOKEN
