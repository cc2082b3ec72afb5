"""Ripple - streaming markdown and status-line rendering for agent CLIs."""

__version__ = "0.1.0"

from .config import ConfigManager, RenderConfig
from .format import (
    context_percentage,
    estimate_tokens,
    format_cancelled,
    format_context_warning,
    format_ctrl_c,
    format_error_detail,
    format_error_message,
    format_retry,
    format_tool_args,
    format_tool_executing,
    format_tool_result,
)
from .sink import (
    CaptureSink,
    ConsoleSink,
    OutputSink,
    SinkHandle,
    disable_logging,
    enable_logging,
    get_output_sink,
    is_logging_enabled,
    log_event,
    log_event_line,
    reset_output_sink,
    set_output_sink,
)
from .text_buffer import TextBuffer

__all__ = [
    "ConfigManager",
    "RenderConfig",
    "TextBuffer",
    "context_percentage",
    "estimate_tokens",
    "format_cancelled",
    "format_context_warning",
    "format_ctrl_c",
    "format_error_detail",
    "format_error_message",
    "format_retry",
    "format_tool_args",
    "format_tool_executing",
    "format_tool_result",
    "CaptureSink",
    "ConsoleSink",
    "OutputSink",
    "SinkHandle",
    "disable_logging",
    "enable_logging",
    "get_output_sink",
    "is_logging_enabled",
    "log_event",
    "log_event_line",
    "reset_output_sink",
    "set_output_sink",
]
