"""Ripple CLI - exercise the renderers from a terminal."""

import json
import logging
import os
import sys
from datetime import timedelta

import click

from .config import ConfigManager
from .format import (
    context_percentage,
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
from .sink import ConsoleSink, log_event, log_event_line, set_output_sink
from .text_buffer import TextBuffer


def _buffer(ctx: click.Context, width) -> TextBuffer:
    return TextBuffer(width, config=ctx.obj["render"])


# CLI Commands
@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              default=lambda: os.environ.get("RIPPLE_CONFIG"),
              help="Config file (default ~/.config/ripple/config.yaml)")
@click.option("--no-color", is_flag=True, help="Plain text status lines")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr")
@click.pass_context
def cli(ctx, config_path, no_color, verbose):
    """RIPPLE - streaming markdown rendering for agent CLIs.

    Render markdown at the terminal width, format tool and status lines.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
    ctx.ensure_object(dict)
    ctx.obj["render"] = ConfigManager(config_path).get_render_config()
    ctx.obj["color"] = not no_color


@cli.command("tool-executing")
@click.argument("name", default="test_tool")
@click.argument("args_json", default="{}")
@click.pass_context
def tool_executing(ctx, name, args_json):
    """Print a tool-start line."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError:
        args = {}
    click.echo(format_tool_executing(name, args, color=ctx.obj["color"]), nl=False)


@cli.command("tool-args")
@click.argument("name")
@click.argument("args_json")
def tool_args(name, args_json):
    """Print only the key=value rendering of tool arguments."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(str(e), param_hint="ARGS_JSON")
    click.echo(format_tool_args(name, args))


@cli.command("tool-result")
@click.argument("name", default="test_tool")
@click.argument("duration_ms", type=int, default=100)
@click.argument("tokens", type=int, default=50)
@click.option("--error", "has_error", is_flag=True, help="Mark the result as failed")
@click.pass_context
def tool_result(ctx, name, duration_ms, tokens, has_error):
    """Print a tool-result line."""
    duration = timedelta(milliseconds=duration_ms)
    click.echo(format_tool_result(name, duration, tokens, has_error, color=ctx.obj["color"]))


@cli.command("text-buffer")
@click.argument("markdown", default="**Hello** world!")
@click.option("--width", "-w", type=click.IntRange(min=1), help="Fixed width (default: terminal)")
@click.pass_context
def text_buffer(ctx, markdown, width):
    """Render a markdown string through a TextBuffer."""
    buffer = _buffer(ctx, width)
    buffer.push(markdown)
    rendered = buffer.flush()
    if rendered is not None:
        click.echo(rendered, nl=False)


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--width", "-w", type=click.IntRange(min=1), help="Fixed width (default: terminal)")
@click.option("--chunk-size", type=click.IntRange(min=1), default=64, help="Characters per chunk")
@click.option("--wait-for-fences", is_flag=True, help="Hold output while a code fence is open")
@click.pass_context
def render(ctx, source, width, chunk_size, wait_for_fences):
    """Stream a markdown file (or stdin) through a TextBuffer.

    Output is flushed at every blank line and at end of input.
    """
    buffer = _buffer(ctx, width)
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        buffer.push(chunk)
        if not buffer.content.endswith("\n\n"):
            continue
        if wait_for_fences and buffer.has_open_fence():
            continue
        rendered = buffer.flush()
        if rendered is not None:
            click.echo(rendered, nl=False)

    rendered = buffer.flush()
    if rendered is not None:
        click.echo(rendered, nl=False)


@cli.command("context-warning")
@click.argument("used", type=int, default=900000)
@click.argument("limit", type=int, default=1000000)
def context_warning(used, limit):
    """Print the context-window warning."""
    click.echo(format_context_warning(context_percentage(used, limit)))


@cli.command("error-detail")
@click.argument("message", default="Something went wrong")
@click.pass_context
def error_detail(ctx, message):
    """Print an indented error detail line."""
    click.echo(format_error_detail(message, color=ctx.obj["color"]))


@cli.command("error-message")
@click.argument("message", default="Error occurred")
@click.pass_context
def error_message(ctx, message):
    """Print an error message."""
    click.echo(format_error_message(message, color=ctx.obj["color"]))


@cli.command()
@click.argument("attempt", type=int, default=1)
@click.argument("max_attempts", type=int, default=3)
@click.argument("reason", default="rate limit")
@click.option("--delay", type=float, default=2.0, help="Retry delay in seconds")
@click.pass_context
def retry(ctx, attempt, max_attempts, reason, delay):
    """Print a retry notice."""
    click.echo(format_retry(attempt, max_attempts, delay, reason, color=ctx.obj["color"]))


@cli.command("ctrl-c")
def ctrl_c():
    """Print the interrupt notice."""
    click.echo(format_ctrl_c())


@cli.command()
@click.pass_context
def cancelled(ctx):
    """Print the cancellation notice."""
    click.echo(format_cancelled(color=ctx.obj["color"]))


@cli.command("logging")
def logging_demo():
    """Route a few messages through the output sink."""
    set_output_sink(ConsoleSink())
    log_event("This is a log event")
    log_event_line("This is a log line")
    log_event("Another event")


if __name__ == "__main__":
    cli()
