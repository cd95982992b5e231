"""Rich formatting helpers for the Tagflow CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from tagflow.models.context import ExecutionResult
    from tagflow.models.trigger import TriggerConfig


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_warning(message: str, console: Console) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _short(value: Any, limit: int = 80) -> str:
    try:
        text = value if isinstance(value, str) else json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def format_triggers(config: TriggerConfig, console: Console) -> None:
    """Table of the config's triggers and their action types."""
    console.print(f"Tag: [bold]{escape(config.tag)}[/bold]")
    if not config.triggers:
        console.print("[dim]No triggers.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Trigger", style="cyan")
    table.add_column("Actions", justify="right", style="green")
    table.add_column("Sequence")
    for trigger in config.triggers:
        table.add_row(
            trigger.type.value,
            str(len(trigger.actions)),
            escape(" -> ".join(node.type for node in trigger.actions)),
        )
    console.print(table)


def format_result(result: ExecutionResult, console: Console, *, verbose: bool = False) -> None:
    """Show a run's outcome: status, return value, error and variables."""
    context = result.context
    trigger = context.trigger_type.value if context.trigger_type else "?"
    if result.success:
        console.print(f"[green]OK[/green] {escape(trigger)} ({escape(context.tag or '')})")
    else:
        console.print(f"[red]FAILED[/red] {escape(trigger)} ({escape(context.tag or '')})")
    if result.value is not None:
        console.print(f"  Returned: {escape(_short(result.value))}")
    if result.error is not None:
        console.print(f"  Error: {escape(type(result.error).__name__)}: {escape(str(result.error))}")

    if verbose and context.vars:
        table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
        table.add_column("Variable", style="yellow")
        table.add_column("Value")
        for name, value in context.vars.items():
            if name == "error":
                continue
            table.add_row(escape(name), escape(_short(value)))
        console.print(table)
