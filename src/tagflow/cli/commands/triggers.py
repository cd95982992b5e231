"""tagflow triggers -- list the triggers a config defines."""

from __future__ import annotations

import click

from tagflow.cli.formatting import format_triggers, format_warning, get_console


@click.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
def triggers(config_path: str) -> None:
    """List CONFIG_PATH's triggers and flag unknown action types."""
    from tagflow.actions import default_registry
    from tagflow.cli import _load_config

    console = get_console()
    config = _load_config(config_path)
    format_triggers(config, console)
    for action_type in sorted(default_registry().unknown_types(config)):
        format_warning(f"Unknown action type: {action_type}", console)
