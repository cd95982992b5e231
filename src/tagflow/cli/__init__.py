"""Tagflow CLI -- run tag triggers against markdown files from a terminal.

This module is NEVER imported from tagflow/__init__.py.
It is only loaded via the ``tagflow`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from pathlib import Path

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install tagflow[cli]"
    ) from None

from tagflow.cli.formatting import format_error, get_console
from tagflow.exceptions import ConfigError
from tagflow.models.trigger import TriggerConfig


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Tagflow: tag-bound automations for bulleted notes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: str) -> TriggerConfig:
    """Load a trigger config from a JSON file, exiting with an error on failure."""
    try:
        return TriggerConfig.from_json(Path(path).read_text(encoding="utf-8"))
    except (OSError, ConfigError) as e:
        format_error(str(e), get_console())
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from tagflow.cli.commands.triggers import triggers  # noqa: E402
from tagflow.cli.commands.run import run  # noqa: E402

cli.add_command(triggers)
cli.add_command(run)
