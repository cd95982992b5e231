"""tagflow run -- run one trigger against a markdown file."""

from __future__ import annotations

import asyncio
import json

import click

from tagflow.cli.formatting import format_error, format_result, get_console
from tagflow.models.trigger import TriggerType


def _parse_vars(pairs: tuple[str, ...]) -> dict:
    """Parse KEY=VALUE pairs; values are JSON-decoded when possible."""
    variables: dict = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--var")
        try:
            variables[key] = json.loads(value)
        except ValueError:
            variables[key] = value
    return variables


@click.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("event", type=click.Choice([t.value for t in TriggerType]))
@click.option("--file", "file_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Markdown file to run against.")
@click.option("--line", "line_no", default=None, type=int, help="0-based cursor line (default: last line).")
@click.option("--data", default=None, help="JSON payload exposed as the 'data' variable.")
@click.option("--var", "var_pairs", multiple=True, help="Seed variable as KEY=VALUE (repeatable).")
@click.option("--write", is_flag=True, help="Write editor changes back to the file.")
@click.pass_context
def run(
    ctx: click.Context,
    config_path: str,
    event: str,
    file_path: str,
    line_no: int | None,
    data: str | None,
    var_pairs: tuple[str, ...],
    write: bool,
) -> None:
    """Run EVENT from CONFIG_PATH against a markdown file."""
    from tagflow.buffer import LineBuffer
    from tagflow.cli import _load_config
    from tagflow.engine.facade import TriggerEngine
    from tagflow.models.config import EngineConfig

    console = get_console()
    config = _load_config(config_path)
    variables = _parse_vars(var_pairs)
    if data is not None:
        try:
            variables["data"] = json.loads(data)
        except ValueError as e:
            format_error(f"--data is not valid JSON: {e}", console)
            raise SystemExit(1) from None

    try:
        buffer = LineBuffer.from_file(file_path, line=line_no)
        line = buffer.get_line(buffer.get_cursor().line)
    except (OSError, IndexError) as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    engine = TriggerEngine(config=EngineConfig.from_env())
    result = asyncio.run(
        engine.execute(
            config,
            event,
            file=file_path,
            line=line,
            editor=buffer,
            variables=variables,
        )
    )
    format_result(result, console, verbose=ctx.obj.get("verbose", False))

    if write:
        buffer.save(file_path)
    if not result.success:
        raise SystemExit(1)
