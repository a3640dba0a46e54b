from __future__ import annotations

from pathlib import Path

import typer

from bookpipe.cli.commands._helpers import exit_on_error
from bookpipe.cli.context import build_context
from bookpipe.core.errors import ErrorCode
from bookpipe.core.model import BuildMode
from bookpipe.services.selector import (
    SourceSelector,
    has_partial_directive,
    read_entry,
    write_entry,
)


def select(
    release: bool = typer.Option(False, "--release", help="Select for a full release build."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory to write the selected entry document to (default: print it).",
    ),
) -> None:
    """Show the entry document a check or release build would compile."""
    ctx = build_context()
    config = ctx.config
    mode = BuildMode.RELEASE if release else BuildMode.CHECK

    raw = exit_on_error(read_entry(ctx.project.entry_path(config)), ctx, ErrorCode.IO_ERROR)
    if has_partial_directive(raw.text, config.manuscript.partial_directive):
        ctx.console.info(f"{raw.filename} has a partial-build directive")

    entry = SourceSelector.from_config(config).select(mode, raw)
    if output is None:
        typer.echo(entry.text, nl=False)
        return

    path = exit_on_error(write_entry(entry, output), ctx, ErrorCode.IO_ERROR)
    ctx.console.success(str(path))
