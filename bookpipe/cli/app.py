from __future__ import annotations

import os
from pathlib import Path

import typer

from bookpipe import __version__
from bookpipe.cli.commands.check import check
from bookpipe.cli.commands.doctor import doctor
from bookpipe.cli.commands.release import release
from bookpipe.cli.commands.run_cmd import run
from bookpipe.cli.commands.select_cmd import select
from bookpipe.cli.commands.workflows import workflows
from bookpipe.core.errors import ErrorCode
from bookpipe.core.project import ROOT_ENV_VAR


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(check)
app.command()(release)
app.command()(run)
app.command()(doctor)
app.command()(select)
app.command()(workflows)


def _print_version(value: bool) -> None:
    # Eager, so it runs before click insists on a subcommand.
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Manuscript repository root (overrides auto detection)",
    ),
) -> None:
    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not resolved.is_dir():
            typer.echo(f"error: --root '{resolved}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[ROOT_ENV_VAR] = str(resolved)


def main() -> None:
    app()
