from __future__ import annotations

import typer

from bookpipe.cli.commands._pipeline import run_and_exit
from bookpipe.cli.context import build_context
from bookpipe.core.model import BuildMode


def check(
    no_shell_escape: bool = typer.Option(
        False,
        "--no-shell-escape",
        help="Do not let the engine run the highlighting renderer.",
    ),
) -> None:
    """Compile the entry document as-is (partial builds allowed). Never publishes."""
    ctx = build_context()
    run_and_exit(ctx, BuildMode.CHECK, allow_dynamic_exec=False if no_shell_escape else None)
