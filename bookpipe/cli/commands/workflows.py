from __future__ import annotations

import typer

from bookpipe.cli.commands._helpers import exit_on_error
from bookpipe.cli.context import build_context
from bookpipe.core.errors import ErrorCode
from bookpipe.services.workflows import render_workflows, write_workflows


def workflows(
    write: bool = typer.Option(False, "--write", help="Write into .github/workflows/."),
) -> None:
    """Render the check and nightly CI workflows from bookpipe.toml."""
    ctx = build_context()
    rendered = exit_on_error(render_workflows(ctx.config), ctx, ErrorCode.USER_ERROR)
    if not write:
        for name, text in rendered.items():
            ctx.console.header(name)
            ctx.console.log(text)
        return

    paths = exit_on_error(
        write_workflows(ctx.project.workflows_dir, ctx.config), ctx, ErrorCode.IO_ERROR
    )
    for path in paths:
        ctx.console.success(str(path))
