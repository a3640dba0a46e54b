from __future__ import annotations

import typer

from bookpipe.cli.context import build_context
from bookpipe.core.errors import ErrorCode
from bookpipe.output.console import Style
from bookpipe.services.checks import CheckStatus
from bookpipe.services.toolchain import ToolchainChecker


def doctor() -> None:
    """Check that the typesetting engine and highlighting renderer are usable."""
    ctx = build_context()
    config = ctx.config

    checker = ToolchainChecker.from_config(config)
    report = checker.check_all(allow_dynamic_exec=config.engine.shell_escape)

    ctx.console.print(f"project: {ctx.project.root}", Style.DIM)
    ctx.console.print(f"entry: {ctx.project.entry_path(config)}", Style.DIM)
    ctx.console.header("Toolchain")
    for r in report.results:
        style = {
            CheckStatus.OK: Style.SUCCESS,
            CheckStatus.WARNING: Style.WARNING,
            CheckStatus.ERROR: Style.ERROR,
        }[r.status]
        ctx.console.print(f"{r.name}: {r.message}", style)
        if r.hint and r.status != CheckStatus.OK:
            ctx.console.print(f"hint: {r.hint}", Style.DIM)

    if not report.ready:
        raise typer.Exit(code=int(ErrorCode.PROVISION_ERROR))
