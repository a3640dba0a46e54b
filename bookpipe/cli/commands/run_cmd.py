from __future__ import annotations

import os
from dataclasses import replace

from bookpipe.cli.commands._helpers import exit_on_error
from bookpipe.cli.commands._pipeline import run_and_exit
from bookpipe.cli.context import CLIContext, build_context
from bookpipe.core.errors import ErrorCode
from bookpipe.core.result import Err
from bookpipe.git.repository import Repository
from bookpipe.output.console import Style
from bookpipe.services.trigger import Trigger, decide, trigger_from_env


def _with_changed_paths(ctx: CLIContext, trigger: Trigger) -> Trigger:
    if trigger.changed_paths is not None or trigger.base_revision is None:
        return trigger
    changed = Repository(ctx.project.root).changed_paths(trigger.base_revision)
    if isinstance(changed, Err):
        # Shallow clones may lack the base commit.
        ctx.console.print(f"changed paths unknown: {changed.error.message}", Style.DIM)
        return trigger
    return replace(trigger, changed_paths=changed.value)


def run() -> None:
    """Run whatever the current CI trigger calls for."""
    ctx = build_context()
    trigger = exit_on_error(trigger_from_env(os.environ), ctx, ErrorCode.USER_ERROR)
    trigger = _with_changed_paths(ctx, trigger)

    mode = decide(trigger, ctx.config.trigger)
    ctx.console.print(f"trigger: {trigger.event.value} -> {mode or 'nothing'}", Style.DIM)
    if mode is None:
        ctx.console.info("no manuscript changes; nothing to build")
        return

    run_and_exit(ctx, mode)
