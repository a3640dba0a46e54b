"""Error and report presentation.

Centralized formatting of pipeline failures so every command reports them
the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bookpipe.core.model import BuildMode
from bookpipe.output.console import Style
from bookpipe.services.build_errors import BuildError
from bookpipe.services.pipeline import PipelineError, PipelineReport, log_tail
from bookpipe.services.release.errors import PublishError
from bookpipe.services.toolchain import ProvisionError

if TYPE_CHECKING:
    from bookpipe.output.console import ConsoleProtocol

__all__ = ["print_pipeline_error", "print_report"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    match error:
        case ProvisionError(message=message, hint=hint):
            console.error(f"toolchain not ready: {message}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case BuildError(message=message, hint=hint, log=log, log_path=log_path):
            console.error(message)
            if log:
                console.log(log_tail(log))
            if log_path is not None:
                console.print(f"full log: {log_path}", Style.DIM)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case PublishError(message=message, hint=hint):
            console.error(f"publish failed: {message}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def print_report(report: PipelineReport, console: ConsoleProtocol) -> None:
    """Summarise a run: pass/fail, plus the release tag status for RELEASE runs."""
    if report.error is not None:
        print_pipeline_error(report.error, console)
        if isinstance(report.error, PublishError) and report.build is not None:
            path = report.build.artifact_path
            if path is not None:
                console.print(f"built artifact kept at {path}", Style.DIM)

    if report.mode is BuildMode.CHECK:
        if report.ok:
            console.success("manuscript compiles")
        return

    outcome = report.publish
    if outcome is not None and outcome.updated:
        console.success(f"release {outcome.tag} updated: {outcome.asset_name}")
    elif outcome is not None:
        console.warning(f"release {outcome.tag} not updated: {outcome.reason}")
    elif report.ok:
        console.info("release tag not updated (publishing disabled)")
    else:
        console.print("release tag not updated", Style.WARNING)
