from __future__ import annotations

from pathlib import Path

import typer

from bookpipe.cli.commands._pipeline import PublishOptions, run_and_exit
from bookpipe.cli.context import build_context
from bookpipe.core.model import BuildMode


def release(
    no_publish: bool = typer.Option(False, "--no-publish", help="Build only; leave the tag alone."),
    tag: str | None = typer.Option(None, "--tag", help="Release tag (default from config)."),
    channel_dir: Path | None = typer.Option(
        None,
        "--channel-dir",
        help="Publish to <dir>/<tag>/<asset> instead of GitHub.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print gh commands without running them."),
    skip_revision_check: bool = typer.Option(
        False,
        "--skip-revision-check",
        help="Publish even if the build revision differs from the release branch tip.",
    ),
) -> None:
    """Compile the full manuscript and publish the PDF to the release tag."""
    ctx = build_context()
    run_and_exit(
        ctx,
        BuildMode.RELEASE,
        publish=PublishOptions(
            enabled=not no_publish,
            tag=tag,
            channel_dir=channel_dir,
            dry_run=dry_run,
            check_revision=not skip_revision_check,
        ),
    )
