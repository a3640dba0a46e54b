"""Wire a Pipeline from CLI context and run it."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from bookpipe.cli.context import CLIContext
from bookpipe.core.model import BuildMode
from bookpipe.core.result import Err
from bookpipe.git.repository import Repository
from bookpipe.output.console import Style
from bookpipe.output.errors import print_report
from bookpipe.services.build import TectonicInvoker
from bookpipe.services.pipeline import Pipeline, PipelineReport, ReleaseTarget
from bookpipe.services.release.gh import GhReleaseChannel
from bookpipe.services.release.publisher import (
    ArtifactPublisher,
    DirectoryReleaseChannel,
    ReleaseChannel,
    RemoteBranchRevisions,
)
from bookpipe.services.selector import SourceSelector
from bookpipe.services.toolchain import ToolchainChecker


@dataclass(frozen=True, slots=True)
class PublishOptions:
    enabled: bool = True
    tag: str | None = None
    channel_dir: Path | None = None
    dry_run: bool = False
    check_revision: bool = True


@dataclass(frozen=True, slots=True)
class SourceInfo:
    revision: str | None
    timestamp: int | None


def source_info(ctx: CLIContext) -> SourceInfo:
    repo = Repository(ctx.project.root)
    sha = repo.head_sha()
    if isinstance(sha, Err):
        ctx.console.print(f"source revision unknown: {sha.error.message}", Style.DIM)
        return SourceInfo(revision=None, timestamp=None)
    ts = repo.head_timestamp()
    return SourceInfo(revision=sha.value, timestamp=None if isinstance(ts, Err) else ts.value)


def _release_target(ctx: CLIContext, options: PublishOptions) -> ReleaseTarget | None:
    if not options.enabled:
        return None

    release_cfg = ctx.config.release
    channel: ReleaseChannel
    if options.channel_dir is not None:
        channel = DirectoryReleaseChannel(root=options.channel_dir)
    else:
        channel = GhReleaseChannel(
            cwd=ctx.project.root,
            console=ctx.console,
            repo=release_cfg.repo,
            dry_run=options.dry_run,
        )

    revisions = None
    if options.check_revision and release_cfg.require_latest_revision:
        revisions = RemoteBranchRevisions(
            repository=Repository(ctx.project.root),
            remote=release_cfg.remote,
            branch=release_cfg.branch,
        )

    return ReleaseTarget(
        publisher=ArtifactPublisher(channel=channel, console=ctx.console, revisions=revisions),
        tag=options.tag or release_cfg.tag,
        asset_name=release_cfg.asset_name,
    )


def build_pipeline(
    ctx: CLIContext,
    mode: BuildMode,
    *,
    publish: PublishOptions | None = None,
    allow_dynamic_exec: bool | None = None,
) -> Pipeline:
    config = ctx.config
    source = source_info(ctx)
    workdir = ctx.project.manuscript_dir(config)

    release = None
    if mode.publishes:
        release = _release_target(ctx, publish or PublishOptions())

    return Pipeline(
        provisioner=ToolchainChecker.from_config(config),
        selector=SourceSelector.from_config(config),
        invoker=TectonicInvoker.from_config(
            config,
            workdir=workdir,
            console=ctx.console,
            source_date_epoch=source.timestamp,
        ),
        entry_path=ctx.project.entry_path(config),
        console=ctx.console,
        release=release,
        revision=source.revision,
        allow_dynamic_exec=(
            config.engine.shell_escape if allow_dynamic_exec is None else allow_dynamic_exec
        ),
    )


def run_and_exit(
    ctx: CLIContext,
    mode: BuildMode,
    *,
    publish: PublishOptions | None = None,
    allow_dynamic_exec: bool | None = None,
) -> PipelineReport:
    """Run the pipeline, print the summary, and exit non-zero on failure."""
    pipeline = build_pipeline(ctx, mode, publish=publish, allow_dynamic_exec=allow_dynamic_exec)
    report = pipeline.run(mode)
    ctx.console.newline()
    print_report(report, ctx.console)
    if not report.ok:
        raise typer.Exit(code=int(report.exit_code))
    return report
