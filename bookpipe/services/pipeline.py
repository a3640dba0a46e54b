"""Pipeline orchestration.

One run is a straight line of blocking steps:

    provision -> select -> build -> publish (RELEASE only)

Every step returns a Result; the first failure ends the run. In
particular nothing reaches the release channel unless the engine
succeeded and produced its PDF during this run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from bookpipe.core.errors import ErrorCode
from bookpipe.core.model import BuildMode, BuildResult, PublishOutcome, ReleaseArtifact
from bookpipe.core.result import Err, Result
from bookpipe.output.console import ConsoleProtocol, Style
from bookpipe.services.build import BuildInvoker
from bookpipe.services.build_errors import BuildError
from bookpipe.services.release.errors import PublishError
from bookpipe.services.release.publisher import ArtifactPublisher
from bookpipe.services.selector import SourceSelector, read_entry
from bookpipe.services.toolchain import ProvisionError, ToolchainReport
from bookpipe.services.trigger import PipelineState

__all__ = [
    "Pipeline",
    "PipelineError",
    "PipelineReport",
    "Provisioner",
    "ReleaseTarget",
    "log_tail",
]

PipelineError = ProvisionError | BuildError | PublishError

_LOG_TAIL_LINES = 40


class Provisioner(Protocol):
    def provision(self, *, allow_dynamic_exec: bool) -> Result[ToolchainReport, ProvisionError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseTarget:
    """Where a RELEASE run publishes."""

    publisher: ArtifactPublisher
    tag: str
    asset_name: str


def _empty_states() -> tuple[PipelineState, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class PipelineReport:
    """Everything a run did, for display and for the exit status."""

    mode: BuildMode
    states: tuple[PipelineState, ...] = field(default_factory=_empty_states)
    build: BuildResult | None = None
    publish: PublishOutcome | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> ErrorCode:
        match self.error:
            case None:
                return ErrorCode.OK
            case ProvisionError():
                return ErrorCode.PROVISION_ERROR
            case BuildError(kind="entry_missing" | "entry_unreadable" | "entry_unwritable"):
                return ErrorCode.IO_ERROR
            case BuildError():
                return ErrorCode.BUILD_ERROR
            case PublishError():
                return ErrorCode.PUBLISH_ERROR
        return ErrorCode.BUILD_ERROR


class Pipeline:
    """Run the manuscript pipeline for one build mode.

    Args:
        provisioner: Toolchain gate.
        selector: Entry document selection.
        invoker: Typesetting engine.
        entry_path: The shared entry document.
        console: Progress output.
        release: Publication target; None builds RELEASE without publishing.
        revision: Source commit being built, recorded on the artifact.
        allow_dynamic_exec: Let the engine run the highlighting renderer.
    """

    def __init__(
        self,
        *,
        provisioner: Provisioner,
        selector: SourceSelector,
        invoker: BuildInvoker,
        entry_path: Path,
        console: ConsoleProtocol,
        release: ReleaseTarget | None = None,
        revision: str | None = None,
        allow_dynamic_exec: bool = True,
    ) -> None:
        self._provisioner = provisioner
        self._selector = selector
        self._invoker = invoker
        self._entry_path = entry_path
        self._console = console
        self._release = release
        self._revision = revision
        self._allow_dynamic_exec = allow_dynamic_exec

    def run(self, mode: BuildMode) -> PipelineReport:
        states: list[PipelineState] = [PipelineState.IDLE, PipelineState.EVALUATING]

        self._console.header("Toolchain")
        provisioned = self._provisioner.provision(allow_dynamic_exec=self._allow_dynamic_exec)
        if isinstance(provisioned, Err):
            return _finish(mode, states, error=provisioned.error)
        for check in provisioned.value.results:
            self._console.print(f"{check.name}: {check.message}", Style.DIM)

        raw = read_entry(self._entry_path)
        if isinstance(raw, Err):
            return _finish(mode, states, error=raw.error)

        entry = self._selector.select(mode, raw.value)
        states.append(PipelineState.CHECKING if mode is BuildMode.CHECK else PipelineState.BUILDING)
        self._console.header(f"Build ({mode})")
        self._console.print(f"entry: {entry.filename}", Style.DIM)

        result = self._invoker.build(entry, allow_dynamic_exec=self._allow_dynamic_exec)
        if not result.ok or result.artifact_path is None:
            error = BuildError(
                kind="engine_failed",
                message=f"failed to compile {entry.filename}",
                log=result.log,
                log_path=result.log_path,
            )
            return _finish(mode, states, build=result, error=error)
        self._console.success(f"built {result.artifact_path}")

        if not mode.publishes:
            return _finish(mode, states, build=result)

        if self._release is None:
            self._console.info("publishing disabled")
            return _finish(mode, states, build=result)

        states.append(PipelineState.PUBLISHING)
        self._console.header("Publish")
        artifact = ReleaseArtifact(
            path=result.artifact_path,
            name=self._release.asset_name,
            revision=self._revision,
        )
        published = self._release.publisher.publish(artifact, self._release.tag)
        if isinstance(published, Err):
            return _finish(mode, states, build=result, error=published.error)
        return _finish(mode, states, build=result, publish=published.value)


def _finish(
    mode: BuildMode,
    states: list[PipelineState],
    *,
    build: BuildResult | None = None,
    publish: PublishOutcome | None = None,
    error: PipelineError | None = None,
) -> PipelineReport:
    return PipelineReport(
        mode=mode,
        states=(*states, PipelineState.IDLE),
        build=build,
        publish=publish,
        error=error,
    )


def log_tail(log: str, lines: int = _LOG_TAIL_LINES) -> str:
    """Last `lines` lines of an engine log."""
    return "\n".join(log.rstrip().splitlines()[-lines:])
