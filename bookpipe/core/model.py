"""Domain types shared by the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

__all__ = [
    "BuildMode",
    "BuildResult",
    "BuildStatus",
    "EntryDocument",
    "PublishOutcome",
    "ReleaseArtifact",
]


class BuildMode(Enum):
    """What a pipeline run is for.

    CHECK compiles the entry document as-is (partial builds allowed) and
    never publishes. RELEASE compiles the whole manuscript and publishes.
    """

    CHECK = "check"
    RELEASE = "release"

    def __str__(self) -> str:
        return self.value

    @property
    def publishes(self) -> bool:
        return self is BuildMode.RELEASE


@dataclass(frozen=True, slots=True)
class EntryDocument:
    """The top-level manuscript file handed to the typesetting engine.

    Attributes:
        name: File stem; the engine writes `<name>.pdf`.
        text: Full document source.
    """

    name: str
    text: str

    @property
    def filename(self) -> str:
        return f"{self.name}.tex"

    @property
    def pdf_filename(self) -> str:
        return f"{self.name}.pdf"


class BuildStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one engine invocation.

    `artifact_path` is set only when `status` is SUCCESS.
    """

    status: BuildStatus
    artifact_path: Path | None
    log: str
    # Where the invoker saved `log`, if it did.
    log_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.status is BuildStatus.SUCCESS and self.artifact_path is not None

    @classmethod
    def success(cls, artifact_path: Path, log: str, log_path: Path | None = None) -> BuildResult:
        return cls(
            status=BuildStatus.SUCCESS, artifact_path=artifact_path, log=log, log_path=log_path
        )

    @classmethod
    def failure(cls, log: str, log_path: Path | None = None) -> BuildResult:
        return cls(status=BuildStatus.FAILURE, artifact_path=None, log=log, log_path=log_path)


@dataclass(frozen=True, slots=True)
class ReleaseArtifact:
    """A built PDF ready to be published.

    Attributes:
        path: Local file produced by the build.
        name: Asset name under the release tag.
        revision: Source commit the PDF was built from (None if unknown).
    """

    path: Path
    name: str
    revision: str | None = None


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Whether the release tag now serves the new artifact."""

    tag: str
    asset_name: str
    updated: bool
    reason: str = ""
