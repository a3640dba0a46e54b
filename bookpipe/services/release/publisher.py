"""Artifact publication.

`ArtifactPublisher.publish` is the only place a built PDF leaves the
machine. It only replaces the release asset with a PDF built from the
commit currently at the tip of the release branch: when two runs overlap,
the one built from the newest source wins, and a slow run that started
earlier cannot clobber it afterwards. Any other revision is refused too,
including a local commit not yet pushed or a build of another branch.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bookpipe.core.model import PublishOutcome, ReleaseArtifact
from bookpipe.core.result import Err, Ok, Result
from bookpipe.git.repository import GitError, Repository
from bookpipe.output.console import ConsoleProtocol, Style
from bookpipe.platform.files import atomic_copy
from bookpipe.services.release.errors import PublishError

__all__ = [
    "ArtifactPublisher",
    "DirectoryReleaseChannel",
    "ReleaseChannel",
    "RemoteBranchRevisions",
    "RevisionSource",
]


class ReleaseChannel(Protocol):
    """Somewhere a release tag maps to at most one file per asset name."""

    def put(self, tag: str, path: Path, name: str) -> Result[None, PublishError]:
        """Store `path` as `name` under `tag`, replacing any previous file."""
        ...


class RevisionSource(Protocol):
    def latest_revision(self) -> Result[str | None, GitError]:
        """Newest known source revision, or None if there is none."""
        ...


@dataclass(frozen=True, slots=True)
class RemoteBranchRevisions:
    """Latest revision = tip of a branch on a git remote."""

    repository: Repository
    remote: str
    branch: str

    def latest_revision(self) -> Result[str | None, GitError]:
        return self.repository.remote_head_sha(self.remote, self.branch)


@dataclass(frozen=True, slots=True)
class DirectoryReleaseChannel:
    """Release channel on a local or mounted filesystem: `<root>/<tag>/<name>`.

    The file is written next to its destination and moved into place with
    an atomic rename, so readers see either the old or the new file.
    """

    root: Path

    def put(self, tag: str, path: Path, name: str) -> Result[None, PublishError]:
        target_dir = self.root / tag
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            atomic_copy(path, target_dir / name)
        except OSError as e:
            return Err(
                PublishError(kind="upload_failed", message=f"cannot publish to {target_dir}: {e}")
            )
        return Ok(None)


class ArtifactPublisher:
    """Publish release artifacts through a channel.

    Args:
        channel: Where artifacts go.
        console: Progress output.
        revisions: Staleness guard; None disables it.
    """

    def __init__(
        self,
        *,
        channel: ReleaseChannel,
        console: ConsoleProtocol,
        revisions: RevisionSource | None = None,
    ) -> None:
        self._channel = channel
        self._console = console
        self._revisions = revisions

    def publish(self, artifact: ReleaseArtifact, tag: str) -> Result[PublishOutcome, PublishError]:
        if not artifact.path.is_file():
            return Err(
                PublishError(
                    kind="artifact_missing",
                    message=f"artifact not found: {artifact.path}",
                )
            )

        tip = self._diverging_tip(artifact)
        if tip is not None:
            return Ok(
                PublishOutcome(
                    tag=tag,
                    asset_name=artifact.name,
                    updated=False,
                    reason=f"built from {_short(artifact.revision)}, "
                    f"which differs from the release branch tip {_short(tip)}",
                )
            )

        self._console.print(f"publishing {artifact.name} to {tag}", Style.DIM)
        result = self._channel.put(tag, artifact.path, artifact.name)
        if isinstance(result, Err):
            return result
        return Ok(PublishOutcome(tag=tag, asset_name=artifact.name, updated=True))

    def _diverging_tip(self, artifact: ReleaseArtifact) -> str | None:
        """Return the branch tip if it is not the artifact's revision."""
        if self._revisions is None or artifact.revision is None:
            return None

        latest = self._revisions.latest_revision()
        if isinstance(latest, Err):
            self._console.warning(f"cannot determine latest revision: {latest.error.message}")
            return None
        if latest.value is None or latest.value == artifact.revision:
            return None
        return latest.value


def _short(sha: str | None) -> str:
    return sha[:8] if sha else "unknown revision"
