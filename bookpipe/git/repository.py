"""Git queries used by the pipeline.

Only read operations: which commit a build was made from, the commit
timestamp for reproducible output, the newest commit on the release
branch for the publish staleness guard, and the files a change touched.

Usage:
    repo = Repository(project.root)
    match repo.head_sha():
        case Ok(sha):
            print(sha)
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from bookpipe.core.result import Err, Ok, Result
from bookpipe.platform.process import ProcessError
from bookpipe.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 2 * 60.0

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")

__all__ = ["GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, error: ProcessError) -> GitError:
    message = error.stderr.strip() or error.stdout.strip() or str(error)
    return GitError(command=command, message=message, returncode=error.returncode)


@dataclass(frozen=True, slots=True)
class Repository:
    """A git checkout."""

    root: Path

    def _git(self, *args: str, timeout: float = _GIT_TIMEOUT_SECONDS) -> Result[str, GitError]:
        result = run_process(["git", *args], cwd=self.root, timeout=timeout)
        if isinstance(result, Err):
            return Err(_git_error(args[0], result.error))
        return Ok(result.value)

    def head_sha(self) -> Result[str, GitError]:
        """Full SHA of the checked-out commit."""
        result = self._git("rev-parse", "HEAD")
        if isinstance(result, Err):
            return result
        sha = result.value.strip()
        if not _SHA_RE.match(sha):
            return Err(GitError(command="rev-parse", message=f"unexpected sha: {sha!r}"))
        return Ok(sha)

    def head_timestamp(self) -> Result[int, GitError]:
        """Committer timestamp of HEAD (seconds since the epoch)."""
        result = self._git("log", "-1", "--format=%ct")
        if isinstance(result, Err):
            return result
        raw = result.value.strip()
        try:
            return Ok(int(raw))
        except ValueError:
            return Err(GitError(command="log", message=f"unexpected timestamp: {raw!r}"))

    def remote_head_sha(self, remote: str, branch: str) -> Result[str | None, GitError]:
        """SHA at the tip of `remote`'s `branch`, or None if the branch does not exist."""
        result = self._git(
            "ls-remote", remote, f"refs/heads/{branch}", timeout=_GIT_NETWORK_TIMEOUT_SECONDS
        )
        if isinstance(result, Err):
            return result
        for line in result.value.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] == f"refs/heads/{branch}":
                return Ok(parts[0])
        return Ok(None)

    def changed_paths(self, base: str, head: str = "HEAD") -> Result[tuple[str, ...], GitError]:
        """Paths (relative to the root, forward slashes) changed between two commits."""
        result = self._git("diff", "--name-only", base, head)
        if isinstance(result, Err):
            return result
        return Ok(tuple(line.strip() for line in result.value.splitlines() if line.strip()))
