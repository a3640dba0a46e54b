"""GitHub release channel backed by the `gh` CLI.

The release tag holds at most one asset with the published name. `put`
replaces it without ever exposing a half-uploaded file under that name:

1. upload the new file under a unique staging name
2. delete the existing asset with the published name, if any
3. rename the staging asset to the published name

If step 1 fails the previous asset is untouched. If step 2 fails the
staging asset is removed again (best effort); if step 3 fails it is kept
so the new file can be renamed by hand.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from time import sleep
from uuid import uuid4

from bookpipe.core.result import Err, Ok, Result
from bookpipe.core.structured import as_obj_list, as_str_dict, get_int, get_str
from bookpipe.output.console import ConsoleProtocol, Style
from bookpipe.platform.process import ProcessError
from bookpipe.platform.process import run as run_process
from bookpipe.services.release.errors import PublishError, PublishErrorKind
from bookpipe.services.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)

__all__ = [
    "GhRelease",
    "GhReleaseChannel",
    "ReleaseAsset",
    "ensure_gh_auth",
    "ensure_gh_available",
    "staging_name",
]


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "http 404" in text or "not found" in text


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    id: int
    name: str
    size: int = 0


@dataclass(frozen=True, slots=True)
class GhRelease:
    id: int
    tag: str
    assets: tuple[ReleaseAsset, ...]

    def asset(self, name: str) -> ReleaseAsset | None:
        for a in self.assets:
            if a.name == name:
                return a
        return None


def staging_name(name: str) -> str:
    """Unique temporary asset name for an upload of `name`."""
    path = Path(name)
    return f"{path.stem}.staging-{uuid4().hex[:12]}{path.suffix}"


def ensure_gh_available() -> Result[None, PublishError]:
    if shutil.which("gh") is None:
        return Err(
            PublishError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, cwd: Path) -> Result[None, PublishError]:
    result = run_process(["gh", "auth", "status"], cwd=cwd, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login (or set GH_TOKEN)",
            )
        )
    return Ok(None)


def _parse_release(payload: str) -> GhRelease | None:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError:
        return None

    data = as_str_dict(obj)
    if data is None:
        return None

    release_id = get_int(data, "id")
    tag = get_str(data, "tag_name")
    if release_id is None or tag is None:
        return None

    assets: list[ReleaseAsset] = []
    for item in as_obj_list(data.get("assets")) or []:
        d = as_str_dict(item)
        if d is None:
            continue
        asset_id = get_int(d, "id")
        name = get_str(d, "name")
        if asset_id is None or name is None:
            continue
        assets.append(ReleaseAsset(id=asset_id, name=name, size=get_int(d, "size") or 0))

    return GhRelease(id=release_id, tag=tag, assets=tuple(assets))


class GhReleaseChannel:
    """Release channel that talks to GitHub through `gh`.

    Args:
        cwd: Directory `gh` runs in (the checkout, so it can infer the repo).
        console: Progress output.
        repo: owner/name; None uses the repository of `cwd`.
        dry_run: Print the commands instead of running them.
    """

    def __init__(
        self,
        *,
        cwd: Path,
        console: ConsoleProtocol,
        repo: str | None = None,
        dry_run: bool = False,
        delay: Callable[[float], None] = sleep,
    ) -> None:
        self._cwd = cwd
        self._console = console
        self._repo = repo
        self._dry_run = dry_run
        self._delay = delay

    @property
    def _api_base(self) -> str:
        # gh expands {owner}/{repo} from the current checkout
        if self._repo:
            return f"repos/{self._repo}"
        return "repos/{owner}/{repo}"

    def _repo_args(self) -> list[str]:
        return ["--repo", self._repo] if self._repo else []

    def _read(self, cmd: list[str]) -> Result[str, ProcessError]:
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        attempt = 0
        while True:
            result = run_process(cmd, cwd=self._cwd, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return result
            attempt += 1
            if attempt >= attempts or not _is_transient_gh_error(result.error):
                return result
            self._delay(GH_READ_RETRY_DELAY_SECONDS * attempt)

    def _write(
        self,
        cmd: list[str],
        *,
        kind: PublishErrorKind,
        message: str,
        timeout: float = GH_TIMEOUT_SECONDS,
    ) -> Result[None, PublishError]:
        self._console.print(" ".join(cmd), Style.DIM)
        if self._dry_run:
            return Ok(None)
        result = run_process(cmd, cwd=self._cwd, timeout=timeout)
        if isinstance(result, Err):
            return Err(
                PublishError(kind=kind, message=message, hint=result.error.stderr.strip() or None)
            )
        return Ok(None)

    def get_release(self, tag: str) -> Result[GhRelease | None, PublishError]:
        """Fetch the release for `tag`; Ok(None) if there is none."""
        result = self._read(["gh", "api", f"{self._api_base}/releases/tags/{tag}"])
        if isinstance(result, Err):
            if _is_not_found(result.error):
                return Ok(None)
            return Err(
                PublishError(
                    kind="release_query_failed",
                    message=f"failed to query release {tag}",
                    hint=result.error.stderr.strip() or None,
                )
            )

        release = _parse_release(result.value)
        if release is None:
            return Err(
                PublishError(
                    kind="release_query_failed",
                    message=f"unexpected release payload for {tag}",
                )
            )
        return Ok(release)

    def create_release(self, tag: str) -> Result[None, PublishError]:
        return self._write(
            [
                "gh",
                "release",
                "create",
                tag,
                *self._repo_args(),
                "--title",
                tag,
                "--notes",
                "Automated manuscript build.",
            ],
            kind="release_create_failed",
            message=f"failed to create release {tag}",
        )

    def delete_asset(self, asset_id: int) -> Result[None, PublishError]:
        return self._write(
            ["gh", "api", "-X", "DELETE", f"{self._api_base}/releases/assets/{asset_id}"],
            kind="replace_failed",
            message=f"failed to delete release asset {asset_id}",
        )

    def rename_asset(self, asset_id: int, name: str) -> Result[None, PublishError]:
        return self._write(
            [
                "gh",
                "api",
                "-X",
                "PATCH",
                f"{self._api_base}/releases/assets/{asset_id}",
                "-f",
                f"name={name}",
            ],
            kind="replace_failed",
            message=f"failed to rename release asset {asset_id} to {name}",
        )

    def put(self, tag: str, path: Path, name: str) -> Result[None, PublishError]:
        """Publish `path` as asset `name` of release `tag`, replacing any previous one."""
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available
        authed = ensure_gh_auth(cwd=self._cwd)
        if isinstance(authed, Err):
            return authed

        release = self.get_release(tag)
        if isinstance(release, Err):
            return release

        if release.value is None:
            created = self.create_release(tag)
            if isinstance(created, Err):
                return created

        staged = staging_name(name)
        with tempfile.TemporaryDirectory(prefix="bookpipe-upload-") as tmp:
            staged_path = Path(tmp) / staged
            try:
                shutil.copyfile(path, staged_path)
            except OSError as e:
                return Err(
                    PublishError(kind="upload_failed", message=f"cannot stage {path}: {e}")
                )

            uploaded = self._write(
                ["gh", "release", "upload", tag, str(staged_path), *self._repo_args()],
                kind="upload_failed",
                message=f"failed to upload {name} to {tag}",
                timeout=GH_UPLOAD_TIMEOUT_SECONDS,
            )
            if isinstance(uploaded, Err):
                return uploaded

        if self._dry_run:
            self._console.print(f"(dry-run) would replace {name} with {staged}", Style.DIM)
            return Ok(None)

        return self._swap(tag, staged=staged, name=name)

    def _swap(self, tag: str, *, staged: str, name: str) -> Result[None, PublishError]:
        current = self.get_release(tag)
        if isinstance(current, Err):
            return current
        if current.value is None:
            return Err(PublishError(kind="replace_failed", message=f"release {tag} disappeared"))

        new_asset = current.value.asset(staged)
        if new_asset is None:
            return Err(
                PublishError(
                    kind="replace_failed",
                    message=f"uploaded asset {staged} not found on {tag}",
                )
            )

        old_asset = current.value.asset(name)
        if old_asset is not None:
            deleted = self.delete_asset(old_asset.id)
            if isinstance(deleted, Err):
                self._discard(new_asset)
                return deleted

        renamed = self.rename_asset(new_asset.id, name)
        if isinstance(renamed, Err):
            # Keep the uploaded file for manual recovery.
            return Err(
                PublishError(
                    kind="replace_failed",
                    message=renamed.error.message,
                    hint=f"new file left on {tag} as {staged}",
                )
            )
        return Ok(None)

    def _discard(self, asset: ReleaseAsset) -> None:
        result = self.delete_asset(asset.id)
        if isinstance(result, Err):
            self._console.warning(
                f"could not remove staging asset {asset.name}: {result.error.message}"
            )
