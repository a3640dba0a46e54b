"""Project root detection and paths.

The project root is the manuscript repository checkout. It is identified
by a `bookpipe.toml` file, or failing that by the conventional
`src/main.tex` entry document.

Resolution order:
1. explicit root (CLI `--root`)
2. BOOKPIPE_ROOT environment variable
3. walk upward from the current directory
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILENAME, Config
from .result import Err, Ok, Result

__all__ = [
    "ROOT_ENV_VAR",
    "Project",
    "ProjectError",
    "detect_project",
    "is_project_root",
]

ROOT_ENV_VAR = "BOOKPIPE_ROOT"


@dataclass(frozen=True)
class ProjectError:
    """Error when the project root cannot be found."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A manuscript checkout."""

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def workflows_dir(self) -> Path:
        return self.root / ".github" / "workflows"

    def manuscript_dir(self, config: Config) -> Path:
        """Directory holding the entry document; the engine runs here."""
        return self.root / config.manuscript.dir

    def entry_path(self, config: Config) -> Path:
        return self.manuscript_dir(config) / config.manuscript.entry


def is_project_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file() or (path / "src" / "main.tex").is_file()


def detect_project(
    root: Path | None = None,
    *,
    start: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Result[Project, ProjectError]:
    """Locate the project root.

    Args:
        root: Explicit root; must be a directory (no marker required).
        start: Directory to search upward from (defaults to cwd).
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Ok(Project) or Err(ProjectError).
    """
    if root is not None:
        resolved = root.expanduser().resolve()
        if not resolved.is_dir():
            return Err(ProjectError(f"not a directory: {resolved}"))
        return Ok(Project(root=resolved))

    env = os.environ if environ is None else environ
    from_env = env.get(ROOT_ENV_VAR)
    if from_env:
        resolved = Path(from_env).expanduser().resolve()
        if not resolved.is_dir():
            return Err(ProjectError(f"{ROOT_ENV_VAR} is not a directory: {resolved}"))
        return Ok(Project(root=resolved))

    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if is_project_root(candidate):
            return Ok(Project(root=candidate))

    return Err(
        ProjectError(
            f"no {CONFIG_FILENAME} or src/main.tex found above {origin}",
            searched_from=origin,
        )
    )
