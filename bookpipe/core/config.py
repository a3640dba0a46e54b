"""Typed configuration loading.

`bookpipe.toml` is optional; every key falls back to the values the
manuscript repository has always used (Tectonic with shell escape,
`src/main.tex`, release tag `v0.99`, nightly at 16:00 UTC).

Example:
    [manuscript]
    dir = "src"
    entry = "main.tex"
    release_name = "ProgrammingRust"

    [release]
    tag = "v0.99"
    asset_name = "ProgrammingRust.pdf"

    [trigger]
    paths = ["src/*", "img/*", "fonts/*"]
    cron = "0 16 * * *"
    install = "bookpipe @ git+https://github.com/owner/bookpipe@v0.1.0"

`trigger.install` has no default; `bookpipe workflows` needs it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "EngineConfig",
    "ManuscriptConfig",
    "ReleaseConfig",
    "ToolchainConfig",
    "TriggerConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "bookpipe.toml"

DEFAULT_PARTIAL_DIRECTIVE = r"\\includeonly\b"
DEFAULT_TRIGGER_PATHS = ("src/*", "img/*", "fonts/*", ".github/workflows/check.yml")
DEFAULT_ENGINE_TIMEOUT_SECONDS = 30 * 60


@dataclass(frozen=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ManuscriptConfig:
    """Where the manuscript lives, relative to the project root."""

    dir: str = "src"
    entry: str = "main.tex"
    # Stem of the derived full-build entry document and of its PDF.
    release_name: str = "ProgrammingRust"
    partial_directive: str = DEFAULT_PARTIAL_DIRECTIVE


@dataclass(frozen=True, slots=True)
class EngineConfig:
    command: str = "tectonic"
    shell_escape: bool = True
    deterministic: bool = True
    timeout_seconds: int = DEFAULT_ENGINE_TIMEOUT_SECONDS
    source_date_epoch: int | None = None


@dataclass(frozen=True, slots=True)
class ToolchainConfig:
    renderer: str = "pygmentize"
    engine_hint: str = "Install Tectonic: https://tectonic-typesetting.github.io/"
    renderer_hint: str = "pip install Pygments"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    # owner/name; None lets `gh` infer it from the checkout.
    repo: str | None = None
    tag: str = "v0.99"
    asset_name: str = "ProgrammingRust.pdf"
    remote: str = "origin"
    branch: str = "main"
    require_latest_revision: bool = True


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    branches: tuple[str, ...] = ("main",)
    paths: tuple[str, ...] = DEFAULT_TRIGGER_PATHS
    cron: str = "0 16 * * *"
    # pip requirement the generated workflows install bookpipe from,
    # e.g. "bookpipe @ git+https://github.com/owner/bookpipe@v0.1.0"
    install: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    manuscript: ManuscriptConfig = field(default_factory=ManuscriptConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    trigger: TriggerConfig = field(default_factory=TriggerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from parsed TOML."""
        manuscript: StrDict = get_table(data, "manuscript") or {}
        engine: StrDict = get_table(data, "engine") or {}
        toolchain: StrDict = get_table(data, "toolchain") or {}
        release: StrDict = get_table(data, "release") or {}
        trigger: StrDict = get_table(data, "trigger") or {}

        defaults_m = ManuscriptConfig()
        defaults_e = EngineConfig()
        defaults_t = ToolchainConfig()
        defaults_r = ReleaseConfig()
        defaults_tr = TriggerConfig()

        timeout = get_int(engine, "timeout_seconds")
        if timeout is not None and timeout <= 0:
            raise ValueError("engine.timeout_seconds must be positive")

        shell_escape = get_bool(engine, "shell_escape")
        deterministic = get_bool(engine, "deterministic")
        require_latest = get_bool(release, "require_latest_revision")

        entry = get_str(manuscript, "entry") or defaults_m.entry
        release_name = get_str(manuscript, "release_name") or defaults_m.release_name
        # Entry and derived documents all live directly in manuscript.dir.
        if not _is_bare_name(entry):
            raise ValueError("manuscript.entry must be a file name inside manuscript.dir")
        if not _is_bare_name(release_name):
            raise ValueError("manuscript.release_name must be a plain file stem")
        if PurePosixPath(entry).stem == release_name:
            raise ValueError("manuscript.release_name must differ from the entry document name")

        directive = get_str(manuscript, "partial_directive") or defaults_m.partial_directive
        try:
            re.compile(directive)
        except re.error as e:
            raise ValueError(f"manuscript.partial_directive is not a valid pattern: {e}") from e

        return cls(
            manuscript=ManuscriptConfig(
                dir=get_str(manuscript, "dir") or defaults_m.dir,
                entry=entry,
                release_name=release_name,
                partial_directive=directive,
            ),
            engine=EngineConfig(
                command=get_str(engine, "command") or defaults_e.command,
                shell_escape=defaults_e.shell_escape if shell_escape is None else shell_escape,
                deterministic=defaults_e.deterministic if deterministic is None else deterministic,
                timeout_seconds=timeout or defaults_e.timeout_seconds,
                source_date_epoch=get_int(engine, "source_date_epoch"),
            ),
            toolchain=ToolchainConfig(
                renderer=get_str(toolchain, "renderer") or defaults_t.renderer,
                engine_hint=get_str(toolchain, "engine_hint") or defaults_t.engine_hint,
                renderer_hint=get_str(toolchain, "renderer_hint") or defaults_t.renderer_hint,
            ),
            release=ReleaseConfig(
                repo=get_str(release, "repo"),
                tag=get_str(release, "tag") or defaults_r.tag,
                asset_name=get_str(release, "asset_name") or defaults_r.asset_name,
                remote=get_str(release, "remote") or defaults_r.remote,
                branch=get_str(release, "branch") or defaults_r.branch,
                require_latest_revision=(
                    defaults_r.require_latest_revision if require_latest is None else require_latest
                ),
            ),
            trigger=TriggerConfig(
                branches=get_str_list(trigger, "branches") or defaults_tr.branches,
                paths=get_str_list(trigger, "paths") or defaults_tr.paths,
                cron=get_str(trigger, "cron") or defaults_tr.cron,
                install=get_str(trigger, "install"),
            ),
        )


def _is_bare_name(name: str) -> bool:
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate `bookpipe.toml`.

    Args:
        path: Path to the config file.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, else return defaults.

    A file that exists but is invalid is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
