"""Hosted-CI workflow files.

The CI host owns scheduling: it watches paths, runs the daily timer and
offers manual dispatch. These renderers keep its two workflow files in
step with `bookpipe.toml`, so the trigger settings live in one place.
Both workflows install bookpipe from the `[trigger] install` requirement
and call `bookpipe run`, which reads the trigger back from the CI
environment.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path

from bookpipe.core.config import Config
from bookpipe.core.result import Err, Ok, Result

__all__ = [
    "CHECK_WORKFLOW",
    "NIGHTLY_WORKFLOW",
    "WorkflowError",
    "render_check_workflow",
    "render_nightly_workflow",
    "render_workflows",
    "write_workflows",
]

CHECK_WORKFLOW = "check.yml"
NIGHTLY_WORKFLOW = "build.yml"

_PYTHON_VERSION = "3.12"
_GH_TOKEN = "${{ secrets.GITHUB_TOKEN }}"


@dataclass(frozen=True, slots=True)
class WorkflowError:
    message: str
    path: Path | None = None
    hint: str | None = None


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _setup_steps(install: str) -> list[str]:
    return [
        "      - uses: actions/checkout@v4",
        "",
        "      - uses: wtfjoke/setup-tectonic@v3",
        "        with:",
        f"          github-token: {_GH_TOKEN}",
        "",
        "      - uses: actions/setup-python@v5",
        "        with:",
        f"          python-version: {_quote(_PYTHON_VERSION)}",
        "",
        "      - name: install pipeline",
        "        run: |",
        "          sudo apt-get update && sudo apt-get install -y libfuse2",
        f"          pip install {shlex.quote(install)} Pygments",
    ]


def _filter_block(event: str, config: Config) -> list[str]:
    branches = ", ".join(config.trigger.branches)
    lines = [
        f"  {event}:",
        f"    branches: [{branches}]",
        "    paths:",
    ]
    lines += [f"      - {_quote(p)}" for p in config.trigger.paths]
    return lines


def render_check_workflow(config: Config, install: str) -> str:
    lines = [
        "name: Check Build",
        "",
        "on:",
        *_filter_block("push", config),
        *_filter_block("pull_request", config),
        "  workflow_dispatch:",
        "",
        "jobs:",
        "  check-build:",
        "    runs-on: ubuntu-latest",
        "    steps:",
        *_setup_steps(install),
        "",
        "      - name: check build",
        "        run: bookpipe run",
    ]
    return "\n".join(lines) + "\n"


def render_nightly_workflow(config: Config, install: str) -> str:
    lines = [
        "name: Nightly Build",
        "",
        "on:",
        "  schedule:",
        f"    - cron: {_quote(config.trigger.cron)}",
        "  workflow_dispatch:",
        "    inputs:",
        "      release:",
        "        description: Publish the PDF to the release tag",
        "        type: boolean",
        "        default: true",
        "",
        "permissions:",
        "  contents: write",
        "",
        "concurrency:",
        "  group: release-" + config.release.tag,
        "  cancel-in-progress: false",
        "",
        "jobs:",
        "  nightly-build:",
        "    runs-on: ubuntu-latest",
        "    steps:",
        *_setup_steps(install),
        "",
        "      - name: build and publish pdf",
        "        env:",
        f"          GH_TOKEN: {_GH_TOKEN}",
        "        run: bookpipe run",
    ]
    return "\n".join(lines) + "\n"


def render_workflows(config: Config) -> Result[dict[str, str], WorkflowError]:
    """Workflow file name -> contents.

    Fails when `trigger.install` is unset: bookpipe is not on the package
    index, so the workflows cannot guess where to install it from.
    """
    install = config.trigger.install
    if not install:
        return Err(
            WorkflowError(
                "trigger.install is not set",
                hint='set [trigger] install = "bookpipe @ git+https://github.com/<owner>/bookpipe@<ref>"',
            )
        )
    return Ok(
        {
            CHECK_WORKFLOW: render_check_workflow(config, install),
            NIGHTLY_WORKFLOW: render_nightly_workflow(config, install),
        }
    )


def write_workflows(directory: Path, config: Config) -> Result[list[Path], WorkflowError]:
    rendered = render_workflows(config)
    if isinstance(rendered, Err):
        return rendered

    written: list[Path] = []
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return Err(WorkflowError(f"cannot create {directory}: {e}", path=directory))

    for name, text in rendered.value.items():
        path = directory / name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            return Err(WorkflowError(f"cannot write {path}: {e}", path=path))
        written.append(path)
    return Ok(written)
