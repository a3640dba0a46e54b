"""Tests for CI workflow rendering."""

from __future__ import annotations

from pathlib import Path

from bookpipe.core.config import Config
from bookpipe.core.result import Err, Ok
from bookpipe.services.workflows import (
    CHECK_WORKFLOW,
    NIGHTLY_WORKFLOW,
    render_check_workflow,
    render_nightly_workflow,
    render_workflows,
    write_workflows,
)

INSTALL = "bookpipe @ git+https://github.com/example/bookpipe@v0.1.0"


def _config(**trigger: object) -> Config:
    return Config.from_dict({"trigger": {"install": INSTALL, **trigger}})


def test_check_workflow_defaults() -> None:
    text = render_check_workflow(Config(), INSTALL)

    assert text.startswith("name: Check Build\n")
    assert "  push:\n    branches: [main]\n" in text
    assert "  pull_request:\n    branches: [main]\n" in text
    for pattern in ("'src/*'", "'img/*'", "'fonts/*'", "'.github/workflows/check.yml'"):
        assert f"      - {pattern}\n" in text
    assert "  workflow_dispatch:\n" in text
    assert "libfuse2" in text
    assert text.endswith("        run: bookpipe run\n")
    assert "GH_TOKEN:" not in text


def test_nightly_workflow_defaults() -> None:
    text = render_nightly_workflow(Config(), INSTALL)

    assert "    - cron: '0 16 * * *'\n" in text
    assert "        type: boolean\n" in text
    assert "  contents: write\n" in text
    assert "  group: release-v0.99\n" in text
    assert "          GH_TOKEN: ${{ secrets.GITHUB_TOKEN }}\n" in text


def test_rendering_follows_config() -> None:
    config = Config.from_dict(
        {
            "trigger": {"branches": ["trunk", "next"], "paths": ["book/**"], "cron": "30 2 * * 1"},
            "release": {"tag": "nightly"},
        }
    )

    check = render_check_workflow(config, INSTALL)
    nightly = render_nightly_workflow(config, INSTALL)

    assert "branches: [trunk, next]" in check
    assert "      - 'book/**'\n" in check
    assert "'30 2 * * 1'" in nightly
    assert "group: release-nightly" in nightly


def test_quotes_are_escaped() -> None:
    config = Config.from_dict({"trigger": {"paths": ["it's/*"]}})
    assert "      - 'it''s/*'\n" in render_check_workflow(config, INSTALL)


class TestInstall:
    def test_both_workflows_install_configured_requirement(self) -> None:
        result = render_workflows(_config())

        assert isinstance(result, Ok)
        line = f"          pip install '{INSTALL}' Pygments\n"
        assert line in result.value[CHECK_WORKFLOW]
        assert line in result.value[NIGHTLY_WORKFLOW]

    def test_never_installs_bare_package_name(self) -> None:
        result = render_workflows(_config(install="bookpipe==0.1.0"))

        assert isinstance(result, Ok)
        for text in result.value.values():
            assert "pip install bookpipe==0.1.0 Pygments\n" in text
            assert "pip install bookpipe Pygments" not in text

    def test_missing_install_is_error(self) -> None:
        result = render_workflows(Config())

        assert isinstance(result, Err)
        assert "trigger.install" in result.error.message
        assert result.error.hint is not None
        assert "git+https://" in result.error.hint

    def test_missing_install_writes_nothing(self, tmp_path: Path) -> None:
        directory = tmp_path / ".github" / "workflows"

        result = write_workflows(directory, Config())

        assert isinstance(result, Err)
        assert not directory.exists()


def test_write_workflows(tmp_path: Path) -> None:
    directory = tmp_path / ".github" / "workflows"

    result = write_workflows(directory, _config())

    assert result == Ok([directory / CHECK_WORKFLOW, directory / NIGHTLY_WORKFLOW])
    assert (directory / NIGHTLY_WORKFLOW).read_text(encoding="utf-8") == render_nightly_workflow(
        _config(), INSTALL
    )


def test_write_workflows_blocked(tmp_path: Path) -> None:
    blocker = tmp_path / "workflows"
    blocker.write_text("", encoding="utf-8")

    result = write_workflows(blocker, _config())

    assert isinstance(result, Err)
