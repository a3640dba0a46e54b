"""Tests for bookpipe.core.config."""

from __future__ import annotations

from pathlib import Path

from bookpipe.core.config import (
    Config,
    DEFAULT_PARTIAL_DIRECTIVE,
    load_config,
    load_config_or_default,
)
from bookpipe.core.result import Err, Ok


class TestDefaults:
    """Defaults match the manuscript repository's historical CI setup."""

    def test_manuscript(self) -> None:
        config = Config()
        assert config.manuscript.dir == "src"
        assert config.manuscript.entry == "main.tex"
        assert config.manuscript.release_name == "ProgrammingRust"
        assert config.manuscript.partial_directive == DEFAULT_PARTIAL_DIRECTIVE

    def test_release(self) -> None:
        config = Config()
        assert config.release.tag == "v0.99"
        assert config.release.asset_name == "ProgrammingRust.pdf"
        assert config.release.repo is None

    def test_engine_and_trigger(self) -> None:
        config = Config()
        assert config.engine.command == "tectonic"
        assert config.engine.shell_escape is True
        assert config.trigger.cron == "0 16 * * *"
        assert "src/*" in config.trigger.paths
        assert config.trigger.branches == ("main",)
        assert config.trigger.install is None


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text(
            """
[manuscript]
dir = "book"
entry = "index.tex"
release_name = "Book"

[engine]
command = "/opt/tectonic"
shell_escape = false
timeout_seconds = 600
source_date_epoch = 1700000000

[release]
repo = "example/book"
tag = "nightly"
asset_name = "Book.pdf"
require_latest_revision = false

[trigger]
branches = ["main", "release"]
paths = ["book/**"]
cron = "0 3 * * *"
install = "bookpipe @ git+https://github.com/example/bookpipe@v0.1.0"
""",
            encoding="utf-8",
        )

        result = load_config(path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.manuscript.dir == "book"
        assert config.manuscript.entry == "index.tex"
        assert config.manuscript.release_name == "Book"
        assert config.engine.command == "/opt/tectonic"
        assert config.engine.shell_escape is False
        assert config.engine.timeout_seconds == 600
        assert config.engine.source_date_epoch == 1700000000
        assert config.release.repo == "example/book"
        assert config.release.tag == "nightly"
        assert config.release.require_latest_revision is False
        assert config.trigger.branches == ("main", "release")
        assert config.trigger.paths == ("book/**",)
        assert config.trigger.cron == "0 3 * * *"
        assert config.trigger.install == "bookpipe @ git+https://github.com/example/bookpipe@v0.1.0"

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text('[release]\ntag = "v1.0"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.release.tag == "v1.0"
        assert result.value.release.asset_name == "ProgrammingRust.pdf"
        assert result.value.manuscript.entry == "main.tex"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "bookpipe.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text("[release\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_release_name_must_differ_from_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text('[manuscript]\nrelease_name = "main"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "release_name" in result.error.message

    def test_nested_entry_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text('[manuscript]\nentry = "book/main.tex"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "manuscript.entry" in result.error.message

    def test_release_name_with_separator_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text('[manuscript]\nrelease_name = "../Book"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "release_name" in result.error.message

    def test_invalid_directive_pattern(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text("[manuscript]\npartial_directive = '(unclosed'\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "partial_directive" in result.error.message

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text("[engine]\ntimeout_seconds = 0\n", encoding="utf-8")
        assert isinstance(load_config(path), Err)


class TestLoadConfigOrDefault:
    def test_absent_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "bookpipe.toml")
        assert result == Ok(Config())

    def test_present_invalid_file_is_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bookpipe.toml"
        path.write_text("not = [valid", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)
