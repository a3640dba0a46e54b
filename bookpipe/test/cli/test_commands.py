from __future__ import annotations

from pathlib import Path

import pytest
import typer

from bookpipe.cli.commands import _pipeline
from bookpipe.cli.commands._pipeline import PublishOptions
from bookpipe.cli.context import CLIContext
from bookpipe.core.config import Config
from bookpipe.core.errors import ErrorCode
from bookpipe.core.model import BuildMode
from bookpipe.core.project import Project
from bookpipe.output.console import MockConsole
from bookpipe.services.build_errors import BuildError
from bookpipe.services.checks import CheckResult
from bookpipe.services.pipeline import PipelineReport
from bookpipe.services.toolchain import ToolchainReport

MAIN_TEX = "\\includeonly{ch01}\n\\chapter{X}\n"


def _ctx(tmp_path: Path, config: Config | None = None) -> CLIContext:
    (tmp_path / "src").mkdir(exist_ok=True)
    (tmp_path / "src" / "main.tex").write_text(MAIN_TEX, encoding="utf-8")
    return CLIContext(project=Project(root=tmp_path), config=config or Config(), console=MockConsole())


class TestSelect:
    def test_prints_release_document(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import bookpipe.cli.commands.select_cmd as select_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(select_cmd, "build_context", lambda: ctx)

        select_cmd.select(release=True, output=None)

        assert capsys.readouterr().out == "\\chapter{X}\n"
        assert ctx.console.find("partial-build directive")  # type: ignore[attr-defined]

    def test_writes_release_document(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.select_cmd as select_cmd

        monkeypatch.setattr(select_cmd, "build_context", lambda: _ctx(tmp_path))
        out = tmp_path / "out"
        out.mkdir()

        select_cmd.select(release=True, output=out)

        assert (out / "ProgrammingRust.tex").read_text(encoding="utf-8") == "\\chapter{X}\n"
        assert (tmp_path / "src" / "main.tex").read_text(encoding="utf-8") == MAIN_TEX

    def test_missing_entry(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.select_cmd as select_cmd

        ctx = _ctx(tmp_path)
        (tmp_path / "src" / "main.tex").unlink()
        monkeypatch.setattr(select_cmd, "build_context", lambda: ctx)

        with pytest.raises(typer.Exit) as exc:
            select_cmd.select(release=False, output=None)

        assert exc.value.exit_code == int(ErrorCode.IO_ERROR)


class TestDoctor:
    def _patch(self, monkeypatch: pytest.MonkeyPatch, report: ToolchainReport) -> None:
        import bookpipe.cli.commands.doctor as doctor_cmd

        class FakeChecker:
            @classmethod
            def from_config(cls, config: Config) -> FakeChecker:
                return cls()

            def check_all(self, *, allow_dynamic_exec: bool) -> ToolchainReport:
                return report

        monkeypatch.setattr(doctor_cmd, "ToolchainChecker", FakeChecker)

    def test_ready(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.doctor as doctor_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(doctor_cmd, "build_context", lambda: ctx)
        self._patch(monkeypatch, ToolchainReport(results=(CheckResult.success("tectonic", "Tectonic 0.15.0"),)))

        doctor_cmd.doctor()

        assert ctx.console.find("tectonic: Tectonic 0.15.0")  # type: ignore[attr-defined]

    def test_not_ready(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.doctor as doctor_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(doctor_cmd, "build_context", lambda: ctx)
        self._patch(
            monkeypatch,
            ToolchainReport(results=(CheckResult.error("tectonic", "missing", hint="install it"),)),
        )

        with pytest.raises(typer.Exit) as exc:
            doctor_cmd.doctor()

        assert exc.value.exit_code == int(ErrorCode.PROVISION_ERROR)
        assert ctx.console.find("hint: install it")  # type: ignore[attr-defined]


class TestWorkflows:
    CONFIG = Config.from_dict(
        {"trigger": {"install": "bookpipe @ git+https://github.com/example/bookpipe@v0.1.0"}}
    )

    def test_write(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.workflows as workflows_cmd

        monkeypatch.setattr(workflows_cmd, "build_context", lambda: _ctx(tmp_path, self.CONFIG))

        workflows_cmd.workflows(write=True)

        assert (tmp_path / ".github" / "workflows" / "check.yml").is_file()
        assert (tmp_path / ".github" / "workflows" / "build.yml").is_file()

    def test_preview(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.workflows as workflows_cmd

        ctx = _ctx(tmp_path, self.CONFIG)
        monkeypatch.setattr(workflows_cmd, "build_context", lambda: ctx)

        workflows_cmd.workflows(write=False)

        assert not (tmp_path / ".github").exists()
        assert ctx.console.find("name: Nightly Build")  # type: ignore[attr-defined]

    def test_without_install_is_user_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import bookpipe.cli.commands.workflows as workflows_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(workflows_cmd, "build_context", lambda: ctx)

        with pytest.raises(typer.Exit) as exc:
            workflows_cmd.workflows(write=True)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        assert not (tmp_path / ".github").exists()
        assert ctx.console.find("trigger.install")  # type: ignore[attr-defined]


class TestModeCommands:
    def _record(self, monkeypatch: pytest.MonkeyPatch, module: object) -> list[dict[str, object]]:
        calls: list[dict[str, object]] = []

        def fake_run_and_exit(ctx: CLIContext, mode: BuildMode, **kwargs: object) -> None:
            calls.append({"mode": mode, **kwargs})

        monkeypatch.setattr(module, "run_and_exit", fake_run_and_exit)
        return calls

    def test_check(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.check as check_cmd

        monkeypatch.setattr(check_cmd, "build_context", lambda: _ctx(tmp_path))
        calls = self._record(monkeypatch, check_cmd)

        check_cmd.check(no_shell_escape=True)

        assert calls == [{"mode": BuildMode.CHECK, "allow_dynamic_exec": False}]

    def test_release(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.release as release_cmd

        monkeypatch.setattr(release_cmd, "build_context", lambda: _ctx(tmp_path))
        calls = self._record(monkeypatch, release_cmd)

        release_cmd.release(
            no_publish=False,
            tag="nightly",
            channel_dir=tmp_path / "out",
            dry_run=False,
            skip_revision_check=True,
        )

        assert calls == [
            {
                "mode": BuildMode.RELEASE,
                "publish": PublishOptions(
                    enabled=True,
                    tag="nightly",
                    channel_dir=tmp_path / "out",
                    dry_run=False,
                    check_revision=False,
                ),
            }
        ]


class TestRun:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "GITHUB_EVENT_NAME",
            "GITHUB_EVENT_PATH",
            "GITHUB_REF_NAME",
            "GITHUB_BASE_REF",
            "BOOKPIPE_RELEASE",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_outside_ci(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.run_cmd as run_cmd

        monkeypatch.setattr(run_cmd, "build_context", lambda: _ctx(tmp_path))

        with pytest.raises(typer.Exit) as exc:
            run_cmd.run()

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)

    def test_schedule_releases(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.run_cmd as run_cmd

        monkeypatch.setattr(run_cmd, "build_context", lambda: _ctx(tmp_path))
        monkeypatch.setenv("GITHUB_EVENT_NAME", "schedule")
        modes: list[BuildMode] = []
        monkeypatch.setattr(run_cmd, "run_and_exit", lambda ctx, mode: modes.append(mode))

        run_cmd.run()

        assert modes == [BuildMode.RELEASE]

    def test_other_branch_does_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import bookpipe.cli.commands.run_cmd as run_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(run_cmd, "build_context", lambda: ctx)
        monkeypatch.setenv("GITHUB_EVENT_NAME", "push")
        monkeypatch.setenv("GITHUB_REF_NAME", "draft")
        modes: list[BuildMode] = []
        monkeypatch.setattr(run_cmd, "run_and_exit", lambda ctx, mode: modes.append(mode))

        run_cmd.run()

        assert modes == []
        assert ctx.console.find("nothing to build")  # type: ignore[attr-defined]


class TestRunAndExit:
    def test_failure_exits_with_report_code(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        report = PipelineReport(
            mode=BuildMode.CHECK,
            error=BuildError(kind="engine_failed", message="failed to compile main.tex"),
        )

        class FakePipeline:
            def run(self, mode: BuildMode) -> PipelineReport:
                return report

        monkeypatch.setattr(_pipeline, "build_pipeline", lambda *a, **k: FakePipeline())

        with pytest.raises(typer.Exit) as exc:
            _pipeline.run_and_exit(_ctx(tmp_path), BuildMode.CHECK)

        assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)

    def test_success_returns_report(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        report = PipelineReport(mode=BuildMode.CHECK)

        class FakePipeline:
            def run(self, mode: BuildMode) -> PipelineReport:
                return report

        monkeypatch.setattr(_pipeline, "build_pipeline", lambda *a, **k: FakePipeline())

        assert _pipeline.run_and_exit(_ctx(tmp_path), BuildMode.CHECK) is report


class TestReleaseTarget:
    def test_disabled(self, tmp_path: Path) -> None:
        assert _pipeline._release_target(_ctx(tmp_path), PublishOptions(enabled=False)) is None

    def test_defaults_from_config(self, tmp_path: Path) -> None:
        target = _pipeline._release_target(_ctx(tmp_path), PublishOptions())
        assert target is not None
        assert target.tag == "v0.99"
        assert target.asset_name == "ProgrammingRust.pdf"

    def test_tag_override(self, tmp_path: Path) -> None:
        target = _pipeline._release_target(
            _ctx(tmp_path), PublishOptions(tag="nightly", channel_dir=tmp_path / "out")
        )
        assert target is not None
        assert target.tag == "nightly"
