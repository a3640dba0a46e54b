# SPDX-License-Identifier: MIT
"""Toolchain provisioning gate.

Before anything is built, the typesetting engine must be installed and
runnable and, when dynamic execution is allowed, so must the syntax
highlighting renderer the engine shells out to for code listings.
Installing them is the host's job (CI setup steps, package managers);
this module only answers "ready or not" and says what is missing.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field

from bookpipe.core.config import Config, ToolchainConfig
from bookpipe.core.result import Err, Ok, Result
from bookpipe.services.checks import (
    CheckResult,
    CommandRunner,
    DefaultCommandRunner,
    first_line,
)

__all__ = ["ProvisionError", "ToolchainChecker", "ToolchainReport"]


@dataclass(frozen=True, slots=True)
class ProvisionError:
    """A required tool is missing or cannot be run."""

    message: str
    hint: str | None = None
    missing: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ToolchainReport:
    results: tuple[CheckResult, ...]

    @property
    def ready(self) -> bool:
        return not any(r.is_error for r in self.results)

    @property
    def failures(self) -> tuple[CheckResult, ...]:
        return tuple(r for r in self.results if r.is_error)


@dataclass(frozen=True, slots=True)
class ToolchainChecker:
    """Check the engine and renderer.

    Attributes:
        engine: Engine executable name or path
        renderer: Renderer executable name or path
        hints: Install hints shown when a tool is missing
        runner: Command runner for version checks
    """

    engine: str
    renderer: str
    hints: ToolchainConfig = field(default_factory=ToolchainConfig)
    runner: CommandRunner = field(default_factory=DefaultCommandRunner)

    @classmethod
    def from_config(cls, config: Config, runner: CommandRunner | None = None) -> ToolchainChecker:
        return cls(
            engine=config.engine.command,
            renderer=config.toolchain.renderer,
            hints=config.toolchain,
            runner=runner or DefaultCommandRunner(),
        )

    def check_all(self, *, allow_dynamic_exec: bool) -> ToolchainReport:
        return ToolchainReport(
            results=(
                self.check_tool(self.engine, ["--version"], hint=self.hints.engine_hint),
                self.check_tool(
                    self.renderer,
                    ["-V"],
                    hint=self.hints.renderer_hint,
                    required=allow_dynamic_exec,
                ),
            )
        )

    def provision(self, *, allow_dynamic_exec: bool) -> Result[ToolchainReport, ProvisionError]:
        """Return the report if every required tool is usable."""
        report = self.check_all(allow_dynamic_exec=allow_dynamic_exec)
        if report.ready:
            return Ok(report)

        failures = report.failures
        names = tuple(r.name for r in failures)
        hints = [r.hint for r in failures if r.hint]
        return Err(
            ProvisionError(
                message="; ".join(f"{r.name}: {r.message}" for r in failures),
                hint="; ".join(hints) or None,
                missing=names,
            )
        )

    def check_tool(
        self,
        name: str,
        version_args: list[str],
        *,
        hint: str | None = None,
        required: bool = True,
    ) -> CheckResult:
        """Check a tool is on PATH and answers a version query."""
        if shutil.which(name) is None:
            if required:
                return CheckResult.error(name, "missing", hint=hint)
            return CheckResult.warning(name, "missing (optional)", hint=hint)

        try:
            proc = self.runner.run([name, *version_args])
        except (OSError, subprocess.SubprocessError) as e:
            return _broken(name, f"not runnable: {e}", hint=hint, required=required)

        if proc.returncode != 0:
            detail = first_line((proc.stderr or "") + (proc.stdout or ""))
            message = f"not runnable (exit {proc.returncode})"
            if detail:
                message += f": {detail}"
            return _broken(name, message, hint=hint, required=required)

        version = first_line((proc.stdout or "") + (proc.stderr or ""))
        return CheckResult.success(name, version or "ok")


def _broken(name: str, message: str, *, hint: str | None, required: bool) -> CheckResult:
    if required:
        return CheckResult.error(name, message, hint=hint)
    return CheckResult.warning(name, f"{message} (optional)", hint=hint)
