"""Build invoker: run the typesetting engine on a selected entry document.

Tectonic is the production engine. It reruns TeX internally until
cross-references settle, so one invocation either yields a finished PDF
or fails; there are no intermediate passes to orchestrate here.

Code listings are rendered by `minted`, which shells out to the
highlighting renderer while typesetting. That only works when the engine
is allowed to execute external programs, which is why the capability is
an explicit argument of `build` rather than something baked into the
engine command.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from bookpipe.core.config import Config
from bookpipe.core.model import BuildResult, EntryDocument
from bookpipe.core.result import Err
from bookpipe.output.console import ConsoleProtocol, Style
from bookpipe.platform.process import run_logged
from bookpipe.services.selector import write_entry

__all__ = ["BuildInvoker", "TectonicInvoker", "log_path_for"]

_LOG_SUFFIX = ".build.log"


class BuildInvoker(Protocol):
    """Anything that can turn an entry document into a PDF."""

    def build(self, entry: EntryDocument, *, allow_dynamic_exec: bool) -> BuildResult: ...


def log_path_for(workdir: Path, entry: EntryDocument) -> Path:
    return workdir / f"{entry.name}{_LOG_SUFFIX}"


def _empty_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class TectonicInvoker:
    """Compile entry documents with Tectonic inside `workdir`.

    Attributes:
        workdir: Manuscript directory; entry documents and PDFs live here.
        console: Progress output.
        command: Engine executable.
        timeout_seconds: Hard limit for one engine run.
        deterministic: Ask the engine for reproducible output.
        source_date_epoch: Timestamp embedded in the PDF (SOURCE_DATE_EPOCH).
        extra_env: Additional environment for the engine process.
    """

    workdir: Path
    console: ConsoleProtocol
    command: str = "tectonic"
    timeout_seconds: float = 30 * 60.0
    deterministic: bool = True
    source_date_epoch: int | None = None
    extra_env: Mapping[str, str] = field(default_factory=_empty_env)

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        workdir: Path,
        console: ConsoleProtocol,
        source_date_epoch: int | None = None,
    ) -> TectonicInvoker:
        epoch = config.engine.source_date_epoch
        return cls(
            workdir=workdir,
            console=console,
            command=config.engine.command,
            timeout_seconds=float(config.engine.timeout_seconds),
            deterministic=config.engine.deterministic,
            source_date_epoch=epoch if epoch is not None else source_date_epoch,
        )

    def command_line(self, entry: EntryDocument, *, allow_dynamic_exec: bool) -> list[str]:
        cmd = [self.command]
        if allow_dynamic_exec:
            cmd += ["-Z", "shell-escape"]
        if self.deterministic:
            cmd += ["-Z", "deterministic-mode"]
        cmd.append(entry.filename)
        return cmd

    def environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self.extra_env)
        env["SOURCE_DATE_EPOCH"] = str(self.source_date_epoch or 0)
        return env

    def build(self, entry: EntryDocument, *, allow_dynamic_exec: bool) -> BuildResult:
        written = write_entry(entry, self.workdir)
        if isinstance(written, Err):
            return BuildResult.failure(log=written.error.message)

        pdf = self.workdir / entry.pdf_filename
        # A PDF left over from an earlier run must never pass for this one.
        try:
            pdf.unlink(missing_ok=True)
        except OSError as e:
            return BuildResult.failure(log=f"cannot remove stale output {pdf}: {e}")

        cmd = self.command_line(entry, allow_dynamic_exec=allow_dynamic_exec)
        self.console.print(" ".join(cmd), Style.DIM)
        proc = run_logged(cmd, cwd=self.workdir, env=self.environment(), timeout=self.timeout_seconds)

        log = proc.output
        log_path = self._save_log(entry, log)

        if not proc.ok:
            return BuildResult.failure(
                log=log or f"{self.command} exited {proc.returncode}", log_path=log_path
            )
        if not pdf.is_file():
            return BuildResult.failure(
                log=f"{log}\nexpected output not found: {pdf}\n", log_path=log_path
            )
        return BuildResult.success(artifact_path=pdf, log=log, log_path=log_path)

    def _save_log(self, entry: EntryDocument, log: str) -> Path | None:
        path = log_path_for(self.workdir, entry)
        try:
            path.write_text(log, encoding="utf-8")
        except OSError as e:
            self.console.warning(f"could not save engine log to {path}: {e}")
            return None
        return path
