# SPDX-License-Identifier: MIT
"""Check result types and the command runner seam used by the toolchain checks."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Protocol


class CheckStatus(Enum):
    """Status of a check result."""

    OK = auto()
    """Tool present and invocable."""

    WARNING = auto()
    """Optional tool missing; the requested build does not need it."""

    ERROR = auto()
    """Required tool missing or broken."""


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result of a single check.

    Attributes:
        name: What was checked (e.g. "tectonic", "pygmentize")
        status: Whether the check passed, warned, or failed
        message: Human-readable result message (usually the version line)
        hint: Optional installation command or URL
    """

    name: str
    status: CheckStatus
    message: str
    hint: str | None = None

    @property
    def ok(self) -> bool:
        """True if the check passed (OK or WARNING)."""
        return self.status != CheckStatus.ERROR

    @property
    def is_error(self) -> bool:
        return self.status == CheckStatus.ERROR

    @classmethod
    def success(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def warning(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.WARNING, message=message, hint=hint)

    @classmethod
    def error(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message, hint=hint)


class CommandRunner(Protocol):
    """Runs short version commands; lets tests fake subprocess calls."""

    def run(
        self, args: list[str], *, capture: bool = True, cwd: Path | None = None
    ) -> subprocess.CompletedProcess[str]: ...


class DefaultCommandRunner:
    """Command runner backed by subprocess.run."""

    def run(
        self, args: list[str], *, capture: bool = True, cwd: Path | None = None
    ) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            args,
            capture_output=capture,
            text=True,
            check=False,
            cwd=cwd,
            timeout=60,
        )


def first_line(text: str) -> str:
    """First non-empty line of text (version banners)."""
    for line in text.strip().splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""
