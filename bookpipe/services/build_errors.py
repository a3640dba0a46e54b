from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

BuildErrorKind = Literal[
    "entry_missing",
    "entry_unreadable",
    "entry_unwritable",
    "engine_failed",
    "output_missing",
]


@dataclass(frozen=True, slots=True)
class BuildError:
    """The manuscript could not be compiled.

    `log` carries the engine transcript unmodified; `log_path` is where
    the same transcript was saved, if it could be saved.
    """

    kind: BuildErrorKind
    message: str
    hint: str | None = None
    log: str = ""
    log_path: Path | None = None
