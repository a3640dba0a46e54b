"""Source selection: which entry document the engine compiles.

During writing the shared entry document usually carries a partial-build
directive (`\\includeonly{...}`) so local builds only typeset the chapters
being worked on. A release must contain every chapter, so release builds
compile a derived document with those lines removed. The shared file is
never edited; the derived document is written alongside it under its own
name, because the engine resolves `\\include` paths relative to the entry
document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from bookpipe.core.config import DEFAULT_PARTIAL_DIRECTIVE, Config
from bookpipe.core.model import BuildMode, EntryDocument
from bookpipe.core.result import Err, Ok, Result
from bookpipe.platform.files import atomic_write_text
from bookpipe.services.build_errors import BuildError

__all__ = [
    "SourceSelector",
    "has_partial_directive",
    "read_entry",
    "select_entry",
    "strip_partial_directive",
    "write_entry",
]


@lru_cache(maxsize=16)
def _directive_re(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def has_partial_directive(text: str, pattern: str = DEFAULT_PARTIAL_DIRECTIVE) -> bool:
    rx = _directive_re(pattern)
    return any(rx.search(line) for line in text.splitlines())


def strip_partial_directive(text: str, pattern: str = DEFAULT_PARTIAL_DIRECTIVE) -> str:
    """Remove every line matching the directive pattern.

    Surviving lines keep their original line endings, so a text without
    any directive is returned unchanged.
    """
    rx = _directive_re(pattern)
    return "".join(line for line in text.splitlines(keepends=True) if not rx.search(line))


def select_entry(
    mode: BuildMode,
    raw: EntryDocument,
    *,
    release_name: str | None = None,
    pattern: str = DEFAULT_PARTIAL_DIRECTIVE,
) -> EntryDocument:
    """Pick the document to compile for `mode`.

    CHECK returns `raw` itself. RELEASE returns a copy without partial-build
    directives, renamed to `release_name` when given.
    """
    if mode is BuildMode.CHECK:
        return raw
    return EntryDocument(
        name=release_name or raw.name,
        text=strip_partial_directive(raw.text, pattern),
    )


@dataclass(frozen=True, slots=True)
class SourceSelector:
    """`select_entry` bound to a project's naming and directive pattern."""

    release_name: str
    pattern: str = DEFAULT_PARTIAL_DIRECTIVE

    @classmethod
    def from_config(cls, config: Config) -> SourceSelector:
        return cls(
            release_name=config.manuscript.release_name,
            pattern=config.manuscript.partial_directive,
        )

    def select(self, mode: BuildMode, raw: EntryDocument) -> EntryDocument:
        return select_entry(mode, raw, release_name=self.release_name, pattern=self.pattern)


def _read_text(path: Path) -> str:
    # newline="" keeps CRLF documents byte-for-byte
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def read_entry(path: Path) -> Result[EntryDocument, BuildError]:
    """Load the shared entry document."""
    try:
        text = _read_text(path)
    except FileNotFoundError:
        return Err(BuildError(kind="entry_missing", message=f"entry document not found: {path}"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(BuildError(kind="entry_unreadable", message=f"cannot read {path}: {e}"))
    return Ok(EntryDocument(name=path.stem, text=text))


def _holds_text(path: Path, text: str) -> bool:
    try:
        return path.is_file() and _read_text(path) == text
    except (OSError, UnicodeDecodeError):
        return False


def write_entry(entry: EntryDocument, directory: Path) -> Result[Path, BuildError]:
    """Materialise `entry` in `directory` and return its path.

    A file that already holds exactly this text is left untouched (the
    CHECK-mode entry is the shared document itself). Otherwise the file is
    replaced atomically.
    """
    target = directory / entry.filename
    if _holds_text(target, entry.text):
        return Ok(target)

    try:
        atomic_write_text(target, entry.text)
    except OSError as e:
        return Err(BuildError(kind="entry_unwritable", message=f"cannot write {target}: {e}"))
    return Ok(target)
