"""When to run what.

Maps a trigger (a push, a pull request, the daily timer, a manual request)
to a build mode, or to nothing when the change does not touch the
manuscript. The hosted CI decides *when* a run starts; this module decides
what the run does once started.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from bookpipe.core.config import TriggerConfig
from bookpipe.core.model import BuildMode
from bookpipe.core.result import Err, Ok, Result
from bookpipe.core.structured import as_str_dict, get_str, get_table

__all__ = [
    "PipelineState",
    "Trigger",
    "TriggerError",
    "TriggerEvent",
    "decide",
    "path_matches",
    "trigger_from_env",
]

RELEASE_ENV_VAR = "BOOKPIPE_RELEASE"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class TriggerEvent(Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    SCHEDULE = "schedule"
    MANUAL = "workflow_dispatch"


class PipelineState(Enum):
    """Run states: IDLE -> EVALUATING -> (CHECKING | BUILDING -> PUBLISHING) -> IDLE."""

    IDLE = "idle"
    EVALUATING = "evaluating"
    CHECKING = "checking"
    BUILDING = "building"
    PUBLISHING = "publishing"


@dataclass(frozen=True, slots=True)
class Trigger:
    """Why a run started.

    Attributes:
        event: Kind of trigger.
        branch: Target branch (base branch for pull requests).
        changed_paths: Files touched by the change; None when unknown.
        release_requested: Manual runs only: publish after building.
        base_revision: Commit to diff against to find changed paths.
    """

    event: TriggerEvent
    branch: str | None = None
    changed_paths: tuple[str, ...] | None = None
    release_requested: bool = False
    base_revision: str | None = None


@dataclass(frozen=True, slots=True)
class TriggerError:
    message: str
    hint: str | None = None


@lru_cache(maxsize=64)
def _glob_re(pattern: str) -> re.Pattern[str]:
    # Path-filter globs: `*` and `?` stay within one path segment, `**` spans segments.
    out: list[str] = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if pattern.startswith("**", i):
            i += 2
            if i < len(pattern) and pattern[i] == "/":
                out.append("(?:.*/)?")
                i += 1
            else:
                out.append(".*")
            continue
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


def path_matches(path: str, patterns: Iterable[str]) -> bool:
    normalized = path.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return any(_glob_re(p).match(normalized) for p in patterns)


def decide(trigger: Trigger, config: TriggerConfig) -> BuildMode | None:
    """Build mode for `trigger`, or None if the run has nothing to do."""
    match trigger.event:
        case TriggerEvent.SCHEDULE:
            return BuildMode.RELEASE
        case TriggerEvent.MANUAL:
            return BuildMode.RELEASE if trigger.release_requested else BuildMode.CHECK
        case TriggerEvent.PUSH | TriggerEvent.PULL_REQUEST:
            if trigger.branch is not None and trigger.branch not in config.branches:
                return None
            # Unknown change set: compile rather than risk skipping a broken change.
            if trigger.changed_paths is None:
                return BuildMode.CHECK
            if any(path_matches(p, config.paths) for p in trigger.changed_paths):
                return BuildMode.CHECK
            return None
    return None


def _read_event_payload(path: str | None) -> Mapping[str, object]:
    if not path:
        return {}
    try:
        obj: object = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return as_str_dict(obj) or {}


def trigger_from_env(environ: Mapping[str, str]) -> Result[Trigger, TriggerError]:
    """Build a Trigger from the hosted-CI environment.

    Reads GITHUB_EVENT_NAME, GITHUB_REF_NAME / GITHUB_BASE_REF, the event
    payload at GITHUB_EVENT_PATH (push `before`, pull request base sha,
    manual `inputs.release`), and BOOKPIPE_RELEASE as an override for
    manual runs.
    """
    name = environ.get("GITHUB_EVENT_NAME", "").strip()
    if not name:
        return Err(
            TriggerError(
                message="GITHUB_EVENT_NAME is not set",
                hint="Run `bookpipe check` or `bookpipe release` outside CI",
            )
        )

    try:
        event = TriggerEvent(name)
    except ValueError:
        return Err(TriggerError(message=f"unsupported trigger event: {name}"))

    payload = _read_event_payload(environ.get("GITHUB_EVENT_PATH"))

    branch: str | None
    base_revision: str | None = None
    if event is TriggerEvent.PULL_REQUEST:
        branch = environ.get("GITHUB_BASE_REF") or None
        pr = get_table(payload, "pull_request") or {}
        base_revision = get_str(get_table(pr, "base") or {}, "sha")
    else:
        branch = environ.get("GITHUB_REF_NAME") or None
        if event is TriggerEvent.PUSH:
            before = get_str(payload, "before")
            # A new branch reports an all-zero `before`.
            if before and before.strip("0"):
                base_revision = before

    release_requested = False
    if event is TriggerEvent.MANUAL:
        inputs = get_table(payload, "inputs") or {}
        raw = environ.get(RELEASE_ENV_VAR) or _input_text(inputs.get("release"))
        release_requested = raw.strip().lower() in _TRUTHY

    return Ok(
        Trigger(
            event=event,
            branch=branch,
            release_requested=release_requested,
            base_revision=base_revision,
        )
    )


def _input_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return ""
