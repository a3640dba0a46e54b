from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "gh_missing",
    "gh_auth_required",
    "artifact_missing",
    "release_query_failed",
    "release_create_failed",
    "upload_failed",
    "replace_failed",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    kind: PublishErrorKind
    message: str
    hint: str | None = None
