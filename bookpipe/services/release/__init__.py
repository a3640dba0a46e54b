"""Release publication: channels and the publisher."""

from .errors import PublishError
from .gh import GhReleaseChannel
from .publisher import (
    ArtifactPublisher,
    DirectoryReleaseChannel,
    ReleaseChannel,
    RemoteBranchRevisions,
    RevisionSource,
)

__all__ = [
    "ArtifactPublisher",
    "DirectoryReleaseChannel",
    "GhReleaseChannel",
    "PublishError",
    "ReleaseChannel",
    "RemoteBranchRevisions",
    "RevisionSource",
]
