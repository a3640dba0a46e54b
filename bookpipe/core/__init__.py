"""Core domain types and logic."""

from .config import Config, ConfigError, load_config, load_config_or_default
from .errors import ErrorCode
from .model import BuildMode, BuildResult, BuildStatus, EntryDocument, PublishOutcome, ReleaseArtifact
from .project import Project, ProjectError, detect_project
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    # model
    "BuildMode",
    "BuildResult",
    "BuildStatus",
    "EntryDocument",
    "PublishOutcome",
    "ReleaseArtifact",
    # project
    "Project",
    "ProjectError",
    "detect_project",
    # result
    "Err",
    "Ok",
    "Result",
]
