"""Exit codes for the pipeline.

The numeric values are the process exit status of every `bookpipe`
command and should remain stable, since CI jobs key off them:
- 0: every step required by the mode succeeded
- 1: user error (bad arguments, invalid config)
- 2: provision error (typesetting engine or renderer missing)
- 3: build error (engine failed or produced no PDF)
- 4: publish error (release upload failed)
- 5: I/O error (entry document unreadable, output not writable)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    PROVISION_ERROR = 2
    BUILD_ERROR = 3
    PUBLISH_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
