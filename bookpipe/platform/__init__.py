"""Platform abstraction layer."""

from .files import atomic_copy, atomic_write_text
from .process import ProcessError, ProcessOutput, run, run_logged

__all__ = [
    "atomic_copy",
    "atomic_write_text",
    "ProcessError",
    "ProcessOutput",
    "run",
    "run_logged",
]
