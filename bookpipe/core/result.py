"""Result type for explicit error handling.

Every fallible step of the pipeline (provisioning, building, publishing)
returns a Result instead of raising, so the orchestrator can decide what
to do with a failure in one place. Callers narrow with `isinstance` or a
`match` statement:

    match read_entry(path):
        case Ok(entry):
            console.info(entry.filename)
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

__all__ = ["Err", "Ok", "Result"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed step; `error` is a frozen dataclass with at least a `message`."""

    error: E

    def unwrap(self) -> None:
        raise ValueError(f"called unwrap on Err: {self.error}")

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
