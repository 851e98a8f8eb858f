"""Result type for explicit error handling.

Every fallible pipeline step returns either ``Ok(value)`` or ``Err(error)``
instead of raising, so worker tasks can hand their outcome back to the
runner as a plain value.

Usage:
    def find_binary(path: Path) -> Result[Path, PipelineError]:
        if not path.exists():
            return Err(PipelineError(kind="binary_missing", message=str(path)))
        return Ok(path)

    match find_binary(path):
        case Ok(found):
            print(f"archiving {found}")
        case Err(error):
            print(error.pretty())
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
