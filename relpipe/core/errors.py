"""Error payloads and exit codes.

``PipelineError`` is the single error value carried inside ``Err`` by every
pipeline step. ``ErrorCode`` maps error kinds to stable process exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "ErrorKind", "PipelineError", "exit_code_for"]

ErrorKind = Literal[
    "binary_missing",
    "no_archives",
    "no_releases",
    "invalid_config",
    "io_failed",
    "git_failed",
    "release_failed",
    "upload_failed",
    "cancelled",
]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad flags, invalid config, nothing matched)
    - 2: Environment error (git missing or failing)
    - 4: Network error (release creation or upload failed)
    - 5: I/O error (missing binary, unreadable or unwritable file)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


@dataclass(frozen=True, slots=True)
class PipelineError:
    """Canonical pipeline error payload.

    Attributes:
        kind: Error class, used for exit code mapping.
        message: Human readable message naming the failing path or target.
        hint: Optional extra context (underlying OS or HTTP error).
        transient: True when retrying the same operation may succeed.
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    transient: bool = False

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    def __str__(self) -> str:
        return self.pretty()


def exit_code_for(error: PipelineError) -> ErrorCode:
    """Get the exit code for an error kind."""
    match error.kind:
        case "invalid_config" | "no_archives" | "no_releases" | "cancelled":
            return ErrorCode.USER_ERROR
        case "git_failed":
            return ErrorCode.ENV_ERROR
        case "release_failed" | "upload_failed":
            return ErrorCode.NETWORK_ERROR
        case "binary_missing" | "io_failed":
            return ErrorCode.IO_ERROR
    return ErrorCode.USER_ERROR
