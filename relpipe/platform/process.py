"""The single place relpipe starts child processes.

Usage:
    match run(["git", "describe", "--tags"], cwd=repo, timeout=60.0):
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(error.output)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from relpipe.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run or exited non-zero.

    Attributes:
        command: argv of the command.
        returncode: Exit status, -1 when the process never ran or timed out.
        output: stderr, or stdout when stderr was empty.
    """

    command: tuple[str, ...]
    returncode: int
    output: str

    def __str__(self) -> str:
        return f"{self.command[0]} exited with {self.returncode}: {self.output}"


def run(cmd: list[str], *, cwd: Path, timeout: float | None = None) -> Result[str, ProcessError]:
    """Run ``cmd`` and return its stdout (decoded as UTF-8, errors replaced)."""
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(ProcessError(argv, -1, f"timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(argv, -1, f"cannot run {argv[0]}: {e}"))

    if proc.returncode != 0:
        return Err(ProcessError(argv, proc.returncode, proc.stderr.strip() or proc.stdout.strip()))
    return Ok(proc.stdout)
