"""Error presentation for the CLI.

An error prints as one ``error:`` line naming the failing target, followed by
a ``hint:`` line with the underlying OS, git or HTTP error when there is one.
"""

from __future__ import annotations

from relpipe.core.config import ConfigError
from relpipe.core.errors import ErrorCode, PipelineError, exit_code_for
from relpipe.output.console import ConsoleProtocol

__all__ = ["print_pipeline_error", "pipeline_error_exit_code", "print_config_error"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.hint(error.hint)


def pipeline_error_exit_code(error: PipelineError) -> int:
    return int(exit_code_for(error))


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> int:
    """Print a config load failure and return the exit code for it."""
    console.error(error.pretty())
    return int(ErrorCode.USER_ERROR)
