"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import typer

from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Result
from relpipe.output.console import ConsoleProtocol
from relpipe.output.errors import pipeline_error_exit_code, print_pipeline_error

DEFAULT_BUILD_PATHS = ("builds/**",)
DEFAULT_RELEASE_PATHS = ("releases/**",)


def path_patterns(paths: Sequence[str] | None, default: tuple[str, ...]) -> tuple[str, ...]:
    """Normalize repeated/comma separated --paths values."""
    out = tuple(p.strip() for value in paths or () for p in value.split(",") if p.strip())
    return out or default


def run_cancellable(
    step: Callable[[Context], Result[None, PipelineError]],
) -> Result[None, PipelineError]:
    """Run a pipeline step, cancelling its tasks on Ctrl-C."""
    ctx = Context()
    try:
        return step(ctx)
    except KeyboardInterrupt:
        ctx.cancel("interrupted")
        return Err(PipelineError(kind="cancelled", message="interrupted"))


def exit_on_error(result: Result[None, PipelineError], console: ConsoleProtocol) -> None:
    """Print the error and exit with its mapped code if result is Err."""
    if isinstance(result, Err):
        print_pipeline_error(result.error, console)
        raise typer.Exit(code=pipeline_error_exit_code(result.error))
