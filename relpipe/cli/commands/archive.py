from __future__ import annotations

from pathlib import Path

import typer

from relpipe.cli.commands._helpers import (
    DEFAULT_BUILD_PATHS,
    exit_on_error,
    path_patterns,
    run_cancellable,
)
from relpipe.cli.context import CLIContext, build_context
from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Result
from relpipe.services.archive import ArchiveOptions, Archivist
from relpipe.workers import Workforce


def run_archive(
    cli: CLIContext,
    workforce: Workforce,
    ctx: Context,
    *,
    tag: str,
    paths: tuple[str, ...],
) -> Result[None, PipelineError]:
    cli.console.header(f"archive {cli.config.project} {tag}")
    archivist = Archivist(
        config=cli.config,
        options=ArchiveOptions(
            dist_dir=cli.dist_dir,
            project_dir=cli.project_dir,
            tag=tag,
            paths=paths,
        ),
        workforce=workforce,
        console=cli.console,
    )
    return archivist.archive(ctx)


def archive(
    tag: str = typer.Option(..., "--tag", help="Release tag (e.g. v1.2.0)"),
    config: Path = typer.Option(Path("relpipe.toml"), "--config", help="Config file"),
    dist: Path = typer.Option(Path("dist"), "--dist", help="Dist directory"),
    project_dir: Path = typer.Option(Path("."), "--project-dir", help="Project root"),
    paths: list[str] = typer.Option(
        [], "--paths", help="Build path patterns to archive (default: builds/**)"
    ),
    workers: int = typer.Option(0, "--workers", help="Parallel tasks (0 = number of CPUs)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors"),
) -> None:
    """Package built binaries into archives."""
    cli = build_context(config_path=config, project_dir=project_dir, dist_dir=dist, quiet=quiet)
    patterns = path_patterns(paths, DEFAULT_BUILD_PATHS)
    with Workforce(num_workers=workers) as workforce:
        result = run_cancellable(
            lambda ctx: run_archive(cli, workforce, ctx, tag=tag, paths=patterns)
        )
    exit_on_error(result, cli.console)
