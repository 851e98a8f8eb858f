from __future__ import annotations

from pathlib import Path

import typer

from relpipe.cli.commands._helpers import (
    DEFAULT_BUILD_PATHS,
    DEFAULT_RELEASE_PATHS,
    exit_on_error,
    path_patterns,
    run_cancellable,
)
from relpipe.cli.commands.archive import run_archive
from relpipe.cli.commands.release import run_release
from relpipe.cli.context import build_context
from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Result
from relpipe.workers import Workforce


def all_(
    tag: str = typer.Option(..., "--tag", help="Release tag (e.g. v1.2.0)"),
    commitish: str = typer.Option(
        "", "--commitish", help="Commit, branch or sha the tag is created from"
    ),
    config: Path = typer.Option(Path("relpipe.toml"), "--config", help="Config file"),
    dist: Path = typer.Option(Path("dist"), "--dist", help="Dist directory"),
    project_dir: Path = typer.Option(Path("."), "--project-dir", help="Project root"),
    build_paths: list[str] = typer.Option(
        [], "--build-paths", help="Build path patterns to archive (default: builds/**)"
    ),
    paths: list[str] = typer.Option(
        [], "--paths", help="Release path patterns (default: releases/**)"
    ),
    workers: int = typer.Option(0, "--workers", help="Parallel tasks (0 = number of CPUs)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors"),
    dry_run: bool = typer.Option(
        False, "--try", help="Write checksums and notes but do not contact the provider"
    ),
) -> None:
    """Run archive then release with one shared worker pool."""
    cli = build_context(config_path=config, project_dir=project_dir, dist_dir=dist, quiet=quiet)
    build_patterns = path_patterns(build_paths, DEFAULT_BUILD_PATHS)
    release_patterns = path_patterns(paths, DEFAULT_RELEASE_PATHS)

    def pipeline(ctx: Context) -> Result[None, PipelineError]:
        archived = run_archive(cli, workforce, ctx, tag=tag, paths=build_patterns)
        if isinstance(archived, Err):
            return archived
        return run_release(
            cli,
            workforce,
            ctx,
            tag=tag,
            commitish=commitish,
            paths=release_patterns,
            dry_run=dry_run,
        )

    with Workforce(num_workers=workers) as workforce:
        result = run_cancellable(pipeline)
    exit_on_error(result, cli.console)
