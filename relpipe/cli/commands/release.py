from __future__ import annotations

from pathlib import Path

import typer

from relpipe.cli.commands._helpers import (
    DEFAULT_RELEASE_PATHS,
    exit_on_error,
    path_patterns,
    run_cancellable,
)
from relpipe.cli.context import CLIContext, build_context
from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Result
from relpipe.services.release import ReleaseOptions, Releaser
from relpipe.workers import Workforce


def run_release(
    cli: CLIContext,
    workforce: Workforce,
    ctx: Context,
    *,
    tag: str,
    commitish: str,
    paths: tuple[str, ...],
    dry_run: bool,
) -> Result[None, PipelineError]:
    cli.console.header(f"release {cli.config.project} {tag}" + (" (dry run)" if dry_run else ""))
    releaser = Releaser(
        config=cli.config,
        options=ReleaseOptions(
            dist_dir=cli.dist_dir,
            project_dir=cli.project_dir,
            tag=tag,
            commitish=commitish,
            paths=paths,
            dry_run=dry_run,
        ),
        workforce=workforce,
        console=cli.console,
    )
    return releaser.release(ctx)


def release(
    tag: str = typer.Option(..., "--tag", help="Release tag (e.g. v1.2.0)"),
    commitish: str = typer.Option(
        "", "--commitish", help="Commit, branch or sha the tag is created from"
    ),
    config: Path = typer.Option(Path("relpipe.toml"), "--config", help="Config file"),
    dist: Path = typer.Option(Path("dist"), "--dist", help="Dist directory"),
    project_dir: Path = typer.Option(Path("."), "--project-dir", help="Project root"),
    paths: list[str] = typer.Option(
        [], "--paths", help="Release path patterns (default: releases/**)"
    ),
    workers: int = typer.Option(0, "--workers", help="Parallel tasks (0 = number of CPUs)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors"),
    dry_run: bool = typer.Option(
        False, "--try", help="Write checksums and notes but do not contact the provider"
    ),
) -> None:
    """Create releases and upload archives, checksums and notes."""
    cli = build_context(config_path=config, project_dir=project_dir, dist_dir=dist, quiet=quiet)
    patterns = path_patterns(paths, DEFAULT_RELEASE_PATHS)
    with Workforce(num_workers=workers) as workforce:
        result = run_cancellable(
            lambda ctx: run_release(
                cli,
                workforce,
                ctx,
                tag=tag,
                commitish=commitish,
                paths=patterns,
                dry_run=dry_run,
            )
        )
    exit_on_error(result, cli.console)
