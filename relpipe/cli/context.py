from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relpipe.core.config import Config, load_config
from relpipe.core.result import Err
from relpipe.output.console import ConsoleProtocol, RichConsole
from relpipe.output.errors import print_config_error


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    project_dir: Path
    dist_dir: Path


def _under(base: Path, path: Path) -> Path:
    path = path.expanduser()
    return path if path.is_absolute() else base / path


def build_context(
    *, config_path: Path, project_dir: Path, dist_dir: Path, quiet: bool = False
) -> CLIContext:
    """Load the config relative to ``project_dir``; ``quiet`` keeps only errors."""
    console = RichConsole(quiet=quiet)
    root = project_dir.expanduser().resolve()

    config_result = load_config(_under(root, config_path))
    if isinstance(config_result, Err):
        raise typer.Exit(code=print_config_error(config_result.error, console))

    return CLIContext(
        config=config_result.value,
        console=console,
        project_dir=root,
        dist_dir=_under(root, dist_dir),
    )
