from __future__ import annotations

import typer

from relpipe import __version__
from relpipe.cli.commands.all_cmd import all_
from relpipe.cli.commands.archive import archive
from relpipe.cli.commands.release import release

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(archive)
app.command()(release)
app.command("all")(all_)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Package, checksum and publish multi-platform releases."""


def main() -> None:
    app()
