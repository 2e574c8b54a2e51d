"""sweep command line application.

``sweep scan`` lists cleanup candidates, ``sweep clean`` selects and
deletes them, and ``sweep config`` manages the settings file.
"""

from typing import Annotated

import typer

from sweep import __version__
from sweep.cli.commands import clean, config, scan
from sweep.utils.log import setup_logging

app = typer.Typer(
    name="sweep",
    help="Find and safely delete large files and build artifacts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
app.command(name="scan")(scan.scan)
app.command(name="clean")(clean.clean)
app.add_typer(config.app, name="config")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"sweep version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log scanner and plugin activity."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only report errors."),
    ] = False,
    _version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_show_version,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """sweep - Find and safely delete large files and build artifacts.

    Every candidate gets a risk tier. Secrets, git-tracked files and
    files in unreadable repositories are Critical and cannot be selected.
    """
    if verbose and quiet:
        raise typer.BadParameter("--verbose and --quiet are mutually exclusive")
    setup_logging(verbose=verbose, quiet=quiet)


if __name__ == "__main__":
    app()
