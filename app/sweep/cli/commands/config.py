"""Settings file commands.

Provides commands to show the effective settings and to write a
default settings file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer
from rich.syntax import Syntax

from sweep.core.config import SweepConfig, load_settings, save_settings
from sweep.core.paths import get_settings_path
from sweep.errors import ConfigurationError
from sweep.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the sweep settings file.",
    no_args_is_help=True,
)

SettingsOption = Annotated[
    Path | None,
    typer.Option(
        "--file",
        help="Settings file (default: ~/.config/sweep/config.toml).",
    ),
]


@app.command()
def show(settings_file: SettingsOption = None) -> None:
    """Print the effective settings as TOML."""
    path = settings_file or get_settings_path()
    try:
        config = load_settings(path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from e

    source = str(path) if path.exists() else "defaults (no settings file)"
    print_info(f"Settings from {source}")
    console.print(Syntax(tomli_w.dumps(config.model_dump(exclude_none=True)), "toml"))


@app.command()
def init(
    settings_file: SettingsOption = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing settings file.",
        ),
    ] = False,
) -> None:
    """Write a settings file with the default values."""
    path = settings_file or get_settings_path()
    if path.exists() and not force:
        print_error(f"Settings file already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        written = save_settings(SweepConfig(), path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Settings written to {written}")
