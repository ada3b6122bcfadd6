"""Main CLI application for uepm."""

import logging
from pathlib import Path
from typing import Annotated, cast, get_args

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from uepm import __version__
from uepm.config.parser import SETTINGS_FILE, ConfigError
from uepm.config.schemas import LinkMode
from uepm.core.project import Project
from uepm.core.reconciler import SyncResult

# Create the main Typer app
app = typer.Typer(
    name="uepm",
    help="Expose Unreal Engine plugins installed from npm packages",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the uepm package
logger = logging.getLogger("uepm")

LINK_MODES: tuple[str, ...] = get_args(LinkMode)


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2=DEBUG, 3+=DEBUG with source locations
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]\u2713[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]\u26a0[/yellow] {message}")


def get_project(path: Path | None = None) -> Project:
    """Get the current project, raising an error if not found."""
    try:
        return Project.load(path)
    except FileNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1) from e
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e


def parse_mode(mode: str | None) -> LinkMode | None:
    """Validate a --mode option value."""
    if mode is None:
        return None
    if mode not in LINK_MODES:
        print_error(f"Unknown link mode: {mode}")
        print_error(f"Available modes: {', '.join(LINK_MODES)}")
        raise typer.Exit(1)
    return cast(LinkMode, mode)


def report_result(result: SyncResult, verb: str) -> None:
    """Print the outcome of a sync or clean run."""
    for warning in result.warnings:
        print_warning(warning)

    if not result.ok:
        print_error(result.error or "Link sync failed")
        raise typer.Exit(1)

    for record in result.linked:
        print_success(f"Linked {record.plugin_name} ({record.package_name})")
    for record in result.removed:
        print_success(f"Removed {record.plugin_name} ({record.package_name})")

    if not result.linked and not result.removed:
        console.print(f"Nothing to {verb}")


PathOption = Annotated[
    Path | None,
    typer.Option(
        "--path",
        "-p",
        help="Project directory",
    ),
]

DestOption = Annotated[
    Path | None,
    typer.Option(
        "--dest",
        "-d",
        help="Plugins directory (overrides uepm.yaml)",
    ),
]


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug, -vvv trace)",
        ),
    ] = 0,
) -> None:
    """uepm - link Unreal plugins from npm packages into a project."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the uepm version."""
    console.print(f"uepm {__version__}")


@app.command()
def init(
    mode: Annotated[
        str,
        typer.Option(
            "--mode",
            "-m",
            help="Default link mode (auto or copy)",
        ),
    ] = "auto",
    plugins_dir: Annotated[
        str | None,
        typer.Option(
            "--plugins-dir",
            help="Plugins directory override, relative to the project",
        ),
    ] = None,
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Project directory (defaults to current directory)",
        ),
    ] = None,
) -> None:
    """Initialize uepm settings for a project.

    Creates a uepm.yaml file in the specified directory.
    """
    path = Path.cwd() if path is None else path.resolve()

    if not path.exists():
        print_error(f"Directory does not exist: {path}")
        raise typer.Exit(1)

    if (path / SETTINGS_FILE).exists():
        print_error(f"Project already initialized in {path}")
        print_error(f"To reinitialize, delete {SETTINGS_FILE} first")
        raise typer.Exit(1)

    link_mode = parse_mode(mode) or "auto"

    try:
        project = Project.init(path, link_mode, plugins_dir)
    except OSError as e:
        print_error(f"Failed to initialize project: {e}")
        raise typer.Exit(1) from e

    print_success(f"Initialized uepm project ({link_mode} links)")
    console.print(f"  Created: {path / SETTINGS_FILE}")
    if project.uproject_path is None:
        print_warning("No .uproject file found; plugin links will still be managed")


@app.command()
def sync(
    mode: Annotated[
        str | None,
        typer.Option(
            "--mode",
            "-m",
            help="Link mode for this run (auto or copy, overrides uepm.yaml)",
        ),
    ] = None,
    dest: DestOption = None,
    path: PathOption = None,
) -> None:
    """Link the plugins provided by installed packages.

    Creates a link in the plugins directory for every plugin found in
    node_modules and removes links whose package is gone. Paths that uepm
    did not create are never touched.
    """
    project = get_project(path)
    link_mode = parse_mode(mode)

    console.print(f"Syncing plugin links in {dest or project.plugins_dir}...")
    result = project.sync_links(mode=link_mode, destination=dest)
    report_result(result, "link")


@app.command()
def clean(
    dest: DestOption = None,
    path: PathOption = None,
) -> None:
    """Remove every plugin link created by uepm."""
    project = get_project(path)
    result = project.reconciler(destination=dest).clean()
    report_result(result, "remove")


@app.command("list")
def list_plugins(
    dest: DestOption = None,
    path: PathOption = None,
) -> None:
    """List plugins provided by installed packages."""
    project = get_project(path)
    statuses = project.list_plugins(destination=dest)

    if not statuses:
        console.print("No plugins found in installed packages")
        return

    table = Table(title="Available Plugins")
    table.add_column("Plugin", style="cyan")
    table.add_column("Package", style="green")
    table.add_column("Status")
    table.add_column("Source", style="dim")

    for status in statuses:
        if status.linked:
            state = "[green]linked[/green]"
        elif status.managed:
            state = "[yellow]missing[/yellow]"
        else:
            state = "[dim]not linked[/dim]"
        table.add_row(
            status.record.plugin_name,
            status.record.package_name,
            state,
            status.record.target_dir,
        )

    console.print(table)


if __name__ == "__main__":
    app()
