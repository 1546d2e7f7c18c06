"""CLI entry point for mandelmovie.

Commands:
- mandelmovie init: Write a default mandelmovie.yaml
- mandelmovie plan: Show the frame plan without launching anything
- mandelmovie render: Render every frame with bounded concurrency
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from mandelmovie import __version__
from mandelmovie.cli_ui.tables import PlanRenderer, SummaryRenderer
from mandelmovie.core.config import (
    DEFAULT_CONFIG_NAME,
    DEFAULT_CONFIG_TEMPLATE,
    ConfigError,
    load_movie_config,
    resolve_renderer,
)
from mandelmovie.core.frames import plan_frame
from mandelmovie.core.models import MovieConfig
from mandelmovie.core.supervisor import FatalLaunchError, FrameSupervisor

console = Console()

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

# Option name -> MovieConfig field
_CONFIG_FIELDS = (
    "num_children",
    "frames",
    "xcenter",
    "ycenter",
    "start_scale",
    "zoom",
    "width",
    "height",
    "maxiter",
    "outprefix",
    "image_ext",
    "renderer",
)


def movie_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the movie configuration flags shared by plan and render.

    Every flag defaults to None so that unset flags fall through to the
    config file and then to built-in defaults.
    """
    options = [
        click.option(
            "--config", "-c", "config_path",
            type=click.Path(exists=True, dir_okay=False),
            help=f"YAML config file (default: ./{DEFAULT_CONFIG_NAME} if present)",
        ),
        click.option("-n", "--num-children", type=int, help="Number of child processes to run (required)"),
        click.option("-f", "--frames", type=int, help="Number of frames to make (default 50)"),
        click.option("-x", "--xcenter", type=float, help="X center (default 0)"),
        click.option("-y", "--ycenter", type=float, help="Y center (default 0)"),
        click.option(
            "-s", "--start-scale", type=float,
            help="Starting scale, the width in Mandelbrot coordinates (default 4)",
        ),
        click.option(
            "-z", "--zoom", type=float,
            help="Zoom multiplier per frame (default 0.97); scale = start_scale * zoom**frame",
        ),
        click.option("-W", "--width", type=int, help="Image width in pixels (default 1000)"),
        click.option("-H", "--height", type=int, help="Image height in pixels (default 1000)"),
        click.option("-m", "--maxiter", type=int, help="Max iterations (default 1000)"),
        click.option("-o", "--outprefix", help="Output prefix (default mandel)"),
        click.option("--ext", "image_ext", help="Output image extension (default jpg)"),
        click.option("--renderer", help="Single-frame renderer executable (default ./mandel)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, markup=False)],
        force=True,
    )


def _load_config_or_exit(config_path: str | None, options: dict[str, Any]) -> MovieConfig:
    overrides = {name: options.get(name) for name in _CONFIG_FIELDS}
    try:
        return load_movie_config(config_path, overrides)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        for err in e.errors:
            console.print(f"  [red]• {escape(err)}[/]")
        sys.exit(1)


def _show_plan(config: MovieConfig, renderer: str) -> None:
    plans = [plan_frame(config, i, renderer=renderer) for i in range(config.frames)]
    PlanRenderer(console).show(config, renderer, plans)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
def main() -> None:
    """mandelmovie - render a Mandelbrot zoom with bounded concurrency.

    Runs an external single-frame renderer once per frame, keeping at
    most NUM_CHILDREN renderers alive at a time.
    """
    pass


@main.command(context_settings=CONTEXT_SETTINGS)
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init(force: bool) -> None:
    """Write a default mandelmovie.yaml in the current directory."""
    config_path = Path.cwd() / DEFAULT_CONFIG_NAME

    if config_path.exists() and not force:
        console.print(f"[yellow]{DEFAULT_CONFIG_NAME} already exists (use --force to overwrite)[/yellow]")
        return

    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    console.print(
        Panel(
            f"[green]Created {escape(str(config_path))}[/green]\n\n"
            "Edit num_children and renderer, then run:\n"
            "  mandelmovie render",
            title="Config Initialized",
        )
    )


@main.command(context_settings=CONTEXT_SETTINGS)
@movie_options
def plan(config_path: str | None, **options: Any) -> None:
    """Show the frames that would be rendered, without launching anything.

    Example:
        mandelmovie plan -n 4 -f 10 --xcenter=-0.5
    """
    config = _load_config_or_exit(config_path, options)
    _show_plan(config, config.renderer)


@main.command(context_settings=CONTEXT_SETTINGS)
@movie_options
@click.option("--dry-run", is_flag=True, help="Show the frame plan without launching workers")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging and a row for every worker")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors")
def render(
    config_path: str | None,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
    **options: Any,
) -> None:
    """Render every frame, running at most NUM_CHILDREN renderers at once.

    Failed frames are reported but not retried. Exits non-zero only when
    no worker can be started at all.

    Example:
        mandelmovie render -n 5 -f 50 --xcenter=-0.5 -s 4 -z 0.97 -o mandel
    """
    _configure_logging(verbose, quiet)
    config = _load_config_or_exit(config_path, options)

    if dry_run:
        console.print("[yellow]Dry run - no workers will be launched[/yellow]\n")
        _show_plan(config, config.renderer)
        return

    try:
        renderer = resolve_renderer(config.renderer)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    supervisor = FrameSupervisor(config, renderer=renderer)
    try:
        summary = supervisor.run()
    except FatalLaunchError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    SummaryRenderer(console).show(summary, show_all=verbose)

    if summary.failed:
        console.print(
            Panel(
                f"[yellow]Finished with {len(summary.failed)} failed frame(s)[/yellow]",
                title="Status",
            )
        )
    else:
        console.print(Panel("[green]All frames rendered![/green]", title="Status"))


if __name__ == "__main__":
    main()
