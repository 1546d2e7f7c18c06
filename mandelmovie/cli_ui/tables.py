"""Rich tables for frame plans and run summaries.

All user-controlled strings (output prefix, renderer path) are escaped to
prevent Rich markup injection.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mandelmovie.core.frames import FramePlan, format_float
from mandelmovie.core.models import MovieConfig, OutcomeKind, ReapRecord, RunSummary


class PlanRenderer:
    """Render the per-frame launch plan without starting anything."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def render_config(self, config: MovieConfig, renderer: str) -> Table:
        table = Table(title="Movie", show_header=False, box=None)
        table.add_column("Setting", style="dim")
        table.add_column("Value", style="bold")

        table.add_row("Workers", str(config.num_children))
        table.add_row("Frames", str(config.frames))
        table.add_row("Center", f"({config.xcenter:g}, {config.ycenter:g})")
        table.add_row("Start scale", f"{config.start_scale:g}")
        table.add_row("Zoom", f"{config.zoom:g}")
        table.add_row("Size", f"{config.width}x{config.height}")
        table.add_row("Max iterations", str(config.maxiter))
        table.add_row("Output", escape(f"{config.outprefix}<frame>.{config.image_ext}"))
        table.add_row("Renderer", escape(renderer))
        return table

    def render_frames(self, plans: list[FramePlan]) -> Table:
        table = Table(title="Frame Plan")
        table.add_column("Frame", justify="right", style="cyan")
        table.add_column("Scale", justify="right")
        table.add_column("Output", style="green")

        for plan in plans:
            table.add_row(str(plan.index), format_float(plan.scale), escape(plan.output_name))
        return table

    def show(self, config: MovieConfig, renderer: str, plans: list[FramePlan]) -> None:
        self.console.print(Panel(self.render_config(config, renderer)))
        self.console.print(self.render_frames(plans))
        if plans:
            self.console.print("\n[bold]First worker command:[/bold]")
            self.console.print(f"  {escape(' '.join(plans[0].argv))}")


def _outcome_text(record: ReapRecord) -> str:
    outcome = record.outcome
    if outcome.ok:
        return "[green]✓ exit 0[/]"
    if outcome.kind == OutcomeKind.EXITED:
        return f"[red]✗ exit {outcome.code}[/]"
    if outcome.kind == OutcomeKind.SIGNALED:
        return f"[red]✗ signal {outcome.code}[/]"
    return "[yellow]? unknown[/]"


class SummaryRenderer:
    """Render the result of a supervisor run."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def render_stats(self, summary: RunSummary) -> Table:
        table = Table(title="Summary", show_header=False, box=None)
        table.add_column("Metric", style="dim")
        table.add_column("Value", style="bold")

        table.add_row("Frames launched", f"{summary.launched}/{summary.frames}")
        table.add_row("Succeeded", str(summary.succeeded))
        table.add_row("Failed", str(len(summary.failed)))
        table.add_row("Peak concurrency", f"{summary.peak_running}/{summary.num_children}")
        table.add_row("Launch retries", str(summary.launch_failures))
        if summary.resyncs:
            table.add_row("Running-count resyncs", f"[yellow]{summary.resyncs}[/]")
        return table

    def render_workers(self, records: list[ReapRecord], title: str = "Workers") -> Table:
        table = Table(title=title)
        table.add_column("Frame", justify="right", style="cyan")
        table.add_column("PID", justify="right", style="dim")
        table.add_column("Output")
        table.add_column("Result", justify="center")
        table.add_column("Time", justify="right")

        ordered = sorted(
            records,
            key=lambda r: (r.frame_index is None, r.frame_index if r.frame_index is not None else 0),
        )
        for record in ordered:
            frame = str(record.frame_index) if record.frame_index is not None else "-"
            output = escape(record.handle.output_name) if record.handle else "[dim]untracked[/]"
            table.add_row(
                frame,
                str(record.pid),
                output,
                _outcome_text(record),
                f"{record.duration_seconds:.1f}s",
            )
        return table

    def show(self, summary: RunSummary, show_all: bool = False) -> None:
        self.console.print(Panel(self.render_stats(summary)))
        if show_all:
            self.console.print(self.render_workers(summary.reaped))
        elif summary.failed:
            self.console.print(self.render_workers(summary.failed, title="Failed Frames"))
        else:
            self.console.print("[dim]No failed frames[/dim]")
