"""Terminal rendering for frame plans and run summaries."""

from mandelmovie.cli_ui.tables import PlanRenderer, SummaryRenderer

__all__ = [
    "PlanRenderer",
    "SummaryRenderer",
]
