"""Offline summary utilities."""

from framepace.summary.report import (
    build_summary_input,
    compute_deltas,
    render_markdown,
    run_summary
)

__all__ = [
    "build_summary_input",
    "compute_deltas",
    "render_markdown",
    "run_summary"
]
