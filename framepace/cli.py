"""CLI entry point for the frame pacing analyzer."""

import json
import logging
import math
import os
import typer
from typing import Optional
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler
from framepace.analyzer import analyze_trace_file
from framepace.apps import format_file_name_to_app_name
from framepace.errors import ParseError
from framepace.series import build_chart_series
from framepace.summary import run_summary

LOG_LEVEL_ENV = "FRAMEPACE_LOG_LEVEL"

app = typer.Typer(
    help="Frame pacing analyzer - FPS and jank metrics from device frame-timing traces",
    no_args_is_help=True
)
console = Console()


def configure_logging(level: str | None) -> None:
    level_name = (level or os.getenv(LOG_LEVEL_ENV) or "WARNING").upper()
    logging.basicConfig(
        level=level_name,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help=f"Logging level (defaults to ${LOG_LEVEL_ENV} or WARNING)"
    )
):
    """Frame pacing analyzer - FPS and jank metrics from device frame-timing traces."""
    configure_logging(log_level)


def _check_file(path: Path, label: str) -> None:
    if not path.exists():
        console.print(f"[red]Error:[/red] {label} not found: {path}")
        raise typer.Exit(code=1)
    if not path.is_file():
        console.print(f"[red]Error:[/red] Path is not a file: {path}")
        raise typer.Exit(code=1)


def _nan_to_none(value):
    """Replace NaN floats with None so the written JSON stays strict."""
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {key: _nan_to_none(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_nan_to_none(item) for item in value]
    return value


@app.command()
def analyze(
    trace: Path = typer.Option(..., "--trace", help="Path to frame-timing trace file"),
    out: Path = typer.Option("analysis.json", "--out", help="Output JSON file path"),
    app_name: Optional[str] = typer.Option(None, "--app-name", help="Override the app name found in the trace"),
    app_name_from_file: bool = typer.Option(False, "--app-name-from-file", help="Derive the app name from the trace file name when --app-name is not given"),
    upload_index: int = typer.Option(0, "--upload-index", min=0, help="Zero-based upload index used to label the result"),
    charts: bool = typer.Option(False, "--charts", help="Include per-frame chart series in the output"),
    chart_interval_ms: float = typer.Option(0.0, "--chart-interval-ms", help="Average chart series over this interval (0 keeps every frame)"),
    summary: bool = typer.Option(False, "--summary", help="Write a Markdown summary"),
    summary_out: Path = typer.Option("summary.md", "--summary-out", help="Markdown summary output path"),
):
    """Analyze a frame-timing trace and write analysis.json."""
    _check_file(trace, "Trace file")

    if not app_name and app_name_from_file:
        app_name = format_file_name_to_app_name(trace.name)

    console.print(f"[blue]Analyzing trace:[/blue] {trace}")
    console.print(f"[blue]Output file:[/blue] {out}")
    if app_name:
        console.print(f"[blue]App name override:[/blue] {app_name}")

    try:
        result = analyze_trace_file(trace, user_app_name=app_name, upload_index=upload_index)
    except (ParseError, OSError) as e:
        console.print(f"[red]Error during analysis:[/red] {e}")
        raise typer.Exit(code=1)

    if charts:
        result["charts"] = build_chart_series(result, chart_interval_ms)

    # NaN placeholders are written as null
    with open(out, "w") as f:
        json.dump(_nan_to_none(result), f, indent=2)

    console.print(
        f"[green]✓[/green] Analysis complete: {out} "
        f"({result['app_name']}, avg {result['avg_fps']} FPS, "
        f"{result['performance_rating']} / {result['choppiness_rating']})"
    )

    if summary:
        _write_summary(result, None, summary_out)


def _write_summary(result: dict, baseline: dict | None, out: Path) -> None:
    summary_input, markdown = run_summary(result, baseline)
    json_out = out.with_suffix(".json")

    with open(json_out, "w") as f:
        json.dump(summary_input, f, indent=2)
    with open(out, "w") as f:
        f.write(markdown)

    console.print(f"[green]✓[/green] Summary written to: {out}")
    console.print(f"[green]✓[/green] Summary JSON written to: {json_out}")


@app.command()
def summarize(
    analysis: Path = typer.Option(..., "--analysis", help="Path to analysis JSON"),
    baseline: Optional[Path] = typer.Option(None, "--baseline", help="Optional baseline analysis JSON"),
    out: Path = typer.Option("summary.md", "--out", help="Output Markdown file path")
):
    """Generate a Markdown summary from analysis JSON."""
    for path in [analysis, baseline]:
        if path is None:
            continue
        _check_file(path, "Analysis file")

    with open(analysis, "r") as f:
        analysis_data = json.load(f)
    baseline_data = None
    if baseline is not None:
        with open(baseline, "r") as f:
            baseline_data = json.load(f)

    _write_summary(analysis_data, baseline_data, out)


if __name__ == "__main__":
    app()
