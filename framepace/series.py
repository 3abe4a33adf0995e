"""Chart-ready series built from the per-frame arrays of a result."""

import math
from typing import Sequence


def frame_timeline_points(frame_times_ms: Sequence[float], values: Sequence[float]) -> list[dict]:
    """
    Pair per-frame values with elapsed time.

    x is the cumulative frame time (ms) at the end of each frame; frames whose
    time or value is nan are skipped and do not advance the clock.
    """
    points = []
    elapsed_ms = 0.0
    for frame_time, value in zip(frame_times_ms, values):
        if math.isnan(frame_time) or math.isnan(value):
            continue
        elapsed_ms += frame_time
        points.append({"x": round(elapsed_ms, 2), "y": value})
    return points


def aggregate_data_by_time(points: list[dict], interval_ms: float) -> list[dict]:
    """Average points into fixed time buckets keyed by bucket start, sorted by x."""
    if interval_ms <= 0:
        return points

    buckets: dict[float, list[float]] = {}
    for point in points:
        x = point.get("x")
        y = point.get("y")
        if x is None or y is None or math.isnan(x) or math.isnan(y):
            continue
        bucket_start = math.floor(x / interval_ms) * interval_ms
        buckets.setdefault(bucket_start, []).append(y)

    return [
        {"x": bucket_start, "y": sum(values) / len(values)}
        for bucket_start, values in sorted(buckets.items())
    ]


def build_chart_series(result: dict, interval_ms: float = 0) -> dict:
    """Time series for the four per-frame arrays of a flat result."""
    frame_times = result.get("per_frame_actual_frame_times_ms") or []
    series_keys = {
        "frame_time_ms": "per_frame_actual_frame_times_ms",
        "instantaneous_fps": "per_frame_instantaneous_fps",
        "slow_frame_excess_ms": "per_frame_slow_frame_excess",
        "instability_ms": "per_frame_instability"
    }
    charts = {"interval_ms": interval_ms}
    for name, key in series_keys.items():
        points = frame_timeline_points(frame_times, result.get(key) or [])
        charts[name] = aggregate_data_by_time(points, interval_ms)
    return charts


def calculate_memory_gb(mem_total: str | None) -> str | None:
    """Convert a ``MemTotal`` string such as ``"7801232 kB"`` to GB with one decimal."""
    if not mem_total:
        return None
    try:
        mem_kb = float(str(mem_total).replace(" kB", "").strip())
    except ValueError:
        return None
    if math.isnan(mem_kb):
        return None
    return f"{mem_kb / (1024 * 1024):.1f}"
