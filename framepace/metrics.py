"""Frame-pacing metrics: dual-timeline FPS statistics, jank analysis and ratings."""

import math
from typing import Sequence

from framepace.errors import ParseError, ParseErrorKind
from framepace.models import DEFAULT_REFRESH_PERIOD_NS, FrameRecord

NS_PER_MS = 1_000_000
SLOW_FRAME_FACTOR = 1.5
INSTABILITY_THRESHOLD_FACTOR = 1.3


def _is_valid(value: float) -> bool:
    return not math.isnan(value) and math.isfinite(value)


def _round_or_nan(value: float, digits: int = 2) -> float:
    return value if math.isnan(value) else round(value, digits)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_fps_metrics(timestamps_ns: Sequence[float]) -> dict:
    """
    Compute FPS statistics for one timeline of frame timestamps.

    Entry i of the per-frame arrays describes the interval between
    timestamps i and i+1. Intervals that are not positive and finite are kept
    as nan so the arrays stay aligned with the frame sequence.

    The average FPS is the mean of the per-frame instantaneous FPS values,
    which weights short frames more than ``1000 / avg_frame_time_ms`` would.
    """
    frame_times_ms: list[float] = []
    instantaneous_fps: list[float] = []

    for previous, current in zip(timestamps_ns, timestamps_ns[1:]):
        render_time_ns = current - previous
        if not _is_valid(render_time_ns) or render_time_ns <= 0:
            frame_times_ms.append(math.nan)
            instantaneous_fps.append(math.nan)
            continue
        render_time_ms = render_time_ns / NS_PER_MS
        frame_times_ms.append(render_time_ms)
        instantaneous_fps.append(1000 / render_time_ms)

    valid_fps = [value for value in instantaneous_fps if _is_valid(value)]
    valid_frame_times = [value for value in frame_times_ms if _is_valid(value)]

    return {
        "avg_fps": round(_mean(valid_fps), 2),
        "min_fps": round(min(valid_fps, default=0.0), 2),
        "max_fps": round(max(valid_fps, default=0.0), 2),
        "avg_frame_time_ms": round(_mean(valid_frame_times), 2),
        "min_frame_time_ms": round(min(valid_frame_times, default=0.0), 2),
        "max_frame_time_ms": round(max(valid_frame_times, default=0.0), 2),
        "per_frame_actual_frame_times_ms": [_round_or_nan(value) for value in frame_times_ms],
        "per_frame_instantaneous_fps": [_round_or_nan(value) for value in instantaneous_fps]
    }


def performance_rating(avg_fps: float, target_fps: float) -> str:
    if avg_fps >= target_fps * 0.9:
        return "Excellent"
    if avg_fps >= target_fps * 0.7:
        return "Good"
    return "Poor"


def choppiness_rating(jank_instability_percentage: float) -> str:
    if jank_instability_percentage <= 5:
        return "Smooth"
    if jank_instability_percentage <= 15:
        return "Moderate"
    return "Choppy"


def analyze_jank(frame_times_ms: Sequence[float], target_fps: float, avg_fps: float) -> dict:
    """
    Classify slow frames and frame-to-frame instability on one timeline.

    A frame is slow when its time exceeds 1.5x the target frame time, and
    unstable when it exceeds 1.3x the previous valid frame time. The two
    tests are independent. Frames with a nan time produce nan in both
    per-frame series.

    Args:
        frame_times_ms: Per-frame times of the presentation timeline
        target_fps: Frame rate the app is expected to hold
        avg_fps: Average FPS of the same timeline, used for the rating

    Returns:
        Dictionary of jank aggregates, ratings and per-frame series
    """
    if target_fps <= 0:
        raise ValueError(f"target_fps must be positive, got {target_fps}")

    total_frames_rendered = len(frame_times_ms)
    target_frame_time_ms = 1000 / target_fps
    slow_frame_threshold_ms = target_frame_time_ms * SLOW_FRAME_FACTOR

    slow_frame_excess_values: list[float] = []
    instability_values: list[float] = []
    slow_frames_count = 0
    total_slow_frame_excess = 0.0
    jank_instability_count = 0
    total_jank_instability = 0.0

    for index, current in enumerate(frame_times_ms):
        if math.isnan(current):
            slow_frame_excess_values.append(math.nan)
            instability_values.append(math.nan)
            continue

        slow_frame_excess = 0.0
        if current > slow_frame_threshold_ms:
            slow_frames_count += 1
            slow_frame_excess = current - slow_frame_threshold_ms
            total_slow_frame_excess += slow_frame_excess
        slow_frame_excess_values.append(slow_frame_excess)

        instability = 0.0
        if index > 0 and not math.isnan(frame_times_ms[index - 1]):
            previous = frame_times_ms[index - 1]
            if current > previous * INSTABILITY_THRESHOLD_FACTOR:
                jank_instability_count += 1
                instability = current - previous
                total_jank_instability += instability
        instability_values.append(instability)

    def percentage(count: int) -> float:
        if total_frames_rendered == 0:
            return 0.0
        return round(count / total_frames_rendered * 100, 1)

    def flagged_max(values: list[float]) -> float:
        return round(max((value for value in values if _is_valid(value) and value > 0), default=0.0), 2)

    slow_frame_percentage = percentage(slow_frames_count)
    jank_instability_percentage = percentage(jank_instability_count)
    avg_slow_frame_excess = total_slow_frame_excess / slow_frames_count if slow_frames_count else 0.0
    avg_jank_instability = total_jank_instability / jank_instability_count if jank_instability_count else 0.0

    return {
        "slow_frames_count": slow_frames_count,
        "slow_frame_percentage": slow_frame_percentage,
        "avg_slow_frame_excess": round(avg_slow_frame_excess, 2),
        "max_slow_frame_excess": flagged_max(slow_frame_excess_values),
        "jank_instability_count": jank_instability_count,
        "jank_instability_percentage": jank_instability_percentage,
        "avg_jank_instability": round(avg_jank_instability, 2),
        "max_jank_instability": flagged_max(instability_values),
        "performance_rating": performance_rating(avg_fps, target_fps),
        "choppiness_rating": choppiness_rating(jank_instability_percentage),
        "per_frame_slow_frame_excess": [_round_or_nan(value) for value in slow_frame_excess_values],
        "per_frame_instability": [_round_or_nan(value) for value in instability_values]
    }


def calculate_performance_metrics(
    frames: Sequence[FrameRecord],
    refresh_period_ns: float,
    target_fps: float
) -> dict:
    """
    Build the nested metrics report for a parsed trace.

    Args:
        frames: Parsed frame records in file order (never modified)
        refresh_period_ns: Display refresh period; non-positive falls back to 60 Hz
        target_fps: Frame rate used for jank thresholds and the performance rating

    Returns:
        Dictionary with device_refresh_rate, total_frames,
        presentation_time_fps, vsync_time_fps and jank_analysis

    Raises:
        ParseError: INSUFFICIENT_DATA when fewer than two frames are given
    """
    if not frames or len(frames) < 2:
        raise ParseError(
            ParseErrorKind.INSUFFICIENT_DATA,
            "Insufficient frame data. At least 2 frames are required."
        )

    if not refresh_period_ns or refresh_period_ns <= 0:
        refresh_period_ns = DEFAULT_REFRESH_PERIOD_NS

    # Real display times drive the user-facing numbers; scheduled times are
    # reported alongside for comparison only.
    presentation_time_fps = calculate_fps_metrics([frame.actual_time_ns for frame in frames])
    vsync_time_fps = calculate_fps_metrics([frame.scheduled_time_ns for frame in frames])

    frame_times_ms = presentation_time_fps["per_frame_actual_frame_times_ms"]
    jank_analysis = analyze_jank(frame_times_ms, target_fps, presentation_time_fps["avg_fps"])

    return {
        "device_refresh_rate": round(1_000_000_000 / refresh_period_ns, 2),
        "total_frames": len(frame_times_ms),
        "presentation_time_fps": presentation_time_fps,
        "vsync_time_fps": vsync_time_fps,
        "jank_analysis": jank_analysis
    }
