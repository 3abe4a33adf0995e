"""Core analysis entry point: trace text -> flat frame-pacing result."""

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from framepace.apps import infer_app_category
from framepace.errors import ParseError, ParseErrorKind
from framepace.metrics import calculate_performance_metrics
from framepace.parser import parse_trace
from framepace.target_fps import DEFAULT_TARGET_CANDIDATES, detect_target_fps

logger = logging.getLogger(__name__)


def _set_assumption(assumptions: dict, key: str, note: str) -> None:
    if key not in assumptions:
        assumptions[key] = note


def parse_data(
    raw_data: str,
    file_name: str | None = None,
    user_app_name: str | None = None,
    upload_index: int = 0,
    target_candidates: Sequence[float] = DEFAULT_TARGET_CANDIDATES
) -> dict:
    """
    Parse a frame-timing trace and return the flat result used by consumers.

    Args:
        raw_data: Full trace file content
        file_name: Original file name, kept for reference only
        user_app_name: App name that overrides anything found in the trace
        upload_index: Zero-based index used to label the result
        target_candidates: Frame rates the target detector may choose from

    Returns:
        Flat dictionary of session identity, FPS and jank metrics, and the
        per-frame series

    Raises:
        ParseError: on structurally invalid input; unexpected failures are
            wrapped with kind MALFORMED
    """
    if upload_index < 0:
        raise ValueError(f"upload_index must be non-negative, got {upload_index}")

    try:
        assumptions: dict = {}
        session, frames = parse_trace(raw_data, user_app_name, assumptions)

        target = detect_target_fps(frames, target_candidates)
        metrics = calculate_performance_metrics(frames, session.refresh_period_ns, target["target"])
        presentation = metrics["presentation_time_fps"]
        vsync = metrics["vsync_time_fps"]
        jank = metrics["jank_analysis"]

        result = {
            "file_name": f"Upload {upload_index + 1}",
            "source_file_name": file_name,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "app_name": session.app_name,
            "package_name": session.package_name,
            "app_category": infer_app_category(session.app_name, session.package_name),
            "refresh_rate": session.refresh_rate_hz,
            "total_frames": metrics["total_frames"],
            "elapsed_time_seconds": presentation["avg_frame_time_ms"] * metrics["total_frames"] / 1000,
            "device_info": dict(session.device_info),
            "raw_fps_data": [frame.to_dict() for frame in frames],
            "fps_buckets": session.fps_buckets.to_dict() if session.fps_buckets else None,
            "target_fps": target["target"],
            "target_fps_confidence": target["confidence"],
            "target_fps_score": target["score"],

            # Presentation timeline: what the user actually saw
            "avg_fps": presentation["avg_fps"],
            "min_fps": presentation["min_fps"],
            "max_fps": presentation["max_fps"],
            "avg_frame_time": presentation["avg_frame_time_ms"],
            "min_frame_time": presentation["min_frame_time_ms"],
            "max_frame_time": presentation["max_frame_time_ms"],

            "slow_frames_count": jank["slow_frames_count"],
            "slow_frame_percentage": jank["slow_frame_percentage"],
            "avg_slow_frame_excess": jank["avg_slow_frame_excess"],
            "max_slow_frame_excess": jank["max_slow_frame_excess"],
            "jank_instability_count": jank["jank_instability_count"],
            "jank_instability_percentage": jank["jank_instability_percentage"],
            "avg_jank_instability": jank["avg_jank_instability"],
            "max_jank_instability": jank["max_jank_instability"],
            "performance_rating": jank["performance_rating"],
            "choppiness_rating": jank["choppiness_rating"],

            # Vsync timeline: scheduled times, for comparison
            "vsync_avg_fps": vsync["avg_fps"],
            "vsync_min_fps": vsync["min_fps"],
            "vsync_max_fps": vsync["max_fps"],
            "vsync_avg_frame_time": vsync["avg_frame_time_ms"],
            "vsync_min_frame_time": vsync["min_frame_time_ms"],
            "vsync_max_frame_time": vsync["max_frame_time_ms"],

            "per_frame_actual_frame_times_ms": presentation["per_frame_actual_frame_times_ms"],
            "per_frame_instantaneous_fps": presentation["per_frame_instantaneous_fps"],
            "per_frame_slow_frame_excess": jank["per_frame_slow_frame_excess"],
            "per_frame_instability": jank["per_frame_instability"],
            "assumptions": assumptions
        }
        if "reason" in target:
            _set_assumption(
                assumptions,
                "target_fps",
                f"Target FPS defaulted to {target['target']}: {target['reason']}"
            )
        else:
            _set_assumption(
                assumptions,
                "target_fps",
                f"Target FPS {target['target']} chosen from candidates "
                f"{list(target_candidates)} with score {target['score']:.1f}"
            )
        _set_assumption(
            assumptions,
            "timelines",
            "Presentation metrics use CSV column 4 and vsync metrics use CSV column 2"
        )
        if session.fps_buckets is None:
            _set_assumption(
                assumptions,
                "fps_buckets",
                "No FPS bucket summary found in the trace"
            )
        return result
    except ParseError:
        raise
    except Exception as exc:
        logger.exception("Parse error")
        raise ParseError(ParseErrorKind.MALFORMED, f"Failed to parse data: {exc}") from exc


def analyze_trace_file(
    trace_path: str | Path,
    user_app_name: str | None = None,
    upload_index: int = 0,
    target_candidates: Sequence[float] = DEFAULT_TARGET_CANDIDATES
) -> dict:
    """Read a trace file as UTF-8 and run :func:`parse_data` on its content."""
    path = Path(trace_path)
    raw_data = path.read_text(encoding="utf-8", errors="replace")
    return parse_data(
        raw_data,
        file_name=path.name,
        user_app_name=user_app_name,
        upload_index=upload_index,
        target_candidates=target_candidates
    )
