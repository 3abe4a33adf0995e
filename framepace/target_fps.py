"""Target frame-rate detection from trace-reported delta times and FPS."""

import math
from typing import Sequence

from framepace.models import FrameRecord

DEFAULT_TARGET_CANDIDATES: tuple[int, ...] = (30,)
FALLBACK_TARGET_FPS = 30


def _confidence(score: float) -> str:
    if score >= 70:
        return "HIGH"
    if score >= 50:
        return "MEDIUM"
    return "LOW"


def score_target(target: float, delta_times: list[float], avg_fps: float) -> dict:
    """
    Score how plausible ``target`` is as the app's frame-rate cap.

    Up to 50 points for the average-FPS ratio, up to 30 for the share of
    delta times within [0.8, 2.5] x the expected frame time, and 20 more when
    the ratio sits in [0.5, 0.8].
    """
    expected_delta = 1000 / target
    ratio = avg_fps / target

    score = 0.0
    if 0.4 <= ratio <= 0.8:
        score += 50
    elif 0.2 <= ratio <= 1.0:
        score += 25

    delta_matches = len([
        delta for delta in delta_times
        if expected_delta * 0.8 <= delta <= expected_delta * 2.5
    ])
    score += delta_matches / len(delta_times) * 30

    if 0.5 <= ratio <= 0.8:
        score += 20

    return {
        "target": target,
        "score": score,
        "ratio": ratio,
        "expected_delta": expected_delta,
        "delta_matches": delta_matches,
        "delta_match_percentage": round(delta_matches / len(delta_times) * 100, 1)
    }


def detect_target_fps(
    frames: Sequence[FrameRecord],
    candidates: Sequence[float] = DEFAULT_TARGET_CANDIDATES
) -> dict:
    """
    Pick the most plausible target FPS among ``candidates``.

    Uses the delta time and instantaneous FPS reported by the trace rather
    than values recomputed from timestamps. The highest score wins; on a tie
    the earlier candidate is kept.

    Returns:
        Dictionary with target, confidence, score and the per-candidate scores
    """
    if not candidates:
        raise ValueError("At least one target FPS candidate is required")

    delta_times = [frame.delta_time_ms for frame in frames if not math.isnan(frame.delta_time_ms)]
    fps_values = [frame.instant_fps for frame in frames if not math.isnan(frame.instant_fps)]

    if not delta_times:
        return {
            "target": FALLBACK_TARGET_FPS,
            "confidence": "LOW",
            "score": 0,
            "reason": "No valid frame data"
        }

    avg_delta_time = sum(delta_times) / len(delta_times)
    avg_fps = sum(fps_values) / len(fps_values) if fps_values else 0.0

    all_scores = [score_target(target, delta_times, avg_fps) for target in candidates]
    best = all_scores[0]
    for entry in all_scores[1:]:
        if entry["score"] > best["score"]:
            best = entry

    return {
        "target": best["target"],
        "confidence": _confidence(best["score"]),
        "score": best["score"],
        "performance_ratio": best["ratio"],
        "avg_fps": avg_fps,
        "avg_delta_time": avg_delta_time,
        "all_scores": all_scores
    }
