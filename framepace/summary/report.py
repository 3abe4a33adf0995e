"""Offline summary layer: input shaping, baseline deltas, Markdown rendering."""

from __future__ import annotations

import math
from typing import Any

from framepace.series import calculate_memory_gb

DEVICE_FIELDS = {
    "manufacturer": "ro.product.manufacturer",
    "model": "ro.product.model",
    "brand": "ro.oem.brand",
    "soc_manufacturer": "ro.soc.manufacturer",
    "soc_model": "ro.soc.model",
    "cpu_abi": "ro.product.cpu.abi",
    "gpu": "ro.hardware.egl",
    "android_version": "ro.build.version.release",
    "sdk": "ro.build.version.sdk"
}

HEADLINE_METRICS = [
    "avg_fps",
    "min_fps",
    "max_fps",
    "avg_frame_time",
    "slow_frame_percentage",
    "jank_instability_percentage",
    "max_slow_frame_excess",
    "max_jank_instability",
    "vsync_avg_fps"
]

RATING_FIELDS = ["performance_rating", "choppiness_rating"]


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def build_summary_input(result: dict, baseline: dict | None = None) -> dict:
    def extract(source: dict) -> dict:
        source = _as_dict(source)
        device_info = _as_dict(source.get("device_info"))
        device = {name: device_info.get(key) for name, key in DEVICE_FIELDS.items()}
        device["memory_gb"] = calculate_memory_gb(device_info.get("MemTotal"))
        return {
            "identity": {
                "file_name": source.get("file_name"),
                "app_name": source.get("app_name"),
                "package_name": source.get("package_name"),
                "app_category": source.get("app_category"),
                "refresh_rate": source.get("refresh_rate"),
                "timestamp": source.get("timestamp")
            },
            "target": {
                "fps": source.get("target_fps"),
                "confidence": source.get("target_fps_confidence"),
                "score": source.get("target_fps_score")
            },
            "metrics": {key: source.get(key) for key in HEADLINE_METRICS},
            "jank": {
                "slow_frames_count": source.get("slow_frames_count"),
                "avg_slow_frame_excess": source.get("avg_slow_frame_excess"),
                "jank_instability_count": source.get("jank_instability_count"),
                "avg_jank_instability": source.get("avg_jank_instability")
            },
            "ratings": {key: source.get(key) for key in RATING_FIELDS},
            "total_frames": source.get("total_frames"),
            "elapsed_time_seconds": source.get("elapsed_time_seconds"),
            "device": device,
            "assumptions": _as_dict(source.get("assumptions"))
        }

    payload = {
        "current": extract(result)
    }

    if baseline is not None:
        payload["baseline"] = extract(baseline)
        payload["deltas"] = compute_deltas(payload["current"], payload["baseline"])

    return payload


def compute_deltas(current: dict, baseline: dict) -> dict:
    deltas: dict[str, Any] = {}
    current_metrics = _as_dict(current.get("metrics"))
    baseline_metrics = _as_dict(baseline.get("metrics"))

    metric_deltas = {}
    for key in HEADLINE_METRICS:
        current_value = _number(current_metrics.get(key))
        baseline_value = _number(baseline_metrics.get(key))
        if current_value is None or baseline_value is None:
            metric_deltas[key] = None
            continue
        metric_deltas[key] = round(current_value - baseline_value, 2)
    deltas["metric_deltas"] = metric_deltas

    current_ratings = _as_dict(current.get("ratings"))
    baseline_ratings = _as_dict(baseline.get("ratings"))
    deltas["rating_changes"] = {
        key: {
            "baseline": baseline_ratings.get(key),
            "current": current_ratings.get(key)
        }
        for key in RATING_FIELDS
    }
    return deltas


def _fmt(value: Any, suffix: str = "") -> str:
    number = _number(value)
    if number is not None:
        return f"{number:.2f}{suffix}"
    if value is None:
        return "n/a"
    return f"{value}{suffix}"


def render_markdown(summary: dict) -> str:
    current = _as_dict(summary.get("current"))
    identity = _as_dict(current.get("identity"))
    target = _as_dict(current.get("target"))
    metrics = _as_dict(current.get("metrics"))
    jank = _as_dict(current.get("jank"))
    ratings = _as_dict(current.get("ratings"))

    lines = []
    lines.append(f"# {identity.get('app_name') or 'Unknown App'} Frame Pacing Summary")
    lines.append("")
    lines.append(f"- Package: {identity.get('package_name') or 'n/a'}")
    lines.append(f"- Refresh rate: {_fmt(identity.get('refresh_rate'), ' Hz')}")
    lines.append(
        f"- Target FPS: {target.get('fps') or 'n/a'} "
        f"(confidence {target.get('confidence') or 'n/a'})"
    )
    lines.append(f"- Frames: {current.get('total_frames') or 0}")
    lines.append("")

    lines.append("## Frame Rate")
    lines.append(f"- Average FPS: {_fmt(metrics.get('avg_fps'))}")
    lines.append(f"- Min / Max FPS: {_fmt(metrics.get('min_fps'))} / {_fmt(metrics.get('max_fps'))}")
    lines.append(f"- Average frame time: {_fmt(metrics.get('avg_frame_time'), ' ms')}")
    lines.append(f"- Scheduled (vsync) average FPS: {_fmt(metrics.get('vsync_avg_fps'))}")
    lines.append("")

    lines.append("## Jank")
    lines.append(
        f"- Slow frames: {jank.get('slow_frames_count') or 0} "
        f"({_fmt(metrics.get('slow_frame_percentage'), '%')}), "
        f"max excess {_fmt(metrics.get('max_slow_frame_excess'), ' ms')}"
    )
    lines.append(
        f"- Instability: {jank.get('jank_instability_count') or 0} "
        f"({_fmt(metrics.get('jank_instability_percentage'), '%')}), "
        f"max jump {_fmt(metrics.get('max_jank_instability'), ' ms')}"
    )
    lines.append(
        f"- Ratings: {ratings.get('performance_rating') or 'n/a'} / "
        f"{ratings.get('choppiness_rating') or 'n/a'}"
    )
    lines.append("")

    device = _as_dict(current.get("device"))
    present = {key: value for key, value in device.items() if value}
    if present:
        lines.append("## Device")
        for key, value in present.items():
            lines.append(f"- {key}: {value}")
        lines.append("")

    deltas = _as_dict(summary.get("deltas"))
    if deltas:
        lines.append("## Compared to Baseline")
        for key, value in _as_dict(deltas.get("metric_deltas")).items():
            if value is None:
                continue
            lines.append(f"- {key}: {value:+.2f}")
        for key, change in _as_dict(deltas.get("rating_changes")).items():
            if change.get("baseline") != change.get("current"):
                lines.append(f"- {key}: {change.get('baseline')} -> {change.get('current')}")
        lines.append("")

    assumptions = _as_dict(current.get("assumptions"))
    if assumptions:
        lines.append("## Assumptions")
        for key, note in assumptions.items():
            lines.append(f"- {key}: {note}")
        lines.append("")

    return "\n".join(lines).strip() + "\n"


def run_summary(result: dict, baseline: dict | None = None) -> tuple[dict, str]:
    summary = build_summary_input(result, baseline)
    return summary, render_markdown(summary)
