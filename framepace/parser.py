"""Trace parser: raw frame-timing dump text -> SessionInfo + FrameRecords."""

import json
import logging
import math
import re

from framepace.apps import derive_app_name_from_package, extract_package_name
from framepace.errors import ParseError, ParseErrorKind
from framepace.models import (
    DEFAULT_REFRESH_PERIOD_NS,
    DEFAULT_REFRESH_RATE_HZ,
    UNKNOWN_APP,
    UNKNOWN_PACKAGE,
    FpsBuckets,
    FrameRecord,
    SessionInfo
)

logger = logging.getLogger(__name__)

CSV_HEADER_MARKER = "Test ID,Presentation Time"
MIN_FRAME_FIELDS = 6
MIN_BUCKET_FIELDS = 24
BUCKET_START_INDEX = 3

_REFRESH_PATTERN = re.compile(r"Refresh Period: (\d+) ns \((\d+\.\d+) Hz\)")
_EMPTY_VALUE_PATTERN = re.compile(r':\s*""(?=\s*[,}])')
_EMPTY_PLACEHOLDER = "EMPTY_STRING_PLACEHOLDER"

_BUCKET_FIELDS = (
    "bucket_0_3",
    "bucket_3_5",
    "bucket_5_7",
    "bucket_7_9",
    "bucket_9_11",
    "bucket_11_13",
    "bucket_13_16",
    "bucket_16_19",
    "bucket_19_22",
    "bucket_22_26",
    "bucket_26_35",
    "bucket_35_50",
    "bucket_50_70",
    "bucket_70_plus"
)


def _set_assumption(assumptions: dict | None, key: str, note: str) -> None:
    if assumptions is not None and key not in assumptions:
        assumptions[key] = note


def _to_float(text: str | None) -> float:
    """Parse a numeric field, yielding nan instead of raising."""
    if text is None:
        return math.nan
    try:
        return float(text.strip())
    except ValueError:
        return math.nan


def _to_int_or(text: str | None, default: int) -> int:
    value = _to_float(text)
    if math.isnan(value) or math.isinf(value):
        return default
    return int(value) or default


def _to_float_or(text: str | None, default: float) -> float:
    value = _to_float(text)
    if math.isnan(value) or value == 0:
        return default
    return value


def split_lines(raw_data: str) -> list[str]:
    return [line.strip() for line in raw_data.split("\n") if line.strip()]


def parse_refresh_header(line: str, assumptions: dict | None = None) -> tuple[float, float]:
    """
    Read ``Refresh Period: <int> ns (<float> Hz)`` from the first line.

    Returns:
        Tuple of (refresh_period_ns, refresh_rate_hz); 60 Hz when absent
    """
    match = _REFRESH_PATTERN.search(line)
    if match:
        return float(int(match.group(1))), float(match.group(2))

    logger.warning("Could not find Refresh Period in file header. Falling back to 60 Hz.")
    _set_assumption(
        assumptions,
        "refresh_rate",
        "Refresh Period header missing; assumed 60 Hz"
    )
    return DEFAULT_REFRESH_PERIOD_NS, DEFAULT_REFRESH_RATE_HZ


def normalize_device_json(text: str) -> str:
    """
    Undo doubled-quote escaping in the device-info blob of a summary line.

    CSV export doubles every quote, so ``{""a"":""b""}`` becomes ``{"a":"b"}``.
    An explicit empty value (``""key"":""`` followed by ``,`` or ``}``) would
    collapse into a single quote, so it is swapped for a placeholder first and
    restored as ``""`` after.
    Surrounding quotes and anything after the last ``}`` are dropped.
    """
    if text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    last_brace = text.rfind("}")
    if last_brace != -1:
        text = text[:last_brace + 1]
    text = _EMPTY_VALUE_PATTERN.sub(f': "{_EMPTY_PLACEHOLDER}"', text)
    text = text.replace('""', '"')
    return text.replace(_EMPTY_PLACEHOLDER, "")


def parse_fps_buckets(csv_parts: list[str]) -> FpsBuckets | None:
    """Parse the 14-bucket FPS histogram and session scalars from a summary prefix."""
    if len(csv_parts) < MIN_BUCKET_FIELDS:
        return None

    def field(offset: int) -> str | None:
        index = BUCKET_START_INDEX + offset
        return csv_parts[index] if index < len(csv_parts) else None

    counts = {name: _to_int_or(field(offset), 0) for offset, name in enumerate(_BUCKET_FIELDS)}
    scalar_offset = len(_BUCKET_FIELDS)
    return FpsBuckets(
        **counts,
        avg_fps=_to_float_or(field(scalar_offset), 0.0),
        elapsed_time=_to_float_or(field(scalar_offset + 1), 0.0),
        total_frames=_to_int_or(field(scalar_offset + 2), 0),
        start_battery=_to_int_or(field(scalar_offset + 3), 0),
        end_battery=_to_int_or(field(scalar_offset + 4), 0),
        battery_drain=_to_int_or(field(scalar_offset + 5), 0),
        refresh_rate=_to_float_or(field(scalar_offset + 6), DEFAULT_REFRESH_RATE_HZ)
    )


def resolve_app_name(
    user_app_name: str | None,
    csv_app_name: str | None,
    json_app_name: str | None,
    package_name: str | None
) -> str:
    """Pick the app name: user override, CSV, device JSON, then package heuristics."""
    for candidate in [user_app_name, csv_app_name, json_app_name]:
        if candidate and candidate != UNKNOWN_APP:
            return candidate
    return derive_app_name_from_package(package_name)


def parse_summary_line(line: str, assumptions: dict | None = None) -> dict | None:
    """
    Split a ``<csv-prefix>{<json>}`` summary line into its parts.

    Returns:
        Dictionary with package_name, csv_app_name, json_app_name,
        device_info and fps_buckets, or None if the line has no JSON blob
    """
    if "{" not in line or "}" not in line:
        return None

    json_start = line.index("{")
    csv_parts = line[:json_start].split(",")
    package_name = csv_parts[2].strip() if len(csv_parts) > 2 else ""
    csv_app_name = csv_parts[3].strip() if len(csv_parts) > 3 else ""

    device_info: dict = {}
    try:
        decoded = json.loads(normalize_device_json(line[json_start:]))
        if isinstance(decoded, dict):
            device_info = decoded
        else:
            raise ValueError(f"expected a JSON object, got {type(decoded).__name__}")
    except ValueError as exc:
        logger.warning("Failed to parse device info from last line: %s", exc)
        _set_assumption(
            assumptions,
            "device_info",
            f"Device info JSON could not be parsed ({exc}); left empty"
        )

    json_app_name = device_info.get("appName")
    return {
        "package_name": package_name or UNKNOWN_PACKAGE,
        "csv_app_name": csv_app_name or None,
        "json_app_name": json_app_name if isinstance(json_app_name, str) else None,
        "device_info": device_info,
        "fps_buckets": parse_fps_buckets(csv_parts)
    }


def parse_frame_line(line: str) -> FrameRecord | None:
    """
    Parse one CSV data line, or return None when it has too few fields.

    Column 2 (labelled "Presentation Time" in the header) holds the scheduled
    time and column 4 (labelled "Vsync Time") holds the actual presentation
    time. Every metric downstream is defined against this assignment.
    """
    parts = line.split(",")
    if len(parts) < MIN_FRAME_FIELDS:
        return None

    test_id, scheduled_time, fence_time, actual_time, delta_time, instant_fps = parts[:6]
    latency = _to_float(parts[6]) if len(parts) > 6 else 0.0
    return FrameRecord(
        test_id=test_id,
        scheduled_time_ns=_to_float(scheduled_time),
        actual_time_ns=_to_float(actual_time),
        fence_time_ns=_to_float(fence_time),
        delta_time_ms=_to_float(delta_time),
        instant_fps=_to_float(instant_fps),
        latency_ms=latency
    )


def parse_trace(
    raw_data: str,
    user_app_name: str | None = None,
    assumptions: dict | None = None
) -> tuple[SessionInfo, list[FrameRecord]]:
    """
    Parse a full trace dump.

    Args:
        raw_data: Complete trace file content
        user_app_name: Optional app name that overrides anything in the trace
        assumptions: Optional dict collecting notes about non-fatal fallbacks

    Returns:
        Tuple of (session_info, frames) with frames in file order

    Raises:
        ParseError: EMPTY_INPUT, MISSING_CSV_HEADER or NO_FRAME_DATA
    """
    lines = split_lines(raw_data)
    if not lines:
        raise ParseError(ParseErrorKind.EMPTY_INPUT, "File is empty")

    refresh_period_ns, refresh_rate_hz = parse_refresh_header(lines[0], assumptions)

    header_index = next(
        (index for index, line in enumerate(lines) if CSV_HEADER_MARKER in line),
        None
    )
    if header_index is None:
        raise ParseError(ParseErrorKind.MISSING_CSV_HEADER, "Could not find CSV data in file")

    csv_lines = lines[header_index + 1:]
    last_line = lines[-1]

    summary = parse_summary_line(last_line, assumptions) if csv_lines else None
    data_lines = csv_lines[:-1] if csv_lines and "{" in last_line else csv_lines

    frames = []
    for line in data_lines:
        frame = parse_frame_line(line)
        if frame is not None:
            frames.append(frame)

    if not frames:
        raise ParseError(ParseErrorKind.NO_FRAME_DATA, "No valid FPS data found in file")

    if summary:
        package_name = summary["package_name"]
        app_name = resolve_app_name(
            user_app_name,
            summary["csv_app_name"],
            summary["json_app_name"],
            package_name
        )
    else:
        package_name = UNKNOWN_PACKAGE
        app_name = user_app_name or UNKNOWN_APP

    if package_name == UNKNOWN_PACKAGE:
        package_name = extract_package_name(csv_lines[0].split(",")[0]) or UNKNOWN_PACKAGE

    session = SessionInfo(
        refresh_period_ns=refresh_period_ns,
        refresh_rate_hz=refresh_rate_hz,
        app_name=app_name,
        package_name=package_name,
        device_info=summary["device_info"] if summary else {},
        fps_buckets=summary["fps_buckets"] if summary else None
    )
    return session, frames
