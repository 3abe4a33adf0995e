"""Immutable records produced by the trace parser."""

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

DEFAULT_REFRESH_RATE_HZ = 60.0
DEFAULT_REFRESH_PERIOD_NS = 1_000_000_000 / DEFAULT_REFRESH_RATE_HZ

UNKNOWN_APP = "Unknown App"
UNKNOWN_PACKAGE = "Unknown Package"


@dataclass(frozen=True)
class FrameRecord:
    """
    One data row of a trace.

    Numeric fields are floats and may be nan when the source text did not
    parse. ``scheduled_time_ns`` is the vsync timeline and ``actual_time_ns``
    the presentation timeline.
    """

    test_id: str
    scheduled_time_ns: float
    actual_time_ns: float
    fence_time_ns: float
    delta_time_ms: float
    instant_fps: float
    latency_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "test_id": self.test_id,
            "presentation_time": self.actual_time_ns,
            "vsync_time": self.scheduled_time_ns,
            "fence_time": self.fence_time_ns,
            "delta_time": self.delta_time_ms,
            "instant_fps": self.instant_fps,
            "latency": self.latency_ms
        }


@dataclass(frozen=True)
class FpsBuckets:
    """Pre-aggregated FPS histogram and session scalars from the summary line."""

    bucket_0_3: int = 0
    bucket_3_5: int = 0
    bucket_5_7: int = 0
    bucket_7_9: int = 0
    bucket_9_11: int = 0
    bucket_11_13: int = 0
    bucket_13_16: int = 0
    bucket_16_19: int = 0
    bucket_19_22: int = 0
    bucket_22_26: int = 0
    bucket_26_35: int = 0
    bucket_35_50: int = 0
    bucket_50_70: int = 0
    bucket_70_plus: int = 0
    avg_fps: float = 0.0
    elapsed_time: float = 0.0
    total_frames: int = 0
    start_battery: int = 0
    end_battery: int = 0
    battery_drain: int = 0
    refresh_rate: float = DEFAULT_REFRESH_RATE_HZ

    def to_dict(self) -> dict:
        return asdict(self)


def _frozen_map(values: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class SessionInfo:
    refresh_period_ns: float = DEFAULT_REFRESH_PERIOD_NS
    refresh_rate_hz: float = DEFAULT_REFRESH_RATE_HZ
    app_name: str = UNKNOWN_APP
    package_name: str = UNKNOWN_PACKAGE
    device_info: Mapping[str, Any] = field(default_factory=dict)
    fps_buckets: FpsBuckets | None = None

    def __post_init__(self):
        # device_info keys come from the device; keep the map read-only
        object.__setattr__(self, "device_info", _frozen_map(self.device_info))

    def device_property(self, key: str, default: Any = None) -> Any:
        return self.device_info.get(key, default)
