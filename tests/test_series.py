import math
import unittest

from framepace.series import (
    aggregate_data_by_time,
    build_chart_series,
    calculate_memory_gb,
    frame_timeline_points
)


class TestSeries(unittest.TestCase):
    def test_timeline_points_skip_nan(self):
        points = frame_timeline_points([10.0, math.nan, 20.0], [100.0, math.nan, 50.0])
        self.assertEqual(points, [{"x": 10.0, "y": 100.0}, {"x": 30.0, "y": 50.0}])

    def test_aggregate_by_time(self):
        points = [
            {"x": 5.0, "y": 10.0},
            {"x": 120.0, "y": 40.0},
            {"x": 40.0, "y": 30.0},
            {"x": 150.0, "y": math.nan}
        ]
        aggregated = aggregate_data_by_time(points, 100)
        self.assertEqual(aggregated, [{"x": 0, "y": 20.0}, {"x": 100, "y": 40.0}])

    def test_non_positive_interval_returns_input(self):
        points = [{"x": 1.0, "y": 2.0}]
        self.assertIs(aggregate_data_by_time(points, 0), points)

    def test_build_chart_series(self):
        result = {
            "per_frame_actual_frame_times_ms": [10.0, 20.0],
            "per_frame_instantaneous_fps": [100.0, 50.0],
            "per_frame_slow_frame_excess": [0.0, 0.0],
            "per_frame_instability": [0.0, 10.0]
        }
        charts = build_chart_series(result)
        self.assertEqual(charts["instability_ms"], [{"x": 10.0, "y": 0.0}, {"x": 30.0, "y": 10.0}])
        self.assertEqual(len(charts["frame_time_ms"]), 2)
        self.assertEqual(build_chart_series({})["instantaneous_fps"], [])

    def test_memory_gb(self):
        self.assertEqual(calculate_memory_gb("8388608 kB"), "8.0")
        self.assertIsNone(calculate_memory_gb(None))
        self.assertIsNone(calculate_memory_gb("lots"))


if __name__ == "__main__":
    unittest.main()
