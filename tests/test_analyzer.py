import json
import math
import tempfile
import unittest
from pathlib import Path

from framepace.analyzer import analyze_trace_file, parse_data
from framepace.errors import ParseError, ParseErrorKind

TRACE = "\n".join([
    "Refresh Period: 16666666 ns (60.00 Hz)",
    "Test ID,Presentation Time,Fence Time,Vsync Time,Delta Time,Instant FPS,Latency",
    "T1,1000000000,0,1000000000,16.6,60.2,4",
    "T2,1016666666,0,1016600000,16.6,60.2,4",
    "T3,1033333332,0,1066600000,50,20,5",
    'summary,run1,com.netflix.mediaclient,Netflix{""appName"":""Netflix"",""ro.soc.model"":""SM8550""}'
])


def _without_timestamp(result: dict) -> str:
    data = dict(result)
    data.pop("timestamp")
    return json.dumps(data, sort_keys=True)


class TestParseData(unittest.TestCase):
    def test_flat_result(self):
        result = parse_data(TRACE, file_name="netflix.txt", upload_index=2)
        self.assertEqual(result["file_name"], "Upload 3")
        self.assertEqual(result["source_file_name"], "netflix.txt")
        self.assertEqual(result["app_name"], "Netflix")
        self.assertEqual(result["package_name"], "com.netflix.mediaclient")
        self.assertEqual(result["refresh_rate"], 60.0)
        self.assertEqual(result["total_frames"], 2)
        self.assertEqual(result["avg_fps"], 40.12)
        self.assertEqual(result["vsync_avg_fps"], 60.0)
        self.assertEqual(result["device_info"]["ro.soc.model"], "SM8550")
        self.assertEqual(len(result["raw_fps_data"]), 3)
        self.assertEqual(result["raw_fps_data"][1]["presentation_time"], 1016600000)
        self.assertIsNone(result["fps_buckets"])
        self.assertIn("fps_buckets", result["assumptions"])
        self.assertAlmostEqual(result["elapsed_time_seconds"], 33.3 * 2 / 1000)

    def test_fps_buckets_from_summary_line(self):
        summary = (
            "summary,run1,com.example.game,Racer,"
            + ",".join(str(count) for count in range(2, 15))
            + ",45.5,120.0,5400,90,80,10,120.0,"
            + '{""ro.soc.model"":""SM8550""}'
        )
        trace = "\n".join(TRACE.split("\n")[:-1] + [summary])
        result = parse_data(trace)
        self.assertIsNotNone(result["fps_buckets"])
        self.assertEqual(result["fps_buckets"]["total_frames"], 5400)
        self.assertEqual(result["fps_buckets"]["bucket_70_plus"], 14)
        self.assertEqual(result["device_info"], {"ro.soc.model": "SM8550"})
        self.assertEqual(result["app_name"], "Racer")
        self.assertEqual(result["total_frames"], 2)
        self.assertNotIn("fps_buckets", result["assumptions"])

    def test_detected_target_drives_jank(self):
        result = parse_data(TRACE)
        self.assertEqual(result["target_fps"], 30)
        self.assertEqual(result["target_fps_confidence"], "LOW")
        # 50 ms does not exceed the 50 ms slow threshold of a 30 FPS target
        self.assertEqual(result["slow_frames_count"], 0)
        self.assertEqual(result["jank_instability_count"], 1)
        self.assertEqual(result["performance_rating"], "Excellent")
        self.assertIn("target_fps", result["assumptions"])

    def test_per_frame_arrays_are_aligned(self):
        result = parse_data(TRACE)
        keys = [
            "per_frame_actual_frame_times_ms",
            "per_frame_instantaneous_fps",
            "per_frame_slow_frame_excess",
            "per_frame_instability"
        ]
        for key in keys:
            self.assertEqual(len(result[key]), result["total_frames"])

    def test_deterministic(self):
        self.assertEqual(_without_timestamp(parse_data(TRACE)), _without_timestamp(parse_data(TRACE)))

    def test_result_is_json_serializable_with_nan(self):
        trace = TRACE.replace("T2,1016666666,0,1016600000", "T2,1016666666,0,1000000000")
        result = parse_data(trace)
        self.assertTrue(math.isnan(result["per_frame_actual_frame_times_ms"][0]))
        self.assertIn("NaN", json.dumps(result))

    def test_user_app_name(self):
        self.assertEqual(parse_data(TRACE, user_app_name="Custom")["app_name"], "Custom")

    def test_single_frame_is_insufficient(self):
        trace = "\n".join(TRACE.split("\n")[:3])
        with self.assertRaises(ParseError) as ctx:
            parse_data(trace)
        self.assertEqual(ctx.exception.kind, ParseErrorKind.INSUFFICIENT_DATA)

    def test_empty_input(self):
        with self.assertRaises(ParseError) as ctx:
            parse_data("")
        self.assertEqual(ctx.exception.kind, ParseErrorKind.EMPTY_INPUT)

    def test_negative_upload_index(self):
        with self.assertRaises(ValueError):
            parse_data(TRACE, upload_index=-1)

    def test_unexpected_failure_is_wrapped(self):
        with self.assertRaises(ParseError) as ctx:
            parse_data(TRACE, target_candidates=())
        self.assertEqual(ctx.exception.kind, ParseErrorKind.MALFORMED)
        self.assertTrue(str(ctx.exception).startswith("Failed to parse data:"))
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_analyze_trace_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "trace.txt"
            path.write_text(TRACE, encoding="utf-8")
            result = analyze_trace_file(path, upload_index=0)
        self.assertEqual(result["source_file_name"], "trace.txt")
        self.assertEqual(result["file_name"], "Upload 1")


if __name__ == "__main__":
    unittest.main()
