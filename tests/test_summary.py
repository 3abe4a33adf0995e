import math
import unittest

from framepace.summary.report import build_summary_input, compute_deltas, render_markdown, run_summary


def _result(**overrides) -> dict:
    result = {
        "file_name": "Upload 1",
        "app_name": "Netflix",
        "package_name": "com.netflix.mediaclient",
        "refresh_rate": 60.0,
        "target_fps": 30,
        "target_fps_confidence": "MEDIUM",
        "avg_fps": 28.5,
        "min_fps": 12.0,
        "max_fps": 60.0,
        "avg_frame_time": 35.1,
        "slow_frames_count": 4,
        "slow_frame_percentage": 2.0,
        "jank_instability_percentage": 8.5,
        "performance_rating": "Excellent",
        "choppiness_rating": "Moderate",
        "total_frames": 200,
        "device_info": {
            "ro.product.manufacturer": "Samsung",
            "ro.soc.model": "SM8550",
            "MemTotal": "8388608 kB"
        },
        "assumptions": {"target_fps": "Target FPS 30 chosen"}
    }
    result.update(overrides)
    return result


class TestSummary(unittest.TestCase):
    def test_summary_input_reads_fields_defensively(self):
        summary = build_summary_input({"avg_fps": 10.0, "device_info": "not-a-map"})
        current = summary["current"]
        self.assertEqual(current["metrics"]["avg_fps"], 10.0)
        self.assertIsNone(current["metrics"]["min_fps"])
        self.assertIsNone(current["device"]["soc_model"])
        self.assertIsNone(current["device"]["memory_gb"])
        self.assertNotIn("baseline", summary)

    def test_summary_input_device_highlights(self):
        device = build_summary_input(_result())["current"]["device"]
        self.assertEqual(device["manufacturer"], "Samsung")
        self.assertEqual(device["soc_model"], "SM8550")
        self.assertEqual(device["memory_gb"], "8.0")

    def test_compute_deltas(self):
        summary = build_summary_input(
            _result(avg_fps=30.0, performance_rating="Excellent"),
            _result(avg_fps=25.5, min_fps=None, performance_rating="Good")
        )
        deltas = summary["deltas"]
        self.assertEqual(deltas["metric_deltas"]["avg_fps"], 4.5)
        self.assertIsNone(deltas["metric_deltas"]["min_fps"])
        self.assertEqual(
            deltas["rating_changes"]["performance_rating"],
            {"baseline": "Good", "current": "Excellent"}
        )

    def test_compute_deltas_ignores_nan(self):
        deltas = compute_deltas(
            {"metrics": {"avg_fps": math.nan}},
            {"metrics": {"avg_fps": 20.0}}
        )
        self.assertIsNone(deltas["metric_deltas"]["avg_fps"])

    def test_render_markdown(self):
        _, markdown = run_summary(_result(), _result(avg_fps=30.0, choppiness_rating="Smooth"))
        self.assertTrue(markdown.startswith("# Netflix Frame Pacing Summary"))
        self.assertIn("- Average FPS: 28.50", markdown)
        self.assertIn("## Device", markdown)
        self.assertIn("- avg_fps: -1.50", markdown)
        self.assertIn("- choppiness_rating: Smooth -> Moderate", markdown)
        self.assertIn("## Assumptions", markdown)
        self.assertTrue(markdown.endswith("\n"))

    def test_render_markdown_tolerates_empty_input(self):
        markdown = render_markdown({})
        self.assertIn("Unknown App", markdown)
        self.assertIn("- Average FPS: n/a", markdown)
        self.assertNotIn("## Compared to Baseline", markdown)


if __name__ == "__main__":
    unittest.main()
