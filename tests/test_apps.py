import unittest

from framepace.apps import (
    derive_app_name_from_package,
    extract_package_name,
    format_file_name_to_app_name,
    infer_app_category
)


class TestDeriveAppName(unittest.TestCase):
    def test_exact_mapping(self):
        self.assertEqual(derive_app_name_from_package("com.netflix.NGP.ProjectKraken"), "SquidGames: Unleashed")
        self.assertEqual(derive_app_name_from_package("com.whatsapp"), "WhatsApp")

    def test_substring_hints(self):
        self.assertEqual(derive_app_name_from_package("com.netflix.beta"), "Netflix")
        self.assertEqual(derive_app_name_from_package("com.example.YouTubeKids"), "YouTube")

    def test_last_segment(self):
        self.assertEqual(derive_app_name_from_package("com.studio.racer"), "Racer")

    def test_unknown(self):
        self.assertEqual(derive_app_name_from_package("singleword"), "Unknown App")
        self.assertEqual(derive_app_name_from_package("Unknown Package"), "Unknown App")
        self.assertEqual(derive_app_name_from_package(None), "Unknown App")


class TestPackageAndFileNames(unittest.TestCase):
    def test_extract_package_name(self):
        self.assertEqual(extract_package_name("com.example.app.run1"), "com.example.app")
        self.assertIsNone(extract_package_name("com.example"))
        self.assertIsNone(extract_package_name("T1"))

    def test_format_file_name(self):
        self.assertEqual(format_file_name_to_app_name("genshin_impact_fps.txt"), "Genshin Impact FPS")
        self.assertEqual(format_file_name_to_app_name("racingGame.csv"), "Racing Game")
        self.assertEqual(format_file_name_to_app_name("final-fantasy-vii"), "Final Fantasy VII")
        self.assertEqual(format_file_name_to_app_name(""), "Unknown App")

    def test_infer_category(self):
        self.assertEqual(infer_app_category("Racer", "com.unity.racer"), "Gaming")
        self.assertEqual(infer_app_category("GPU Benchmark", "com.bench"), "Benchmark")
        self.assertEqual(infer_app_category("Video Player", "com.player"), "Media")
        self.assertEqual(infer_app_category("Chrome", "com.android.chrome"), "Browser")
        self.assertEqual(infer_app_category(None, None), "Productivity")


if __name__ == "__main__":
    unittest.main()
