import json
import os
import tempfile
import unittest

import matplotlib

matplotlib.use("Agg")

from matplotlib.colors import to_hex

from papertrail.scale import DENSITY_COLORS
from papertrail.visualize import plot_bucket_distribution, plot_completeness

LOOKUP = {
    "1001": {"name": "Flensburg", "count": 2, "zeitungen": [{"name": "A"}, {"name": "B"}]},
    "1002": {"name": "Kiel", "count": 6, "zeitungen": [{"name": str(i)} for i in range(6)]},
    "1003": {"name": "Lübeck", "count": 0, "zeitungen": []},
}


class TestCoverageCharts(unittest.TestCase):
    def test_bucket_distribution_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "zeitungen_by_ags.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(LOOKUP, f)
            out = os.path.join(tmp, "buckets.png")
            fig = plot_bucket_distribution(path, output_path=out)
            self.assertTrue(os.path.exists(out))
        heights = [patch.get_height() for patch in fig.axes[0].patches]
        self.assertEqual(heights, [1, 0, 0, 1, 0, 1])

    def test_bucket_distribution_uses_map_palette(self):
        with tempfile.TemporaryDirectory() as tmp:
            fig = plot_bucket_distribution(LOOKUP, output_path=os.path.join(tmp, "b.png"))
        first = fig.axes[0].patches[0].get_facecolor()
        self.assertEqual(to_hex(first).lower(), DENSITY_COLORS[0].lower())

    def test_bucket_distribution_rejects_empty(self):
        with self.assertRaises(ValueError):
            plot_bucket_distribution({})

    def test_completeness(self):
        stats = {
            "with_verlag": 3, "without_verlag": 1, "with_website": 2,
            "with_erscheinungsort": 4, "with_bundesland": 0,
        }
        with tempfile.TemporaryDirectory() as tmp:
            out = os.path.join(tmp, "completeness.png")
            fig = plot_completeness(stats, output_path=out)
            self.assertTrue(os.path.exists(out))
        widths = [patch.get_width() for patch in fig.axes[0].patches]
        self.assertEqual(widths[:4], [3, 2, 4, 0])
        self.assertEqual(widths[4:], [1, 2, 0, 4])

    def test_completeness_rejects_empty(self):
        with self.assertRaises(ValueError):
            plot_completeness({})


if __name__ == "__main__":
    unittest.main()
