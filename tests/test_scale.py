import unittest

from papertrail.scale import (
    DENSITY_COLORS,
    NO_DATA_COLOR,
    bucket_index,
    color_for_count,
    legend_rows,
)


class TestColorScale(unittest.TestCase):
    def test_zero_and_missing_are_no_data(self):
        self.assertEqual(color_for_count(0), NO_DATA_COLOR)
        self.assertEqual(color_for_count(None), NO_DATA_COLOR)
        self.assertIsNone(bucket_index(0))

    def test_no_data_color_is_distinct(self):
        self.assertNotIn(NO_DATA_COLOR, DENSITY_COLORS)

    def test_inclusive_lower_bounds(self):
        self.assertEqual(color_for_count(1), DENSITY_COLORS[4])
        self.assertEqual(color_for_count(2), DENSITY_COLORS[3])
        self.assertEqual(color_for_count(3), DENSITY_COLORS[2])
        self.assertEqual(color_for_count(4), DENSITY_COLORS[1])
        self.assertEqual(color_for_count(5), DENSITY_COLORS[0])
        self.assertEqual(color_for_count(42), DENSITY_COLORS[0])

    def test_bucket_index_non_increasing(self):
        previous = bucket_index(1)
        for count in range(2, 30):
            current = bucket_index(count)
            self.assertLessEqual(current, previous, msg=f"count={count}")
            previous = current

    def test_legend_matches_scale(self):
        rows = legend_rows()
        self.assertEqual(rows[0], ("5+", DENSITY_COLORS[0]))
        self.assertEqual(rows[4], ("1", DENSITY_COLORS[4]))
        self.assertEqual(rows[-1][1], NO_DATA_COLOR)
        self.assertEqual(len(rows), 6)


if __name__ == "__main__":
    unittest.main()
