import unittest

from papertrail.records import NewspaperRecord, RegionEntry, dump_lookup, load_lookup, normalize_ags


class TestNormalizeAgs(unittest.TestCase):
    def test_strips_leading_zeros(self):
        self.assertEqual(normalize_ags("01001"), "1001")
        self.assertEqual(normalize_ags("09162"), "9162")

    def test_keeps_codes_without_padding(self):
        self.assertEqual(normalize_ags("11000"), "11000")
        self.assertEqual(normalize_ags(16063), "16063")

    def test_idempotent(self):
        for raw in ("01001", "001", "11000", "05315", "0"):
            with self.subTest(raw=raw):
                once = normalize_ags(raw)
                self.assertEqual(normalize_ags(once), once)

    def test_rejects_non_numeric(self):
        for raw in ("", "  ", "abc", "01-001", None, "1.5"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    normalize_ags(raw)


class TestRecords(unittest.TestCase):
    def test_absent_optional_fields_are_omitted(self):
        record = NewspaperRecord.from_dict({"name": "Flensburger Tageblatt"})
        self.assertIsNone(record.website)
        self.assertEqual(record.to_dict(), {"name": "Flensburger Tageblatt", "verlag": ""})

    def test_empty_optional_field_is_kept(self):
        record = NewspaperRecord.from_dict({"name": "A", "website": ""})
        self.assertEqual(record.website, "")
        self.assertIn("website", record.to_dict())

    def test_unknown_fields_pass_through(self):
        raw = {"name": "A", "verlag": "V", "auflage": 12000}
        self.assertEqual(NewspaperRecord.from_dict(raw).to_dict()["auflage"], 12000)

    def test_region_defaults(self):
        entry = RegionEntry.from_dict({})
        self.assertEqual(entry.name, "")
        self.assertEqual(entry.count, 0)
        self.assertEqual(entry.zeitungen, ())

    def test_region_rejects_bad_count(self):
        with self.assertRaises(ValueError):
            RegionEntry.from_dict({"count": "viele"})
        with self.assertRaises(ValueError):
            RegionEntry.from_dict({"count": -1})

    def test_region_count_is_not_coerced(self):
        for raw in (2.7, "3", True, False, [2]):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    RegionEntry.from_dict({"count": raw})
        self.assertEqual(RegionEntry.from_dict({"count": 4}).count, 4)
        self.assertEqual(RegionEntry.from_dict({"count": 3.0}).count, 3)
        self.assertEqual(RegionEntry.from_dict({"count": None}).count, 0)

    def test_lookup_round_trip_keeps_order(self):
        payload = {
            "1001": {"name": "Flensburg", "count": 2, "zeitungen": [{"name": "B"}, {"name": "A"}]},
        }
        lookup = load_lookup(payload)
        dumped = dump_lookup(lookup)
        self.assertEqual([z["name"] for z in dumped["1001"]["zeitungen"]], ["B", "A"])
        self.assertEqual(dumped["1001"]["count"], 2)


if __name__ == "__main__":
    unittest.main()
