import unittest

from neoimpact import events
from neoimpact.models import derive_body_from_energy


API_ROW = ["2024-01-01 00:00:00", "0.5", "0.3", "10.1", "S", "20.2", "W", "35.0", "18.2"]


class TestParsing(unittest.TestCase):
    def test_parse_number(self):
        self.assertEqual(events.parse_number("12.5"), 12.5)
        self.assertEqual(events.parse_number(3), 3.0)
        for value in (None, "", "abc", "inf", "nan", True, [1]):
            self.assertIsNone(events.parse_number(value), value)

    def test_parse_signed(self):
        self.assertEqual(events.parse_signed("10", "S"), -10.0)
        self.assertEqual(events.parse_signed("10", " w "), -10.0)
        self.assertEqual(events.parse_signed("10", "N"), 10.0)
        self.assertEqual(events.parse_signed("10", None), 10.0)
        self.assertIsNone(events.parse_signed(None, "S"))


class TestNormalization(unittest.TestCase):
    def test_normalize_api_row(self):
        event = events.normalize_api_row(API_ROW)
        self.assertEqual(event["source"], "api")
        self.assertEqual(event["date"], "2024-01-01 00:00:00")
        self.assertEqual(event["lat"], -10.1)
        self.assertEqual(event["lon"], -20.2)
        self.assertEqual(event["alt_km"], 35.0)
        self.assertEqual(event["vel_kms"], 18.2)
        self.assertEqual(event["impact_energy_kt"], 0.3)
        self.assertEqual(event["energy_kt"], 0.5)

    def test_api_row_without_impact_energy_uses_radiated_energy(self):
        row = list(API_ROW)
        row[2] = None
        row[8] = None
        event = events.normalize_api_row(row)
        self.assertEqual(event["impact_energy_kt"], 0.5)
        self.assertIsNone(event["vel_kms"])

    def test_short_api_row_is_padded(self):
        event = events.normalize_api_row(["2020-02-02"])
        self.assertEqual(event["date"], "2020-02-02")
        self.assertIsNone(event["lat"])

    def test_normalize_sample_row_with_field_index(self):
        index = events.build_field_index(["Date", "Energy", "Impact-E", "Lat", "Lat-Dir", "Lon", "Lon-Dir", "Alt", "Vel"])
        event = events.normalize_sample_row(API_ROW, index)
        self.assertEqual(event["source"], "sample")
        self.assertEqual(event["lat"], -10.1)
        self.assertEqual(event["impact_energy_kt"], 0.3)

    def test_normalize_sample_dict_aliases(self):
        event = events.normalize_sample_row({
            "velocity": "14.5", "alt_km": 30, "lat": 5, "lat_dir": "N",
            "lon": 7, "lon_dir": "W", "impact_energy_kt": 2.1,
        })
        self.assertEqual(event["vel_kms"], 14.5)
        self.assertEqual(event["alt_km"], 30.0)
        self.assertEqual(event["lat"], 5.0)
        self.assertEqual(event["lon"], -7.0)
        self.assertEqual(event["impact_energy_kt"], 2.1)

    def test_unsupported_row_raises(self):
        with self.assertRaises(ValueError):
            events.normalize_sample_row("2024-01-01,0.5")

    def test_normalize_payload_table(self):
        payload = {"fields": ["date", "energy", "impact-e", "lat", "lat-dir", "lon", "lon-dir", "alt", "vel"],
                   "data": [API_ROW, ["x"] * 9]}
        event = events.normalize_payload(payload, chooser=lambda rows: rows[0])
        self.assertEqual(event["vel_kms"], 18.2)

    def test_normalize_payload_table_without_fields(self):
        event = events.normalize_payload({"data": [API_ROW]}, chooser=lambda rows: rows[0])
        self.assertEqual(event["lon"], -20.2)

    def test_normalize_payload_list(self):
        payload = [{"vel": 12.0, "impact-e": 1.5, "date": "2013-02-15"}]
        event = events.normalize_payload(payload, chooser=lambda rows: rows[0])
        self.assertEqual(event["source"], "sample")
        self.assertEqual(event["vel_kms"], 12.0)
        self.assertEqual(event["impact_energy_kt"], 1.5)

    def test_normalize_payload_rejects_empty_or_unknown(self):
        for payload in ([], {}, {"data": []}, "rows", None):
            with self.assertRaises(ValueError):
                events.normalize_payload(payload)


class TestBuildEventPatch(unittest.TestCase):
    def test_energy_and_velocity_derive_body(self):
        event = events.normalize_api_row(API_ROW)
        patch = events.build_event_patch(event, current_velocity=20.0)
        body = derive_body_from_energy(0.3, 18.2)
        self.assertEqual(patch["v_kms"], 18.2)
        self.assertEqual(patch["lat"], -10.1)
        self.assertEqual(patch["lon"], -20.2)
        self.assertEqual(patch["impact_energy_kt"], 0.3)
        self.assertEqual(patch["m_kg"], body.mass_kg)
        self.assertEqual(patch["d_m"], body.diameter_m)

    def test_current_velocity_used_when_event_has_none(self):
        patch = events.build_event_patch({"impact_energy_kt": 2.0}, current_velocity=25.0)
        self.assertNotIn("v_kms", patch)
        self.assertEqual(patch["m_kg"], derive_body_from_energy(2.0, 25.0).mass_kg)

    def test_zero_energy_leaves_body_untouched(self):
        patch = events.build_event_patch({"impact_energy_kt": 0.0, "vel_kms": 20.0})
        self.assertEqual(patch["impact_energy_kt"], 0.0)
        self.assertNotIn("m_kg", patch)
        self.assertNotIn("d_m", patch)

    def test_missing_fields_produce_empty_patch(self):
        self.assertEqual(events.build_event_patch({"date": "2020-01-01"}), {})


if __name__ == '__main__':
    unittest.main()
