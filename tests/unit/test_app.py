import unittest

from app import create_app
from neoimpact.state import DEFAULTS


API_ROW = ["2024-01-01 00:00:00", "0.5", "0.3", "10.1", "S", "20.2", "W", "35.0", "18.2"]


class TestImpactApi(unittest.TestCase):
    def setUp(self):
        self.app = create_app({"TESTING": True, "LANGUAGE": "en"})
        self.client = self.app.test_client()

    def tearDown(self):
        self.app.extensions["neoimpact"]["orchestrator"].close()

    def test_state_has_computed_outputs(self):
        response = self.client.get("/state")
        self.assertEqual(response.status_code, 200)
        state = response.get_json()
        self.assertEqual(state["v_kms"], DEFAULTS["v_kms"])
        self.assertEqual(state["RiskLevel"], "High")
        self.assertGreater(state["TNT_ton"], 0)

    def test_parameters_are_sanitized(self):
        response = self.client.post("/parameters", json={"v_kms": 5})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["changed"])
        self.assertEqual(body["state"]["v_kms"], 11)

    def test_unchanged_parameters(self):
        body = self.client.post("/parameters", json={"v_kms": DEFAULTS["v_kms"]}).get_json()
        self.assertFalse(body["changed"])

    def test_non_finite_raw_parameter_is_not_stored(self):
        response = self.client.post("/parameters", data='{"extra": NaN}', content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["changed"])
        self.assertNotIn("extra", self.client.get("/state").get_json())

    def test_non_json_body_is_rejected(self):
        for route in ("/parameters", "/simulate", "/derive", "/events"):
            response = self.client.post(route, data="v_kms=5", content_type="text/plain")
            self.assertEqual(response.status_code, 400, route)
            self.assertIn("error", response.get_json())
        response = self.client.post("/parameters", json=[1, 2])
        self.assertEqual(response.status_code, 400)

    def test_reset(self):
        self.client.post("/parameters", json={"v_kms": 60})
        state = self.client.post("/reset").get_json()
        self.assertEqual(state["v_kms"], DEFAULTS["v_kms"])
        self.assertEqual(state["RiskLevel"], "High")

    def test_simulate_does_not_touch_store(self):
        response = self.client.post("/simulate", json={"v_kms": 70, "language": "el"})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertIn("Εκτίμηση Πρόσκρουσης", body["results_text"])
        self.assertEqual(body["results_data"]["body"]["velocity_kms"], 70)
        self.assertEqual(self.client.get("/state").get_json()["v_kms"], DEFAULTS["v_kms"])

    def test_derive(self):
        response = self.client.post("/derive", json={"impact_energy_kt": 10, "v_kms": 20})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertAlmostEqual(body["mass_kg"], 2 * 10 * 4.184e12 / 20000.0 ** 2)
        self.assertEqual(body["density"], 3300.0)

    def test_derive_without_energy(self):
        response = self.client.post("/derive", json={"impact_energy_kt": 0, "v_kms": 20})
        self.assertEqual(response.status_code, 422)

    def test_event_row(self):
        response = self.client.post("/events", json={"row": API_ROW})
        self.assertEqual(response.status_code, 200)
        state = response.get_json()
        self.assertEqual(state["source_meta"]["source"], "api")
        self.assertEqual(state["v_kms"], 18.2)
        self.assertEqual(state["lat"], -10.1)
        self.assertEqual(state["lon"], -20.2)

    def test_event_payload(self):
        payload = [{"date": "2013-02-15", "vel": 19.0, "impact-e": 440.0, "lat": 54.8, "lat-dir": "N",
                    "lon": 61.1, "lon-dir": "E"}]
        state = self.client.post("/events", json={"payload": payload}).get_json()
        self.assertEqual(state["source_meta"]["source"], "sample")
        self.assertEqual(state["impact_energy_kt"], 440.0)

    def test_event_errors(self):
        self.assertEqual(self.client.post("/events", json={"row": "x"}).status_code, 400)
        self.assertEqual(self.client.post("/events", json={"payload": []}).status_code, 400)

    def test_unsupported_language_falls_back(self):
        app = create_app({"LANGUAGE": "xx"})
        self.assertEqual(app.config["LANGUAGE"], "en")
        app.extensions["neoimpact"]["orchestrator"].close()


if __name__ == "__main__":
    unittest.main()
