import unittest

from neoimpact import thresholds


class TestRiskClassification(unittest.TestCase):
    def test_boundaries_are_half_open(self):
        self.assertEqual(thresholds.classify_risk(99.999), "Low")
        self.assertEqual(thresholds.classify_risk(100.0), "Medium")
        self.assertEqual(thresholds.classify_risk(9999.999), "Medium")
        self.assertEqual(thresholds.classify_risk(10000.0), "High")

    def test_zero_yield_is_low(self):
        self.assertEqual(thresholds.classify_risk(0.0), "Low")

    def test_radius_coefficients_increase(self):
        coefficients = [k for _name, k in thresholds.RADIUS_COEFFICIENTS]
        self.assertEqual(coefficients, sorted(coefficients))
        self.assertEqual(
            [name for name, _k in thresholds.RADIUS_COEFFICIENTS],
            ["severe", "moderate", "light"],
        )

    def test_risk_label_localized(self):
        self.assertEqual(thresholds.get_risk_label("High", language="en"), "High")
        self.assertEqual(thresholds.get_risk_label("High", language="el"), "Υψηλός")

    def test_risk_label_unknown_level_falls_back(self):
        self.assertEqual(thresholds.get_risk_label("Extreme"), "Extreme")


if __name__ == '__main__':
    unittest.main()
