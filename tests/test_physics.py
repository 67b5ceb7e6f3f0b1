import unittest
import math

from neoimpact.models import compute_impact, derive_body_from_energy
from neoimpact.utils import convert_energy_kt_to_j


class TestPhysicsScenarios(unittest.TestCase):

    def test_scenario_a_reference_body(self):
        print("\n=== Scenario A (Reference Body) Results ===")
        print("Parameters: m=2e6kg, D=20m, v=20km/s, elevation=70")

        res = compute_impact({"m_kg": 2_000_000, "d_m": 20, "v_kms": 20, "elevation_angle": 70})

        print(f"Entry kinetic energy: {res.energy_entry_j:.2e} J")
        print(f"Angle factor: {res.angle_factor:.4f}")
        print(f"Ground energy: {res.energy_ground_j:.2e} J")
        print(f"Yield: {res.tnt_ton:.0f} t TNT")
        print(f"Radii: {res.radii.severe:.0f} / {res.radii.moderate:.0f} / {res.radii.light:.0f} m")
        print(f"Risk level: {res.risk_level}")

        self.assertAlmostEqual(res.energy_entry_j, 4e14, delta=1.0)
        self.assertAlmostEqual(res.tnt_ton, 16780, delta=50)
        self.assertEqual(res.risk_level, "High")

    def test_scenario_b_chelyabinsk_like(self):
        print("\n=== Scenario B (Fireball Event) Results ===")
        print("Parameters: E=440kt, v=19km/s, elevation=18")

        body = derive_body_from_energy(440, 19)
        print(f"Derived mass: {body.mass_kg:.3e} kg")
        print(f"Derived diameter: {body.diameter_m:.1f} m")

        res = compute_impact({"m_kg": body.mass_kg, "d_m": body.diameter_m,
                              "v_kms": 19, "elevation_angle": 18})
        print(f"Entry kinetic energy: {res.energy_entry_j:.2e} J")
        print(f"Energy lost in atmosphere: {res.energy_loss_pct:.1f} %")
        print(f"Yield: {res.tnt_ton:.0f} t TNT")
        print(f"Risk level: {res.risk_level}")

        self.assertTrue(math.isclose(res.energy_entry_j, convert_energy_kt_to_j(440), rel_tol=1e-9))
        self.assertGreater(res.energy_loss_pct, 0.0)
        self.assertLessEqual(res.energy_loss_pct, 100.0)

    def test_scenario_c_small_grazing_body(self):
        print("\n=== Scenario C (Small Grazing Body) Results ===")
        print("Parameters: D=1m, v=15km/s, elevation=5")

        res = compute_impact({"d_m": 1, "v_kms": 15, "elevation_angle": 5})
        print(f"Mass: {res.mass_kg:.0f} kg")
        print(f"Angle factor: {res.angle_factor:.3e}")
        print(f"Yield: {res.tnt_ton:.3e} t TNT")
        print(f"Risk level: {res.risk_level}")

        self.assertLess(res.angle_factor, 1e-3)
        self.assertEqual(res.risk_level, "Low")


if __name__ == '__main__':
    unittest.main()
