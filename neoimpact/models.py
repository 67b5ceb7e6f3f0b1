"""
NEO Impact Estimator - Core Physics Models

This module contains the impact model: a set of pure functions that turn a
parameter snapshot into an ImpactResult (ground energy, TNT yield, damage
radii, risk level, bulk density, atmospheric loss), and the inverse derivation
of a body (mass, diameter) from a known impact energy and velocity.

Nothing in this module raises on numeric input. Degenerate physics (zero
mass, zero velocity, grazing geometry, non-finite values) resolves to zero or
to the documented floor for the quantity.
"""

import math
import sys
from dataclasses import dataclass

import numpy as np

from neoimpact.thresholds import RADIUS_COEFFICIENTS, classify_risk
from neoimpact.utils import (
    RHO0, H, C_D, DEFAULT_DENSITY,
    MIN_VELOCITY_KMS, MAX_VELOCITY_KMS, MIN_ELEVATION_DEG, MAX_ELEVATION_DEG,
    MIN_DIAMETER_M, MIN_MASS_KG,
    to_float, clamp, kms_to_ms, sphere_volume, cross_section_area,
    convert_energy_kt_to_j, convert_energy_j_to_tons,
)


@dataclass(frozen=True)
class DamageRadii:
    """Concentric damage radii (meters), severe innermost."""
    severe: float
    moderate: float
    light: float


@dataclass(frozen=True)
class ImpactResult:
    """Outputs of one compute pass. Always derivable from the input snapshot."""
    mass_kg: float
    diameter_m: float
    energy_entry_j: float
    energy_ground_j: float
    tnt_ton: float
    angle_factor: float
    radii: DamageRadii
    risk_level: str
    bulk_density: float
    energy_loss_j: float
    energy_loss_pct: float
    elevation_deg: float
    velocity_kms: float


@dataclass(frozen=True)
class DerivedBody:
    """Body reconstructed from a known impact energy."""
    mass_kg: float
    diameter_m: float
    density: float
    energy_j: float


# Input Sanitization
def sanitize_velocity(value):
    """Clamp velocity to [11, 72] km/s; non-finite input becomes 11."""
    velocity = to_float(value)
    if not math.isfinite(velocity):
        return MIN_VELOCITY_KMS
    return clamp(velocity, MIN_VELOCITY_KMS, MAX_VELOCITY_KMS)


def sanitize_elevation(value):
    """Clamp elevation to [5, 90] degrees; non-finite input becomes 5."""
    elevation = to_float(value)
    if not math.isfinite(elevation):
        return MIN_ELEVATION_DEG
    return clamp(elevation, MIN_ELEVATION_DEG, MAX_ELEVATION_DEG)


def sanitize_diameter(value):
    """Floor diameter at 0.05 m; NaN when missing, non-finite or non-positive."""
    diameter = to_float(value)
    if not math.isfinite(diameter) or diameter <= 0:
        return math.nan
    return max(diameter, MIN_DIAMETER_M)


def sanitize_mass(value):
    """Floor mass at 1 kg; NaN when missing, non-finite or non-positive."""
    mass = to_float(value)
    if not math.isfinite(mass) or mass <= 0:
        return math.nan
    return max(mass, MIN_MASS_KG)


# Mass / Diameter / Energy Conversions
def mass_from_energy(energy_j, velocity_ms):
    """Invert E = m v² / 2 for mass; 0 for unusable energy or velocity."""
    energy_j = to_float(energy_j)
    velocity_ms = to_float(velocity_ms)
    if not math.isfinite(energy_j) or energy_j <= 0:
        return 0.0
    if not math.isfinite(velocity_ms) or velocity_ms <= 0:
        return 0.0
    return (2.0 * energy_j) / velocity_ms ** 2


def mass_from_diameter(diameter, density):
    """Mass of a homogeneous sphere; 0 for an unusable diameter or density."""
    density = to_float(density)
    if not math.isfinite(density) or density <= 0:
        return 0.0
    diameter = sanitize_diameter(diameter)
    if not math.isfinite(diameter):
        return 0.0
    return sphere_volume(diameter) * density


def diameter_from_mass(mass_kg, density):
    """
    Diameter of a homogeneous sphere of the given mass and density.

    Returns 0 when mass or density is unusable, otherwise a diameter floored
    at 0.05 m.
    """
    mass_kg = to_float(mass_kg)
    density = to_float(density)
    if not math.isfinite(mass_kg) or mass_kg <= 0:
        return 0.0
    if not math.isfinite(density) or density <= 0:
        return 0.0
    volume = mass_kg / density
    radius = np.cbrt((3.0 * volume) / (4.0 * math.pi))
    return max(float(radius) * 2.0, MIN_DIAMETER_M)


# Mass Resolution
#
# Each step takes the snapshot and the diameter hint and returns a mass, or
# None to defer to the next step. The first mass found wins.
def _mass_from_direct_input(snapshot, diameter_hint):
    mass = sanitize_mass(snapshot.get("m_kg"))
    return mass if math.isfinite(mass) else None


def _mass_from_diameter_input(snapshot, diameter_hint):
    diameter = sanitize_diameter(diameter_hint)
    if not math.isfinite(diameter):
        return None
    mass = mass_from_diameter(diameter, DEFAULT_DENSITY)
    if mass <= 0:
        return None
    return max(mass, MIN_MASS_KG)


def _mass_from_impact_energy(snapshot, diameter_hint):
    energy_kt = to_float(snapshot.get("impact_energy_kt"))
    if not math.isfinite(energy_kt) or energy_kt <= 0:
        return None
    velocity_kms = sanitize_velocity(snapshot.get("v_kms"))
    mass = mass_from_energy(convert_energy_kt_to_j(energy_kt), kms_to_ms(velocity_kms))
    if mass <= 0:
        return None
    return max(mass, MIN_MASS_KG)


MASS_RESOLUTION_STEPS = (
    ("direct", _mass_from_direct_input),
    ("diameter", _mass_from_diameter_input),
    ("impact_energy", _mass_from_impact_energy),
)


def compute_mass(snapshot, diameter_hint=None):
    """
    Resolve the impactor mass from whichever inputs are present.

    Precedence: an explicit mass, then the diameter at the default density,
    then the kinetic-energy inversion of ``impact_energy_kt`` at the snapshot
    velocity. Falls back to the 1 kg floor.

    Args:
        snapshot (Mapping): Parameter snapshot (``m_kg``, ``d_m``, ``v_kms``,
            ``impact_energy_kt``); missing keys are treated as absent.
        diameter_hint (float, optional): Diameter to use instead of
            ``snapshot["d_m"]``.

    Returns:
        float: Mass in kilograms, never below 1 kg.
    """
    snapshot = snapshot or {}
    if diameter_hint is None:
        diameter_hint = snapshot.get("d_m")
    for _name, step in MASS_RESOLUTION_STEPS:
        mass = step(snapshot, diameter_hint)
        if mass is not None:
            return mass
    return MIN_MASS_KG


def resolve_diameter(snapshot, mass_kg, diameter_input):
    """Keep an explicit diameter; otherwise derive it from the resolved mass."""
    if math.isfinite(diameter_input):
        return diameter_input
    derived = diameter_from_mass(mass_kg, DEFAULT_DENSITY)
    if derived > 0:
        return max(derived, MIN_DIAMETER_M)
    fallback = sanitize_diameter(snapshot.get("d_m"))
    if math.isfinite(fallback):
        return fallback
    return MIN_DIAMETER_M


# Energy Calculations
def compute_energy_joules(mass_kg, velocity_kms):
    """
    Kinetic energy (J) at entry; 0 when mass or velocity is non-positive.

    Saturates at the largest float instead of overflowing, so every quantity
    derived from it stays finite.
    """
    mass = sanitize_mass(mass_kg)
    velocity = to_float(velocity_kms)
    if not math.isfinite(mass):
        return 0.0
    if not math.isfinite(velocity) or velocity <= 0:
        return 0.0
    energy = 0.5 * mass * kms_to_ms(sanitize_velocity(velocity)) ** 2
    return min(energy, sys.float_info.max)


# Atmospheric Entry
def compute_angle_factor(mass_kg, area_m2, phi_rad):
    """
    Fraction of entry energy that survives atmospheric passage.

    Exponential stripping through an isothermal atmosphere:

        k = C_D * A * rho0 * H / m
        f = exp(-k / sin(phi))

    Args:
        mass_kg (float): Impactor mass.
        area_m2 (float): Frontal cross-section.
        phi_rad (float): Entry elevation above the horizon, in radians.

    Returns:
        float: f in [0, 1]; 0 for non-positive mass, grazing or retrograde
        geometry (sin(phi) <= 0), or a non-finite result.
    """
    mass_kg = to_float(mass_kg)
    if not math.isfinite(mass_kg) or mass_kg <= 0:
        return 0.0
    phi = to_float(phi_rad)
    if not math.isfinite(phi) or math.sin(phi) <= 0:
        return 0.0
    area = to_float(area_m2)
    if math.isnan(area) or area < 0:
        area = 0.0
    k = (C_D * area * RHO0 * H) / mass_kg
    fraction = math.exp(-k / math.sin(phi))
    if not math.isfinite(fraction):
        return 0.0
    return float(np.clip(fraction, 0.0, 1.0))


# Ground Effects
def compute_radii(energy_ground_j):
    """Cube-root scaled damage radii (m); zero energy gives zero radii."""
    energy = to_float(energy_ground_j)
    if not math.isfinite(energy):
        energy = 0.0
    e_one_third = float(np.cbrt(max(energy, 0.0)))
    return DamageRadii(**{name: k * e_one_third for name, k in RADIUS_COEFFICIENTS})


def compute_density(mass_kg, diameter_m):
    """Back-calculated bulk density (kg/m³); default density when undefined."""
    mass = sanitize_mass(mass_kg)
    diameter = sanitize_diameter(diameter_m)
    if not math.isfinite(mass) or not math.isfinite(diameter):
        return DEFAULT_DENSITY
    volume = sphere_volume(diameter)
    if volume <= 0:
        return DEFAULT_DENSITY
    return mass / volume


def compute_impact(snapshot):
    """
    Compute the full impact estimate for a parameter snapshot.

    Velocity and elevation are clamped first, so the snapshot does not need
    to come from a ParameterStore. The body is reconciled (mass, then
    diameter), the entry energy is attenuated by the angle factor, and the
    ground energy drives yield, radii and risk.

    Args:
        snapshot (Mapping): Parameter snapshot. Keys used: ``v_kms``,
            ``elevation_angle``, ``m_kg``, ``d_m``, ``impact_energy_kt``.

    Returns:
        ImpactResult: The computed estimate.
    """
    snapshot = snapshot or {}
    velocity_kms = sanitize_velocity(snapshot.get("v_kms"))
    elevation_deg = sanitize_elevation(snapshot.get("elevation_angle"))
    diameter_input = sanitize_diameter(snapshot.get("d_m"))

    mass_kg = compute_mass(snapshot, diameter_input)
    diameter_m = resolve_diameter(snapshot, mass_kg, diameter_input)
    area = cross_section_area(diameter_m)

    energy_entry = compute_energy_joules(mass_kg, velocity_kms)
    angle_factor = compute_angle_factor(mass_kg, area, math.radians(elevation_deg))
    energy_ground = energy_entry * angle_factor
    energy_loss = max(0.0, energy_entry - energy_ground)
    energy_loss_pct = (energy_loss / energy_entry) * 100.0 if energy_entry > 0 else 0.0
    tnt_ton = convert_energy_j_to_tons(energy_ground)

    return ImpactResult(
        mass_kg=mass_kg,
        diameter_m=diameter_m,
        energy_entry_j=energy_entry,
        energy_ground_j=energy_ground,
        tnt_ton=tnt_ton,
        angle_factor=angle_factor,
        radii=compute_radii(energy_ground),
        risk_level=classify_risk(tnt_ton),
        bulk_density=compute_density(mass_kg, diameter_m),
        energy_loss_j=energy_loss,
        energy_loss_pct=energy_loss_pct,
        elevation_deg=elevation_deg,
        velocity_kms=velocity_kms,
    )


# Inverse Derivation
def derive_body_from_energy(impact_energy_kt, velocity_kms, density=DEFAULT_DENSITY):
    """
    Reconstruct mass and diameter from a known impact energy and velocity.

    Args:
        impact_energy_kt (float): Impact energy in kilotons TNT.
        velocity_kms (float): Velocity in km/s, clamped to [11, 72].
        density (float): Bulk density used for the diameter; an unusable value
            falls back to 3300 kg/m³.

    Returns:
        DerivedBody or None: None when the energy or the velocity is
        non-finite or non-positive. Callers must then leave the existing body
        parameters unchanged.
    """
    energy_kt = to_float(impact_energy_kt)
    velocity = to_float(velocity_kms)
    if not math.isfinite(energy_kt) or energy_kt <= 0:
        return None
    if not math.isfinite(velocity) or velocity <= 0:
        return None

    energy_j = convert_energy_kt_to_j(energy_kt)
    mass_kg = mass_from_energy(energy_j, kms_to_ms(sanitize_velocity(velocity)))
    if not math.isfinite(mass_kg) or mass_kg <= 0:
        return None

    density_value = to_float(density)
    if not math.isfinite(density_value) or density_value <= 0:
        density_value = DEFAULT_DENSITY

    return DerivedBody(
        mass_kg=max(mass_kg, MIN_MASS_KG),
        diameter_m=diameter_from_mass(mass_kg, density_value),
        density=density_value,
        energy_j=energy_j,
    )
