"""
NEO Impact Estimator - Utility Functions and Constants Module

This module provides the physical constants, input bounds and small numeric
helpers shared by the impact model, the parameter store and the geometry
helpers. It includes:

1. Physical and atmospheric constants for the entry model
2. Domain bounds applied to velocity, elevation, mass and diameter
3. Unit conversion utilities (distance, velocity, energy)
4. Sphere geometry helpers used for mass/diameter reconciliation
5. Numeric coercion helpers that never raise

The constants belong to the model and are not configurable at runtime.
"""

import math
import numbers

# =============================================================================
# PHYSICAL AND ATMOSPHERIC CONSTANTS
# =============================================================================

# Sea level atmospheric density (kg/m³) - reference density for the exponential atmosphere
RHO0 = 1.225

# Atmospheric scale height (meters) - height over which air density drops by a factor e
H = 8500.0

# Drag coefficient (dimensionless) - fixed, exposed to collaborators as a read-only field
C_D = 1.0

# Default bulk density of the impactor (kg/m³) - ordinary chondrite
DEFAULT_DENSITY = 3300.0

# Earth's mean radius (kilometers) - used for great circle destination points
R_EARTH_KM = 6371.0

# =============================================================================
# ENERGY CONVERSION CONSTANTS
# =============================================================================

# Joules in one kiloton of TNT
KT_TO_J = 4.184e12

# Joules in one ton of TNT
J_PER_TON_TNT = 4.184e9

# =============================================================================
# DOMAIN BOUNDS
# =============================================================================

# Plausible atmospheric impact speeds (km/s); values outside are clamped, never rejected
MIN_VELOCITY_KMS = 11.0
MAX_VELOCITY_KMS = 72.0

# Entry elevation above the horizon (degrees)
MIN_ELEVATION_DEG = 5.0
MAX_ELEVATION_DEG = 90.0

# Smallest body the model will describe
MIN_DIAMETER_M = 0.05
MIN_MASS_KG = 1.0

# =============================================================================
# NUMERIC COERCION
# =============================================================================

def to_float(value):
    """
    Coerce a raw input into a float without raising.

    Booleans, strings, ``None`` and any other non-numeric object become NaN so
    that downstream sanitizers treat them exactly like a non-finite number.

    Parameters
    ----------
    value : object
        Raw candidate value

    Returns
    -------
    float
        The numeric value, or NaN when the input is not a real number
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return math.nan
    try:
        return float(value)
    except (OverflowError, ValueError):
        return math.nan


def is_finite_number(value):
    """Return True if value is a real, finite number (bools excluded)."""
    return math.isfinite(to_float(value))


def clamp(value, lower=None, upper=None):
    """
    Clamp a value into an optional closed interval.

    Parameters
    ----------
    value : float
        Value to clamp
    lower : float, optional
        Lower bound, ignored when None
    upper : float, optional
        Upper bound, ignored when None

    Returns
    -------
    float
        The clamped value
    """
    result = value
    if lower is not None:
        result = max(result, lower)
    if upper is not None:
        result = min(result, upper)
    return result

# =============================================================================
# UNIT CONVERSION UTILITIES
# =============================================================================

def m_to_km(m):
    """Convert meters to kilometers."""
    return m / 1000.0


def kms_to_ms(velocity_kms):
    """Convert a velocity from km/s to m/s."""
    return velocity_kms * 1000.0


def convert_energy_kt_to_j(energy_kt):
    """
    Convert energy from kilotons of TNT equivalent to Joules.

    Parameters
    ----------
    energy_kt : float
        Energy in kilotons TNT equivalent

    Returns
    -------
    float
        Energy in Joules
    """
    return energy_kt * KT_TO_J


def convert_energy_j_to_tons(energy_j):
    """
    Convert energy from Joules to tons of TNT equivalent.

    Parameters
    ----------
    energy_j : float
        Energy in Joules

    Returns
    -------
    float
        Energy in tons TNT equivalent (1 ton = 4.184 × 10^9 J)
    """
    return energy_j / J_PER_TON_TNT

# =============================================================================
# SPHERE GEOMETRY
# =============================================================================

def sphere_volume(diameter):
    """
    Volume of a sphere from its diameter.

    Parameters
    ----------
    diameter : float
        Sphere diameter (meters)

    Returns
    -------
    float
        Volume in cubic meters
    """
    radius = diameter / 2.0
    return (4.0 / 3.0) * math.pi * radius ** 3


def cross_section_area(diameter):
    """Frontal area of a sphere (m²); zero for a non-positive diameter."""
    if diameter <= 0:
        return 0.0
    radius = diameter / 2.0
    return math.pi * radius ** 2
