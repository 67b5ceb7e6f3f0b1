"""
NEO Impact Estimator - Sample Event Normalization

Fireball records arrive in two shapes: positional rows from the CNEOS
fireball API (``fields``/``data`` table) and hand-written offline samples
(lists of dicts with loosely named keys). This module turns either shape into
one normalized event dictionary and then into a ParameterStore patch.

Fetching the records is left to the caller; everything here is pure.
"""

import logging
import math
import random

from neoimpact.models import derive_body_from_energy

logger = logging.getLogger(__name__)

# Column order of the fireball API when no ``fields`` header is supplied
API_FIELDS = ("date", "energy", "impact-e", "lat", "lat-dir", "lon", "lon-dir", "alt", "vel")

SOURCE_API = "api"
SOURCE_SAMPLE = "sample"


def parse_number(value):
    """
    Parse a numeric field that may be missing, empty or textual.

    Args:
        value: Raw field value (number, numeric string, "" or None).

    Returns:
        float or None: None for missing, non-numeric or non-finite values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_signed(value, direction):
    """Apply a hemisphere letter to a magnitude: S and W are negative."""
    magnitude = parse_number(value)
    if magnitude is None:
        return None
    hemisphere = direction.strip().upper() if isinstance(direction, str) else ""
    if hemisphere in ("S", "W"):
        return -magnitude
    return magnitude


def _first_number(*values):
    for value in values:
        number = parse_number(value)
        if number is not None:
            return number
    return None


def _first_present(*values):
    for value in values:
        if value not in (None, ""):
            return value
    return None


def build_field_index(fields):
    """Map lowercased field names to their column positions."""
    return {str(name).lower(): idx for idx, name in enumerate(fields)}


def normalize_api_row(row):
    """Normalize one positional fireball API row."""
    padded = list(row) + [None] * (len(API_FIELDS) - len(row))
    date, energy_kt, impact_energy_kt, lat, lat_dir, lon, lon_dir, alt_km, vel_kms = padded[:len(API_FIELDS)]
    return {
        "vel_kms": parse_number(vel_kms),
        "alt_km": parse_number(alt_km),
        "date": date,
        "lat": parse_signed(lat, lat_dir),
        "lon": parse_signed(lon, lon_dir),
        "impact_energy_kt": _first_number(impact_energy_kt, energy_kt),
        "energy_kt": parse_number(energy_kt),
        "source": SOURCE_API,
    }


def normalize_sample_row(row, field_index=None):
    """
    Normalize one offline sample row.

    Args:
        row (list or dict): A positional row addressed through
            ``field_index``, or a dict using any of the accepted aliases.
        field_index (dict, optional): Lowercased field name to column index.

    Returns:
        dict: Normalized event with ``source`` set to ``"sample"``.

    Raises:
        ValueError: If the row is neither a list nor a dict.
    """
    if isinstance(row, (list, tuple)):
        index = field_index or {}

        def get(name):
            idx = index.get(name)
            return row[idx] if idx is not None and idx < len(row) else None

        return {
            "vel_kms": parse_number(get("vel")),
            "alt_km": parse_number(get("alt")),
            "date": get("date"),
            "lat": parse_signed(get("lat"), get("lat-dir")),
            "lon": parse_signed(get("lon"), get("lon-dir")),
            "impact_energy_kt": _first_number(get("impact-e"), get("impact_energy_kt"), get("energy")),
            "energy_kt": parse_number(get("energy")),
            "source": SOURCE_SAMPLE,
        }

    if isinstance(row, dict):
        return {
            "vel_kms": parse_number(_first_present(row.get("vel"), row.get("velocity"), row.get("vel_kms"))),
            "alt_km": parse_number(_first_present(row.get("alt"), row.get("alt_km"))),
            "date": row.get("date"),
            "lat": parse_signed(row.get("lat"), _first_present(row.get("lat-dir"), row.get("lat_dir"))),
            "lon": parse_signed(row.get("lon"), _first_present(row.get("lon-dir"), row.get("lon_dir"))),
            "impact_energy_kt": _first_number(row.get("impact-e"), row.get("impact_energy_kt"), row.get("energy")),
            "energy_kt": parse_number(row.get("energy")),
            "source": SOURCE_SAMPLE,
        }

    raise ValueError(f"Unsupported sample row format: {type(row).__name__}")


def normalize_payload(payload, chooser=random.choice):
    """
    Pick one event out of a loaded sample payload and normalize it.

    Args:
        payload: Either a non-empty list of event dicts, or a dict with a
            non-empty ``data`` list and an optional ``fields`` header.
        chooser (callable): Picks one row from a list (random by default).

    Returns:
        dict: The normalized event.

    Raises:
        ValueError: If the payload is empty or has an unsupported shape.
    """
    if isinstance(payload, list) and payload:
        row = chooser(payload)
        if isinstance(row, dict):
            return {**row, **normalize_sample_row(row)}
        return normalize_sample_row(row)

    if isinstance(payload, dict) and isinstance(payload.get("data"), list) and payload["data"]:
        fields = payload.get("fields")
        if not isinstance(fields, list):
            logger.warning("Sample payload has no field header; assuming API column order.")
            fields = list(API_FIELDS)
        return normalize_sample_row(chooser(payload["data"]), build_field_index(fields))

    raise ValueError("Sample data format not supported")


def build_event_patch(event, current_velocity=None):
    """
    Translate a normalized event into a ParameterStore patch.

    Velocity and location are copied when finite. A finite impact energy is
    copied too and, using the event velocity (or ``current_velocity``), turned
    into a body mass and diameter. When no body can be derived the existing
    body parameters are left out of the patch.

    Args:
        event (dict): Normalized event.
        current_velocity (float, optional): Store velocity used when the
            event has none.

    Returns:
        dict: Patch suitable for ``ParameterStore.apply``.
    """
    patch = {}
    velocity = parse_number(event.get("vel_kms"))
    if velocity is not None:
        patch["v_kms"] = velocity
    for key in ("lat", "lon"):
        value = parse_number(event.get(key))
        if value is not None:
            patch[key] = value

    energy_kt = parse_number(event.get("impact_energy_kt"))
    if energy_kt is not None:
        patch["impact_energy_kt"] = energy_kt
        velocity_for_body = velocity if velocity is not None else parse_number(current_velocity)
        if velocity_for_body is not None:
            body = derive_body_from_energy(energy_kt, velocity_for_body)
            if body is not None:
                patch["m_kg"] = body.mass_kg
                patch["d_m"] = body.diameter_m
            else:
                logger.debug(f"No body derivable from {energy_kt} kt at {velocity_for_body} km/s")
    return patch
