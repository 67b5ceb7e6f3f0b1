"""
NEO Impact Estimator - Results Processing Module

This module connects the impact model to the parameter store and formats
results for presentation.

Key pieces:
- format_impact_summary(): Maps an ImpactResult onto the store's output fields
- ImpactOrchestrator: Recomputes the impact whenever the store's inputs change
  and writes the outputs back; also loads sample events into the store
- run_simulation_full(): Stateless pipeline for one snapshot, returning a
  human-readable report and structured data for API responses
- format_number(), format_scientific(), describe_source(): display helpers
"""

import logging
import math
from dataclasses import asdict

from neoimpact.events import build_event_patch
from neoimpact.map_utils import build_damage_zones, direction_vector
from neoimpact.models import compute_impact
from neoimpact.state import DEFAULTS
from neoimpact.thresholds import get_risk_label
from neoimpact.translation_utils import get_translation
from neoimpact.utils import to_float

logger = logging.getLogger(__name__)

INPUT_FIELDS = ("lat", "lon", "azimuth", "elevation_angle", "v_kms", "m_kg", "d_m", "Cd")

# Output field -> (display formatter, unit)
OUTPUT_FIELDS = (
    ("E_J", "scientific", "J"),
    ("TNT_ton", 2, "ton TNT"),
    ("R_severe", 1, "m"),
    ("R_moderate", 1, "m"),
    ("R_light", 1, "m"),
    ("RiskLevel", None, ""),
    ("AngleFactor", 3, ""),
    ("rho_body", 0, "kg/m3"),
    ("EnergyLoss_J", "scientific", "J"),
    ("EnergyLoss_pct", 1, "%"),
)


def format_impact_summary(result):
    """
    Map an ImpactResult onto the store output fields.

    Args:
        result (ImpactResult): Output of ``compute_impact``.

    Returns:
        dict: Output patch (``E_J`` is the ground-coupled energy).
    """
    return {
        "E_J": result.energy_ground_j,
        "TNT_ton": result.tnt_ton,
        "R_severe": result.radii.severe,
        "R_moderate": result.radii.moderate,
        "R_light": result.radii.light,
        "RiskLevel": result.risk_level,
        "AngleFactor": result.angle_factor,
        "rho_body": result.bulk_density,
        "EnergyLoss_J": result.energy_loss_j,
        "EnergyLoss_pct": result.energy_loss_pct,
    }


# Display Formatting
def format_number(value, decimals):
    """Fixed-point with thousands separators; exponent notation at |v| >= 1e6."""
    value = to_float(value)
    if not math.isfinite(value):
        return "-"
    if abs(value) >= 1e6:
        return f"{value:.{decimals}e}"
    return f"{value:,.{decimals}f}"


def format_scientific(value, significant_digits=3):
    value = to_float(value)
    if not math.isfinite(value):
        return "-"
    return f"{value:.{max(0, significant_digits - 1)}e}"


def format_output_value(key, value):
    for field, formatter, _unit in OUTPUT_FIELDS:
        if field != key:
            continue
        if formatter == "scientific":
            return format_scientific(value, 3)
        if formatter is None:
            return str(value) if value is not None else "-"
        return format_number(value, formatter)
    return str(value)


def describe_source(meta, language=None):
    """
    One-line provenance note for the last loaded sample event.

    Args:
        meta (dict or None): Normalized event stored as ``source_meta``.
        language (str, optional): Override language for the labels.

    Returns:
        str: Parts joined by " | ", or "" when there is no provenance.
    """
    if not meta:
        return ""
    parts = []
    source = meta.get("source")
    if source in ("api", "sample"):
        parts.append(get_translation(f"source.{source}", source, language=language))
    if meta.get("date"):
        parts.append(f"{get_translation('source.event', 'Event', language=language)}: {meta['date']}")
    velocity = to_float(meta.get("vel_kms"))
    if math.isfinite(velocity):
        label = get_translation("source.velocity", "Velocity", language=language)
        parts.append(f"{label} {format_number(velocity, 2)} km/s")
    energy_kt = to_float(meta.get("impact_energy_kt"))
    if math.isfinite(energy_kt):
        label = get_translation("source.impactEnergy", "Impact Energy", language=language)
        parts.append(f"{label} {format_number(energy_kt, 2)} kt")
    return " | ".join(parts)


def format_results_text(snapshot, language=None):
    """Render a snapshot (inputs and outputs) as a plain-text report."""
    lines = [get_translation("results.title", "Impact Estimate", language=language), ""]

    lines.append(get_translation("results.inputs", "Input Parameters", language=language))
    for key in INPUT_FIELDS:
        label = get_translation(f"inputs.{key}", key, language=language)
        lines.append(f"  {label}: {snapshot.get(key)}")

    lines.append("")
    lines.append(get_translation("results.outputs", "Impact Outputs", language=language))
    for key, _formatter, unit in OUTPUT_FIELDS:
        label = get_translation(f"outputs.{key}", key, language=language)
        value = snapshot.get(key)
        if key == "RiskLevel":
            text = get_risk_label(value, language=language)
        else:
            text = format_output_value(key, value)
        lines.append(f"  {label}: {text} {unit}".rstrip())

    source_note = describe_source(snapshot.get("source_meta"), language=language)
    if source_note:
        lines.append("")
        lines.append(f"{get_translation('results.source', 'Source', language=language)}: {source_note}")
    return "\n".join(lines)


def run_simulation_full(snapshot, language=None):
    """
    Executes the impact estimate for one snapshot without touching any store.

    Missing input keys take the store defaults.

    Args:
        snapshot (Mapping): Parameter snapshot.
        language (str, optional): Language for the text report.

    Returns:
        tuple: (results_text, results_data) where results_data holds
        ``input_parameters``, ``body``, ``energy``, ``damage_radii``,
        ``risk_level``, ``summary`` and ``visualization``.
    """
    inputs = {**DEFAULTS, **{k: v for k, v in dict(snapshot).items() if v is not None}}
    result = compute_impact(inputs)
    summary = format_impact_summary(result)
    resolved = {**inputs, **summary}

    results_data = {
        'input_parameters': {key: inputs.get(key) for key in INPUT_FIELDS + ("impact_energy_kt",)},
        'body': {
            'mass_kg': result.mass_kg,
            'diameter_m': result.diameter_m,
            'bulk_density': result.bulk_density,
            'velocity_kms': result.velocity_kms,
            'elevation_deg': result.elevation_deg,
        },
        'energy': {
            'entry_joules': result.energy_entry_j,
            'ground_joules': result.energy_ground_j,
            'tnt_ton': result.tnt_ton,
            'angle_factor': result.angle_factor,
            'loss_joules': result.energy_loss_j,
            'loss_pct': result.energy_loss_pct,
        },
        'damage_radii': asdict(result.radii),
        'risk_level': result.risk_level,
        'summary': summary,
        'visualization': {
            'damage_zones': build_damage_zones(resolved),
            'direction': direction_vector(resolved),
        },
    }
    return format_results_text(resolved, language=language), results_data


class ImpactOrchestrator:
    """
    Keeps a ParameterStore's outputs in sync with its inputs.

    On every snapshot the store delivers, the impact is recomputed and the
    summary is written back as an output patch. The write-back produces one
    more notification, whose recomputation yields the same outputs and
    therefore commits nothing.
    """

    def __init__(self, store):
        self.store = store
        self._applying_computed = False
        self._unsubscribe = store.subscribe(self._on_snapshot)

    def _on_snapshot(self, snapshot):
        if not self._applying_computed:
            self._recompute(snapshot)

    def _recompute(self, snapshot):
        self._applying_computed = True
        try:
            summary = format_impact_summary(compute_impact(snapshot))
            if self.store.apply(summary):
                logger.debug(f"Recomputed impact: {summary['TNT_ton']:.2f} t TNT, risk {summary['RiskLevel']}")
            return summary
        finally:
            self._applying_computed = False

    def recompute(self):
        """Force a compute pass on the current snapshot and return the summary."""
        return self._recompute(self.store.snapshot)

    def load_event(self, event):
        """
        Apply a normalized sample event to the store.

        The event's velocity and location are applied, its impact energy is
        turned into a body (mass, diameter) when possible, and the event is
        recorded as ``source_meta``.

        Returns:
            Mapping: The store snapshot after the update.
        """
        patch = build_event_patch(event, current_velocity=self.store.get("v_kms"))
        patch["source_meta"] = dict(event)
        self.store.apply(patch)
        logger.info(f"Loaded {event.get('source', 'unknown')} event {event.get('date')}: {sorted(patch)}")
        return self.store.snapshot

    def close(self):
        self._unsubscribe()
