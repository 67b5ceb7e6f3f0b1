"""
NEO Impact Estimator - Parameter Store

The ParameterStore is the single source of truth for the current impact
inputs and the last computed outputs. Every write passes through a per-field
sanitizer, and observers are notified synchronously with a read-only snapshot
whenever a write actually changes something.

A composition root (see ``app.create_app``) owns one store; tests build as
many isolated stores as they need.
"""

import copy
import logging
import math
import time
from types import MappingProxyType

from neoimpact.thresholds import RISK_LEVELS, RISK_LOW
from neoimpact.utils import (
    C_D, MIN_VELOCITY_KMS, MAX_VELOCITY_KMS, MIN_ELEVATION_DEG, MAX_ELEVATION_DEG,
    MIN_DIAMETER_M, MIN_MASS_KG, to_float, clamp, is_finite_number,
)

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULTS = {
    "lat": 0.0,
    "lon": 0.0,
    "azimuth": 45.0,
    "elevation_angle": 70.0,
    "v_kms": 20.0,
    "m_kg": 2_000_000.0,
    "d_m": 20.0,
    "impact_energy_kt": 0.0,
    "Cd": C_D,
}

OUTPUT_DEFAULTS = {
    "E_J": 0.0,
    "TNT_ton": 0.0,
    "R_severe": 0.0,
    "R_moderate": 0.0,
    "R_light": 0.0,
    "RiskLevel": RISK_LOW,
    "AngleFactor": 0.0,
    "rho_body": 0.0,
    "EnergyLoss_J": 0.0,
    "EnergyLoss_pct": 0.0,
}

# =============================================================================
# FIELD SANITIZERS
# =============================================================================
#
# Each sanitizer is a pure (candidate, current) -> resolved function. Returning
# ``current`` rejects the write. None of them raise.

def in_range(lower=None, upper=None, default=None):
    """Clamp finite numbers into [lower, upper]; reject anything else."""
    def sanitize(candidate, current):
        fallback = current if current is not None else default
        value = to_float(candidate)
        if not math.isfinite(value):
            return fallback
        return clamp(value, lower, upper)
    return sanitize


def finite(default=None):
    """Accept any finite number unchanged; reject anything else."""
    return in_range(default=default)


def one_of(choices, default=None):
    def sanitize(candidate, current):
        if candidate in choices:
            return candidate
        return current if current is not None else default
    return sanitize


def constant(value):
    """Pin a field to ``value`` regardless of what is written."""
    def sanitize(candidate, current):
        return value
    return sanitize


FIELD_SANITIZERS = {
    "lat": finite(DEFAULTS["lat"]),
    "lon": finite(DEFAULTS["lon"]),
    "azimuth": finite(DEFAULTS["azimuth"]),
    "elevation_angle": in_range(MIN_ELEVATION_DEG, MAX_ELEVATION_DEG, DEFAULTS["elevation_angle"]),
    "v_kms": in_range(MIN_VELOCITY_KMS, MAX_VELOCITY_KMS, DEFAULTS["v_kms"]),
    "m_kg": in_range(MIN_MASS_KG, None, DEFAULTS["m_kg"]),
    "d_m": in_range(MIN_DIAMETER_M, None, DEFAULTS["d_m"]),
    "impact_energy_kt": in_range(0.0, None, DEFAULTS["impact_energy_kt"]),
    "Cd": constant(DEFAULTS["Cd"]),
    "RiskLevel": one_of(RISK_LEVELS, OUTPUT_DEFAULTS["RiskLevel"]),
}
FIELD_SANITIZERS.update({
    key: finite(default) for key, default in OUTPUT_DEFAULTS.items() if key != "RiskLevel"
})


# =============================================================================
# STORE
# =============================================================================

class ParameterStore:
    """
    Reactive store for impact parameters and computed outputs.

    Writes go through ``apply`` (sanitized, notifies only on change) and
    ``reset`` (always notifies). Observers registered with ``subscribe``
    receive a read-only snapshot immediately and after every commit.
    """

    def __init__(self, sanitizers=None):
        self._sanitizers = dict(FIELD_SANITIZERS if sanitizers is None else sanitizers)
        self._data = {
            **DEFAULTS,
            **OUTPUT_DEFAULTS,
            "last_updated": time.time(),
            "source_meta": None,
        }
        self._observers = {}
        self._next_token = 0
        self._sequence = 0
        self._pending = []
        self._notifying = False

    @property
    def snapshot(self):
        """Read-only deep copy of the current state."""
        return MappingProxyType(copy.deepcopy(self._data))

    def get(self, key, default=None):
        return copy.deepcopy(self._data.get(key, default))

    def apply(self, patch):
        """
        Apply a patch of field updates.

        Keys whose value is None are skipped. Every other value is resolved
        through its field sanitizer against the current value. The resolved
        values are committed together; observers are notified once if any of
        them differs from what was stored.

        Args:
            patch (Mapping): Field name to candidate value.

        Returns:
            bool: True if the patch changed the store.
        """
        resolved = {}
        for key, value in patch.items():
            if value is None:
                continue
            current = self._data.get(key)
            sanitizer = self._sanitizers.get(key)
            if sanitizer is not None:
                candidate = sanitizer(value, current)
            elif isinstance(value, float) and not is_finite_number(value):
                continue
            else:
                candidate = copy.deepcopy(value)
            if key in self._data and self._data[key] == candidate:
                continue
            resolved[key] = candidate

        if not resolved:
            return False

        self._commit(resolved)
        logger.debug(f"Committed {sorted(resolved)}")
        return True

    def reset(self):
        """Restore every field to its default and clear the sample provenance."""
        self._data = {
            **self._data,
            **DEFAULTS,
            **OUTPUT_DEFAULTS,
            "source_meta": None,
        }
        self._commit({})
        logger.debug("Store reset to defaults")

    def subscribe(self, observer):
        """
        Register an observer and deliver the current snapshot to it.

        Args:
            observer (callable): Called with a read-only snapshot.

        Returns:
            callable: Unsubscribes the observer. Safe to call more than once
            and from inside a notification.
        """
        token = self._next_token
        self._next_token += 1
        # Commits up to the current sequence are covered by the immediate
        # delivery below.
        self._observers[token] = (observer, self._sequence)
        observer(self.snapshot)

        def unsubscribe():
            self._observers.pop(token, None)

        return unsubscribe

    @property
    def observer_count(self):
        return len(self._observers)

    def _commit(self, resolved):
        data = dict(self._data)
        data.update(resolved)
        data["last_updated"] = max(time.time(), self._data["last_updated"])
        self._data = data
        self._sequence += 1
        self._pending.append((self._sequence, self.snapshot))
        if not self._notifying:
            self._drain()

    def _drain(self):
        # Commits made by observers during delivery are queued and delivered
        # after the current pass, so every observer sees commits in order.
        # Observers that joined after a commit already received it on
        # subscription. If an observer raises, undelivered commits stay
        # queued for the next drain.
        self._notifying = True
        try:
            while self._pending:
                sequence, snapshot = self._pending.pop(0)
                for token, (observer, joined_at) in list(self._observers.items()):
                    if token in self._observers and sequence > joined_at:
                        observer(snapshot)
        finally:
            self._notifying = False
