"""
Risk thresholds and damage-radius scaling coefficients for impact effects.
"""
from neoimpact.translation_utils import get_translation

# ==========================================
# Risk Level (tons of TNT, ground-coupled)
# ==========================================
RISK_LOW = "Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"

RISK_LEVELS = (RISK_LOW, RISK_MEDIUM, RISK_HIGH)

# Lower bound of each band; boundaries are half-open [lower, next)
RISK_THRESHOLDS = {
    "low": 1e2,
    "high": 1e4,
}

# ==========================================
# Damage Radii (m per J^(1/3))
# ==========================================
RADIUS_COEFFICIENTS = (
    ("severe", 0.05),
    ("moderate", 0.10),
    ("light", 0.20),
)

# ==========================================
# Helpers
# ==========================================
def classify_risk(tnt_ton):
    """Qualitative risk level for a ground-coupled yield in tons of TNT."""
    if tnt_ton < RISK_THRESHOLDS["low"]:
        return RISK_LOW
    if tnt_ton < RISK_THRESHOLDS["high"]:
        return RISK_MEDIUM
    return RISK_HIGH


def get_risk_label(risk_level, language=None):
    return get_translation(f"risk.{risk_level}", risk_level, language=language)
