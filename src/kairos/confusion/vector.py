"""vector.py - the confusion vector's arithmetic.

impact, motion, decay and sanitation. pure functions over a
ConfusionVector; the engine decides when to call them.
"""

import math
from typing import Iterable

from kairos.types import ConfusionVector, SafetyZone


IMPACT_SCALE = 0.2
SAFE_MAGNITUDE = 0.5
MIN_DT = 0.001  # seconds; keeps velocity finite when two calls share a clock tick

# stricter zones shed confusion faster
MAGNITUDE_DECAY = {
    SafetyZone.GREEN: 0.998,
    SafetyZone.YELLOW: 0.995,
    SafetyZone.RED: 0.99,
}
PARADOX_DECAY = {
    SafetyZone.GREEN: 0.995,
    SafetyZone.YELLOW: 0.99,
    SafetyZone.RED: 0.98,
}


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def apply_impact(vector: ConfusionVector, intensity: float, max_confusion: float) -> float:
    """add intensity x 0.2 to magnitude, clamped to [0, max]. returns the delta applied.

    a non-finite sum leaves magnitude untouched.
    """
    old = vector.magnitude
    target = old + intensity * IMPACT_SCALE
    if not math.isfinite(target):
        return 0.0
    vector.magnitude = clamp(target, 0.0, max_confusion)
    return vector.magnitude - old


def add_direction(vector: ConfusionVector, tags: Iterable[str]):
    """append-only, no duplicates."""
    for tag in tags:
        if tag not in vector.direction:
            vector.direction.append(tag)


def update_motion(vector: ConfusionVector, old_magnitude: float, dt: float):
    """velocity = dm/dt, acceleration = dv/dt."""
    dt = max(MIN_DT, dt)
    previous_velocity = vector.velocity
    vector.velocity = (vector.magnitude - old_magnitude) / dt
    vector.acceleration = (vector.velocity - previous_velocity) / dt


def decay_magnitude(vector: ConfusionVector, zone: SafetyZone) -> float:
    old = vector.magnitude
    vector.magnitude = old * MAGNITUDE_DECAY[zone]
    return vector.magnitude - old


def sanitize(vector: ConfusionVector) -> list[str]:
    """correct non-finite or out-of-range numbers in place.

    returns a description of each correction made; empty when healthy.
    """
    corrections = []
    m = vector.magnitude
    if m is None or not math.isfinite(m):
        vector.magnitude = SAFE_MAGNITUDE
        corrections.append(f"non-finite magnitude {m} reset to {SAFE_MAGNITUDE}")
    elif m < 0:
        vector.magnitude = 0.0
        corrections.append(f"negative magnitude {m:.4f} corrected to 0")

    o = vector.oscillation
    if o is None or not math.isfinite(o):
        vector.oscillation = 0.05
        corrections.append(f"non-finite oscillation {o} reset to 0.05")
    elif not 0.0 <= o <= 1.0:
        vector.oscillation = clamp(o)
        corrections.append(f"oscillation {o:.4f} clamped to {vector.oscillation}")

    for name in ("velocity", "acceleration"):
        value = getattr(vector, name)
        if value is None or not math.isfinite(value):
            setattr(vector, name, 0.0)
            corrections.append(f"non-finite {name} reset to 0")
    return corrections


def sanitize_coherence(coherence) -> tuple[float, str]:
    """(corrected coherence, correction or empty string)."""
    if coherence is None or not math.isfinite(coherence):
        return SAFE_MAGNITUDE, f"non-finite coherence {coherence} reset to {SAFE_MAGNITUDE}"
    if not 0.0 <= coherence <= 1.0:
        fixed = clamp(coherence)
        return fixed, f"coherence {coherence:.4f} clamped to {fixed}"
    return coherence, ""
