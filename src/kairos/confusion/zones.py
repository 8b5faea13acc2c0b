"""zones.py - the safety zone state machine.

GREEN, YELLOW, RED from (confusion, coherence). each zone owns recovery
strategies with a fixed success probability and a deterministic effect.
strategies run in priority order; the first success stops the chain.
the emergency reset always succeeds.

in the world: the lifeguard. green flag, yellow flag, red flag.
the whistle is the same every time. whether you swim back is a coin.
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from kairos.confusion.paradox import trim_to_recent
from kairos.confusion.vector import clamp
from kairos.types import (
    ConfusionState, FrustrationState, InvestigationMethod, SafetyZone, Tone,
)


# ============================================================
# CLASSIFICATION
# ============================================================

HARD_COHERENCE_FLOOR = 0.2


def determine_zone(confusion: float, coherence: float,
                   coherence_threshold: float = 0.3,
                   green_ceiling: float = 0.80,
                   red_floor: float = 0.90) -> SafetyZone:
    """classify (confusion, coherence). derived every time, never stored as truth."""
    if coherence < HARD_COHERENCE_FLOOR:
        return SafetyZone.RED
    if coherence < coherence_threshold:
        return SafetyZone.RED if confusion > red_floor else SafetyZone.YELLOW
    if confusion >= red_floor:
        return SafetyZone.RED
    if confusion >= green_ceiling:
        return SafetyZone.YELLOW
    return SafetyZone.GREEN


def transition_reason(zone: SafetyZone, confusion: float, coherence: float,
                      coherence_threshold: float = 0.3) -> str:
    if coherence < coherence_threshold and zone != SafetyZone.GREEN:
        return f"coherence degradation: coherence {coherence:.3f} below {coherence_threshold:.2f}"
    if zone == SafetyZone.RED:
        return f"breakthrough: confusion {confusion:.3f} entered RED"
    if zone == SafetyZone.YELLOW:
        return f"elevated: confusion {confusion:.3f} entered YELLOW"
    return f"stabilized: confusion {confusion:.3f}, coherence {coherence:.3f}"


# ============================================================
# RECOVERY STRATEGIES
# ============================================================

@dataclass
class RecoveryStrategy:
    name: str
    zone: Optional[SafetyZone]
    success_probability: float
    apply: Callable[[ConfusionState], None]
    description: str = ""

    def attempt(self, state: ConfusionState, rng: random.Random) -> bool:
        """apply the effect, then draw. magnitude never rises."""
        before = state.vector.magnitude
        self.apply(state)
        state.vector.magnitude = min(before, state.vector.magnitude)
        if self.success_probability >= 1.0:
            return True
        return rng.random() < self.success_probability


def _gentle_grounding(state: ConfusionState):
    v = state.vector
    v.magnitude = max(0.0, v.magnitude - 0.075)
    v.oscillation = max(0.05, v.oscillation * 0.95)


def _stabilization(state: ConfusionState):
    # meta-paradoxes are left alone here
    v = state.vector
    v.magnitude = max(0.5, v.magnitude - 0.115)
    v.oscillation = max(0.1, v.oscillation * 0.8)


def _coherence_restoration(state: ConfusionState):
    posting = state.behavior.posting
    posting.coherence = clamp(posting.coherence + 0.15)
    if posting.tone == Tone.FRAGMENTED:
        posting.tone = Tone.QUESTIONING


def _emergency_stabilization(state: ConfusionState):
    v = state.vector
    v.magnitude = max(0.3, v.magnitude * 0.7)
    v.oscillation = max(0.05, v.oscillation * 0.5)
    trim_to_recent(state.paradoxes, 3)


def _coherence_emergency(state: ConfusionState):
    posting = state.behavior.posting
    posting.coherence = max(0.5, posting.coherence)
    posting.tone = Tone.QUESTIONING
    state.behavior.investigation.method = InvestigationMethod.SYSTEMATIC
    state.meta_paradoxes.clear()


RESET_MAGNITUDE = 0.3
RESET_OSCILLATION = 0.05
RESET_COHERENCE = 0.8


def reset_state(state: ConfusionState):
    """the universal fallback: back to a safe baseline."""
    v = state.vector
    v.magnitude = RESET_MAGNITUDE
    v.oscillation = RESET_OSCILLATION
    v.velocity = 0.0
    v.acceleration = 0.0
    state.paradoxes.clear()
    state.meta_paradoxes.clear()
    _clear_frustration(state.frustration)
    state.behavior.posting.coherence = RESET_COHERENCE
    state.behavior.posting.tone = Tone.QUESTIONING


STOP_MAGNITUDE = 0.2
STOP_OSCILLATION = 0.03
STOP_COHERENCE = 0.9


def stop_state(state: ConfusionState):
    """the emergency stop's landing state: quieter than a reset."""
    reset_state(state)
    state.vector.magnitude = STOP_MAGNITUDE
    state.vector.oscillation = STOP_OSCILLATION
    state.behavior.posting.coherence = STOP_COHERENCE


def _clear_frustration(frustration: FrustrationState):
    frustration.level = 0.0
    frustration.accumulation = 0.0
    frustration.breakthrough_potential = 0.0
    frustration.triggers = []


EMERGENCY_RESET = RecoveryStrategy(
    "emergency_reset", None, 1.0, reset_state,
    "reset magnitude, oscillation and coherence; clear paradoxes and frustration",
)

STRATEGIES = {
    SafetyZone.GREEN: [
        RecoveryStrategy("gentle_grounding", SafetyZone.GREEN, 0.9, _gentle_grounding,
                         "small magnitude and oscillation reduction"),
    ],
    SafetyZone.YELLOW: [
        RecoveryStrategy("stabilization", SafetyZone.YELLOW, 0.75, _stabilization,
                         "moderate reduction, meta-paradoxes preserved"),
        RecoveryStrategy("coherence_restoration", SafetyZone.YELLOW, 0.8, _coherence_restoration,
                         "raise coherence, revert fragmented tone"),
    ],
    SafetyZone.RED: [
        RecoveryStrategy("emergency_stabilization", SafetyZone.RED, 0.55, _emergency_stabilization,
                         "aggressive magnitude cut, keep the 3 most recent paradoxes"),
        RecoveryStrategy("coherence_emergency", SafetyZone.RED, 0.6, _coherence_emergency,
                         "coherence floor, clear meta-paradoxes"),
    ],
}


def strategies_for(zone: SafetyZone, confusion: float,
                   emergency_threshold: float = 0.95) -> list[RecoveryStrategy]:
    chain = list(STRATEGIES[zone])
    if zone == SafetyZone.RED and confusion > emergency_threshold:
        chain.append(EMERGENCY_RESET)
    return chain


# ============================================================
# SAFETY MONITOR
# ============================================================

@dataclass
class ZoneRecoveries:
    attempts: int = 0
    successes: int = 0

    @property
    def rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0


@dataclass
class SafetyMonitor:
    """Flags and counters the engine keeps alongside its state."""
    emergency_stop_triggered: bool = False
    stop_reason: str = ""
    auto_paused: bool = False
    supervised_mode: bool = False
    dissociation_detected: bool = False
    fragmentation_level: float = 0.0
    emergency_reset_available: bool = True
    reset_available_at: Optional[float] = None
    emergency_reset_count: int = 0
    last_emergency_reset: Optional[float] = None
    stuck_counter: int = 0
    last_confusion: float = 0.0
    recoveries: dict = field(default_factory=lambda: {z: ZoneRecoveries() for z in SafetyZone})

    def record_attempt(self, zone: SafetyZone, success: bool):
        entry = self.recoveries[zone]
        entry.attempts += 1
        if success:
            entry.successes += 1

    def refresh_cooldown(self, now: float):
        if not self.emergency_reset_available and self.reset_available_at is not None \
                and now >= self.reset_available_at:
            self.emergency_reset_available = True
            self.reset_available_at = None


def dissociation_risk(coherence: float, threshold: float = 0.3) -> float:
    """0 at or above threshold, rising linearly to 1 at zero coherence."""
    if threshold <= 0 or coherence >= threshold:
        return 0.0
    return clamp((threshold - coherence) / threshold)
