"""modifiers.py - behavioral modifier triggers and effects.

a modifier fires when confusion is high enough, the paradoxes it
names are active, and its temporal pattern (if any) agrees.
each kind has exactly one handler in _HANDLERS.

in the world: the reflexes. confusion twitches, the voice changes.
"""

import random
from typing import Callable, Optional

from kairos.confusion.vector import clamp, round_half_up
from kairos.types import (
    BehavioralModifier, BehavioralState, InvestigationMethod,
    ModifierKind, TONE_LADDER, TemporalKind, TemporalPattern,
)


# ============================================================
# TRIGGERS
# ============================================================

def pattern_holds(pattern: TemporalPattern, magnitude: float, acceleration: float,
                  rng: random.Random, now: float) -> bool:
    """check a temporal pattern. cyclic patterns stamp last_trigger when they fire."""
    if pattern.kind == TemporalKind.CYCLIC:
        if pattern.last_trigger is None or now - pattern.last_trigger >= pattern.period:
            pattern.last_trigger = now
            return True
        return False
    if pattern.kind == TemporalKind.SPORADIC:
        return rng.random() < pattern.intensity
    if pattern.kind == TemporalKind.CRESCENDO:
        return acceleration > 0 and pattern.intensity < magnitude
    if pattern.kind == TemporalKind.DECAY:
        return acceleration < 0 and pattern.intensity > magnitude
    return False


def should_fire(modifier: BehavioralModifier, magnitude: float, acceleration: float,
                active: set[str], rng: random.Random, now: float) -> bool:
    trigger = modifier.trigger
    if magnitude < trigger.min_intensity:
        return False
    if trigger.required_paradoxes and not all(name in active for name in trigger.required_paradoxes):
        return False
    if trigger.temporal_pattern is not None:
        return pattern_holds(trigger.temporal_pattern, magnitude, acceleration, rng, now)
    return True


# ============================================================
# EFFECTS
# ============================================================

def _posting_frequency(behavior: BehavioralState, m: float) -> dict:
    old = behavior.posting.frequency
    behavior.posting.frequency = max(0.1, old * (1 + m))
    return {"frequency": (old, behavior.posting.frequency)}


def _response_style(behavior: BehavioralState, m: float) -> dict:
    posting = behavior.posting
    old_tone, old_coherence = posting.tone, posting.coherence
    index = TONE_LADDER.index(old_tone) + round_half_up(m * 2)
    posting.tone = TONE_LADDER[int(clamp(index, 0, len(TONE_LADDER) - 1))]
    posting.coherence = clamp(old_coherence - m * 0.2, 0.1, 1.0)
    return {
        "tone": (old_tone.value, posting.tone.value),
        "coherence": (old_coherence, posting.coherence),
    }


def _investigation_preference(behavior: BehavioralState, m: float) -> dict:
    style = behavior.investigation
    old_depth, old_breadth = style.depth, style.breadth
    style.depth = clamp(old_depth + m * 0.2)
    style.breadth = clamp(old_breadth + m * 0.1)
    return {"depth": (old_depth, style.depth), "breadth": (old_breadth, style.breadth)}


def _questioning_depth(behavior: BehavioralState, m: float) -> dict:
    style = behavior.interaction
    old = style.questioning_intensity
    style.questioning_intensity = clamp(old + m * 0.3)
    return {"questioning_intensity": (old, style.questioning_intensity)}


def abstraction_method(m: float) -> InvestigationMethod:
    if m > 0.5:
        return InvestigationMethod.DIALECTICAL
    if m > 0:
        return InvestigationMethod.INTUITIVE
    if m < -0.5:
        return InvestigationMethod.SYSTEMATIC
    return InvestigationMethod.CHAOTIC


def _abstraction_level(behavior: BehavioralState, m: float) -> dict:
    old = behavior.investigation.method
    behavior.investigation.method = abstraction_method(m)
    return {"method": (old.value, behavior.investigation.method.value)}


_HANDLERS: dict[ModifierKind, Callable[[BehavioralState, float], dict]] = {
    ModifierKind.POSTING_FREQUENCY: _posting_frequency,
    ModifierKind.RESPONSE_STYLE: _response_style,
    ModifierKind.INVESTIGATION_PREFERENCE: _investigation_preference,
    ModifierKind.QUESTIONING_DEPTH: _questioning_depth,
    ModifierKind.ABSTRACTION_LEVEL: _abstraction_level,
}


def handler_for(kind: ModifierKind) -> Callable[[BehavioralState, float], dict]:
    return _HANDLERS[kind]


def apply_modifier(behavior: BehavioralState, modifier: BehavioralModifier) -> dict:
    """run the modifier's effect. returns {field: (old, new)} for each field touched."""
    return handler_for(modifier.kind)(behavior, modifier.modification)


def coherence_drop(changes: dict) -> Optional[tuple[float, float]]:
    """(old, new) coherence if the change lowered it, else None."""
    if "coherence" not in changes:
        return None
    old, new = changes["coherence"]
    return (old, new) if new < old else None
