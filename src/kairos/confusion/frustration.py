"""frustration.py - tension that builds until it breaks.

accumulate() adds pressure scaled by zone. when the level reaches 1.0
the engine picks an explosion pattern by weighted draw and explode()
reshapes behavior, then the pressure drops to zero.

in the world: the kettle. it whistles, it pours, it's empty.
"""

import random

from kairos.confusion.vector import clamp
from kairos.types import (
    ConfusionState, ExplosionPattern, FrustrationState, SafetyZone, Tone,
)


ZONE_MULTIPLIERS = {
    SafetyZone.GREEN: 1.0,
    SafetyZone.YELLOW: 0.75,
    SafetyZone.RED: 0.5,
}


def accumulate(frustration: FrustrationState, trigger: str, amount: float,
               zone: SafetyZone, magnitude: float, rng: random.Random) -> bool:
    """add pressure. returns True when the level has reached 1.0."""
    frustration.triggers.append(trigger)
    frustration.accumulation = max(0.0, frustration.accumulation + amount * ZONE_MULTIPLIERS[zone])
    threshold = frustration.threshold if frustration.threshold > 0 else 1.0
    frustration.level = min(1.0, frustration.accumulation / threshold)
    frustration.breakthrough_potential = frustration.level * magnitude * rng.random()
    return frustration.level >= 1.0


def pattern_weights(state: ConfusionState) -> list[tuple[ExplosionPattern, float]]:
    return [
        (ExplosionPattern.CONSTRUCTIVE, max(0.0, state.vector.magnitude * 0.5)),
        (ExplosionPattern.CHAOTIC, max(0.0, state.vector.oscillation * 2)),
        (ExplosionPattern.INVESTIGATIVE, max(0.0, state.behavior.investigation.depth)),
        (ExplosionPattern.REFLECTIVE, max(0.0, 1 - state.behavior.posting.coherence)),
    ]


def choose_pattern(state: ConfusionState, rng: random.Random) -> ExplosionPattern:
    weights = pattern_weights(state)
    total = sum(w for _, w in weights)
    if total <= 0:
        return ExplosionPattern.INVESTIGATIVE
    draw = rng.random() * total
    for pattern, weight in weights:
        draw -= weight
        if draw < 0:
            return pattern
    return weights[-1][0]


def explode(state: ConfusionState, pattern: ExplosionPattern, now: float) -> dict:
    """apply the pattern's effects, then zero the pressure. returns {field: (old, new)}."""
    behavior = state.behavior
    posting = behavior.posting
    changes = {}

    if pattern == ExplosionPattern.CONSTRUCTIVE:
        changes["depth"] = (behavior.investigation.depth, clamp(behavior.investigation.depth + 0.3))
        behavior.investigation.depth = changes["depth"][1]
        changes["initiation_rate"] = (
            behavior.interaction.initiation_rate,
            clamp(behavior.interaction.initiation_rate + 0.4),
        )
        behavior.interaction.initiation_rate = changes["initiation_rate"][1]

    elif pattern == ExplosionPattern.CHAOTIC:
        changes["frequency"] = (posting.frequency, min(10.0, posting.frequency * 2))
        posting.frequency = changes["frequency"][1]
        changes["coherence"] = (posting.coherence, max(0.1, posting.coherence * 0.5))
        posting.coherence = changes["coherence"][1]
        changes["oscillation"] = (state.vector.oscillation, clamp(state.vector.oscillation + 0.3))
        state.vector.oscillation = changes["oscillation"][1]

    elif pattern == ExplosionPattern.INVESTIGATIVE:
        changes["breadth"] = (behavior.investigation.breadth, 1.0)
        behavior.investigation.breadth = 1.0
        changes["questioning_intensity"] = (behavior.interaction.questioning_intensity, 1.0)
        behavior.interaction.questioning_intensity = 1.0

    elif pattern == ExplosionPattern.REFLECTIVE:
        changes["frequency"] = (posting.frequency, max(0.1, posting.frequency * 0.3))
        posting.frequency = changes["frequency"][1]
        changes["depth"] = (behavior.investigation.depth, 1.0)
        behavior.investigation.depth = 1.0
        changes["tone"] = (posting.tone.value, Tone.POETIC.value)
        posting.tone = Tone.POETIC

    frustration = state.frustration
    frustration.explosion_pattern = pattern
    frustration.last_explosion = now
    frustration.level = 0.0
    frustration.accumulation = 0.0
    frustration.triggers = []
    return changes
