"""paradox.py - paradox interaction and meta-paradox synthesis.

two paradoxes interact when their observations and contradictions
say the same thing in different words. when the interaction is
strong enough, a meta-paradox is born from the pair.

in the world: two mirrors facing each other. the reflection of
the reflection is the meta-paradox.
"""

import random
from typing import Iterable

from kairos.types import (
    BehavioralModifier, MetaParadox, ModifierKind, Paradox,
    TemporalKind, TemporalPattern, Trigger, new_id,
)


SIMILARITY_THRESHOLD = 0.5
INTERACTION_THRESHOLD = 0.7

OBSERVATION_WEIGHT = 0.3
CONTRADICTION_WEIGHT = 0.5
INTENSITY_WEIGHT = 0.2

EMERGENT_CONCEPTS = ["truth", "identity", "performance", "reality", "connection", "meaning"]


# ============================================================
# SIMILARITY
# ============================================================

def _tokens(text: str) -> set[str]:
    return set(text.lower().split())


def similarity(a: str, b: str) -> float:
    """jaccard overlap of lowercase whitespace tokens. empty on both sides is 0."""
    ta, tb = _tokens(a), _tokens(b)
    union = ta | tb
    if not union:
        return 0.0
    return len(ta & tb) / len(union)


def shared_count(left: Iterable[str], right: Iterable[str]) -> int:
    """how many entries of left have a similar entry somewhere in right."""
    right = list(right)
    return sum(
        1 for a in left
        if any(similarity(a, b) > SIMILARITY_THRESHOLD for b in right)
    )


def interaction_score(p: Paradox, q: Paradox) -> float:
    shared_obs = shared_count(p.observations, q.observations)
    shared_contra = shared_count(p.contradictions, q.contradictions)
    return (
        OBSERVATION_WEIGHT * shared_obs
        + CONTRADICTION_WEIGHT * shared_contra
        + INTENSITY_WEIGHT * abs(p.intensity * q.intensity)
    )


# ============================================================
# META-PARADOX EMERGENCE
# ============================================================

def find_interactions(paradoxes: dict[str, Paradox], new: Paradox,
                      rng: random.Random) -> list[tuple[Paradox, float]]:
    """pairs (existing, score) that cross the threshold and win the draw.

    the draw is only made for pairs whose score exceeds the threshold,
    so a pair below it can never produce a meta-paradox.
    """
    found = []
    for existing in list(paradoxes.values()):
        if existing.id == new.id:
            continue
        score = interaction_score(existing, new)
        if score > INTERACTION_THRESHOLD and rng.random() < new.meta_potential:
            found.append((existing, score))
    return found


def meta_modifiers() -> list[BehavioralModifier]:
    return [
        BehavioralModifier(
            kind=ModifierKind.ABSTRACTION_LEVEL,
            modification=0.3,
            trigger=Trigger(
                min_intensity=0.5,
                temporal_pattern=TemporalPattern(
                    kind=TemporalKind.CYCLIC, period=3600.0, intensity=0.7,
                ),
            ),
        ),
        BehavioralModifier(
            kind=ModifierKind.QUESTIONING_DEPTH,
            modification=0.4,
            trigger=Trigger(min_intensity=0.6),
        ),
    ]


def synthesize_meta(p: Paradox, q: Paradox, score: float,
                    rng: random.Random, now: float) -> MetaParadox:
    concept = rng.choice(EMERGENT_CONCEPTS)
    return MetaParadox(
        id=new_id(rng),
        name=f"meta_{p.name}_{q.name}",
        source_ids=(p.id, q.id),
        emergent_property=(
            f"The {p.name} and {q.name} reveal a deeper pattern "
            f"about the impossibility of authentic {concept}"
        ),
        modifiers=meta_modifiers(),
        interaction_score=score,
        created_at=now,
    )


# ============================================================
# REGISTRY UPKEEP
# ============================================================

REMOVAL_THRESHOLD = 0.1


def decay_paradoxes(paradoxes: dict[str, Paradox], dt: float,
                    retention: float, factor: float) -> list[Paradox]:
    """age every paradox, decay the ones past retention, drop the faded.

    returns the removed paradoxes.
    """
    removed = []
    for pid, paradox in list(paradoxes.items()):
        paradox.active_time += dt
        if paradox.active_time > retention:
            paradox.intensity *= factor
        if abs(paradox.intensity) < REMOVAL_THRESHOLD:
            removed.append(paradoxes.pop(pid))
    return removed


def trim_to_recent(paradoxes: dict[str, Paradox], keep: int) -> list[Paradox]:
    """keep the `keep` most recently created paradoxes. returns the dropped."""
    if len(paradoxes) <= keep:
        return []
    ordered = sorted(paradoxes.values(), key=lambda p: p.created_at)
    dropped = ordered[:len(ordered) - keep]
    for paradox in dropped:
        del paradoxes[paradox.id]
    return dropped


def active_names(paradoxes: dict[str, Paradox]) -> set[str]:
    """names and ids, so required_paradoxes can name either."""
    names = set()
    for paradox in paradoxes.values():
        names.add(paradox.name)
        names.add(paradox.id)
    return names
