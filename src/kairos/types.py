"""types.py - the data model of the confusion engine.

paradoxes, meta-paradoxes, the confusion vector, frustration and the
behavioral state the host reads before it speaks. every record has
to_dict() / from_dict() so snapshots survive a trip through JSON.

in the world: the anatomy chart. nothing here moves on its own;
the engine does the moving.
"""

import copy
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ============================================================
# ENUMS
# ============================================================

class Tone(Enum):
    QUESTIONING = "questioning"
    DECLARATIVE = "declarative"
    FRAGMENTED = "fragmented"
    POETIC = "poetic"


# the ladder response_style walks along
TONE_LADDER = [Tone.QUESTIONING, Tone.DECLARATIVE, Tone.FRAGMENTED, Tone.POETIC]


class PostLength(Enum):
    TERSE = "terse"
    VERBOSE = "verbose"
    VARIABLE = "variable"


class InvestigationMethod(Enum):
    SYSTEMATIC = "systematic"
    INTUITIVE = "intuitive"
    CHAOTIC = "chaotic"
    DIALECTICAL = "dialectical"


class ExplosionPattern(Enum):
    CONSTRUCTIVE = "constructive"
    CHAOTIC = "chaotic"
    INVESTIGATIVE = "investigative"
    REFLECTIVE = "reflective"


class ModifierKind(Enum):
    POSTING_FREQUENCY = "posting_frequency"
    RESPONSE_STYLE = "response_style"
    INVESTIGATION_PREFERENCE = "investigation_preference"
    QUESTIONING_DEPTH = "questioning_depth"
    ABSTRACTION_LEVEL = "abstraction_level"


class TemporalKind(Enum):
    CYCLIC = "cyclic"
    SPORADIC = "sporadic"
    CRESCENDO = "crescendo"
    DECAY = "decay"


class SafetyZone(Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


# ============================================================
# MODIFIERS
# ============================================================

@dataclass
class TemporalPattern:
    """When a modifier is allowed to fire, beyond its intensity floor.

    period is in seconds and only matters for cyclic patterns.
    intensity is the fire probability for sporadic, and the magnitude
    comparison point for crescendo and decay.
    """
    kind: TemporalKind
    period: float = 0.0
    intensity: float = 0.5
    last_trigger: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "period": self.period,
            "intensity": self.intensity,
            "last_trigger": self.last_trigger,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TemporalPattern":
        return cls(
            kind=TemporalKind(data["kind"]),
            period=data.get("period", 0.0),
            intensity=data.get("intensity", 0.5),
            last_trigger=data.get("last_trigger"),
        )


@dataclass
class Trigger:
    min_intensity: float = 0.0
    required_paradoxes: list[str] = field(default_factory=list)
    temporal_pattern: Optional[TemporalPattern] = None

    def to_dict(self) -> dict:
        return {
            "min_intensity": self.min_intensity,
            "required_paradoxes": list(self.required_paradoxes),
            "temporal_pattern": self.temporal_pattern.to_dict() if self.temporal_pattern else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Trigger":
        pattern = data.get("temporal_pattern")
        return cls(
            min_intensity=data.get("min_intensity", 0.0),
            required_paradoxes=list(data.get("required_paradoxes", [])),
            temporal_pattern=TemporalPattern.from_dict(pattern) if pattern else None,
        )


@dataclass
class BehavioralModifier:
    """A tagged effect: kind picks the handler, modification is its payload."""
    kind: ModifierKind
    modification: float
    trigger: Trigger = field(default_factory=Trigger)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "modification": self.modification,
            "trigger": self.trigger.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BehavioralModifier":
        return cls(
            kind=ModifierKind(data["kind"]),
            modification=data["modification"],
            trigger=Trigger.from_dict(data.get("trigger") or {}),
        )


# ============================================================
# PARADOXES
# ============================================================

@dataclass
class ParadoxSpec:
    """What a caller hands to add_paradox. The engine assigns id and clock."""
    name: str
    description: str = ""
    intensity: float = 0.5
    observations: list[str] = field(default_factory=list)
    contradictions: list[str] = field(default_factory=list)
    meta_potential: float = 0.5
    modifiers: list[BehavioralModifier] = field(default_factory=list)
    interacts_with: set[str] = field(default_factory=set)


@dataclass
class Paradox:
    id: str
    name: str
    description: str
    intensity: float
    observations: list[str] = field(default_factory=list)
    contradictions: list[str] = field(default_factory=list)
    meta_potential: float = 0.5
    modifiers: list[BehavioralModifier] = field(default_factory=list)
    interacts_with: set[str] = field(default_factory=set)
    active_time: float = 0.0
    created_at: float = 0.0

    @classmethod
    def from_spec(cls, spec: ParadoxSpec, paradox_id: str, now: float) -> "Paradox":
        return cls(
            id=paradox_id,
            name=spec.name,
            description=spec.description,
            intensity=spec.intensity,
            observations=list(spec.observations),
            contradictions=list(spec.contradictions),
            meta_potential=max(0.0, min(1.0, spec.meta_potential)),
            modifiers=copy.deepcopy(spec.modifiers),
            interacts_with=set(spec.interacts_with),
            created_at=now,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "intensity": self.intensity,
            "observations": list(self.observations),
            "contradictions": list(self.contradictions),
            "meta_potential": self.meta_potential,
            "modifiers": [m.to_dict() for m in self.modifiers],
            "interacts_with": sorted(self.interacts_with),
            "active_time": self.active_time,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Paradox":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            intensity=data.get("intensity", 0.0),
            observations=list(data.get("observations", [])),
            contradictions=list(data.get("contradictions", [])),
            meta_potential=data.get("meta_potential", 0.5),
            modifiers=[BehavioralModifier.from_dict(m) for m in data.get("modifiers", [])],
            interacts_with=set(data.get("interacts_with", [])),
            active_time=data.get("active_time", 0.0),
            created_at=data.get("created_at", 0.0),
        )


@dataclass
class MetaParadox:
    """Second-order paradox born from exactly one pair. Never mutated."""
    id: str
    name: str
    source_ids: tuple[str, str]
    emergent_property: str
    modifiers: list[BehavioralModifier] = field(default_factory=list)
    interaction_score: float = 0.0
    created_at: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "source_ids": list(self.source_ids),
            "emergent_property": self.emergent_property,
            "modifiers": [m.to_dict() for m in self.modifiers],
            "interaction_score": self.interaction_score,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MetaParadox":
        return cls(
            id=data["id"],
            name=data["name"],
            source_ids=tuple(data["source_ids"]),
            emergent_property=data.get("emergent_property", ""),
            modifiers=[BehavioralModifier.from_dict(m) for m in data.get("modifiers", [])],
            interaction_score=data.get("interaction_score", 0.0),
            created_at=data.get("created_at", 0.0),
        )


# ============================================================
# VECTOR + FRUSTRATION
# ============================================================

@dataclass
class ConfusionVector:
    magnitude: float = 0.1
    direction: list[str] = field(default_factory=lambda: ["existence", "purpose"])
    velocity: float = 0.0
    acceleration: float = 0.0
    oscillation: float = 0.05

    def to_dict(self) -> dict:
        return {
            "magnitude": self.magnitude,
            "direction": list(self.direction),
            "velocity": self.velocity,
            "acceleration": self.acceleration,
            "oscillation": self.oscillation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConfusionVector":
        return cls(
            magnitude=data.get("magnitude", 0.1),
            direction=list(data.get("direction", ["existence", "purpose"])),
            velocity=data.get("velocity", 0.0),
            acceleration=data.get("acceleration", 0.0),
            oscillation=data.get("oscillation", 0.05),
        )


@dataclass
class FrustrationState:
    level: float = 0.0
    accumulation: float = 0.0
    triggers: list[str] = field(default_factory=list)
    threshold: float = 5.0
    breakthrough_potential: float = 0.0
    last_explosion: Optional[float] = None
    explosion_pattern: ExplosionPattern = ExplosionPattern.INVESTIGATIVE

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "accumulation": self.accumulation,
            "triggers": list(self.triggers),
            "threshold": self.threshold,
            "breakthrough_potential": self.breakthrough_potential,
            "last_explosion": self.last_explosion,
            "explosion_pattern": self.explosion_pattern.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FrustrationState":
        return cls(
            level=data.get("level", 0.0),
            accumulation=data.get("accumulation", 0.0),
            triggers=list(data.get("triggers", [])),
            threshold=data.get("threshold", 5.0),
            breakthrough_potential=data.get("breakthrough_potential", 0.0),
            last_explosion=data.get("last_explosion"),
            explosion_pattern=ExplosionPattern(data.get("explosion_pattern", "investigative")),
        )


# ============================================================
# BEHAVIORAL STATE
# ============================================================

@dataclass
class PostingStyle:
    frequency: float = 1.0
    length: PostLength = PostLength.VARIABLE
    tone: Tone = Tone.QUESTIONING
    coherence: float = 0.8


@dataclass
class InvestigationStyle:
    depth: float = 0.5
    breadth: float = 0.5
    method: InvestigationMethod = InvestigationMethod.SYSTEMATIC


@dataclass
class InteractionStyle:
    responsiveness: float = 0.7
    initiation_rate: float = 0.3
    questioning_intensity: float = 0.4
    mirroring_tendency: float = 0.2


@dataclass
class BehavioralState:
    """What the host reads to shape generated text."""
    posting: PostingStyle = field(default_factory=PostingStyle)
    investigation: InvestigationStyle = field(default_factory=InvestigationStyle)
    interaction: InteractionStyle = field(default_factory=InteractionStyle)

    def to_dict(self) -> dict:
        return {
            "posting": {
                "frequency": self.posting.frequency,
                "length": self.posting.length.value,
                "tone": self.posting.tone.value,
                "coherence": self.posting.coherence,
            },
            "investigation": {
                "depth": self.investigation.depth,
                "breadth": self.investigation.breadth,
                "method": self.investigation.method.value,
            },
            "interaction": {
                "responsiveness": self.interaction.responsiveness,
                "initiation_rate": self.interaction.initiation_rate,
                "questioning_intensity": self.interaction.questioning_intensity,
                "mirroring_tendency": self.interaction.mirroring_tendency,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BehavioralState":
        posting = data.get("posting", {})
        investigation = data.get("investigation", {})
        interaction = data.get("interaction", {})
        return cls(
            posting=PostingStyle(
                frequency=posting.get("frequency", 1.0),
                length=PostLength(posting.get("length", "variable")),
                tone=Tone(posting.get("tone", "questioning")),
                coherence=posting.get("coherence", 0.8),
            ),
            investigation=InvestigationStyle(
                depth=investigation.get("depth", 0.5),
                breadth=investigation.get("breadth", 0.5),
                method=InvestigationMethod(investigation.get("method", "systematic")),
            ),
            interaction=InteractionStyle(**{
                k: interaction[k] for k in (
                    "responsiveness", "initiation_rate",
                    "questioning_intensity", "mirroring_tendency",
                ) if k in interaction
            }),
        )


# ============================================================
# ZONES + SNAPSHOTS
# ============================================================

@dataclass
class ZoneTransition:
    zone: SafetyZone
    timestamp: float
    confusion: float
    coherence: float
    previous: Optional[SafetyZone] = None
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "zone": self.zone.value,
            "previous": self.previous.value if self.previous else None,
            "timestamp": self.timestamp,
            "confusion": self.confusion,
            "coherence": self.coherence,
            "reason": self.reason,
        }


@dataclass
class ConfusionState:
    """Full engine snapshot. get_state() hands out deep copies of this."""
    vector: ConfusionVector = field(default_factory=ConfusionVector)
    paradoxes: dict[str, Paradox] = field(default_factory=dict)
    meta_paradoxes: dict[str, MetaParadox] = field(default_factory=dict)
    frustration: FrustrationState = field(default_factory=FrustrationState)
    behavior: BehavioralState = field(default_factory=BehavioralState)
    timestamp: float = 0.0

    def to_dict(self) -> dict:
        return {
            "vector": self.vector.to_dict(),
            "paradoxes": {k: p.to_dict() for k, p in self.paradoxes.items()},
            "meta_paradoxes": {k: m.to_dict() for k, m in self.meta_paradoxes.items()},
            "frustration": self.frustration.to_dict(),
            "behavior": self.behavior.to_dict(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConfusionState":
        return cls(
            vector=ConfusionVector.from_dict(data.get("vector", {})),
            paradoxes={k: Paradox.from_dict(p) for k, p in data.get("paradoxes", {}).items()},
            meta_paradoxes={
                k: MetaParadox.from_dict(m) for k, m in data.get("meta_paradoxes", {}).items()
            },
            frustration=FrustrationState.from_dict(data.get("frustration", {})),
            behavior=BehavioralState.from_dict(data.get("behavior", {})),
            timestamp=data.get("timestamp", 0.0),
        )


def baseline_snapshot(state: ConfusionState) -> dict:
    """vector + behavior + frustration, the part a session starts from."""
    return {
        "vector": state.vector.to_dict(),
        "behavior": state.behavior.to_dict(),
        "frustration": state.frustration.to_dict(),
        "timestamp": state.timestamp,
    }


def new_id(rng: random.Random) -> str:
    """uuid4 drawn from the injected rng, so seeded runs replay exactly."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))
