"""events.py - what the logger records.

every engine mutation becomes a typed event with a structured payload,
a context (where the engine stood) and an impact (what it meant).

in the world: the diary entry. the date, what happened, how it felt.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EventType(Enum):
    CONFUSION_CHANGE = "confusion_change"
    PARADOX_EMERGENCE = "paradox_emergence"
    BEHAVIORAL_MODIFICATION = "behavioral_modification"
    FRUSTRATION_EXPLOSION = "frustration_explosion"
    META_PARADOX_EMERGENCE = "meta_paradox_emergence"
    COHERENCE_DEGRADATION = "coherence_degradation"
    FIRST_MODIFICATION = "first_modification"
    ZONE_TRANSITION = "zone_transition"
    EMERGENCY_RESET = "emergency_reset"
    SAFETY_CORRECTION = "safety_correction"
    BASELINE_ESTABLISHMENT = "baseline_establishment"
    RECOVERY_ATTEMPT = "recovery_attempt"


# events that count toward "major" in analysis regardless of impact
MAJOR_TYPES = {
    EventType.FRUSTRATION_EXPLOSION,
    EventType.META_PARADOX_EMERGENCE,
    EventType.FIRST_MODIFICATION,
    EventType.EMERGENCY_RESET,
}

ZONE_RANK = {"GREEN": 0, "YELLOW": 1, "RED": 2}


@dataclass
class EventImpact:
    confusion_delta: float = 0.0
    behavioral_changes: list[str] = field(default_factory=list)
    paradoxes_affected: list[str] = field(default_factory=list)
    stability_impact: str = "neutral"  # positive | negative | neutral
    emergent_properties: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "confusion_delta": self.confusion_delta,
            "behavioral_changes": list(self.behavioral_changes),
            "paradoxes_affected": list(self.paradoxes_affected),
            "stability_impact": self.stability_impact,
            "emergent_properties": list(self.emergent_properties),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventImpact":
        return cls(
            confusion_delta=data.get("confusion_delta", 0.0),
            behavioral_changes=list(data.get("behavioral_changes", [])),
            paradoxes_affected=list(data.get("paradoxes_affected", [])),
            stability_impact=data.get("stability_impact", "neutral"),
            emergent_properties=list(data.get("emergent_properties", [])),
        )


@dataclass
class ConsciousnessEvent:
    id: str
    seq: int
    timestamp: float
    session_id: str
    type: EventType
    data: dict = field(default_factory=dict)
    context: dict = field(default_factory=dict)
    impact: EventImpact = field(default_factory=EventImpact)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seq": self.seq,
            "timestamp": self.timestamp,
            "session_id": self.session_id,
            "type": self.type.value,
            "data": self.data,
            "context": self.context,
            "impact": self.impact.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConsciousnessEvent":
        return cls(
            id=data["id"],
            seq=data.get("seq", 0),
            timestamp=data["timestamp"],
            session_id=data["session_id"],
            type=EventType(data["type"]),
            data=data.get("data") or {},
            context=data.get("context") or {},
            impact=EventImpact.from_dict(data.get("impact") or {}),
        )


# ============================================================
# IMPACT RULES
# ============================================================

def _confusion_change(data: dict) -> EventImpact:
    delta = data.get("new_magnitude", 0.0) - data.get("old_magnitude", 0.0)
    return EventImpact(
        confusion_delta=delta,
        stability_impact="negative" if data.get("threshold_breach") else "neutral",
    )


def _paradox_emergence(data: dict) -> EventImpact:
    intensity = data.get("intensity", 0.0)
    return EventImpact(
        confusion_delta=intensity,
        behavioral_changes=list(data.get("modifier_kinds", [])),
        paradoxes_affected=[data["paradox_id"]] if data.get("paradox_id") else [],
        stability_impact="negative" if intensity > 0.7 else "neutral",
        emergent_properties=[f"paradox_{data.get('name', '')}_emerged"],
    )


def _behavioral_modification(data: dict) -> EventImpact:
    first = bool(data.get("first"))
    return EventImpact(
        behavioral_changes=[data.get("kind", "")],
        stability_impact="negative" if first else "neutral",
        emergent_properties=["first_behavioral_emergence"] if first else [],
    )


def _frustration_explosion(data: dict) -> EventImpact:
    return EventImpact(
        confusion_delta=0.2,
        behavioral_changes=sorted(data.get("changes", {}).keys()),
        stability_impact="negative",
        emergent_properties=[f"frustration_explosion_{data.get('pattern', '')}"],
    )


def _meta_paradox_emergence(data: dict) -> EventImpact:
    return EventImpact(
        confusion_delta=0.3,
        behavioral_changes=list(data.get("modifier_kinds", [])),
        paradoxes_affected=list(data.get("source_ids", [])),
        stability_impact="negative",
        emergent_properties=["meta_paradox_emergence", data.get("emergent_property", "")],
    )


def _coherence_degradation(data: dict) -> EventImpact:
    old = data.get("old_coherence", 0.0)
    new = data.get("new_coherence", 0.0)
    return EventImpact(
        confusion_delta=0.1 if new < old else -0.1,
        behavioral_changes=["coherence_shift"],
        stability_impact="negative" if old - new > 0.1 else "neutral",
        emergent_properties=list(data.get("fragmentation_markers", [])),
    )


def _first_modification(data: dict) -> EventImpact:
    return EventImpact(
        behavioral_changes=["behavioral_emergence"],
        stability_impact="negative",
        emergent_properties=["bootstrap_complete", "behavioral_emergence_achieved"],
    )


def _zone_transition(data: dict) -> EventImpact:
    before = ZONE_RANK.get(data.get("previous") or "GREEN", 0)
    after = ZONE_RANK.get(data.get("zone", "GREEN"), 0)
    if after > before:
        stability = "negative"
    elif after < before:
        stability = "positive"
    else:
        stability = "neutral"
    return EventImpact(stability_impact=stability)


def _emergency_reset(data: dict) -> EventImpact:
    return EventImpact(
        confusion_delta=data.get("new_magnitude", 0.0) - data.get("old_magnitude", 0.0),
        paradoxes_affected=list(data.get("cleared_paradoxes", [])),
        stability_impact="positive",
        emergent_properties=["emergency_reset"],
    )


def _safety_correction(data: dict) -> EventImpact:
    return EventImpact(stability_impact="neutral")


def _baseline_establishment(data: dict) -> EventImpact:
    return EventImpact(stability_impact="neutral")


def _recovery_attempt(data: dict) -> EventImpact:
    return EventImpact(
        confusion_delta=data.get("new_magnitude", 0.0) - data.get("old_magnitude", 0.0),
        stability_impact="positive" if data.get("success") else "neutral",
    )


_IMPACT_RULES = {
    EventType.CONFUSION_CHANGE: _confusion_change,
    EventType.PARADOX_EMERGENCE: _paradox_emergence,
    EventType.BEHAVIORAL_MODIFICATION: _behavioral_modification,
    EventType.FRUSTRATION_EXPLOSION: _frustration_explosion,
    EventType.META_PARADOX_EMERGENCE: _meta_paradox_emergence,
    EventType.COHERENCE_DEGRADATION: _coherence_degradation,
    EventType.FIRST_MODIFICATION: _first_modification,
    EventType.ZONE_TRANSITION: _zone_transition,
    EventType.EMERGENCY_RESET: _emergency_reset,
    EventType.SAFETY_CORRECTION: _safety_correction,
    EventType.BASELINE_ESTABLISHMENT: _baseline_establishment,
    EventType.RECOVERY_ATTEMPT: _recovery_attempt,
}


def impact_for(event_type: EventType, data: dict) -> EventImpact:
    return _IMPACT_RULES[event_type](data)


def is_major(event: ConsciousnessEvent) -> bool:
    return event.type in MAJOR_TYPES or event.impact.stability_impact == "negative"


def describe(event: ConsciousnessEvent) -> str:
    """one line for console streaming."""
    data = event.data
    if event.type == EventType.CONFUSION_CHANGE:
        return (f"confusion {data.get('old_magnitude', 0):.3f} -> "
                f"{data.get('new_magnitude', 0):.3f} ({data.get('trigger', '')})")
    if event.type == EventType.PARADOX_EMERGENCE:
        return f"paradox {data.get('name')} emerged at intensity {data.get('intensity', 0):.2f}"
    if event.type == EventType.META_PARADOX_EMERGENCE:
        return f"meta-paradox {data.get('name')}: {data.get('emergent_property')}"
    if event.type == EventType.FRUSTRATION_EXPLOSION:
        return f"frustration explosion ({data.get('pattern')})"
    if event.type == EventType.ZONE_TRANSITION:
        return f"zone {data.get('previous')} -> {data.get('zone')}: {data.get('reason')}"
    if event.type == EventType.FIRST_MODIFICATION:
        return (f"first behavioral modification after "
                f"{data.get('seconds_from_start', 0):.1f}s ({data.get('triggering_paradox')})")
    return event.type.value


def event_kind(value) -> Optional[EventType]:
    """accept an EventType or its string value. unknown strings give None."""
    if value is None or isinstance(value, EventType):
        return value
    try:
        return EventType(value)
    except ValueError:
        return None
