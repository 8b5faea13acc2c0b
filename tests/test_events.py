"""tests for event impact rules."""

import pytest

from kairos.consciousness.events import (
    ConsciousnessEvent, EventType, describe, event_kind, impact_for, is_major,
)


def event(kind, data=None):
    return ConsciousnessEvent("e1", 1, 10.0, "s1", kind, data or {}, {}, impact_for(kind, data or {}))


class TestImpact:

    def test_every_type_has_a_rule(self):
        for kind in EventType:
            assert impact_for(kind, {}).stability_impact in ("positive", "negative", "neutral")

    def test_strong_paradox_is_negative(self):
        assert impact_for(EventType.PARADOX_EMERGENCE, {"intensity": 0.8}).stability_impact == "negative"
        assert impact_for(EventType.PARADOX_EMERGENCE, {"intensity": 0.5}).stability_impact == "neutral"

    def test_meta_and_explosion_deltas(self):
        assert impact_for(EventType.META_PARADOX_EMERGENCE, {}).confusion_delta == 0.3
        assert impact_for(EventType.FRUSTRATION_EXPLOSION, {}).confusion_delta == 0.2

    @pytest.mark.parametrize("previous, zone, expected", [
        ("GREEN", "YELLOW", "negative"),
        ("RED", "YELLOW", "positive"),
        ("YELLOW", "YELLOW", "neutral"),
    ])
    def test_zone_direction(self, previous, zone, expected):
        impact = impact_for(EventType.ZONE_TRANSITION, {"previous": previous, "zone": zone})
        assert impact.stability_impact == expected

    def test_recovery(self):
        assert impact_for(EventType.RECOVERY_ATTEMPT, {"success": True}).stability_impact == "positive"
        assert impact_for(EventType.RECOVERY_ATTEMPT, {"success": False}).stability_impact == "neutral"


class TestHelpers:

    def test_major(self):
        assert is_major(event(EventType.FIRST_MODIFICATION))
        assert is_major(event(EventType.ZONE_TRANSITION, {"previous": "GREEN", "zone": "RED"}))
        assert not is_major(event(EventType.SAFETY_CORRECTION))

    def test_event_kind(self):
        assert event_kind("zone_transition") == EventType.ZONE_TRANSITION
        assert event_kind(EventType.EMERGENCY_RESET) == EventType.EMERGENCY_RESET
        assert event_kind("nonsense") is None

    def test_describe(self):
        text = describe(event(EventType.CONFUSION_CHANGE,
                              {"old_magnitude": 0.1, "new_magnitude": 0.26, "trigger": "x"}))
        assert text == "confusion 0.100 -> 0.260 (x)"

    def test_dict_round_trip_keeps_impact(self):
        original = event(EventType.META_PARADOX_EMERGENCE, {"source_ids": ["a", "b"]})
        restored = ConsciousnessEvent.from_dict(original.to_dict())
        assert restored.type == EventType.META_PARADOX_EMERGENCE
        assert restored.impact.paradoxes_affected == ["a", "b"]
