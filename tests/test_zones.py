"""tests for zone classification and recovery strategies."""

import pytest

from kairos.confusion.zones import (
    EMERGENCY_RESET, STRATEGIES, SafetyMonitor, ZoneRecoveries,
    determine_zone, dissociation_risk, reset_state, stop_state,
    strategies_for, transition_reason,
)
from kairos.types import (
    ConfusionState, InvestigationMethod, MetaParadox, Paradox, SafetyZone, Tone,
)
from tests.conftest import FixedRandom


def state_at(magnitude, coherence=0.8, oscillation=0.2):
    state = ConfusionState()
    state.vector.magnitude = magnitude
    state.vector.oscillation = oscillation
    state.behavior.posting.coherence = coherence
    return state


def strategy(zone, name):
    return next(s for s in STRATEGIES[zone] if s.name == name)


class TestDetermineZone:

    @pytest.mark.parametrize("confusion, coherence, zone", [
        (0.1, 0.8, SafetyZone.GREEN),
        (0.79, 0.8, SafetyZone.GREEN),
        (0.8, 0.8, SafetyZone.YELLOW),
        (0.89, 0.8, SafetyZone.YELLOW),
        (0.9, 0.8, SafetyZone.RED),
        (0.1, 0.25, SafetyZone.YELLOW),
        (0.95, 0.25, SafetyZone.RED),
        (0.1, 0.19, SafetyZone.RED),
    ])
    def test_table(self, confusion, coherence, zone):
        assert determine_zone(confusion, coherence) == zone

    def test_reasons(self):
        assert transition_reason(SafetyZone.YELLOW, 0.2, 0.25).startswith("coherence degradation")
        assert transition_reason(SafetyZone.RED, 0.92, 0.8).startswith("breakthrough")
        assert transition_reason(SafetyZone.YELLOW, 0.85, 0.8).startswith("elevated")
        assert transition_reason(SafetyZone.GREEN, 0.4, 0.8).startswith("stabilized")


class TestStrategies:

    def test_gentle_grounding(self):
        state = state_at(0.5)
        assert strategy(SafetyZone.GREEN, "gentle_grounding").attempt(state, FixedRandom(0.0))
        assert state.vector.magnitude == pytest.approx(0.425)
        assert state.vector.oscillation == pytest.approx(0.19)

    def test_stabilization_has_floor(self):
        state = state_at(0.55)
        strategy(SafetyZone.YELLOW, "stabilization").attempt(state, FixedRandom(0.0))
        assert state.vector.magnitude == 0.5

    def test_stabilization_keeps_metas(self):
        state = state_at(0.85)
        state.meta_paradoxes["m"] = MetaParadox("m", "meta_a_b", ("a", "b"), "x")
        strategy(SafetyZone.YELLOW, "stabilization").attempt(state, FixedRandom(0.0))
        assert "m" in state.meta_paradoxes

    def test_never_raises_magnitude(self):
        # stabilization's floor of 0.5 would lift this
        state = state_at(0.2)
        strategy(SafetyZone.YELLOW, "stabilization").attempt(state, FixedRandom(0.0))
        assert state.vector.magnitude == 0.2

    def test_coherence_restoration(self):
        state = state_at(0.85, coherence=0.4)
        state.behavior.posting.tone = Tone.FRAGMENTED
        strategy(SafetyZone.YELLOW, "coherence_restoration").attempt(state, FixedRandom(0.0))
        assert state.behavior.posting.coherence == pytest.approx(0.55)
        assert state.behavior.posting.tone == Tone.QUESTIONING

    def test_emergency_stabilization_trims(self):
        state = state_at(0.92)
        for i in range(5):
            state.paradoxes[str(i)] = Paradox(str(i), f"p{i}", "", 0.5, created_at=float(i))
        strategy(SafetyZone.RED, "emergency_stabilization").attempt(state, FixedRandom(0.0))
        assert state.vector.magnitude == pytest.approx(0.644)
        assert sorted(state.paradoxes) == ["2", "3", "4"]

    def test_coherence_emergency(self):
        state = state_at(0.92, coherence=0.15)
        state.behavior.investigation.method = InvestigationMethod.CHAOTIC
        state.meta_paradoxes["m"] = MetaParadox("m", "meta_a_b", ("a", "b"), "x")
        strategy(SafetyZone.RED, "coherence_emergency").attempt(state, FixedRandom(0.0))
        assert state.behavior.posting.coherence == 0.5
        assert state.behavior.investigation.method == InvestigationMethod.SYSTEMATIC
        assert state.meta_paradoxes == {}

    def test_effect_applies_even_on_failure(self):
        state = state_at(0.5)
        assert not strategy(SafetyZone.GREEN, "gentle_grounding").attempt(state, FixedRandom(0.99))
        assert state.vector.magnitude == pytest.approx(0.425)

    def test_emergency_reset_always_succeeds(self):
        state = state_at(0.97, coherence=0.1)
        state.paradoxes["x"] = Paradox("x", "x", "", 0.9)
        assert EMERGENCY_RESET.attempt(state, FixedRandom(0.99))
        assert state.vector.magnitude == 0.3
        assert state.behavior.posting.coherence == 0.8
        assert state.paradoxes == {}

    def test_reset_appended_only_above_threshold(self):
        assert EMERGENCY_RESET not in strategies_for(SafetyZone.RED, 0.92)
        assert strategies_for(SafetyZone.RED, 0.96)[-1] is EMERGENCY_RESET
        assert EMERGENCY_RESET not in strategies_for(SafetyZone.YELLOW, 0.99)

    def test_stop_state_is_quieter(self):
        state = state_at(0.97, coherence=0.1)
        stop_state(state)
        assert state.vector.magnitude == 0.2
        assert state.vector.oscillation == 0.03
        assert state.behavior.posting.coherence == 0.9

    def test_reset_clears_frustration(self):
        state = state_at(0.97)
        state.frustration.accumulation = 4.0
        state.frustration.triggers = ["x"]
        reset_state(state)
        assert state.frustration.accumulation == 0.0
        assert state.frustration.triggers == []


class TestMonitor:

    def test_rate_without_attempts_is_zero(self):
        assert ZoneRecoveries().rate == 0.0

    def test_record_attempt(self):
        monitor = SafetyMonitor()
        monitor.record_attempt(SafetyZone.YELLOW, True)
        monitor.record_attempt(SafetyZone.YELLOW, False)
        assert monitor.recoveries[SafetyZone.YELLOW].rate == 0.5
        assert monitor.recoveries[SafetyZone.RED].attempts == 0

    def test_cooldown(self):
        monitor = SafetyMonitor(emergency_reset_available=False, reset_available_at=100.0)
        monitor.refresh_cooldown(50.0)
        assert not monitor.emergency_reset_available
        monitor.refresh_cooldown(100.0)
        assert monitor.emergency_reset_available

    def test_dissociation_risk(self):
        assert dissociation_risk(0.5) == 0.0
        assert dissociation_risk(0.15) == pytest.approx(0.5)
        assert dissociation_risk(0.0) == 1.0
