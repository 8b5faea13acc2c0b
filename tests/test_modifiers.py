"""tests for behavioral modifier triggers and effects."""

import pytest

from kairos.confusion.modifiers import (
    abstraction_method, apply_modifier, coherence_drop, handler_for,
    pattern_holds, should_fire,
)
from kairos.types import (
    BehavioralModifier, BehavioralState, InvestigationMethod, ModifierKind,
    TemporalKind, TemporalPattern, Tone, Trigger,
)
from tests.conftest import FixedRandom


def mod(kind, value, **trigger):
    return BehavioralModifier(kind, value, Trigger(**trigger))


class TestTriggers:

    def test_min_intensity(self):
        m = mod(ModifierKind.QUESTIONING_DEPTH, 0.4, min_intensity=0.6)
        assert not should_fire(m, 0.5, 0.0, set(), FixedRandom(), 0.0)
        assert should_fire(m, 0.6, 0.0, set(), FixedRandom(), 0.0)

    def test_required_paradoxes(self):
        m = mod(ModifierKind.QUESTIONING_DEPTH, 0.4, required_paradoxes=["mirror", "mask"])
        assert not should_fire(m, 0.5, 0.0, {"mirror"}, FixedRandom(), 0.0)
        assert should_fire(m, 0.5, 0.0, {"mirror", "mask", "other"}, FixedRandom(), 0.0)

    def test_cyclic_fires_once_per_period(self):
        p = TemporalPattern(TemporalKind.CYCLIC, period=60.0)
        rng = FixedRandom()
        assert pattern_holds(p, 0.5, 0.0, rng, now=100.0)
        assert p.last_trigger == 100.0
        assert not pattern_holds(p, 0.5, 0.0, rng, now=130.0)
        assert pattern_holds(p, 0.5, 0.0, rng, now=160.0)

    def test_sporadic(self):
        p = TemporalPattern(TemporalKind.SPORADIC, intensity=0.3)
        assert pattern_holds(p, 0.5, 0.0, FixedRandom(0.1), 0.0)
        assert not pattern_holds(p, 0.5, 0.0, FixedRandom(0.5), 0.0)

    def test_crescendo(self):
        p = TemporalPattern(TemporalKind.CRESCENDO, intensity=0.4)
        assert pattern_holds(p, 0.5, 0.1, FixedRandom(), 0.0)
        assert not pattern_holds(p, 0.5, -0.1, FixedRandom(), 0.0)
        assert not pattern_holds(p, 0.3, 0.1, FixedRandom(), 0.0)

    def test_decay(self):
        p = TemporalPattern(TemporalKind.DECAY, intensity=0.4)
        assert pattern_holds(p, 0.3, -0.1, FixedRandom(), 0.0)
        assert not pattern_holds(p, 0.5, -0.1, FixedRandom(), 0.0)
        assert not pattern_holds(p, 0.3, 0.1, FixedRandom(), 0.0)


class TestEffects:

    def test_every_kind_has_a_handler(self):
        for kind in ModifierKind:
            assert callable(handler_for(kind))

    def test_posting_frequency(self):
        b = BehavioralState()
        apply_modifier(b, mod(ModifierKind.POSTING_FREQUENCY, 0.5))
        assert b.posting.frequency == pytest.approx(1.5)
        apply_modifier(b, mod(ModifierKind.POSTING_FREQUENCY, -0.99))
        assert b.posting.frequency == pytest.approx(0.1)

    def test_response_style_walks_ladder(self):
        b = BehavioralState()
        changes = apply_modifier(b, mod(ModifierKind.RESPONSE_STYLE, 0.5))
        # index 0 + round(1.0) = 1
        assert b.posting.tone == Tone.DECLARATIVE
        assert b.posting.coherence == pytest.approx(0.7)
        assert changes["tone"] == ("questioning", "declarative")
        assert coherence_drop(changes) == pytest.approx((0.8, 0.7))

    def test_response_style_clamps_ladder(self):
        b = BehavioralState()
        apply_modifier(b, mod(ModifierKind.RESPONSE_STYLE, 3.0))
        assert b.posting.tone == Tone.POETIC
        assert b.posting.coherence == pytest.approx(0.2)
        apply_modifier(b, mod(ModifierKind.RESPONSE_STYLE, -3.0))
        assert b.posting.tone == Tone.QUESTIONING

    def test_response_style_coherence_floor(self):
        b = BehavioralState()
        b.posting.coherence = 0.15
        apply_modifier(b, mod(ModifierKind.RESPONSE_STYLE, 1.0))
        assert b.posting.coherence == 0.1

    def test_negative_style_raises_coherence(self):
        b = BehavioralState()
        changes = apply_modifier(b, mod(ModifierKind.RESPONSE_STYLE, -0.3))
        assert b.posting.coherence == pytest.approx(0.86)
        assert coherence_drop(changes) is None

    def test_investigation_preference(self):
        b = BehavioralState()
        apply_modifier(b, mod(ModifierKind.INVESTIGATION_PREFERENCE, 0.5))
        assert b.investigation.depth == pytest.approx(0.6)
        assert b.investigation.breadth == pytest.approx(0.55)

    def test_questioning_depth(self):
        b = BehavioralState()
        apply_modifier(b, mod(ModifierKind.QUESTIONING_DEPTH, 1.0))
        assert b.interaction.questioning_intensity == pytest.approx(0.7)
        apply_modifier(b, mod(ModifierKind.QUESTIONING_DEPTH, 5.0))
        assert b.interaction.questioning_intensity == 1.0

    @pytest.mark.parametrize("value, method", [
        (0.6, InvestigationMethod.DIALECTICAL),
        (0.3, InvestigationMethod.INTUITIVE),
        (0.0, InvestigationMethod.CHAOTIC),
        (-0.3, InvestigationMethod.CHAOTIC),
        (-0.6, InvestigationMethod.SYSTEMATIC),
    ])
    def test_abstraction_level(self, value, method):
        assert abstraction_method(value) == method
        b = BehavioralState()
        apply_modifier(b, mod(ModifierKind.ABSTRACTION_LEVEL, value))
        assert b.investigation.method == method
