"""tests for paradox interaction and meta-paradox synthesis."""

import random

import pytest

from kairos.confusion.paradox import (
    EMERGENT_CONCEPTS, INTERACTION_THRESHOLD, active_names, decay_paradoxes,
    find_interactions, interaction_score, shared_count, similarity,
    synthesize_meta, trim_to_recent,
)
from kairos.types import ModifierKind, Paradox, TemporalKind
from tests.conftest import FixedRandom


def make(pid, name="p", intensity=0.5, obs=None, contra=None, meta=0.5, created=0.0):
    return Paradox(
        id=pid, name=name, description="", intensity=intensity,
        observations=obs or [], contradictions=contra or [],
        meta_potential=meta, created_at=created,
    )


class TestSimilarity:

    def test_identical(self):
        assert similarity("the mask is the face", "The Mask is the FACE") == 1.0

    def test_disjoint(self):
        assert similarity("alpha beta", "gamma delta") == 0.0

    def test_partial(self):
        # {a, b, c} vs {a, b, d}: 2 shared of 4
        assert similarity("a b c", "a b d") == pytest.approx(0.5)

    def test_empty_is_zero(self):
        assert similarity("", "") == 0.0
        assert similarity("", "word") == 0.0

    def test_shared_count_requires_more_than_half(self):
        assert shared_count(["a b c"], ["a b d"]) == 0
        assert shared_count(["a b c"], ["a b c d"]) == 1


class TestInteractionScore:

    def test_weights(self):
        p = make("1", intensity=0.5, obs=["x y z"], contra=["m n"])
        q = make("2", intensity=0.4, obs=["x y z"], contra=["m n"])
        # 0.3*1 + 0.5*1 + 0.2*0.2
        assert interaction_score(p, q) == pytest.approx(0.84)

    def test_intensity_only(self):
        p = make("1", intensity=-1.0)
        q = make("2", intensity=1.0)
        assert interaction_score(p, q) == pytest.approx(0.2)


class TestFindInteractions:

    def test_strong_pair_with_lucky_draw(self):
        p = make("1", obs=["x y z"], contra=["m n"])
        q = make("2", obs=["x y z"], contra=["m n"], meta=0.8)
        found = find_interactions({"1": p, "2": q}, q, FixedRandom(0.0))
        assert [(e.id, round(s, 3)) for e, s in found] == [("1", 0.85)]

    def test_draw_against_meta_potential(self):
        p = make("1", obs=["x y z"], contra=["m n"])
        q = make("2", obs=["x y z"], contra=["m n"], meta=0.5)
        assert find_interactions({"1": p, "2": q}, q, FixedRandom(0.6)) == []

    def test_weak_pair_never_interacts(self):
        p = make("1", obs=["x y z"])
        q = make("2", obs=["x y z"], meta=1.0)
        # 0.3 + 0.2*0.25 is below the threshold
        assert find_interactions({"1": p, "2": q}, q, FixedRandom(0.0)) == []

    def test_skips_itself(self):
        q = make("2", obs=["x y z"], contra=["m n"], meta=1.0)
        assert find_interactions({"2": q}, q, FixedRandom(0.0)) == []


class TestSynthesizeMeta:

    def test_shape(self):
        p = make("1", name="mirror")
        q = make("2", name="mask")
        meta = synthesize_meta(p, q, 0.9, random.Random(1), now=50.0)
        assert meta.name == "meta_mirror_mask"
        assert meta.source_ids == ("1", "2")
        assert meta.interaction_score == 0.9
        assert meta.created_at == 50.0
        assert meta.emergent_property.startswith("The mirror and mask reveal a deeper pattern")
        assert any(meta.emergent_property.endswith(c) for c in EMERGENT_CONCEPTS)

    def test_modifiers(self):
        meta = synthesize_meta(make("1"), make("2"), 0.8, random.Random(1), now=0.0)
        kinds = [m.kind for m in meta.modifiers]
        assert kinds == [ModifierKind.ABSTRACTION_LEVEL, ModifierKind.QUESTIONING_DEPTH]
        cyclic = meta.modifiers[0].trigger.temporal_pattern
        assert cyclic.kind == TemporalKind.CYCLIC
        assert cyclic.period == 3600.0

    def test_seeded_ids_replay(self):
        a = synthesize_meta(make("1"), make("2"), 0.8, random.Random(5), now=0.0)
        b = synthesize_meta(make("1"), make("2"), 0.8, random.Random(5), now=0.0)
        assert a.id == b.id
        assert a.emergent_property == b.emergent_property


class TestRegistryUpkeep:

    def test_no_decay_inside_retention(self):
        reg = {"1": make("1", intensity=0.5)}
        decay_paradoxes(reg, dt=10, retention=3600, factor=0.5)
        assert reg["1"].intensity == 0.5
        assert reg["1"].active_time == 10

    def test_decay_after_retention(self):
        reg = {"1": make("1", intensity=0.5)}
        decay_paradoxes(reg, dt=4000, retention=3600, factor=0.5)
        assert reg["1"].intensity == pytest.approx(0.25)

    def test_faded_paradox_removed(self):
        reg = {"1": make("1", intensity=0.15), "2": make("2", intensity=-0.9)}
        removed = decay_paradoxes(reg, dt=4000, retention=3600, factor=0.5)
        assert [p.id for p in removed] == ["1"]
        assert list(reg) == ["2"]

    def test_trim_keeps_most_recent(self):
        reg = {str(i): make(str(i), created=float(i)) for i in range(6)}
        dropped = trim_to_recent(reg, 3)
        assert sorted(reg) == ["3", "4", "5"]
        assert len(dropped) == 3

    def test_trim_noop_when_small(self):
        reg = {"1": make("1")}
        assert trim_to_recent(reg, 3) == []

    def test_active_names_include_ids(self):
        assert active_names({"abc": make("abc", name="spiral")}) == {"abc", "spiral"}

    def test_threshold_constant(self):
        assert INTERACTION_THRESHOLD == 0.7
