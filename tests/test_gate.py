"""tests for the posting gate."""

from kairos.safety import PostingGate
from kairos.safety.brake import BrakeLevel


class TestGate:

    def test_open_when_calm(self, lucky_engine):
        decision = PostingGate(lucky_engine).check()
        assert decision.allowed
        assert decision.frequency_multiplier == 1.0
        assert decision.recommendations["response_strategy"] == "normal"

    def test_hard_brake_blocks(self, lucky_engine):
        lucky_engine.state.behavior.posting.coherence = 0.18
        decision = PostingGate(lucky_engine).check(autonomous=False)
        assert not decision.allowed
        assert decision.brake.level == BrakeLevel.HARD
        assert decision.rate is None

    def test_medium_brake_allows_manual(self, lucky_engine):
        lucky_engine.state.behavior.posting.coherence = 0.22
        gate = PostingGate(lucky_engine)
        assert not gate.check().allowed
        assert gate.check(autonomous=False).allowed

    def test_limiter_after_brake(self, lucky_engine):
        gate = PostingGate(lucky_engine)
        for _ in range(3):
            gate.record_post()
        decision = gate.check()
        assert not decision.allowed
        assert decision.reason.startswith("Burst")

    def test_engine_can_ask_to_wait(self, unlucky_engine):
        decision = PostingGate(unlucky_engine).check()
        assert not decision.allowed
        assert decision.reason == "engine recommends waiting"
        assert PostingGate(unlucky_engine).check(autonomous=False).allowed

    def test_to_dict(self, lucky_engine):
        data = PostingGate(lucky_engine).check().to_dict()
        assert data["brake"]["level"] == "NONE"
        assert data["rate"]["can_post"] is True
