"""gate.py - the posting decision.

the host asks one question before it speaks: may I post now?
the coherence brake answers first, then the rate limiter, then the
engine's own recommendation. the brake and limiter share the engine's
lock so a decision always reads one consistent state.
"""

from dataclasses import dataclass, field
from typing import Optional

from kairos import log
from kairos.confusion.engine import ConfusionEngine
from kairos.safety.brake import BrakeStatus, CoherenceBrake
from kairos.safety.rate_limit import PostingRateLimiter, RateLimitStatus


@dataclass
class PostingDecision:
    allowed: bool
    reason: str
    brake: BrakeStatus
    rate: Optional[RateLimitStatus] = None
    frequency_multiplier: float = 0.0
    recommendations: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "brake": self.brake.to_dict(),
            "rate": self.rate.to_dict() if self.rate else None,
            "frequency_multiplier": self.frequency_multiplier,
            "response_strategy": self.recommendations.get("response_strategy"),
        }


class PostingGate:

    def __init__(self, engine: ConfusionEngine, brake: CoherenceBrake = None,
                 limiter: PostingRateLimiter = None):
        self.engine = engine
        self.brake = brake or CoherenceBrake(clock=engine.clock)
        self.limiter = limiter or PostingRateLimiter(clock=engine.clock)

    def check(self, autonomous: bool = True) -> PostingDecision:
        with self.engine.lock:
            brake = self.brake.evaluate(self.engine.coherence)
            if not brake.can_post or (autonomous and not brake.can_auto_post):
                log.info("gate", f"post blocked by brake: {brake.reason}")
                return PostingDecision(False, brake.reason, brake)

            rate = self.limiter.check_limit()
            if not rate.can_post:
                log.info("gate", f"post blocked by limiter: {rate.reason}")
                return PostingDecision(False, rate.reason, brake, rate)

            recs = self.engine.get_behavioral_recommendations()
            multiplier = brake.frequency_modifier * recs["zone_posting_modifier"]
            if autonomous and not recs["should_post"]:
                return PostingDecision(False, "engine recommends waiting", brake, rate, multiplier, recs)
            return PostingDecision(True, "ok", brake, rate, multiplier, recs)

    def record_post(self):
        with self.engine.lock:
            self.limiter.record_post()
