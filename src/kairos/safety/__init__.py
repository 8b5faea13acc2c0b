"""safety - posting gates that sit beside the engine: coherence brake, rate limiter."""

from kairos.safety.brake import BrakeLevel, CoherenceBrake
from kairos.safety.gate import PostingGate
from kairos.safety.rate_limit import PostingRateLimiter

__all__ = ["BrakeLevel", "CoherenceBrake", "PostingGate", "PostingRateLimiter"]
